import decimal

import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import marketplace.validators


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(error_messages={'unique': 'A user with that email already exists.'}, help_text='Required. Enter a valid email address.', max_length=254, unique=True, verbose_name='email address')),
                ('phone_number', models.CharField(blank=True, default='', help_text='Optional. Enter phone number in international format.', max_length=20, validators=[marketplace.validators.validate_phone_number], verbose_name='phone number')),
                ('campus', models.CharField(blank=True, default='', help_text='Campus the user buys and sells on.', max_length=120, verbose_name='campus')),
                ('university_email', models.EmailField(blank=True, default='', help_text='Optional. Academic email address.', max_length=254, validators=[marketplace.validators.validate_university_email], verbose_name='university email')),
                ('is_verified', models.BooleanField(default=False, help_text='Indicates whether the student has been verified.', verbose_name='verified status')),
                ('avg_rating_as_seller', models.DecimalField(decimal_places=2, default=decimal.Decimal('0.00'), help_text='Average rating received as a seller.', max_digits=3, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0.00'), message='Rating cannot be negative.'), django.core.validators.MaxValueValidator(decimal.Decimal('5.00'), message='Rating cannot exceed 5.00.')], verbose_name='average rating as seller')),
                ('avg_rating_as_buyer', models.DecimalField(decimal_places=2, default=decimal.Decimal('0.00'), help_text='Average rating received as a buyer.', max_digits=3, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0.00'), message='Rating cannot be negative.'), django.core.validators.MaxValueValidator(decimal.Decimal('5.00'), message='Rating cannot exceed 5.00.')], verbose_name='average rating as buyer')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['campus'], name='user_campus_idx'),
                    models.Index(fields=['is_verified'], name='user_is_verified_idx'),
                ],
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Bundle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('description', models.TextField(blank=True, default='', verbose_name='description')),
                ('discount_percent', models.PositiveSmallIntegerField(default=0, help_text='Discount applied to the bundle total (0-100)', validators=[django.core.validators.MaxValueValidator(100, message='Discount cannot exceed 100%.')], verbose_name='discount percent')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('owner', models.ForeignKey(help_text='Seller who created the bundle', on_delete=django.db.models.deletion.CASCADE, related_name='bundles', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'bundle',
                'verbose_name_plural': 'bundles',
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('discount_percent__lte', 100)), name='bundle_discount_at_most_100'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Listing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('description', models.TextField(verbose_name='description')),
                ('price_cents', models.PositiveIntegerField(help_text='Asking price in cents (0 for free items)', verbose_name='price (cents)')),
                ('original_price_cents', models.PositiveIntegerField(blank=True, help_text='Price before a sale discount, if any', null=True, verbose_name='original price (cents)')),
                ('discount_percent', models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MaxValueValidator(99, message='Discount cannot exceed 99%.')], verbose_name='discount percent')),
                ('category', models.CharField(max_length=60, verbose_name='category')),
                ('condition', models.CharField(max_length=60, verbose_name='condition')),
                ('campus', models.CharField(max_length=120, verbose_name='campus')),
                ('transaction_type', models.CharField(choices=[('SELL', 'Sell'), ('RENT', 'Rent')], default='SELL', max_length=4, verbose_name='transaction type')),
                ('rental_period_days', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)], verbose_name='rental period (days)')),
                ('status', models.CharField(choices=[('AVAILABLE', 'Available'), ('RESERVED', 'Reserved'), ('SOLD', 'Sold')], default='AVAILABLE', max_length=10, verbose_name='status')),
                ('reviews_disabled', models.BooleanField(default=False, help_text='When set, the listing accepts no new generic reviews', verbose_name='reviews disabled')),
                ('view_count', models.PositiveIntegerField(default=0, verbose_name='view count')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('bundle', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='listings', to='marketplace.bundle')),
                ('owner', models.ForeignKey(help_text='User who posted the listing', on_delete=django.db.models.deletion.CASCADE, related_name='listings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'listing',
                'verbose_name_plural': 'listings',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['owner'], name='listing_owner_idx'),
                    models.Index(fields=['status'], name='listing_status_idx'),
                    models.Index(fields=['category', 'campus', 'transaction_type'], name='listing_category_campus_idx'),
                    models.Index(fields=['view_count'], name='listing_view_count_idx'),
                    models.Index(fields=['created_at'], name='listing_created_at_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Offer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount_cents', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1, message='Offer amount must be positive.')], verbose_name='amount (cents)')),
                ('message', models.TextField(blank=True, default='', verbose_name='message')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('ACCEPTED', 'Accepted'), ('DECLINED', 'Declined')], default='PENDING', max_length=10, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('responded_at', models.DateTimeField(blank=True, null=True, verbose_name='responded at')),
                ('buyer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='offers_made', to=settings.AUTH_USER_MODEL)),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='offers', to='marketplace.listing')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='offers_received', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'offer',
                'verbose_name_plural': 'offers',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['listing', 'status'], name='offer_listing_status_idx'),
                    models.Index(fields=['seller', 'status'], name='offer_seller_status_idx'),
                    models.Index(fields=['buyer'], name='offer_buyer_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('buyer', models.F('seller')), _negated=True), name='offer_buyer_not_seller'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('price_cents', models.PositiveIntegerField(verbose_name='price (cents)')),
                ('completed_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='completed at')),
                ('buyer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchases', to=settings.AUTH_USER_MODEL)),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='marketplace.listing')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'transaction',
                'verbose_name_plural': 'transactions',
                'ordering': ['-completed_at'],
                'indexes': [
                    models.Index(fields=['seller'], name='transaction_seller_idx'),
                    models.Index(fields=['buyer'], name='transaction_buyer_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('listing', 'buyer'), name='unique_transaction_per_listing_buyer'),
                    models.CheckConstraint(condition=models.Q(('buyer', models.F('seller')), _negated=True), name='transaction_buyer_not_seller'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Review',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rating', models.PositiveSmallIntegerField(help_text='Rating from 1 to 5 stars', validators=[django.core.validators.MinValueValidator(1, message='Rating must be at least 1.'), django.core.validators.MaxValueValidator(5, message='Rating must be at most 5.')], verbose_name='rating')),
                ('comment', models.TextField(blank=True, default='', verbose_name='comment')),
                ('role', models.CharField(blank=True, choices=[('BUYER', 'Buyer'), ('SELLER', 'Seller')], max_length=6, null=True, verbose_name='role')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('listing', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviews', to='marketplace.listing')),
                ('reviewer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews_given', to=settings.AUTH_USER_MODEL)),
                ('seller', models.ForeignKey(help_text='User receiving the review', on_delete=django.db.models.deletion.CASCADE, related_name='reviews_received', to=settings.AUTH_USER_MODEL)),
                ('transaction', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='marketplace.transaction')),
            ],
            options={
                'verbose_name': 'review',
                'verbose_name_plural': 'reviews',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['seller'], name='review_seller_idx'),
                    models.Index(fields=['reviewer'], name='review_reviewer_idx'),
                    models.Index(fields=['listing'], name='review_listing_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('transaction', 'reviewer'), name='unique_review_per_transaction_reviewer'),
                    models.CheckConstraint(condition=models.Q(('reviewer', models.F('seller')), _negated=True), name='review_reviewer_not_seller'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SavedListing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_by', to='marketplace.listing')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_listings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'saved listing',
                'verbose_name_plural': 'saved listings',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'listing'), name='unique_saved_listing'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Follow',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('follower', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='following', to=settings.AUTH_USER_MODEL)),
                ('following', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='followers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'follow',
                'verbose_name_plural': 'follows',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('follower', 'following'), name='unique_follow'),
                    models.CheckConstraint(condition=models.Q(('follower', models.F('following')), _negated=True), name='follow_not_self'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ListingView',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('viewed_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='viewed at')),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='views', to='marketplace.listing')),
                ('viewer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='listing_views', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'listing view',
                'verbose_name_plural': 'listing views',
                'constraints': [
                    models.UniqueConstraint(fields=('listing', 'viewer'), name='unique_listing_view'),
                ],
            },
        ),
    ]
