"""
Models for the Campus Marketplace listing lifecycle and negotiation engine.
"""

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .validators import (
    BUNDLE_TITLE_MIN_LENGTH,
    OFFER_MESSAGE_MIN_LENGTH,
    REVIEW_COMMENT_MIN_LENGTH,
    validate_phone_number,
    validate_university_email,
)


class User(AbstractUser):
    """
    Campus marketplace user.

    Additional fields:
    - email: Required, unique email address
    - phone_number: Optional phone number with validation
    - campus: Home campus, used to localise listings
    - university_email: Optional academic address (counts as verification)
    - is_verified: Student verification status
    - avg_rating_as_seller / avg_rating_as_buyer: maintained by review signals
    """

    email = models.EmailField(
        _('email address'),
        unique=True,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. Enter a valid email address.')
    )

    phone_number = models.CharField(
        _('phone number'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
        help_text=_('Optional. Enter phone number in international format.')
    )

    campus = models.CharField(
        _('campus'),
        max_length=120,
        blank=True,
        default='',
        help_text=_('Campus the user buys and sells on.')
    )

    university_email = models.EmailField(
        _('university email'),
        blank=True,
        default='',
        validators=[validate_university_email],
        help_text=_('Optional. Academic email address.')
    )

    is_verified = models.BooleanField(
        _('verified status'),
        default=False,
        help_text=_('Indicates whether the student has been verified.')
    )

    avg_rating_as_seller = models.DecimalField(
        _('average rating as seller'),
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[
            MinValueValidator(Decimal('0.00'), message=_('Rating cannot be negative.')),
            MaxValueValidator(Decimal('5.00'), message=_('Rating cannot exceed 5.00.'))
        ],
        help_text=_('Average rating received as a seller.')
    )

    avg_rating_as_buyer = models.DecimalField(
        _('average rating as buyer'),
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[
            MinValueValidator(Decimal('0.00'), message=_('Rating cannot be negative.')),
            MaxValueValidator(Decimal('5.00'), message=_('Rating cannot exceed 5.00.'))
        ],
        help_text=_('Average rating received as a buyer.')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['campus'], name='user_campus_idx'),
            models.Index(fields=['is_verified'], name='user_is_verified_idx'),
        ]

    def __str__(self):
        return self.email or self.username

    def clean(self):
        super().clean()
        if self.email:
            self.email = self.email.lower()
        if not self.email:
            raise ValidationError({
                'email': _('Email address is required.')
            })

    def save(self, *args, **kwargs):
        # Normalize email so uniqueness is case-insensitive
        if self.email:
            self.email = self.email.lower()
        super().save(*args, **kwargs)


class Bundle(models.Model):
    """
    A seller-defined discounted grouping of their own listings.

    Listings join a bundle through ``Listing.bundle``; see
    ``marketplace.services.bundles`` for the attach rules.
    """

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='bundles',
        help_text=_('Seller who created the bundle')
    )

    title = models.CharField(_('title'), max_length=200)

    description = models.TextField(_('description'), blank=True, default='')

    discount_percent = models.PositiveSmallIntegerField(
        _('discount percent'),
        default=0,
        validators=[
            MaxValueValidator(100, message=_('Discount cannot exceed 100%.'))
        ],
        help_text=_('Discount applied to the bundle total (0-100)')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('bundle')
        verbose_name_plural = _('bundles')
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_percent__lte=100),
                name='bundle_discount_at_most_100',
            ),
        ]

    def __str__(self):
        return self.title

    def clean(self):
        super().clean()
        if not self.title or len(self.title.strip()) < BUNDLE_TITLE_MIN_LENGTH:
            raise ValidationError({
                'title': _('Bundle title must be at least 3 characters.')
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class Listing(models.Model):
    """
    An item or service being sold or rented.

    Status only moves forward: AVAILABLE -> RESERVED -> SOLD or
    AVAILABLE -> SOLD. ``view_count`` only grows and is updated with
    ``F()`` expressions, never through ``save()``.
    """

    AVAILABLE = 'AVAILABLE'
    RESERVED = 'RESERVED'
    SOLD = 'SOLD'

    STATUS_CHOICES = [
        (AVAILABLE, 'Available'),
        (RESERVED, 'Reserved'),
        (SOLD, 'Sold'),
    ]

    # Accepting an offer re-reserves an already reserved listing
    VALID_TRANSITIONS = {
        AVAILABLE: [RESERVED, SOLD],
        RESERVED: [RESERVED, SOLD],
        SOLD: [],  # Terminal state
    }

    SELL = 'SELL'
    RENT = 'RENT'

    TRANSACTION_TYPE_CHOICES = [
        (SELL, 'Sell'),
        (RENT, 'Rent'),
    ]

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='listings',
        help_text=_('User who posted the listing')
    )

    title = models.CharField(_('title'), max_length=200)

    description = models.TextField(_('description'))

    price_cents = models.PositiveIntegerField(
        _('price (cents)'),
        help_text=_('Asking price in cents (0 for free items)')
    )

    original_price_cents = models.PositiveIntegerField(
        _('original price (cents)'),
        null=True,
        blank=True,
        help_text=_('Price before a sale discount, if any')
    )

    discount_percent = models.PositiveSmallIntegerField(
        _('discount percent'),
        null=True,
        blank=True,
        validators=[
            MaxValueValidator(99, message=_('Discount cannot exceed 99%.'))
        ],
    )

    category = models.CharField(_('category'), max_length=60)

    condition = models.CharField(_('condition'), max_length=60)

    campus = models.CharField(_('campus'), max_length=120)

    transaction_type = models.CharField(
        _('transaction type'),
        max_length=4,
        choices=TRANSACTION_TYPE_CHOICES,
        default=SELL,
    )

    rental_period_days = models.PositiveIntegerField(
        _('rental period (days)'),
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=AVAILABLE,
    )

    bundle = models.ForeignKey(
        Bundle,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='listings',
    )

    reviews_disabled = models.BooleanField(
        _('reviews disabled'),
        default=False,
        help_text=_('When set, the listing accepts no new generic reviews')
    )

    view_count = models.PositiveIntegerField(_('view count'), default=0)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('listing')
        verbose_name_plural = _('listings')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['owner'], name='listing_owner_idx'),
            models.Index(fields=['status'], name='listing_status_idx'),
            models.Index(fields=['category', 'campus', 'transaction_type'], name='listing_category_campus_idx'),
            models.Index(fields=['view_count'], name='listing_view_count_idx'),
            models.Index(fields=['created_at'], name='listing_created_at_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def has_discount(self):
        return bool(self.original_price_cents) and self.original_price_cents > self.price_cents

    def can_transition_to(self, new_status):
        """
        Check if the listing may move to ``new_status``.

        Returns:
            bool: True if the transition is allowed
        """
        return new_status in self.VALID_TRANSITIONS.get(self.status, [])

    def clean(self):
        """
        Validate model fields and status transitions.

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if not self.title or len(self.title.strip()) < 4:
            raise ValidationError({
                'title': _('Title must be at least 4 characters.')
            })

        if not self.description or len(self.description.strip()) < 10:
            raise ValidationError({
                'description': _('Description must be at least 10 characters.')
            })

        if self.pk is not None:
            try:
                old_status = Listing.objects.values_list('status', flat=True).get(pk=self.pk)
            except Listing.DoesNotExist:
                old_status = None
            if old_status is not None and old_status != self.status:
                if self.status not in self.VALID_TRANSITIONS.get(old_status, []):
                    raise ValidationError({
                        'status': _(
                            f'Invalid status transition from {old_status} to {self.status}.'
                        )
                    })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class Offer(models.Model):
    """
    A buyer's proposed price on a listing.

    Resolved exactly once by the seller: PENDING -> ACCEPTED or DECLINED.
    """

    PENDING = 'PENDING'
    ACCEPTED = 'ACCEPTED'
    DECLINED = 'DECLINED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (ACCEPTED, 'Accepted'),
        (DECLINED, 'Declined'),
    ]

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='offers',
    )

    buyer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='offers_made',
    )

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='offers_received',
    )

    amount_cents = models.PositiveIntegerField(
        _('amount (cents)'),
        validators=[MinValueValidator(1, message=_('Offer amount must be positive.'))],
    )

    message = models.TextField(_('message'), blank=True, default='')

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=PENDING,
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    responded_at = models.DateTimeField(_('responded at'), null=True, blank=True)

    class Meta:
        verbose_name = _('offer')
        verbose_name_plural = _('offers')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['listing', 'status'], name='offer_listing_status_idx'),
            models.Index(fields=['seller', 'status'], name='offer_seller_status_idx'),
            models.Index(fields=['buyer'], name='offer_buyer_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(buyer=models.F('seller')),
                name='offer_buyer_not_seller',
            ),
        ]

    def __str__(self):
        return f"Offer {self.amount_cents}c on {self.listing_id} by {self.buyer_id}"

    @property
    def is_pending(self):
        return self.status == self.PENDING

    def clean(self):
        super().clean()

        if self.buyer_id and self.seller_id and self.buyer_id == self.seller_id:
            raise ValidationError({
                'buyer': _('You cannot make an offer on your own listing.')
            })

        if self.message and len(self.message) < OFFER_MESSAGE_MIN_LENGTH:
            raise ValidationError({
                'message': _('Message must be at least 2 characters.')
            })

        # Offers are immutable once resolved
        if self.pk is not None:
            try:
                old_status = Offer.objects.values_list('status', flat=True).get(pk=self.pk)
            except Offer.DoesNotExist:
                old_status = None
            if old_status is not None and old_status != self.PENDING:
                raise ValidationError({
                    'status': _('Cannot modify an offer that has already been resolved.')
                })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class Transaction(models.Model):
    """
    Immutable record of a completed sale.

    Created only by the sale finalizer, in the same database transaction that
    marks the listing SOLD.
    """

    listing = models.ForeignKey(
        Listing,
        on_delete=models.PROTECT,
        related_name='transactions',
    )

    seller = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='sales',
    )

    buyer = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='purchases',
    )

    price_cents = models.PositiveIntegerField(_('price (cents)'))

    completed_at = models.DateTimeField(_('completed at'), default=timezone.now)

    class Meta:
        verbose_name = _('transaction')
        verbose_name_plural = _('transactions')
        ordering = ['-completed_at']
        indexes = [
            models.Index(fields=['seller'], name='transaction_seller_idx'),
            models.Index(fields=['buyer'], name='transaction_buyer_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['listing', 'buyer'],
                name='unique_transaction_per_listing_buyer',
            ),
            models.CheckConstraint(
                condition=~models.Q(buyer=models.F('seller')),
                name='transaction_buyer_not_seller',
            ),
        ]

    def __str__(self):
        return f"Sale of listing {self.listing_id} to {self.buyer_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(_('Transactions cannot be modified once recorded.'))
        if self.buyer_id and self.seller_id and self.buyer_id == self.seller_id:
            raise ValidationError({
                'buyer': _('Buyer and seller cannot be the same user.')
            })
        # Uniqueness is left to the database constraint
        super().save(*args, **kwargs)


class Review(models.Model):
    """
    Feedback about a user.

    Two paths create reviews:
    - mutual: tied to a Transaction, ``role`` says which side wrote it and
      the (transaction, reviewer) pair is unique
    - generic: tied to a seller and optionally a listing, no role and no
      uniqueness beyond rate limiting

    ``seller`` is always the reviewed party.
    """

    BUYER = 'BUYER'
    SELLER = 'SELLER'

    ROLE_CHOICES = [
        (BUYER, 'Buyer'),
        (SELLER, 'Seller'),
    ]

    rating = models.PositiveSmallIntegerField(
        _('rating'),
        validators=[
            MinValueValidator(1, message=_('Rating must be at least 1.')),
            MaxValueValidator(5, message=_('Rating must be at most 5.'))
        ],
        help_text=_('Rating from 1 to 5 stars')
    )

    comment = models.TextField(_('comment'), blank=True, default='')

    reviewer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='reviews_given',
    )

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='reviews_received',
        help_text=_('User receiving the review')
    )

    listing = models.ForeignKey(
        Listing,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviews',
    )

    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='reviews',
    )

    role = models.CharField(
        _('role'),
        max_length=6,
        choices=ROLE_CHOICES,
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('review')
        verbose_name_plural = _('reviews')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['seller'], name='review_seller_idx'),
            models.Index(fields=['reviewer'], name='review_reviewer_idx'),
            models.Index(fields=['listing'], name='review_listing_idx'),
        ]
        constraints = [
            # NULL transactions (generic reviews) never collide
            models.UniqueConstraint(
                fields=['transaction', 'reviewer'],
                name='unique_review_per_transaction_reviewer',
            ),
            models.CheckConstraint(
                condition=~models.Q(reviewer=models.F('seller')),
                name='review_reviewer_not_seller',
            ),
        ]

    def __str__(self):
        return f"Review by {self.reviewer_id} for {self.seller_id} - {self.rating}★"

    def save(self, *args, **kwargs):
        """
        Validate business rules on creation, then save.

        full_clean() is not called so the (transaction, reviewer) constraint
        surfaces as IntegrityError, which the review gate maps to
        AlreadyReviewed.
        """
        if not self._state.adding:
            raise ValidationError(_('Reviews cannot be modified once submitted.'))

        if self.reviewer_id and self.seller_id and self.reviewer_id == self.seller_id:
            raise ValidationError({
                'seller': _('You cannot review yourself.')
            })

        if self.rating is None or not 1 <= self.rating <= 5:
            raise ValidationError({
                'rating': _('Rating must be between 1 and 5.')
            })

        if self.comment and len(self.comment) < REVIEW_COMMENT_MIN_LENGTH:
            raise ValidationError({
                'comment': _('Comment must be at least 3 characters.')
            })

        super().save(*args, **kwargs)


class SavedListing(models.Model):
    """A user bookmarking a listing. Existence is the only state."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='saved_listings',
    )

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='saved_by',
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('saved listing')
        verbose_name_plural = _('saved listings')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'listing'],
                name='unique_saved_listing',
            ),
        ]

    def __str__(self):
        return f"{self.user_id} saved {self.listing_id}"


class Follow(models.Model):
    """A user following another user. Existence is the only state."""

    follower = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='following',
    )

    following = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='followers',
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('follow')
        verbose_name_plural = _('follows')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['follower', 'following'],
                name='unique_follow',
            ),
            models.CheckConstraint(
                condition=~models.Q(follower=models.F('following')),
                name='follow_not_self',
            ),
        ]

    def __str__(self):
        return f"{self.follower_id} follows {self.following_id}"


class ListingView(models.Model):
    """
    Last counted visit of a viewer to a listing.

    One row per (listing, viewer); ``viewed_at`` only moves forward, and
    only once the dedup window has elapsed.
    """

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='views',
    )

    viewer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='listing_views',
    )

    viewed_at = models.DateTimeField(_('viewed at'), default=timezone.now)

    class Meta:
        verbose_name = _('listing view')
        verbose_name_plural = _('listing views')
        constraints = [
            models.UniqueConstraint(
                fields=['listing', 'viewer'],
                name='unique_listing_view',
            ),
        ]

    def __str__(self):
        return f"{self.viewer_id} viewed {self.listing_id} at {self.viewed_at}"
