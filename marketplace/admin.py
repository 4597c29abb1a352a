"""
Django admin configuration for the marketplace models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import Bundle, Follow, Listing, ListingView, Offer, Review, SavedListing, Transaction, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Custom admin interface for User model.

    Rating averages are maintained by review signals and shown read-only.
    """

    list_display = [
        'email',
        'username',
        'campus',
        'is_verified',
        'avg_rating_as_seller',
        'avg_rating_as_buyer',
        'is_staff',
        'created_at',
    ]

    list_filter = [
        'is_verified',
        'is_staff',
        'is_active',
        'created_at',
    ]

    search_fields = [
        'email',
        'username',
        'first_name',
        'last_name',
        'university_email',
    ]

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Personal Info'), {
            'fields': (
                'first_name',
                'last_name',
                'email',
                'phone_number',
                'campus',
                'university_email',
            )
        }),
        (_('Verification & Ratings'), {
            'fields': ('is_verified', 'avg_rating_as_seller', 'avg_rating_as_buyer')
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'password1', 'password2', 'campus'),
        }),
    )

    readonly_fields = [
        'avg_rating_as_seller',
        'avg_rating_as_buyer',
        'created_at',
        'updated_at',
        'last_login',
        'date_joined',
    ]

    list_per_page = 25


class ListingInline(admin.TabularInline):
    model = Listing
    extra = 0
    fields = ['title', 'price_cents', 'status']
    readonly_fields = ['title', 'price_cents', 'status']
    show_change_link = True


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    """Admin interface for Listing model."""

    list_display = [
        'title',
        'owner',
        'price_cents',
        'category',
        'campus',
        'transaction_type',
        'status',
        'view_count',
        'created_at',
    ]

    list_filter = ['status', 'transaction_type', 'category', 'reviews_disabled']

    search_fields = ['title', 'description', 'owner__email', 'owner__username']

    readonly_fields = ['view_count', 'created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    fieldsets = (
        (None, {
            'fields': ('owner', 'title', 'description', 'bundle')
        }),
        (_('Pricing & Details'), {
            'fields': (
                'price_cents',
                'original_price_cents',
                'discount_percent',
                'category',
                'condition',
                'campus',
                'transaction_type',
                'rental_period_days',
            )
        }),
        (_('Lifecycle'), {
            'fields': ('status', 'reviews_disabled', 'view_count')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(Bundle)
class BundleAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'discount_percent', 'created_at']
    search_fields = ['title', 'owner__email']
    readonly_fields = ['created_at']
    inlines = [ListingInline]


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    """Admin interface for Offer model."""

    list_display = ['id', 'listing', 'buyer', 'seller', 'amount_cents', 'status', 'created_at', 'responded_at']

    list_filter = ['status', 'created_at']

    search_fields = ['listing__title', 'buyer__email', 'seller__email', 'message']

    readonly_fields = ['created_at', 'responded_at']

    ordering = ['-created_at']

    list_per_page = 25


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """Transactions are an audit trail: viewable, never editable."""

    list_display = ['id', 'listing', 'seller', 'buyer', 'price_cents', 'completed_at']

    list_filter = ['completed_at']

    search_fields = ['listing__title', 'seller__email', 'buyer__email']

    ordering = ['-completed_at']

    date_hierarchy = 'completed_at'

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    """Admin interface for Review model."""

    list_display = ['id', 'reviewer', 'seller', 'role', 'transaction', 'listing', 'rating', 'created_at']

    list_filter = ['rating', 'role', 'created_at']

    search_fields = [
        'reviewer__email',
        'reviewer__username',
        'seller__email',
        'seller__username',
        'comment',
    ]

    readonly_fields = ['created_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    def has_change_permission(self, request, obj=None):
        return False


admin.site.register(SavedListing)
admin.site.register(Follow)
admin.site.register(ListingView)
