"""
Serializers for the marketplace API.

Input serializers only check the shape of a request (types, required
fields); the business rules live in ``marketplace.services`` so they hold
for every caller, not just HTTP.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Bundle, Listing, Offer, Review, Transaction

User = get_user_model()


# ============================================================================
# Output serializers
# ============================================================================

class UserSummarySerializer(serializers.ModelSerializer):
    """Public user details embedded in other responses."""

    class Meta:
        model = User
        fields = ['id', 'username', 'campus', 'is_verified', 'avg_rating_as_seller', 'avg_rating_as_buyer']
        read_only_fields = fields


class ListingSerializer(serializers.ModelSerializer):
    owner = UserSummarySerializer(read_only=True)
    has_discount = serializers.BooleanField(read_only=True)

    class Meta:
        model = Listing
        fields = [
            'id', 'owner', 'title', 'description', 'price_cents',
            'original_price_cents', 'discount_percent', 'has_discount',
            'category', 'condition', 'campus', 'transaction_type',
            'rental_period_days', 'status', 'bundle', 'reviews_disabled',
            'view_count', 'created_at',
        ]
        read_only_fields = fields


class OfferSerializer(serializers.ModelSerializer):

    class Meta:
        model = Offer
        fields = [
            'id', 'listing', 'buyer', 'seller', 'amount_cents', 'message',
            'status', 'created_at', 'responded_at',
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):

    class Meta:
        model = Transaction
        fields = ['id', 'listing', 'seller', 'buyer', 'price_cents', 'completed_at']
        read_only_fields = fields


class ReviewSerializer(serializers.ModelSerializer):

    class Meta:
        model = Review
        fields = [
            'id', 'rating', 'comment', 'reviewer', 'seller', 'listing',
            'transaction', 'role', 'created_at',
        ]
        read_only_fields = fields


class BundleSerializer(serializers.ModelSerializer):

    class Meta:
        model = Bundle
        fields = ['id', 'owner', 'title', 'description', 'discount_percent', 'created_at']
        read_only_fields = fields


class BadgeSerializer(serializers.Serializer):
    key = serializers.CharField()
    label = serializers.CharField()
    icon = serializers.CharField()


# ============================================================================
# Input serializers
# ============================================================================

class OfferCreateSerializer(serializers.Serializer):
    """
    Fields:
    - amount_cents: Required, proposed price in cents
    - message: Optional note to the seller
    """

    amount_cents = serializers.DecimalField(max_digits=None, decimal_places=None)
    message = serializers.CharField(required=False, allow_null=True, trim_whitespace=False)


class OfferResponseSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=[Offer.ACCEPTED, Offer.DECLINED])


class MarkSoldSerializer(serializers.Serializer):
    buyer_id = serializers.IntegerField()


class ReviewCreateSerializer(serializers.Serializer):
    """
    Fields:
    - seller_id: Required, user being reviewed
    - listing_id: Optional listing the review is about
    - rating: Required, integer from 1-5
    - comment: Optional, at least 3 characters
    """

    seller_id = serializers.IntegerField()
    listing_id = serializers.IntegerField(required=False, allow_null=True)
    rating = serializers.IntegerField()
    comment = serializers.CharField(required=False, allow_null=True, trim_whitespace=False)


class MutualReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField()
    comment = serializers.CharField(required=False, allow_null=True, trim_whitespace=False)


class BundleCreateSerializer(serializers.Serializer):
    title = serializers.CharField()
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    discount_percent = serializers.IntegerField()
    listing_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)


class BundleAttachSerializer(serializers.Serializer):
    listing_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
