"""
API views for the campus marketplace.

Each view translates one HTTP request into one call of a service
function. Failures raised by the services are rendered as
``{"detail": ..., "code": ...}`` with the status code the error carries.
"""

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import InvalidInput, MarketplaceError, NotFound
from .models import Listing
from .serializers import (
    BadgeSerializer,
    BundleAttachSerializer,
    BundleCreateSerializer,
    BundleSerializer,
    ListingSerializer,
    MarkSoldSerializer,
    MutualReviewCreateSerializer,
    OfferCreateSerializer,
    OfferResponseSerializer,
    OfferSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    TransactionSerializer,
)
from .services import badges, bundles, engagement, listing_views, offers, recommendations, reviews, sales

logger = logging.getLogger(__name__)


class MarketplaceAPIView(APIView):
    """
    Base view that renders marketplace failures.

    Anything that is not a ``MarketplaceError`` falls through to DRF's
    default handling (serializer errors, authentication, 500s).
    """

    def handle_exception(self, exc):
        if isinstance(exc, MarketplaceError):
            logger.warning(
                f"Request rejected: {exc.code}. Path: {self.request.path}, "
                f"User: {getattr(self.request.user, 'pk', None)}, Detail: {exc.message}"
            )
            return Response(
                {'detail': exc.message, 'code': exc.code},
                status=exc.status_code
            )
        return super().handle_exception(exc)


def _listing_owner_id(listing_id):
    owner_id = Listing.objects.filter(pk=listing_id).values_list('owner_id', flat=True).first()
    if owner_id is None:
        raise NotFound(f'Listing with ID {listing_id} does not exist.')
    return owner_id


def _limit_param(request):
    raw = request.query_params.get('limit')
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidInput('Limit must be an integer.')


# ============================================================================
# Offers and sales
# ============================================================================

class OfferCreateView(MarketplaceAPIView):
    """
    Make an offer on a listing.

    POST /api/listings/<listing_id>/offers/
    Request body: {"amount_cents": 4500, "message": "Can pick up today"}

    Success response (201): the pending offer
    """

    def post(self, request, listing_id):
        serializer = OfferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        offer = offers.submit_offer(
            buyer_id=request.user.pk,
            listing_id=listing_id,
            seller_id=_listing_owner_id(listing_id),
            amount_cents=serializer.validated_data['amount_cents'],
            message=serializer.validated_data.get('message'),
        )
        return Response(OfferSerializer(offer).data, status=status.HTTP_201_CREATED)


class OfferRespondView(MarketplaceAPIView):
    """
    Accept or decline a pending offer.

    POST /api/offers/<offer_id>/respond/
    Request body: {"decision": "ACCEPTED"}
    """

    def post(self, request, offer_id):
        serializer = OfferResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        offer = offers.respond_to_offer(
            seller_id=request.user.pk,
            offer_id=offer_id,
            decision=serializer.validated_data['decision'],
        )
        return Response(OfferSerializer(offer).data, status=status.HTTP_200_OK)


class MarkSoldView(MarketplaceAPIView):
    """
    Record the sale of a listing to a buyer.

    POST /api/listings/<listing_id>/mark-sold/
    Request body: {"buyer_id": 42}

    Success response (201): the new transaction
    """

    def post(self, request, listing_id):
        serializer = MarkSoldSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        txn = sales.mark_sold(
            owner_id=request.user.pk,
            listing_id=listing_id,
            buyer_id=serializer.validated_data['buyer_id'],
        )
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


# ============================================================================
# Reviews
# ============================================================================

class ReviewsDisabledToggleView(MarketplaceAPIView):

    def post(self, request, listing_id):
        disabled = reviews.toggle_reviews_disabled(
            owner_id=request.user.pk,
            listing_id=listing_id,
        )
        return Response({'reviews_disabled': disabled}, status=status.HTTP_200_OK)


class ReviewCreateView(MarketplaceAPIView):
    """
    Leave a review for a seller, optionally about one of their listings.

    POST /api/reviews/
    Request body: {"seller_id": 7, "listing_id": 12, "rating": 5, "comment": "Great"}
    """

    def post(self, request):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        review = reviews.submit_review(
            reviewer_id=request.user.pk,
            seller_id=data['seller_id'],
            rating=data['rating'],
            listing_id=data.get('listing_id'),
            comment=data.get('comment'),
        )
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class MutualReviewCreateView(MarketplaceAPIView):
    """
    Review the other party of a completed transaction.

    POST /api/transactions/<transaction_id>/reviews/
    Request body: {"rating": 4, "comment": "Smooth handover"}
    """

    def post(self, request, transaction_id):
        serializer = MutualReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        review = reviews.submit_mutual_review(
            reviewer_id=request.user.pk,
            transaction_id=transaction_id,
            rating=serializer.validated_data['rating'],
            comment=serializer.validated_data.get('comment'),
        )
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


# ============================================================================
# Engagement
# ============================================================================

def _toggle_response(result):
    return Response(
        {'changed': result.changed, 'active': result.active},
        status=status.HTTP_200_OK
    )


class SaveListingToggleView(MarketplaceAPIView):

    def post(self, request, listing_id):
        return _toggle_response(engagement.toggle_saved_listing(request.user.pk, listing_id))


class FollowToggleView(MarketplaceAPIView):

    def post(self, request, user_id):
        return _toggle_response(engagement.toggle_follow(request.user.pk, user_id))


class ListingViewRecordView(MarketplaceAPIView):
    """
    Count a view of a listing.

    Repeat views by the same user within the dedup window and views by the
    owner are accepted but not counted.
    """

    def post(self, request, listing_id):
        counted = listing_views.record_view(listing_id, request.user.pk)
        return Response({'counted': counted}, status=status.HTTP_200_OK)


# ============================================================================
# Discovery
# ============================================================================

class RecommendationListView(MarketplaceAPIView):
    """
    GET /api/listings/<listing_id>/recommendations/?limit=4
    """

    permission_classes = [AllowAny]

    def get(self, request, listing_id):
        listings = recommendations.recommend(listing_id, limit=_limit_param(request))
        return Response(ListingSerializer(listings, many=True).data, status=status.HTTP_200_OK)


class TrendingListView(MarketplaceAPIView):
    permission_classes = [AllowAny]

    def get(self, request):
        listings = recommendations.trending(limit=_limit_param(request))
        return Response(ListingSerializer(listings, many=True).data, status=status.HTTP_200_OK)


class SellerBadgeView(MarketplaceAPIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        earned = badges.seller_badges(user_id)
        return Response(BadgeSerializer(earned, many=True).data, status=status.HTTP_200_OK)


# ============================================================================
# Bundles
# ============================================================================

class BundleCreateView(MarketplaceAPIView):
    """
    Create a bundle from some of the caller's listings.

    POST /api/bundles/
    Request body:
    {
        "title": "Dorm starter kit",
        "discount_percent": 10,
        "listing_ids": [3, 4, 9]
    }
    """

    def post(self, request):
        serializer = BundleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        bundle = bundles.create_bundle(
            owner_id=request.user.pk,
            title=data['title'],
            discount_percent=data['discount_percent'],
            listing_ids=data['listing_ids'],
            description=data.get('description'),
        )
        return Response(_bundle_payload(bundles.bundle_summary(bundle.pk)), status=status.HTTP_201_CREATED)


class BundleDetailView(MarketplaceAPIView):
    permission_classes = [AllowAny]

    def get(self, request, bundle_id):
        return Response(_bundle_payload(bundles.bundle_summary(bundle_id)), status=status.HTTP_200_OK)


class BundleAttachView(MarketplaceAPIView):

    def post(self, request, bundle_id):
        serializer = BundleAttachSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        attached = bundles.attach_to_bundle(
            owner_id=request.user.pk,
            bundle_id=bundle_id,
            listing_ids=serializer.validated_data['listing_ids'],
        )
        return Response({'attached': attached}, status=status.HTTP_200_OK)


def _bundle_payload(summary):
    payload = BundleSerializer(summary.bundle).data
    payload['listings'] = ListingSerializer(summary.listings, many=True).data
    payload['total_cents'] = summary.total_cents
    payload['discounted_cents'] = summary.discounted_cents
    return payload
