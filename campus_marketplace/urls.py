"""
URL configuration for the campus_marketplace project.
"""
from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from marketplace.views import (
    BundleAttachView,
    BundleCreateView,
    BundleDetailView,
    FollowToggleView,
    ListingViewRecordView,
    MarkSoldView,
    MutualReviewCreateView,
    OfferCreateView,
    OfferRespondView,
    RecommendationListView,
    ReviewCreateView,
    ReviewsDisabledToggleView,
    SaveListingToggleView,
    SellerBadgeView,
    TrendingListView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Listing endpoints
    path('api/listings/trending/', TrendingListView.as_view(), name='listing_trending'),
    path('api/listings/<int:listing_id>/offers/', OfferCreateView.as_view(), name='offer_create'),
    path('api/listings/<int:listing_id>/mark-sold/', MarkSoldView.as_view(), name='listing_mark_sold'),
    path('api/listings/<int:listing_id>/reviews-disabled/', ReviewsDisabledToggleView.as_view(), name='listing_reviews_disabled'),
    path('api/listings/<int:listing_id>/save/', SaveListingToggleView.as_view(), name='listing_save'),
    path('api/listings/<int:listing_id>/views/', ListingViewRecordView.as_view(), name='listing_view'),
    path('api/listings/<int:listing_id>/recommendations/', RecommendationListView.as_view(), name='listing_recommendations'),

    # Offer endpoints
    path('api/offers/<int:offer_id>/respond/', OfferRespondView.as_view(), name='offer_respond'),

    # Review endpoints
    path('api/reviews/', ReviewCreateView.as_view(), name='review_create'),
    path('api/transactions/<int:transaction_id>/reviews/', MutualReviewCreateView.as_view(), name='transaction_review_create'),

    # User endpoints
    path('api/users/<int:user_id>/follow/', FollowToggleView.as_view(), name='user_follow'),
    path('api/users/<int:user_id>/badges/', SellerBadgeView.as_view(), name='user_badges'),

    # Bundle endpoints
    path('api/bundles/', BundleCreateView.as_view(), name='bundle_create'),
    path('api/bundles/<int:bundle_id>/', BundleDetailView.as_view(), name='bundle_detail'),
    path('api/bundles/<int:bundle_id>/listings/', BundleAttachView.as_view(), name='bundle_attach'),

    # JWT Authentication endpoints
    path('api/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
]
