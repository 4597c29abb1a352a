"""
Review gate.

Two disjoint paths accept reviews:

- mutual reviews hang off a Transaction; each party may review the other
  once, enforced by the (transaction, reviewer) unique constraint
- generic reviews hang off a seller and optionally a listing; they are only
  throttled, so the same reviewer may review the same seller repeatedly

Listing owners can switch off generic reviews for a listing.
"""

import logging

from django.db import DatabaseError, IntegrityError, transaction

from ..exceptions import (
    AlreadyReviewed,
    NotAuthorized,
    NotFound,
    PersistenceFailure,
    ReviewsDisabled,
    SelfAction,
)
from ..models import Listing, Review, Transaction, User
from ..ratelimit import enforce_rate_limit
from ..validators import REVIEW_COMMENT_MIN_LENGTH, check_optional_text, check_rating

logger = logging.getLogger(__name__)


def submit_mutual_review(reviewer_id, transaction_id, rating, comment=None):
    """
    Review the other party of a completed sale.

    The reviewer's role is BUYER when they bought, SELLER otherwise; the
    reviewed party is the other side of the transaction. Reviews on this
    path are accepted even when the listing has reviews disabled.

    Raises:
        InvalidInput, NotFound, NotAuthorized, AlreadyReviewed,
        PersistenceFailure
    """
    rating = check_rating(rating)
    comment = check_optional_text(comment, REVIEW_COMMENT_MIN_LENGTH, 'comment')

    try:
        sale = Transaction.objects.get(pk=transaction_id)
    except Transaction.DoesNotExist:
        raise NotFound(f'Transaction with ID {transaction_id} does not exist.')

    if reviewer_id == sale.buyer_id:
        role, reviewee_id = Review.BUYER, sale.seller_id
    elif reviewer_id == sale.seller_id:
        role, reviewee_id = Review.SELLER, sale.buyer_id
    else:
        logger.warning(
            f"Mutual review by non-participant. "
            f"Transaction: {transaction_id}, User: {reviewer_id}"
        )
        raise NotAuthorized('Only the buyer or seller of this transaction can review it.')

    try:
        with transaction.atomic():
            review = Review.objects.create(
                rating=rating,
                comment=comment or '',
                reviewer_id=reviewer_id,
                seller_id=reviewee_id,
                listing_id=sale.listing_id,
                transaction=sale,
                role=role,
            )
    except IntegrityError:
        logger.warning(
            f"Duplicate mutual review rejected. "
            f"Transaction: {transaction_id}, Reviewer: {reviewer_id}"
        )
        raise AlreadyReviewed()
    except DatabaseError as e:
        logger.error(
            f"Error creating mutual review: {e}, Transaction: {transaction_id}, "
            f"Reviewer: {reviewer_id}",
            exc_info=True
        )
        raise PersistenceFailure() from e

    logger.info(
        f"Mutual review created. Review ID: {review.id}, Transaction: {transaction_id}, "
        f"Reviewer: {reviewer_id} ({role}), Reviewee: {reviewee_id}, Rating: {rating}"
    )
    return review


def submit_review(reviewer_id, seller_id, rating, listing_id=None, comment=None, rate_limiter=None):
    """
    Leave a generic review for a seller, optionally about one listing.

    Raises:
        InvalidInput, SelfAction, NotFound, ReviewsDisabled, RateLimited,
        PersistenceFailure
    """
    rating = check_rating(rating)
    comment = check_optional_text(comment, REVIEW_COMMENT_MIN_LENGTH, 'comment')

    if reviewer_id == seller_id:
        raise SelfAction('You cannot review yourself.')

    if not User.objects.filter(pk=seller_id).exists():
        raise NotFound(f'User with ID {seller_id} does not exist.')

    if listing_id is not None:
        try:
            reviews_disabled = Listing.objects.values_list(
                'reviews_disabled', flat=True
            ).get(pk=listing_id)
        except Listing.DoesNotExist:
            raise NotFound(f'Listing with ID {listing_id} does not exist.')
        if reviews_disabled:
            raise ReviewsDisabled()

    enforce_rate_limit(reviewer_id, 'review', rate_limiter=rate_limiter)

    try:
        with transaction.atomic():
            review = Review.objects.create(
                rating=rating,
                comment=comment or '',
                reviewer_id=reviewer_id,
                seller_id=seller_id,
                listing_id=listing_id,
            )
    except DatabaseError as e:
        logger.error(
            f"Error creating review: {e}, Reviewer: {reviewer_id}, Seller: {seller_id}",
            exc_info=True
        )
        raise PersistenceFailure() from e

    logger.info(
        f"Review created. Review ID: {review.id}, Reviewer: {reviewer_id}, "
        f"Seller: {seller_id}, Listing: {listing_id}, Rating: {rating}"
    )
    return review


def toggle_reviews_disabled(owner_id, listing_id):
    """
    Flip whether a listing accepts generic reviews.

    Returns:
        bool: The new ``reviews_disabled`` value

    Raises:
        NotFound, NotAuthorized, PersistenceFailure
    """
    try:
        with transaction.atomic():
            try:
                listing = Listing.objects.select_for_update().get(pk=listing_id)
            except Listing.DoesNotExist:
                raise NotFound(f'Listing with ID {listing_id} does not exist.')

            if listing.owner_id != owner_id:
                logger.warning(
                    f"Unauthorized reviews toggle attempt. "
                    f"Listing: {listing_id}, User: {owner_id}"
                )
                raise NotAuthorized('Only the listing owner can change review settings.')

            listing.reviews_disabled = not listing.reviews_disabled
            listing.save(update_fields=['reviews_disabled', 'updated_at'])
    except DatabaseError as e:
        logger.error(
            f"Error toggling reviews: {e}, Listing: {listing_id}, Owner: {owner_id}",
            exc_info=True
        )
        raise PersistenceFailure() from e

    logger.info(
        f"Reviews {'disabled' if listing.reviews_disabled else 'enabled'}. "
        f"Listing: {listing_id}, Owner: {owner_id}"
    )
    return listing.reviews_disabled
