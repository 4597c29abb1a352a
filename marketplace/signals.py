"""
Django signals for automatic rating recalculation.

Whenever a review is created, the reviewed user's average rating is
recomputed inside the same database transaction, under a row lock on that
user. Reviews written by buyers (and generic reviews) count towards the
seller rating; reviews written by sellers count towards the buyer rating.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Avg, Q
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Review, User

logger = logging.getLogger(__name__)

AS_SELLER = Q(role=Review.BUYER) | Q(role__isnull=True)
AS_BUYER = Q(role=Review.SELLER)


def average_rating(reviews):
    """Average ``rating`` of a review queryset, as a 2-place Decimal."""
    avg = reviews.aggregate(avg=Avg('rating'))['avg']
    if avg is None:
        return Decimal('0.00')
    return Decimal(str(avg)).quantize(Decimal('0.01'))


@receiver(post_save, sender=Review)
def update_ratings_on_review_save(sender, instance, created, **kwargs):
    """
    Recompute the reviewee's rating after a review is created.

    Runs within the transaction that created the review; if it fails, the
    review is rolled back with it.
    """
    if not created:
        return

    try:
        with transaction.atomic():
            user = User.objects.select_for_update().get(pk=instance.seller_id)
            received = Review.objects.filter(seller=user)

            if instance.role == Review.SELLER:
                user.avg_rating_as_buyer = average_rating(received.filter(AS_BUYER))
                User.objects.filter(pk=user.pk).update(avg_rating_as_buyer=user.avg_rating_as_buyer)
            else:
                user.avg_rating_as_seller = average_rating(received.filter(AS_SELLER))
                User.objects.filter(pk=user.pk).update(avg_rating_as_seller=user.avg_rating_as_seller)

            logger.info(
                f"Updated ratings for review {instance.id}: "
                f"reviewee={user.pk}, rating={instance.rating}"
            )
    except Exception as e:
        logger.error(
            f"Error updating ratings for review {instance.id}: {e}",
            exc_info=True
        )
        # Re-raise so the review is rolled back with the rating update
        raise
