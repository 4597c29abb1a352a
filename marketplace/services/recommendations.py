"""
Listing recommendations and trending listings.

Recommendations start from listings similar to the source (same category,
campus and transaction type, price within a band around the source price)
and are backfilled with the newest other listings until the requested size
is reached. Both sets are ordered newest first, ties broken by id, so the
result never depends on storage order.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from ..conf import marketplace_settings
from ..exceptions import InvalidInput, NotFound
from ..models import Listing

logger = logging.getLogger(__name__)

NEWEST_FIRST = ('-created_at', '-pk')


def round_cents(value):
    """Round a Decimal amount of cents half away from zero."""
    return int(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def price_band(price_cents):
    """Inclusive ``(low, high)`` price range considered similar to ``price_cents``."""
    low, high = marketplace_settings.RECOMMENDATION_PRICE_BAND
    return round_cents(price_cents * Decimal(low)), round_cents(price_cents * Decimal(high))


def _check_limit(limit, default):
    if limit is None:
        return default
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise InvalidInput('Limit must be a non-negative integer.')
    return limit


def recommend(listing_id, limit=None):
    """
    Up to ``limit`` listings to show next to ``listing_id``.

    Returns:
        list[Listing]: Distinct listings, never including the source

    Raises:
        InvalidInput: limit is negative or not an integer
        NotFound: source listing does not exist
    """
    limit = _check_limit(limit, marketplace_settings.RECOMMENDATION_LIMIT)

    try:
        source = Listing.objects.get(pk=listing_id)
    except Listing.DoesNotExist:
        raise NotFound(f'Listing with ID {listing_id} does not exist.')

    if limit == 0:
        return []

    price_min, price_max = price_band(source.price_cents)

    primary = list(
        Listing.objects.filter(
            category=source.category,
            campus=source.campus,
            transaction_type=source.transaction_type,
            price_cents__gte=price_min,
            price_cents__lte=price_max,
        )
        .exclude(pk=source.pk)
        .select_related('owner')
        .order_by(*NEWEST_FIRST)[:limit]
    )

    missing = limit - len(primary)
    if missing <= 0:
        return primary

    exclude_ids = [source.pk] + [item.pk for item in primary]
    backfill = list(
        Listing.objects.exclude(pk__in=exclude_ids)
        .select_related('owner')
        .order_by(*NEWEST_FIRST)[:missing]
    )

    logger.debug(
        f"Recommendations for listing {listing_id}: "
        f"{len(primary)} similar, {len(backfill)} backfilled"
    )
    return primary + backfill


def trending(limit=None):
    """Available listings with the most counted views."""
    limit = _check_limit(limit, marketplace_settings.TRENDING_LIMIT)
    return list(
        Listing.objects.filter(status=Listing.AVAILABLE)
        .select_related('owner')
        .order_by('-view_count', *NEWEST_FIRST)[:limit]
    )
