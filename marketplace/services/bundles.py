"""
Bundle pricing.

A bundle groups a seller's own AVAILABLE, unbundled listings under one
discount. Attaching is a single conditional UPDATE: listings that do not
qualify are skipped, not reported as errors.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from django.db import DatabaseError, transaction

from ..exceptions import InvalidInput, NotAuthorized, NotFound, PersistenceFailure
from ..models import Bundle, Listing
from ..validators import BUNDLE_TITLE_MIN_LENGTH, check_discount_percent
from .recommendations import round_cents

logger = logging.getLogger(__name__)


@dataclass
class BundleSummary:
    bundle: Bundle
    listings: List[Listing]
    total_cents: int
    discounted_cents: int


def _price_of(item):
    if isinstance(item, dict):
        return item['price_cents']
    return item.price_cents


def compute_bundle_total(listings, discount_percent):
    """
    Discounted total of ``listings`` in cents.

    ``listings`` may hold Listing instances or mappings with a
    ``price_cents`` key. The result is rounded half up to whole cents.

    Raises:
        InvalidInput: discount is not an integer from 0 to 100
    """
    check_discount_percent(discount_percent)
    total = sum(_price_of(item) for item in listings)
    return round_cents(Decimal(total) * (100 - discount_percent) / 100)


def attach_to_bundle(owner_id, bundle_id, listing_ids):
    """
    Attach the qualifying listings among ``listing_ids`` to a bundle.

    Only listings owned by ``owner_id`` that are AVAILABLE and not already in
    a bundle are attached.

    Returns:
        int: Number of listings attached

    Raises:
        NotFound, NotAuthorized, PersistenceFailure
    """
    try:
        bundle = Bundle.objects.get(pk=bundle_id)
    except Bundle.DoesNotExist:
        raise NotFound(f'Bundle with ID {bundle_id} does not exist.')

    if bundle.owner_id != owner_id:
        logger.warning(
            f"Unauthorized bundle attach attempt. Bundle: {bundle_id}, User: {owner_id}"
        )
        raise NotAuthorized('Only the bundle owner can add listings to it.')

    try:
        attached = _attach(bundle, owner_id, listing_ids)
    except DatabaseError as e:
        logger.error(
            f"Error attaching listings to bundle: {e}, Bundle: {bundle_id}",
            exc_info=True
        )
        raise PersistenceFailure() from e

    logger.info(
        f"Listings attached to bundle. Bundle: {bundle_id}, Owner: {owner_id}, "
        f"Requested: {len(listing_ids)}, Attached: {attached}"
    )
    return attached


def _attach(bundle, owner_id, listing_ids):
    return Listing.objects.filter(
        pk__in=list(listing_ids),
        owner_id=owner_id,
        status=Listing.AVAILABLE,
        bundle__isnull=True,
    ).update(bundle=bundle)


def create_bundle(owner_id, title, discount_percent, listing_ids, description=None):
    """
    Create a bundle and attach the owner's qualifying listings to it.

    Fails without persisting anything when none of ``listing_ids`` qualify.

    Returns:
        Bundle: The new bundle

    Raises:
        InvalidInput, PersistenceFailure
    """
    if not isinstance(title, str) or len(title.strip()) < BUNDLE_TITLE_MIN_LENGTH:
        raise InvalidInput(f'Title must be at least {BUNDLE_TITLE_MIN_LENGTH} characters.')
    check_discount_percent(discount_percent)
    listing_ids = list(listing_ids or [])
    if not listing_ids:
        raise InvalidInput('Select at least one listing for the bundle.')

    try:
        with transaction.atomic():
            bundle = Bundle.objects.create(
                owner_id=owner_id,
                title=title.strip(),
                description=description or '',
                discount_percent=discount_percent,
            )
            attached = _attach(bundle, owner_id, listing_ids)
            if not attached:
                raise InvalidInput(
                    'None of the selected listings can be bundled. '
                    'Only your own available, unbundled listings qualify.'
                )
    except DatabaseError as e:
        logger.error(
            f"Error creating bundle: {e}, Owner: {owner_id}",
            exc_info=True
        )
        raise PersistenceFailure() from e

    logger.info(
        f"Bundle created. Bundle ID: {bundle.id}, Owner: {owner_id}, "
        f"Listings: {attached}, Discount: {discount_percent}%"
    )
    return bundle


def bundle_summary(bundle_id):
    """Listings of a bundle with their full and discounted totals."""
    try:
        bundle = Bundle.objects.get(pk=bundle_id)
    except Bundle.DoesNotExist:
        raise NotFound(f'Bundle with ID {bundle_id} does not exist.')

    listings = list(bundle.listings.order_by('-created_at', '-pk'))
    return BundleSummary(
        bundle=bundle,
        listings=listings,
        total_cents=sum(item.price_cents for item in listings),
        discounted_cents=compute_bundle_total(listings, bundle.discount_percent),
    )
