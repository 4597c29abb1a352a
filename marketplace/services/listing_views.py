"""
Deduplicated view counting.

A viewer adds at most one to a listing's ``view_count`` per dedup window
(24 hours by default); owners viewing their own listing never count. The
check is an atomic upsert rather than read-then-write:

1. insert the (listing, viewer) row; the unique constraint lets only one
   concurrent first view succeed
2. otherwise advance ``viewed_at`` with a conditional UPDATE that only
   matches rows older than the window, so only one concurrent caller per
   window gets a row back

Only the caller whose insert or update won bumps the counter, with an
``F()`` expression. Failures are logged and swallowed.
"""

import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from ..conf import marketplace_settings
from ..models import Listing, ListingView

logger = logging.getLogger(__name__)


def record_view(listing_id, viewer_id, now=None):
    """
    Count a visit of ``viewer_id`` to a listing.

    Args:
        listing_id: Listing being viewed
        viewer_id: Authenticated viewer
        now: Current time, defaults to ``timezone.now()``

    Returns:
        bool: True if the view was counted
    """
    if now is None:
        now = timezone.now()
    window = marketplace_settings.VIEW_DEDUP_WINDOW

    try:
        owner_id = Listing.objects.filter(pk=listing_id).values_list('owner_id', flat=True).first()
        if owner_id is None or owner_id == viewer_id:
            return False

        with transaction.atomic():
            try:
                with transaction.atomic():
                    ListingView.objects.create(
                        listing_id=listing_id,
                        viewer_id=viewer_id,
                        viewed_at=now,
                    )
                counted = True
            except IntegrityError:
                counted = ListingView.objects.filter(
                    listing_id=listing_id,
                    viewer_id=viewer_id,
                    viewed_at__lte=now - window,
                ).update(viewed_at=now) == 1

            if counted:
                Listing.objects.filter(pk=listing_id).update(view_count=F('view_count') + 1)
    except DatabaseError as e:
        logger.warning(
            f"View recording failed and was ignored: {e}, "
            f"Listing: {listing_id}, Viewer: {viewer_id}",
            exc_info=True
        )
        return False

    if counted:
        logger.debug(f"View counted. Listing: {listing_id}, Viewer: {viewer_id}")
    return counted
