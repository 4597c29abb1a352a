"""
Sale finalizer.

The listing owner marks a listing SOLD to a buyer. The status change and the
Transaction record are written in one database transaction so a listing is
never sold without its transaction, or the other way round. Failures are not
retried: a retry after an unacknowledged success would report AlreadySold.
"""

import logging

from django.db import DatabaseError, transaction

from ..exceptions import AlreadySold, NotAuthorized, NotFound, PersistenceFailure, SelfSale
from ..models import Listing, Transaction, User

logger = logging.getLogger(__name__)


def mark_sold(owner_id, listing_id, buyer_id):
    """
    Finalize the sale of a listing to ``buyer_id``.

    The buyer does not need to hold an accepted offer on the listing.
    A SOLD listing is rejected with AlreadySold before ownership is checked,
    so the answer for a sold listing is the same whoever asks.

    Returns:
        Transaction: The recorded sale

    Raises:
        NotFound: listing or buyer does not exist
        AlreadySold: listing is already SOLD
        NotAuthorized: caller does not own the listing
        SelfSale: owner named themself as buyer
        PersistenceFailure: storage error, nothing committed
    """
    try:
        with transaction.atomic():
            try:
                listing = Listing.objects.select_for_update().get(pk=listing_id)
            except Listing.DoesNotExist:
                raise NotFound(f'Listing with ID {listing_id} does not exist.')

            if listing.status == Listing.SOLD:
                raise AlreadySold()

            if listing.owner_id != owner_id:
                logger.warning(
                    f"Unauthorized mark-sold attempt. "
                    f"Listing: {listing_id}, User: {owner_id}"
                )
                raise NotAuthorized('Only the listing owner can mark it as sold.')

            if buyer_id == owner_id:
                raise SelfSale()

            if not User.objects.filter(pk=buyer_id).exists():
                raise NotFound(f'User with ID {buyer_id} does not exist.')

            listing.status = Listing.SOLD
            listing.save(update_fields=['status', 'updated_at'])

            sale = Transaction.objects.create(
                listing=listing,
                seller_id=owner_id,
                buyer_id=buyer_id,
                price_cents=listing.price_cents,
            )
    except DatabaseError as e:
        logger.error(
            f"Error finalizing sale: {e}, Listing: {listing_id}, "
            f"Owner: {owner_id}, Buyer: {buyer_id}",
            exc_info=True
        )
        raise PersistenceFailure() from e

    logger.info(
        f"Listing sold. Listing: {listing_id}, Transaction ID: {sale.id}, "
        f"Seller: {owner_id}, Buyer: {buyer_id}, Price: {sale.price_cents}"
    )
    return sale
