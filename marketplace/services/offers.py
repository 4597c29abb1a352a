"""
Offer/negotiation manager.

Buyers submit offers; the seller resolves each one exactly once. Accepting
an offer reserves the listing in the same database transaction.

Accepting an offer does not decline the other pending offers on the listing,
and marking the listing sold later is independent of which offer, if any,
was accepted.
"""

import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import (
    AlreadyResolved,
    AlreadySold,
    InvalidInput,
    NotAuthorized,
    NotFound,
    PersistenceFailure,
    SelfOffer,
)
from ..models import Listing, Offer
from ..ratelimit import enforce_rate_limit
from ..validators import OFFER_MESSAGE_MIN_LENGTH, check_amount_cents, check_optional_text

logger = logging.getLogger(__name__)

RESPONSES = (Offer.ACCEPTED, Offer.DECLINED)


def submit_offer(buyer_id, listing_id, seller_id, amount_cents, message=None, rate_limiter=None):
    """
    Create a PENDING offer from ``buyer_id`` on a listing.

    Args:
        buyer_id: Authenticated buyer
        listing_id: Listing the offer is for
        seller_id: Owner of the listing
        amount_cents: Proposed price, positive and finite
        message: Optional note to the seller, at least 2 characters
        rate_limiter: Optional limiter; defaults to the configured one

    Returns:
        Offer: The new pending offer

    Raises:
        InvalidAmount, SelfOffer, InvalidInput, NotFound, RateLimited,
        PersistenceFailure
    """
    amount = check_amount_cents(amount_cents)

    if buyer_id == seller_id:
        logger.warning(f"Self-offer rejected. User: {buyer_id}, Listing: {listing_id}")
        raise SelfOffer()

    message = check_optional_text(message, OFFER_MESSAGE_MIN_LENGTH, 'message')

    try:
        owner_id = Listing.objects.values_list('owner_id', flat=True).get(pk=listing_id)
    except Listing.DoesNotExist:
        raise NotFound(f'Listing with ID {listing_id} does not exist.')

    if owner_id != seller_id:
        raise InvalidInput('The seller does not own this listing.')

    enforce_rate_limit(buyer_id, 'offer', rate_limiter=rate_limiter)

    try:
        offer = Offer.objects.create(
            listing_id=listing_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            amount_cents=amount,
            message=message or '',
        )
    except DatabaseError as e:
        logger.error(
            f"Error creating offer: {e}, Buyer: {buyer_id}, Listing: {listing_id}",
            exc_info=True
        )
        raise PersistenceFailure() from e

    logger.info(
        f"Offer created. Offer ID: {offer.id}, Listing: {listing_id}, "
        f"Buyer: {buyer_id}, Seller: {seller_id}, Amount: {amount}"
    )
    return offer


def respond_to_offer(seller_id, offer_id, decision):
    """
    Accept or decline a pending offer.

    Acceptance sets the listing to RESERVED whatever its previous
    AVAILABLE/RESERVED status was. Both writes happen under row locks in one
    database transaction.

    Returns:
        Offer: The resolved offer

    Raises:
        InvalidInput: decision is not ACCEPTED or DECLINED
        NotFound: offer does not exist
        NotAuthorized: caller is not the offer's seller
        AlreadyResolved: offer is no longer pending
        AlreadySold: accepting on a listing that has been sold
        PersistenceFailure: storage error, nothing committed
    """
    if decision not in RESPONSES:
        raise InvalidInput(f'Decision must be one of: {", ".join(RESPONSES)}.')

    try:
        with transaction.atomic():
            try:
                offer = Offer.objects.select_for_update().get(pk=offer_id)
            except Offer.DoesNotExist:
                raise NotFound(f'Offer with ID {offer_id} does not exist.')

            if offer.seller_id != seller_id:
                logger.warning(
                    f"Unauthorized offer response attempt. "
                    f"Offer ID: {offer_id}, User: {seller_id}"
                )
                raise NotAuthorized('Only the seller can respond to this offer.')

            if not offer.is_pending:
                raise AlreadyResolved()

            if decision == Offer.ACCEPTED:
                listing = Listing.objects.select_for_update().get(pk=offer.listing_id)
                if not listing.can_transition_to(Listing.RESERVED):
                    raise AlreadySold()
                listing.status = Listing.RESERVED
                listing.save(update_fields=['status', 'updated_at'])

            offer.status = decision
            offer.responded_at = timezone.now()
            offer.save(update_fields=['status', 'responded_at'])
    except DatabaseError as e:
        logger.error(
            f"Error responding to offer: {e}, Offer ID: {offer_id}, Seller: {seller_id}",
            exc_info=True
        )
        raise PersistenceFailure() from e

    logger.info(
        f"Offer resolved. Offer ID: {offer_id}, Decision: {decision}, "
        f"Listing: {offer.listing_id}, Seller: {seller_id}"
    )
    return offer
