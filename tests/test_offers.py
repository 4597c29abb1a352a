"""
Test suite for the offer state machine.

Tests cover:
- Offer submission (amount, self-offer and message validation)
- Rate limiting of offer submission
- Accepting and declining offers
- Authorization and single-response rules
- Interaction between offers and sales
"""

from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError

from conftest import AllowAll, BlockAll, create_test_listing, create_test_user
from marketplace.exceptions import (
    AlreadyResolved,
    AlreadySold,
    InvalidAmount,
    InvalidInput,
    NotAuthorized,
    NotFound,
    PersistenceFailure,
    RateLimited,
    SelfOffer,
)
from marketplace.models import Listing, Offer, Transaction
from marketplace.services.offers import respond_to_offer, submit_offer
from marketplace.services.sales import mark_sold
from marketplace.validators import MAX_AMOUNT_CENTS


def make_offer(listing, buyer, amount=4000, **kwargs):
    return submit_offer(buyer.pk, listing.pk, listing.owner_id, amount, **kwargs)


@pytest.mark.django_db
class TestOfferSubmission:
    """Test creating offers."""

    def test_creates_pending_offer(self, listing, buyer, seller):
        offer = make_offer(listing, buyer, message='Can pick up today')

        assert offer.status == Offer.PENDING
        assert offer.buyer_id == buyer.pk
        assert offer.seller_id == seller.pk
        assert offer.amount_cents == 4000
        assert offer.message == 'Can pick up today'
        assert offer.responded_at is None

    def test_submission_does_not_touch_listing(self, listing, buyer):
        make_offer(listing, buyer)

        listing.refresh_from_db()
        assert listing.status == Listing.AVAILABLE

    @pytest.mark.parametrize('amount', [0, -100, None, True, 'abc', float('nan'), float('inf'), 0.4])
    def test_rejects_invalid_amount(self, listing, buyer, amount):
        with pytest.raises(InvalidAmount):
            make_offer(listing, buyer, amount=amount)

        assert Offer.objects.count() == 0

    def test_rejects_amount_too_large_to_store(self, listing, buyer):
        with pytest.raises(InvalidAmount):
            make_offer(listing, buyer, amount=MAX_AMOUNT_CENTS + 1)

        with pytest.raises(InvalidAmount):
            make_offer(listing, buyer, amount=10 ** 10)

        assert Offer.objects.count() == 0

    def test_accepts_largest_storable_amount(self, listing, buyer):
        offer = make_offer(listing, buyer, amount=MAX_AMOUNT_CENTS)

        assert offer.amount_cents == MAX_AMOUNT_CENTS

    def test_fractional_amount_is_rounded_to_cents(self, listing, buyer):
        offer = make_offer(listing, buyer, amount=Decimal('1250.5'))

        assert offer.amount_cents == 1251

    def test_rejects_self_offer(self, listing, seller):
        with pytest.raises(SelfOffer):
            submit_offer(seller.pk, listing.pk, seller.pk, 4000)

    def test_amount_is_checked_before_self_offer(self, listing, seller):
        with pytest.raises(InvalidAmount):
            submit_offer(seller.pk, listing.pk, seller.pk, 0)

    def test_rejects_one_character_message(self, listing, buyer):
        with pytest.raises(InvalidInput):
            make_offer(listing, buyer, message='k')

    def test_accepts_two_character_message(self, listing, buyer):
        offer = make_offer(listing, buyer, message='ok')

        assert offer.message == 'ok'

    def test_missing_listing(self, buyer, seller):
        with pytest.raises(NotFound):
            submit_offer(buyer.pk, 999999, seller.pk, 4000)

    def test_seller_must_own_listing(self, listing, buyer, other_user):
        with pytest.raises(InvalidInput):
            submit_offer(buyer.pk, listing.pk, other_user.pk, 4000)

    def test_storage_failure_is_reported(self, listing, buyer):
        with mock.patch.object(Offer.objects, 'create', side_effect=DatabaseError('disk full')):
            with pytest.raises(PersistenceFailure):
                make_offer(listing, buyer)


@pytest.mark.django_db
class TestOfferRateLimit:
    """Test the 5 offers per 5 minutes policy."""

    def test_sixth_offer_in_window_is_rejected(self, listing, buyer):
        for _ in range(5):
            make_offer(listing, buyer)

        with pytest.raises(RateLimited):
            make_offer(listing, buyer)

        assert Offer.objects.filter(buyer=buyer).count() == 5

    def test_limit_is_per_buyer(self, listing, buyer, other_user):
        for _ in range(5):
            make_offer(listing, buyer)

        offer = make_offer(listing, other_user)
        assert offer.buyer_id == other_user.pk

    def test_invalid_attempts_do_not_use_budget(self, listing, buyer):
        for _ in range(10):
            with pytest.raises(InvalidAmount):
                make_offer(listing, buyer, amount=0)

        for _ in range(5):
            make_offer(listing, buyer)

    def test_injected_limiter_is_keyed_by_actor_and_action(self, listing, buyer):
        limiter = BlockAll()

        with pytest.raises(RateLimited):
            make_offer(listing, buyer, rate_limiter=limiter)

        assert limiter.keys == [f'{buyer.pk}:offer']
        assert Offer.objects.count() == 0

    def test_injected_limiter_can_allow(self, listing, buyer):
        limiter = AllowAll()
        for _ in range(8):
            make_offer(listing, buyer, rate_limiter=limiter)

        assert Offer.objects.count() == 8


@pytest.mark.django_db
class TestOfferResponse:
    """Test accepting and declining offers."""

    def test_accept_reserves_listing(self, listing, buyer, seller):
        offer = make_offer(listing, buyer)

        result = respond_to_offer(seller.pk, offer.pk, Offer.ACCEPTED)

        assert result.status == Offer.ACCEPTED
        assert result.responded_at is not None
        listing.refresh_from_db()
        assert listing.status == Listing.RESERVED

    def test_decline_leaves_listing_available(self, listing, buyer, seller):
        offer = make_offer(listing, buyer)

        result = respond_to_offer(seller.pk, offer.pk, Offer.DECLINED)

        assert result.status == Offer.DECLINED
        listing.refresh_from_db()
        assert listing.status == Listing.AVAILABLE

    def test_accept_on_reserved_listing_keeps_it_reserved(self, listing, buyer, other_user, seller):
        first = make_offer(listing, buyer)
        second = make_offer(listing, other_user)

        respond_to_offer(seller.pk, first.pk, Offer.ACCEPTED)
        respond_to_offer(seller.pk, second.pk, Offer.ACCEPTED)

        listing.refresh_from_db()
        assert listing.status == Listing.RESERVED
        assert Offer.objects.filter(listing=listing, status=Offer.ACCEPTED).count() == 2

    def test_accept_does_not_decline_other_offers(self, listing, buyer, other_user, seller):
        first = make_offer(listing, buyer)
        second = make_offer(listing, other_user)

        respond_to_offer(seller.pk, first.pk, Offer.ACCEPTED)

        second.refresh_from_db()
        assert second.status == Offer.PENDING

    def test_only_seller_can_respond(self, listing, buyer, other_user):
        offer = make_offer(listing, buyer)

        with pytest.raises(NotAuthorized):
            respond_to_offer(other_user.pk, offer.pk, Offer.ACCEPTED)

        with pytest.raises(NotAuthorized):
            respond_to_offer(buyer.pk, offer.pk, Offer.ACCEPTED)

        offer.refresh_from_db()
        assert offer.status == Offer.PENDING

    def test_second_response_is_rejected(self, listing, buyer, seller):
        offer = make_offer(listing, buyer)
        respond_to_offer(seller.pk, offer.pk, Offer.DECLINED)

        with pytest.raises(AlreadyResolved):
            respond_to_offer(seller.pk, offer.pk, Offer.ACCEPTED)

        offer.refresh_from_db()
        assert offer.status == Offer.DECLINED
        listing.refresh_from_db()
        assert listing.status == Listing.AVAILABLE

    @pytest.mark.parametrize('decision', ['PENDING', 'accepted', '', None])
    def test_rejects_unknown_decision(self, listing, buyer, seller, decision):
        offer = make_offer(listing, buyer)

        with pytest.raises(InvalidInput):
            respond_to_offer(seller.pk, offer.pk, decision)

    def test_missing_offer(self, seller):
        with pytest.raises(NotFound):
            respond_to_offer(seller.pk, 999999, Offer.ACCEPTED)

    def test_accept_on_sold_listing_is_rejected(self, listing, buyer, other_user, seller):
        offer = make_offer(listing, buyer)
        mark_sold(seller.pk, listing.pk, other_user.pk)

        with pytest.raises(AlreadySold):
            respond_to_offer(seller.pk, offer.pk, Offer.ACCEPTED)

        offer.refresh_from_db()
        assert offer.status == Offer.PENDING
        listing.refresh_from_db()
        assert listing.status == Listing.SOLD

    def test_decline_on_sold_listing_is_allowed(self, listing, buyer, other_user, seller):
        offer = make_offer(listing, buyer)
        mark_sold(seller.pk, listing.pk, other_user.pk)

        result = respond_to_offer(seller.pk, offer.pk, Offer.DECLINED)

        assert result.status == Offer.DECLINED

    def test_storage_failure_rolls_back_reservation(self, listing, buyer, seller):
        offer = make_offer(listing, buyer)

        with mock.patch.object(Offer, 'save', side_effect=DatabaseError('lost connection')):
            with pytest.raises(PersistenceFailure):
                respond_to_offer(seller.pk, offer.pk, Offer.ACCEPTED)

        listing.refresh_from_db()
        assert listing.status == Listing.AVAILABLE
        offer.refresh_from_db()
        assert offer.status == Offer.PENDING


@pytest.mark.django_db
class TestOfferToSale:
    """Test that the sale is independent of accepted offers."""

    def test_sale_to_different_buyer_after_acceptance(self, listing, buyer, seller):
        offer = make_offer(listing, buyer)
        respond_to_offer(seller.pk, offer.pk, Offer.ACCEPTED)
        third_party = create_test_user('carol@test.com')

        sale = mark_sold(seller.pk, listing.pk, third_party.pk)

        assert sale.buyer_id == third_party.pk
        listing.refresh_from_db()
        assert listing.status == Listing.SOLD
        offer.refresh_from_db()
        assert offer.status == Offer.ACCEPTED
        assert Transaction.objects.filter(listing=listing).count() == 1

    def test_offers_on_another_sellers_listing(self, buyer, other_user):
        other_listing = create_test_listing(other_user, title='Mini Fridge')

        offer = make_offer(other_listing, buyer)

        assert offer.seller_id == other_user.pk
