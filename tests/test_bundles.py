"""
Tests for bundle pricing and bundle membership.
"""

from types import SimpleNamespace

import pytest

from conftest import create_test_listing
from marketplace.exceptions import InvalidInput, NotAuthorized, NotFound
from marketplace.models import Bundle, Listing
from marketplace.services.bundles import attach_to_bundle, bundle_summary, compute_bundle_total, create_bundle


class TestComputeBundleTotal:

    def test_ten_percent_off(self):
        listings = [{'price_cents': 1000}, {'price_cents': 2000}]

        assert compute_bundle_total(listings, 10) == 2700

    def test_accepts_objects(self):
        listings = [SimpleNamespace(price_cents=1999), SimpleNamespace(price_cents=1)]

        assert compute_bundle_total(listings, 0) == 2000

    def test_rounds_half_up(self):
        # 333 * 0.85 = 283.05, 1 * 0.5 = 0.5
        assert compute_bundle_total([{'price_cents': 333}], 15) == 283
        assert compute_bundle_total([{'price_cents': 1}], 50) == 1

    def test_full_discount(self):
        assert compute_bundle_total([{'price_cents': 5000}], 100) == 0

    def test_empty_bundle(self):
        assert compute_bundle_total([], 25) == 0

    @pytest.mark.parametrize('discount', [-1, 101, 12.5, None, True])
    def test_rejects_invalid_discount(self, discount):
        with pytest.raises(InvalidInput):
            compute_bundle_total([{'price_cents': 1000}], discount)


@pytest.mark.django_db
class TestCreateBundle:

    def test_creates_bundle_with_own_available_listings(self, seller):
        desk = create_test_listing(seller, price_cents=1000)
        chair = create_test_listing(seller, title='Desk Chair', price_cents=2000)

        bundle = create_bundle(seller.pk, 'Dorm set', 10, [desk.pk, chair.pk])

        assert bundle.owner_id == seller.pk
        assert set(bundle.listings.values_list('pk', flat=True)) == {desk.pk, chair.pk}

    def test_skips_listings_that_do_not_qualify(self, seller, other_user):
        mine = create_test_listing(seller)
        sold = create_test_listing(seller, status=Listing.SOLD)
        theirs = create_test_listing(other_user)

        bundle = create_bundle(seller.pk, 'Dorm set', 10, [mine.pk, sold.pk, theirs.pk])

        assert list(bundle.listings.values_list('pk', flat=True)) == [mine.pk]

    def test_fails_when_nothing_qualifies(self, seller, other_user):
        theirs = create_test_listing(other_user)

        with pytest.raises(InvalidInput):
            create_bundle(seller.pk, 'Dorm set', 10, [theirs.pk])

        assert not Bundle.objects.exists()

    def test_requires_listing_ids(self, seller):
        with pytest.raises(InvalidInput):
            create_bundle(seller.pk, 'Dorm set', 10, [])

    def test_rejects_short_title(self, seller, listing):
        with pytest.raises(InvalidInput):
            create_bundle(seller.pk, 'ab', 10, [listing.pk])

    def test_rejects_invalid_discount(self, seller, listing):
        with pytest.raises(InvalidInput):
            create_bundle(seller.pk, 'Dorm set', 150, [listing.pk])


@pytest.mark.django_db
class TestAttachToBundle:

    @pytest.fixture
    def bundle(self, seller, listing):
        return create_bundle(seller.pk, 'Move-out sale', 20, [listing.pk])

    def test_attaches_qualifying_listings_only(self, bundle, seller, other_user):
        lamp = create_test_listing(seller, title='Desk Lamp')
        reserved = create_test_listing(seller, status=Listing.RESERVED)
        theirs = create_test_listing(other_user)

        attached = attach_to_bundle(seller.pk, bundle.pk, [lamp.pk, reserved.pk, theirs.pk, 999999])

        assert attached == 1
        lamp.refresh_from_db()
        assert lamp.bundle_id == bundle.pk
        reserved.refresh_from_db()
        assert reserved.bundle_id is None

    def test_listing_in_another_bundle_is_skipped(self, bundle, seller):
        lamp = create_test_listing(seller, title='Desk Lamp')
        other = create_bundle(seller.pk, 'Kitchen set', 5, [lamp.pk])

        assert attach_to_bundle(seller.pk, bundle.pk, [lamp.pk]) == 0

        lamp.refresh_from_db()
        assert lamp.bundle_id == other.pk

    def test_only_bundle_owner_can_attach(self, bundle, other_user):
        theirs = create_test_listing(other_user)

        with pytest.raises(NotAuthorized):
            attach_to_bundle(other_user.pk, bundle.pk, [theirs.pk])

    def test_missing_bundle(self, seller, listing):
        with pytest.raises(NotFound):
            attach_to_bundle(seller.pk, 999999, [listing.pk])


@pytest.mark.django_db
class TestBundleSummary:

    def test_totals(self, seller):
        desk = create_test_listing(seller, price_cents=1000)
        chair = create_test_listing(seller, title='Desk Chair', price_cents=2000)
        bundle = create_bundle(seller.pk, 'Dorm set', 10, [desk.pk, chair.pk])

        summary = bundle_summary(bundle.pk)

        assert summary.bundle == bundle
        assert [item.pk for item in summary.listings] == [chair.pk, desk.pk]
        assert summary.total_cents == 3000
        assert summary.discounted_cents == 2700

    def test_missing_bundle(self):
        with pytest.raises(NotFound):
            bundle_summary(999999)
