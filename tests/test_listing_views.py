"""
Tests for deduplicated view counting.
"""

from datetime import timedelta
from unittest import mock

import pytest
from django.db import DatabaseError
from django.utils import timezone

from marketplace.models import Listing, ListingView
from marketplace.services.listing_views import record_view


def view_count(listing):
    return Listing.objects.values_list('view_count', flat=True).get(pk=listing.pk)


@pytest.mark.django_db
class TestRecordView:

    def test_first_view_counts(self, listing, buyer):
        assert record_view(listing.pk, buyer.pk) is True

        assert view_count(listing) == 1
        assert ListingView.objects.filter(listing=listing, viewer=buyer).count() == 1

    def test_repeat_view_within_window_does_not_count(self, listing, buyer):
        now = timezone.now()
        record_view(listing.pk, buyer.pk, now=now)

        assert record_view(listing.pk, buyer.pk, now=now + timedelta(hours=23, minutes=59)) is False
        assert view_count(listing) == 1

    def test_view_after_window_counts_again(self, listing, buyer):
        now = timezone.now()
        record_view(listing.pk, buyer.pk, now=now)

        later = now + timedelta(hours=25)
        assert record_view(listing.pk, buyer.pk, now=later) is True

        assert view_count(listing) == 2
        assert ListingView.objects.get(listing=listing, viewer=buyer).viewed_at == later

    def test_window_boundary_counts(self, listing, buyer):
        now = timezone.now()
        record_view(listing.pk, buyer.pk, now=now)

        assert record_view(listing.pk, buyer.pk, now=now + timedelta(hours=24)) is True

    def test_ignored_view_does_not_move_timestamp(self, listing, buyer):
        now = timezone.now()
        record_view(listing.pk, buyer.pk, now=now)
        record_view(listing.pk, buyer.pk, now=now + timedelta(hours=12))

        assert ListingView.objects.get(listing=listing, viewer=buyer).viewed_at == now

    def test_owner_views_never_count(self, listing, seller):
        assert record_view(listing.pk, seller.pk) is False

        assert view_count(listing) == 0
        assert not ListingView.objects.exists()

    def test_each_viewer_counts_once(self, listing, buyer, other_user):
        record_view(listing.pk, buyer.pk)
        record_view(listing.pk, other_user.pk)
        record_view(listing.pk, buyer.pk)

        assert view_count(listing) == 2

    def test_missing_listing(self, buyer):
        assert record_view(999999, buyer.pk) is False

    def test_window_is_configurable(self, listing, buyer, settings):
        settings.MARKETPLACE = {'VIEW_DEDUP_WINDOW': timedelta(minutes=30)}
        now = timezone.now()
        record_view(listing.pk, buyer.pk, now=now)

        assert record_view(listing.pk, buyer.pk, now=now + timedelta(minutes=31)) is True

    def test_storage_failure_is_silent(self, listing, buyer):
        with mock.patch.object(ListingView.objects, 'create', side_effect=DatabaseError('read only')):
            assert record_view(listing.pk, buyer.pk) is False

        assert view_count(listing) == 0
