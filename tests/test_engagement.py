"""
Tests for saved-listing and follow toggles.
"""

from unittest import mock

import pytest
from django.db import DatabaseError, connection
from django.test.utils import CaptureQueriesContext

from marketplace.models import Follow, SavedListing, User
from marketplace.services import engagement
from marketplace.services.engagement import NOOP, ToggleResult, toggle, toggle_follow, toggle_saved_listing


@pytest.mark.django_db
class TestSavedListingToggle:

    def test_first_toggle_saves(self, listing, buyer):
        result = toggle_saved_listing(buyer.pk, listing.pk)

        assert result == ToggleResult(changed=True, active=True)
        assert SavedListing.objects.filter(user=buyer, listing=listing).exists()

    def test_second_toggle_unsaves(self, listing, buyer):
        toggle_saved_listing(buyer.pk, listing.pk)

        result = toggle_saved_listing(buyer.pk, listing.pk)

        assert result == ToggleResult(changed=True, active=False)
        assert not SavedListing.objects.exists()

    @pytest.mark.parametrize('calls', [1, 2, 3, 4, 7])
    def test_presence_follows_parity(self, listing, buyer, calls):
        for _ in range(calls):
            toggle_saved_listing(buyer.pk, listing.pk)

        assert SavedListing.objects.filter(user=buyer, listing=listing).count() == calls % 2

    def test_owner_cannot_save_own_listing(self, listing, seller):
        result = toggle_saved_listing(seller.pk, listing.pk)

        assert result == ToggleResult(changed=False, active=False)
        assert not SavedListing.objects.exists()

    def test_missing_listing_is_ignored(self, buyer):
        result = toggle_saved_listing(buyer.pk, 999999)

        assert result.changed is False

    def test_storage_failure_is_silent(self, listing, buyer):
        with mock.patch.object(SavedListing.objects, 'create', side_effect=DatabaseError('deadlock')):
            result = toggle_saved_listing(buyer.pk, listing.pk)

        assert result == NOOP
        assert not SavedListing.objects.exists()

    @pytest.mark.skipif(
        not connection.features.has_select_for_update,
        reason='backend has no row locks'
    )
    def test_actor_row_is_locked(self, listing, buyer):
        with CaptureQueriesContext(connection) as queries:
            toggle_saved_listing(buyer.pk, listing.pk)

        user_table = connection.ops.quote_name(User._meta.db_table)
        assert any(
            user_table in query['sql'] and 'FOR UPDATE' in query['sql']
            for query in queries.captured_queries
        )


@pytest.mark.django_db
class TestFollowToggle:

    def test_follow_then_unfollow(self, buyer, seller):
        assert toggle_follow(buyer.pk, seller.pk).active is True
        assert Follow.objects.filter(follower=buyer, following=seller).exists()

        assert toggle_follow(buyer.pk, seller.pk).active is False
        assert not Follow.objects.exists()

    def test_follow_is_directional(self, buyer, seller):
        toggle_follow(buyer.pk, seller.pk)
        toggle_follow(seller.pk, buyer.pk)

        assert Follow.objects.count() == 2

    def test_self_follow_is_ignored(self, buyer):
        result = toggle_follow(buyer.pk, buyer.pk)

        assert result == ToggleResult(changed=False, active=False)
        assert not Follow.objects.exists()

    def test_missing_user_is_ignored(self, buyer):
        result = toggle_follow(buyer.pk, 999999)

        assert result.changed is False
        assert not Follow.objects.exists()


@pytest.mark.django_db
def test_unknown_relation_kind(buyer, seller):
    with pytest.raises(ValueError):
        toggle('bookmark', buyer.pk, seller.pk)


@pytest.mark.django_db
def test_relation_kinds_are_registered():
    assert set(engagement.RELATIONS) == {engagement.SAVED_LISTING, engagement.FOLLOW}
