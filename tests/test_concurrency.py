"""
Concurrency tests for the lifecycle engine.

Each test fires the same operation from several threads at once and checks
that exactly one of them took effect. On MySQL the races are settled by row
locks and unique constraints. On SQLite every atomic block takes the database
write lock when it begins, so the same tests run against the file-backed test
database.
"""

from concurrent.futures import ThreadPoolExecutor

from django.db import connection
from django.test import TransactionTestCase
from django.utils import timezone

from conftest import create_test_listing, create_test_user
from marketplace.exceptions import AlreadyResolved, AlreadyReviewed, AlreadySold
from marketplace.models import Listing, ListingView, Offer, Review, SavedListing, Transaction
from marketplace.services.engagement import toggle_saved_listing
from marketplace.services.listing_views import record_view
from marketplace.services.offers import respond_to_offer, submit_offer
from marketplace.services.reviews import submit_mutual_review
from marketplace.services.sales import mark_sold

WORKERS = 6


def run_concurrently(func, args_list):
    """Run ``func`` once per args tuple in parallel; return results or exceptions."""
    def call(args):
        try:
            return func(*args)
        except Exception as e:
            return e
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=len(args_list)) as executor:
        return list(executor.map(call, args_list))


class ConcurrentLifecycleTests(TransactionTestCase):

    def setUp(self):
        self.seller = create_test_user('seller@test.com')
        self.buyers = [create_test_user(f'buyer{i}@test.com') for i in range(WORKERS)]
        self.listing = create_test_listing(self.seller)

    def test_concurrent_mark_sold_creates_one_transaction(self):
        results = run_concurrently(
            mark_sold,
            [(self.seller.pk, self.listing.pk, buyer.pk) for buyer in self.buyers]
        )

        successes = [r for r in results if isinstance(r, Transaction)]
        self.assertEqual(len(successes), 1)
        self.assertTrue(all(isinstance(r, AlreadySold) for r in results if r not in successes))
        self.assertEqual(Transaction.objects.filter(listing=self.listing).count(), 1)
        self.listing.refresh_from_db()
        self.assertEqual(self.listing.status, Listing.SOLD)

    def test_concurrent_responses_resolve_offer_once(self):
        offer = submit_offer(self.buyers[0].pk, self.listing.pk, self.seller.pk, 4000)
        decisions = [Offer.ACCEPTED, Offer.DECLINED] * (WORKERS // 2)

        results = run_concurrently(
            respond_to_offer,
            [(self.seller.pk, offer.pk, decision) for decision in decisions]
        )

        successes = [r for r in results if isinstance(r, Offer)]
        self.assertEqual(len(successes), 1)
        self.assertTrue(all(isinstance(r, AlreadyResolved) for r in results if r not in successes))
        offer.refresh_from_db()
        self.assertEqual(offer.status, successes[0].status)

    def test_concurrent_duplicate_reviews_create_one(self):
        sale = mark_sold(self.seller.pk, self.listing.pk, self.buyers[0].pk)

        results = run_concurrently(
            submit_mutual_review,
            [(self.buyers[0].pk, sale.pk, 5)] * WORKERS
        )

        self.assertEqual(sum(isinstance(r, Review) for r in results), 1)
        self.assertEqual(sum(isinstance(r, AlreadyReviewed) for r in results), WORKERS - 1)
        self.assertEqual(Review.objects.filter(transaction=sale).count(), 1)


class ConcurrentEngagementTests(TransactionTestCase):

    def setUp(self):
        self.seller = create_test_user('seller@test.com')
        self.viewer = create_test_user('viewer@test.com')
        self.listing = create_test_listing(self.seller)

    def test_concurrent_toggles_follow_parity(self):
        for calls in (WORKERS, WORKERS - 1):
            SavedListing.objects.all().delete()

            results = run_concurrently(toggle_saved_listing, [(self.viewer.pk, self.listing.pk)] * calls)

            self.assertTrue(all(r.changed for r in results))
            self.assertEqual(
                SavedListing.objects.filter(user=self.viewer, listing=self.listing).count(),
                calls % 2
            )

    def test_concurrent_first_views_count_once(self):
        now = timezone.now()

        results = run_concurrently(record_view, [(self.listing.pk, self.viewer.pk, now)] * WORKERS)

        self.assertEqual(results.count(True), 1)
        self.listing.refresh_from_db()
        self.assertEqual(self.listing.view_count, 1)
        self.assertEqual(ListingView.objects.count(), 1)
