"""
Shared fixtures for the marketplace test suite.
"""

import itertools

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from marketplace.models import Listing

User = get_user_model()

_sequence = itertools.count(1)


# ============================================================================
# Helper Functions
# ============================================================================

def create_test_user(email=None, **kwargs):
    """Create a test user; a unique email is generated when none is given."""
    if email is None:
        email = f'user{next(_sequence)}@test.com'
    return User.objects.create_user(
        username=email.split('@')[0],
        email=email,
        password='TestPass123!',
        **kwargs
    )


def create_test_listing(owner, **kwargs):
    """Create an AVAILABLE listing with sensible defaults."""
    defaults = {
        'title': 'Study Desk',
        'description': 'Solid oak desk, two drawers, minor scratches.',
        'price_cents': 5000,
        'category': 'furniture',
        'condition': 'good',
        'campus': 'North Campus',
        'transaction_type': Listing.SELL,
    }
    defaults.update(kwargs)
    return Listing.objects.create(owner=owner, **defaults)


class AllowAll:
    """Rate limiter that never blocks."""

    def is_limited(self, key, max_hits, window_seconds):
        return False


class BlockAll:
    """Rate limiter that always blocks and records the keys it saw."""

    def __init__(self):
        self.keys = []

    def is_limited(self, key, max_hits, window_seconds):
        self.keys.append(key)
        return True


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clear_cache():
    """Rate limit windows live in the cache; start every test with none."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Return API client for testing."""
    return APIClient()


@pytest.fixture
def seller(db):
    return create_test_user('seller@test.com')


@pytest.fixture
def buyer(db):
    return create_test_user('buyer@test.com')


@pytest.fixture
def other_user(db):
    return create_test_user('other@test.com')


@pytest.fixture
def listing(seller):
    return create_test_listing(seller)
