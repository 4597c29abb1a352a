"""
Engine tunables.

Values come from the ``MARKETPLACE`` dict in Django settings, falling back
to the defaults below. Read them through ``marketplace_settings`` so that
``override_settings`` in tests is honoured.
"""

from datetime import timedelta
from decimal import Decimal

from django.conf import settings

DEFAULTS = {
    'RATE_LIMITER': 'marketplace.ratelimit.CacheRateLimiter',
    # action -> (max hits, window in seconds)
    'RATE_LIMITS': {
        'offer': (5, 5 * 60),
        'review': (3, 60),
    },
    'VIEW_DEDUP_WINDOW': timedelta(hours=24),
    'RECOMMENDATION_LIMIT': 4,
    'RECOMMENDATION_PRICE_BAND': (Decimal('0.8'), Decimal('1.2')),
    'TRENDING_LIMIT': 8,
    'TRUSTED_SELLER_MIN_SALES': 5,
}


class MarketplaceSettings:

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f'Invalid marketplace setting: {name}')
        user_settings = getattr(settings, 'MARKETPLACE', {}) or {}
        return user_settings.get(name, DEFAULTS[name])

    def rate_limit_for(self, action):
        """Return the ``(max_hits, window_seconds)`` policy for an action."""
        limits = self.RATE_LIMITS
        if action not in limits:
            return DEFAULTS['RATE_LIMITS'][action]
        return limits[action]


marketplace_settings = MarketplaceSettings()
