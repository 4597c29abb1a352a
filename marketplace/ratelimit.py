"""
Sliding-window rate limiting for marketplace actions.

The engine only needs a yes/no gate keyed by ``"<actor_id>:<action>"``. The
default implementation keeps the timestamps of recent hits in Django's cache
framework, the same way DRF's ``SimpleRateThrottle`` keeps its request
history, so the deployment's ``CACHES`` setting decides whether the window is
process-local (locmem) or shared between instances (Redis, Memcached).

One limiter instance serves the whole process, and its lock makes each
window update atomic between threads. Separate processes sharing a cache are
not serialized against each other, the same trade-off DRF throttles make.
"""

import functools
import logging
import threading
import time

from django.core.cache import caches
from django.utils.module_loading import import_string

from .conf import marketplace_settings
from .exceptions import RateLimited

logger = logging.getLogger(__name__)


class CacheRateLimiter:
    """
    Sliding-window limiter backed by a Django cache.

    ``is_limited`` records a hit when the caller is under the limit and
    reports True (blocked) once ``max_hits`` hits fall inside the window.
    Blocked attempts are not recorded.
    """

    cache_key_prefix = 'marketplace:ratelimit:'

    def __init__(self, cache_alias='default', timer=time.time):
        self.cache_alias = cache_alias
        self.timer = timer
        self._lock = threading.Lock()

    @property
    def cache(self):
        return caches[self.cache_alias]

    def is_limited(self, key, max_hits, window_seconds):
        cache_key = f'{self.cache_key_prefix}{key}'
        with self._lock:
            now = self.timer()
            history = [
                stamp for stamp in self.cache.get(cache_key, [])
                if now - stamp < window_seconds
            ]
            if len(history) >= max_hits:
                self.cache.set(cache_key, history, window_seconds)
                return True
            history.append(now)
            self.cache.set(cache_key, history, window_seconds)
            return False


@functools.lru_cache(maxsize=None)
def _shared_limiter(dotted_path):
    return import_string(dotted_path)()


def get_rate_limiter():
    """
    Return the process-wide limiter of the class named by ``RATE_LIMITER``.

    Every request shares one instance, so ``CacheRateLimiter._lock`` guards
    the read-modify-write of a window across threads.
    """
    return _shared_limiter(marketplace_settings.RATE_LIMITER)


def enforce_rate_limit(actor_id, action, rate_limiter=None):
    """
    Raise ``RateLimited`` when ``actor_id`` exhausted its budget for ``action``.

    The policy for the action comes from the ``RATE_LIMITS`` setting.
    """
    limiter = rate_limiter or get_rate_limiter()
    max_hits, window_seconds = marketplace_settings.rate_limit_for(action)
    key = f'{actor_id}:{action}'
    if limiter.is_limited(key, max_hits, window_seconds):
        logger.warning(
            f"Rate limit reached. Key: {key}, "
            f"Policy: {max_hits} per {window_seconds}s"
        )
        raise RateLimited()
