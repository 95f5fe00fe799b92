"""Expiry resolution for fixed and evergreen countdowns.

Fixed timers end at the campaign end for everybody. Evergreen timers give
each visitor their own window of ``duration`` minutes, started on first
encounter and persisted in a visitor-local key/value store so that a page
reload does not restart the clock.
"""

import logging
import time

from django.core.cache import cache

from ..conf import get_setting
from ..utils import to_epoch_ms

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000


def now_ms():
    return int(time.time() * 1000)


def visitor_state_key(promotion_id):
    """Build the visitor-state key for a promotion.

    Keyed on the immutable promotion ID so that two timers sharing a
    description never share a visitor window, and editing a timer's text
    does not orphan running countdowns.
    """
    prefix = get_setting("COUNTDOWN_VISITOR_STATE_PREFIX")
    return f"{prefix}:{promotion_id}"


class MemoryExpiryState:
    """Dict-backed visitor state, e.g. for a single widget host process."""

    def __init__(self, initial=None):
        self._values = dict(initial or {})

    def get(self, key):
        return self._values.get(key)

    def set(self, key, expiry_ms):
        self._values[key] = expiry_ms


class CacheExpiryState:
    """Visitor state kept in the Django cache, namespaced per visitor.

    Entries are given a cache timeout matching their remaining lifetime;
    stale entries are also ignored by :func:`resolve_expiry` regardless.
    """

    def __init__(self, visitor_id, backend=None):
        self.visitor_id = visitor_id
        self.backend = backend or cache

    def _key(self, key):
        return f"{key}:{self.visitor_id}"

    def get(self, key):
        return self.backend.get(self._key(key))

    def set(self, key, expiry_ms):
        timeout = max(1, (expiry_ms - now_ms()) // 1000 + 1)
        self.backend.set(self._key(key), expiry_ms, timeout)


def resolve_expiry(promotion, visitor_state, now=None):
    """Return the absolute expiry (epoch ms) for a promotion payload.

    Call once per page view per widget, never per tick.

    Args:
        promotion: selection payload with ``id``, ``type``, ``duration``
            (minutes) and ``endDate``.
        visitor_state: object with ``get(key)`` / ``set(key, expiry_ms)``.
        now: current epoch milliseconds; defaults to the wall clock.

    Raises:
        ValueError: if a fixed promotion's ``endDate`` is malformed or an
            evergreen promotion has no positive ``duration``.
    """
    if now is None:
        now = now_ms()

    if promotion.get("type") != "evergreen":
        return to_epoch_ms(promotion.get("endDate"))

    duration = promotion.get("duration")
    if not isinstance(duration, int) or isinstance(duration, bool) or duration <= 0:
        raise ValueError(f"Evergreen promotion has invalid duration: {duration!r}")

    key = visitor_state_key(promotion["id"])
    stored = visitor_state.get(key)
    if isinstance(stored, int) and stored > now:
        return stored

    expiry = now + duration * MS_PER_MINUTE
    visitor_state.set(key, expiry)
    logger.debug("Started evergreen window %s until %d", key, expiry)
    return expiry
