"""Candidate selection: picks the single countdown timer to show.

A timer is a candidate when the request instant falls inside its
campaign window and its targeting rule matches the product page.
Candidates are ranked by:

1. specificity: product/collection-targeted timers beat ``all``;
2. soonest campaign end;
3. most recent creation.

Usage::

    from countdown_timers.services.selection import select_timer

    winner = select_timer(timers, now, product_gid, collection_gids)
"""

import datetime
import logging

from ..models import CountdownTimer
from ..utils import parse_instant, to_shopify_gid

logger = logging.getLogger(__name__)

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def normalize_product_id(product_id):
    return to_shopify_gid("Product", product_id)


def normalize_collection_ids(collection_ids):
    """Normalise bare or GID collection IDs into a set of GIDs."""
    return {
        to_shopify_gid("Collection", cid)
        for cid in collection_ids
        if str(cid).strip()
    }


def _window(timer):
    """Return ``(start, end)`` as aware datetimes, or ``None`` if malformed."""
    try:
        start = parse_instant(timer.start_at)
        end = parse_instant(timer.end_at)
    except (TypeError, ValueError):
        logger.warning(
            "Skipping timer %s with malformed window (start=%r, end=%r)",
            getattr(timer, "pk", None),
            timer.start_at,
            timer.end_at,
        )
        return None
    return start, end


def matches_target(timer, product_id, collection_ids):
    """Return ``True`` if the timer's targeting rule covers this page."""
    scope = timer.target_scope
    if scope == CountdownTimer.TargetScope.ALL:
        return True
    if scope == CountdownTimer.TargetScope.PRODUCT:
        return product_id in {
            normalize_product_id(pid) for pid in timer.product_ids or []
        }
    if scope == CountdownTimer.TargetScope.COLLECTION:
        return bool(normalize_collection_ids(timer.collection_ids or []) & collection_ids)
    return False


def _specificity(timer):
    return 0 if timer.target_scope == CountdownTimer.TargetScope.ALL else 1


def _created_at(timer):
    try:
        return parse_instant(timer.created_at)
    except (TypeError, ValueError):
        return _EPOCH


def _sort_key(candidate):
    timer, end = candidate
    created = _created_at(timer)
    # Ascending order: specific first, soonest end first, newest first.
    # pk keeps the order total when every other key ties.
    return (
        -_specificity(timer),
        end,
        -created.timestamp(),
        str(getattr(timer, "pk", "")),
    )


def filter_candidates(timers, now, product_id, collection_ids=frozenset()):
    """Return ``[(timer, end), ...]`` for timers active and targeting this page."""
    now = parse_instant(now)
    product_id = normalize_product_id(product_id)
    collection_ids = normalize_collection_ids(collection_ids)

    candidates = []
    for timer in timers:
        window = _window(timer)
        if window is None:
            continue
        start, end = window
        if not start <= now <= end:
            continue
        if not matches_target(timer, product_id, collection_ids):
            continue
        candidates.append((timer, end))
    return candidates


def select_timer(timers, now, product_id, collection_ids=frozenset()):
    """Pick the winning timer for a product page, or ``None``.

    Pure: no timer is modified. The caller is responsible for the
    view-count increment.

    Args:
        timers: iterable of :class:`~countdown_timers.models.CountdownTimer`
            (or objects with the same attributes) for one shop.
        now: request instant (``datetime`` or ISO-8601 string).
        product_id: bare numeric ID or product GID.
        collection_ids: iterable of bare IDs or collection GIDs the
            product belongs to.
    """
    candidates = filter_candidates(timers, now, product_id, collection_ids)
    if not candidates:
        return None
    candidates.sort(key=_sort_key)
    winner = candidates[0][0]
    logger.debug(
        "Selected timer %s out of %d candidates",
        getattr(winner, "pk", None),
        len(candidates),
    )
    return winner
