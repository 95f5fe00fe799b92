"""Client side of the storefront countdown contract.

Fetches the selection result and wires it into a :class:`CountdownClock`.
Any failure fails closed: the caller gets ``None`` and hides the widget,
never stale or partial countdown data.
"""

import logging

import requests

from ..conf import get_setting
from .countdown import CountdownClock
from .expiry import resolve_expiry

logger = logging.getLogger(__name__)


def fetch_countdown(app_url, shop, product_id, collection_ids=()):
    """Return the active countdown payload for a product page, or ``None``."""
    params = {"shop": shop, "productId": product_id}
    if collection_ids:
        params["collectionIds"] = ",".join(str(cid) for cid in collection_ids)

    try:
        response = requests.get(
            app_url,
            params=params,
            timeout=get_setting("COUNTDOWN_STOREFRONT_TIMEOUT"),
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Countdown fetch failed for %s/%s: %s", shop, product_id, exc)
        return None

    if not isinstance(data, dict) or not data.get("active"):
        return None
    return data


def mount_countdown(payload, visitor_state, on_frame=None, on_expire=None, now=None):
    """Resolve the expiry once and start ticking on the running event loop.

    Returns the clock's :class:`~countdown_timers.services.countdown.TickHandle`,
    or ``None`` if the payload cannot produce an expiry (the widget should
    then hide itself).
    """
    try:
        expiry = resolve_expiry(payload, visitor_state, now=now)
    except (KeyError, ValueError) as exc:
        logger.warning("Cannot resolve countdown expiry: %s", exc)
        return None

    clock = CountdownClock(
        expiry,
        urgency=payload.get("urgency"),
        display=payload.get("display"),
        on_frame=on_frame,
        on_expire=on_expire,
    )
    return clock.start()
