"""Utility helpers for the countdown timers app."""

import datetime

from django.utils.dateparse import parse_datetime

GID_PREFIX = "gid://shopify/"


def to_shopify_gid(resource_type, numeric_id):
    """Convert a numeric Shopify ID to the Global ID (GID) format.

    IDs that are already in GID form are returned unchanged, so callers
    can pass either the bare ID from a Liquid template or the GID the
    admin resource picker hands back.

    Examples::

        >>> to_shopify_gid("Product", "9154924904679")
        'gid://shopify/Product/9154924904679'
        >>> to_shopify_gid("Collection", "gid://shopify/Collection/42")
        'gid://shopify/Collection/42'
    """
    value = str(numeric_id).strip()
    if value.startswith(GID_PREFIX):
        return value
    return f"{GID_PREFIX}{resource_type}/{value}"


def parse_instant(value):
    """Parse an ISO-8601 instant into an aware UTC ``datetime``.

    Accepts ``datetime`` objects as well as strings. Naive values are
    taken to be UTC.

    Raises:
        ValueError: if the value is missing or not a valid instant.
    """
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = parse_datetime(value.strip())
        if parsed is None:
            raise ValueError(f"Not an ISO-8601 instant: {value!r}")
    else:
        raise ValueError(f"Not an ISO-8601 instant: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


def to_epoch_ms(instant):
    """Return the epoch-millisecond value of an instant."""
    return int(parse_instant(instant).timestamp() * 1000)


def isoformat_z(instant):
    """Format an instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    parsed = parse_instant(instant)
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"
