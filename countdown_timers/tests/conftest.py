import datetime

import pytest

from countdown_timers.models import CountdownTimer, ShopInstallation

SHOP = "test-shop.myshopify.com"
NOW = datetime.datetime(2025, 6, 1, 12, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def installation(db):
    return ShopInstallation.objects.create(shop=SHOP, access_token="shpat_test")


def build_timer(**overrides):
    """Build an unsaved CountdownTimer active around ``NOW``."""
    defaults = {
        "shop": SHOP,
        "title": "Flash Sale",
        "description": "Limited Time Offer!",
        "mode": CountdownTimer.Mode.FIXED,
        "start_at": NOW - datetime.timedelta(days=1),
        "end_at": NOW + datetime.timedelta(days=1),
        "target_scope": CountdownTimer.TargetScope.ALL,
        "product_ids": [],
        "collection_ids": [],
        "display": {"position": "top", "size": "medium", "color": "#008000"},
        "urgency": {"type": "pulse", "triggerMinutes": 15, "color": "#d32f2f"},
        "created_at": NOW - datetime.timedelta(days=2),
    }
    defaults.update(overrides)
    return CountdownTimer(**defaults)


@pytest.fixture
def make_timer(db):
    """Create a saved CountdownTimer; ``created_at`` can be overridden."""

    def _make(**overrides):
        created_at = overrides.pop("created_at", None)
        timer = build_timer(**overrides)
        timer.save()
        if created_at is not None:
            CountdownTimer.objects.filter(pk=timer.pk).update(created_at=created_at)
            timer.refresh_from_db()
        return timer

    return _make
