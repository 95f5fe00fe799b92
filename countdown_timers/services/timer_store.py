"""Shop-scoped persistence for countdown timers and shop installations.

Every query is filtered by shop domain; no timer of one shop is ever
visible to, or writable from, another.
"""

import logging

from django.db.models import F
from django.utils import timezone

from ..models import CountdownTimer, ShopInstallation
from ..serializers import CountdownTimerSerializer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Countdown timers
# ---------------------------------------------------------------------------

def list_timers(shop):
    """All timers of a shop, newest first (admin dashboard order)."""
    return list(CountdownTimer.objects.filter(shop=shop).order_by("-created_at"))


def get_shop_timers(shop):
    """All timers of a shop, for the storefront selection path."""
    return list(CountdownTimer.objects.filter(shop=shop))


def get_timer(shop, timer_id):
    """Return the shop's timer or raise ``CountdownTimer.DoesNotExist``."""
    return CountdownTimer.objects.get(shop=shop, pk=timer_id)


def upsert_timer(shop, data, timer_id=None):
    """Validate admin input and create or update a timer.

    Raises:
        rest_framework.exceptions.ValidationError: on invalid input.
        CountdownTimer.DoesNotExist: if ``timer_id`` is not one of the
            shop's timers.
    """
    instance = get_timer(shop, timer_id) if timer_id is not None else None
    serializer = CountdownTimerSerializer(instance=instance, data=data)
    serializer.is_valid(raise_exception=True)
    timer = serializer.save(shop=shop)
    logger.info(
        "%s timer %s (mode=%s, scope=%s, shop=%s)",
        "Updated" if instance is not None else "Created",
        timer.pk,
        timer.mode,
        timer.target_scope,
        shop,
    )
    return timer


def delete_timer(shop, timer_id):
    """Delete a shop's timer. Returns ``True`` if a row was removed."""
    deleted, _ = CountdownTimer.objects.filter(shop=shop, pk=timer_id).delete()
    if deleted:
        logger.info("Deleted timer %s (shop=%s)", timer_id, shop)
    return bool(deleted)


def increment_view_count(timer_id):
    """Atomically bump a timer's view counter."""
    return CountdownTimer.objects.filter(pk=timer_id).update(
        view_count=F("view_count") + 1
    )


# ---------------------------------------------------------------------------
# Shop installations
# ---------------------------------------------------------------------------

def upsert_installation(shop, access_token):
    """Record an install (or re-install) and mark the shop active."""
    installation, created = ShopInstallation.objects.update_or_create(
        shop=shop,
        defaults={"access_token": access_token, "is_active": True},
    )
    logger.info(
        "%s installation for %s", "Created" if created else "Reactivated", shop
    )
    return installation


def deactivate_installation(shop):
    """Mark a shop inactive. Returns ``True`` if an installation existed."""
    updated = ShopInstallation.objects.filter(shop=shop).update(
        is_active=False, updated_at=timezone.now()
    )
    if updated:
        logger.info("Deactivated installation for %s", shop)
    else:
        logger.warning("No installation to deactivate for %s", shop)
    return bool(updated)


def get_active_installation(shop):
    """Return the active installation or raise ``ShopInstallation.DoesNotExist``."""
    return ShopInstallation.objects.get(shop=shop, is_active=True)
