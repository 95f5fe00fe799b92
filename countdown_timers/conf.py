"""Settings lookups for the countdown timers app.

Every value can be overridden from the Django settings module; the
defaults below apply otherwise.
"""

from django.conf import settings

DEFAULTS = {
    "COUNTDOWN_TICK_INTERVAL_SECONDS": 1.0,
    "COUNTDOWN_VISITOR_STATE_PREFIX": "countdown:expiry",
    "COUNTDOWN_DEFAULT_URGENCY_COLOR": "#d32f2f",
    "COUNTDOWN_DEFAULT_DISPLAY_COLOR": "#333",
    "COUNTDOWN_DEFAULT_URGENCY_MINUTES": 5,
    "COUNTDOWN_VERIFY_PROXY_SIGNATURE": False,
    "COUNTDOWN_STOREFRONT_TIMEOUT": 10,
    "SHOPIFY_API_SECRET": "",
    "SHOPIFY_API_VERSION": "2024-07",
}


def get_setting(name):
    """Return ``settings.<name>`` or the app default."""
    return getattr(settings, name, DEFAULTS[name])
