import logging

from ..router import register_handler
from ..services.timer_store import deactivate_installation

logger = logging.getLogger(__name__)


def handle_app_uninstalled(event, payload):
    """Handle ``app/uninstalled``: deactivate the shop's installation.

    Shopify sends the shop object as payload; ``myshopify_domain`` is
    preferred, falling back to the domain from the webhook headers.
    Timers are kept so a re-install picks them up again.
    """
    shop = payload.get("myshopify_domain") or event.shop_domain
    if not shop:
        raise ValueError("Missing shop domain in app/uninstalled payload")

    deactivate_installation(shop)
    logger.info("Processed app/uninstalled for %s (event=%s)", shop, event.webhook_id)


register_handler("app/uninstalled", handle_app_uninstalled)
