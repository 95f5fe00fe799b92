import logging

logger = logging.getLogger(__name__)

# Topics accepted by the app lifecycle webhook endpoint.
APP_TOPICS = frozenset(
    {
        "app/uninstalled",
    }
)

# Registry mapping Shopify topic strings to handler callables.
# Handler modules register themselves at import time, triggered from
# CountdownTimersConfig.ready().
_topic_handlers = {}


def register_handler(topic, handler):
    """Register a handler callable for a Shopify webhook topic."""
    _topic_handlers[topic] = handler
    logger.debug("Registered handler for topic: %s", topic)


def get_handler(topic):
    """Return the handler callable for the given topic, or None."""
    return _topic_handlers.get(topic)
