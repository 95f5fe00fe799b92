import logging
import time

import dramatiq
from datadog import statsd
from requests.exceptions import ConnectionError, Timeout

from .models import WebhookEvent
from .router import get_handler
from .services import timer_store

logger = logging.getLogger(__name__)

COUNTDOWN_QUEUE = "countdown_timers"


def should_retry(retries_so_far, exception):
    """Return True for transient errors, False for permanent ones.

    Transient (retry): ConnectionError, Timeout, HTTP 5xx, HTTP 429.
    Permanent (fail):  ValueError, KeyError, HTTP 4xx (except 429), etc.
    """
    # HTTPError is an OSError too, so the status code has to win.
    response = getattr(exception, "response", None)
    if response is not None:
        return response.status_code == 429 or 500 <= response.status_code < 600
    return isinstance(exception, (ConnectionError, Timeout, OSError))


def _process_event(webhook_event_id, payload):
    """Run the registered topic handler for a recorded webhook event.

    Transitions the event to processing, calls the handler, and records
    the outcome with elapsed time. Handler failures are re-raised so the
    actor's retry policy applies.
    """
    try:
        event = WebhookEvent.objects.get(id=webhook_event_id)
    except WebhookEvent.DoesNotExist:
        logger.error("WebhookEvent %s not found", webhook_event_id)
        return

    event.status = WebhookEvent.Status.PROCESSING
    event.save(update_fields=["status", "updated_at"])

    tags = [f"topic:{event.topic}", f"shop_domain:{event.shop_domain}"]
    statsd.increment("countdown.webhook.received", tags=tags)

    start = time.monotonic()
    try:
        handler = get_handler(event.topic)
        if handler is None:
            logger.warning("No handler registered for topic: %s", event.topic)
            event.status = WebhookEvent.Status.FAILED
            event.error_message = f"No handler for topic: {event.topic}"
        else:
            handler(event, payload)
            event.status = WebhookEvent.Status.SUCCESS
    except Exception as exc:
        event.status = WebhookEvent.Status.FAILED
        event.error_message = str(exc)[:2000]
        logger.exception(
            "Failed to process webhook event %s (topic=%s)",
            webhook_event_id,
            event.topic,
        )
        raise
    finally:
        event.processing_time_ms = int((time.monotonic() - start) * 1000)
        event.save(
            update_fields=[
                "status",
                "error_message",
                "processing_time_ms",
                "updated_at",
            ]
        )
        result_tags = tags + [f"status:{event.status}"]
        if event.status == WebhookEvent.Status.SUCCESS:
            statsd.increment("countdown.webhook.processed", tags=result_tags)
        else:
            statsd.increment("countdown.webhook.failed", tags=result_tags)
        statsd.histogram(
            "countdown.webhook.processing_time_ms",
            event.processing_time_ms,
            tags=result_tags,
        )


@dramatiq.actor(
    queue_name=COUNTDOWN_QUEUE,
    max_retries=5,
    min_backoff=30_000,
    max_backoff=600_000,
    retry_when=should_retry,
)
def process_app_webhook_event(webhook_event_id, payload):
    """Process an app lifecycle webhook event asynchronously."""
    _process_event(webhook_event_id, payload)


@dramatiq.actor(queue_name=COUNTDOWN_QUEUE, max_retries=0)
def increment_timer_views(timer_id):
    """Bump a timer's view count after it was served to a visitor.

    Lost increments are acceptable, so failures are logged and dropped
    instead of retried.
    """
    try:
        timer_store.increment_view_count(timer_id)
    except Exception:
        logger.exception("Failed to increment view count for timer %s", timer_id)
        statsd.increment("countdown.views.increment_failed")
