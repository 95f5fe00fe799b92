"""Tests for webhook handlers and Dramatiq task processing."""

from unittest.mock import MagicMock, patch

import pytest
from requests import Response
from requests.exceptions import ConnectionError, HTTPError, Timeout

from countdown_timers.handlers.app_lifecycle import handle_app_uninstalled
from countdown_timers.models import CountdownTimer, ShopInstallation, WebhookEvent
from countdown_timers.router import get_handler
from countdown_timers.tasks import (
    _process_event,
    increment_timer_views,
    should_retry,
)
from countdown_timers.tests.conftest import SHOP

pytestmark = pytest.mark.django_db


def _make_event(topic="app/uninstalled", shop_domain=SHOP):
    return WebhookEvent.objects.create(
        webhook_id=f"wh_{topic}_{shop_domain}",
        topic=topic,
        shop_domain=shop_domain,
        payload_hash="a" * 64,
    )


def _http_error(status_code):
    response = Response()
    response.status_code = status_code
    return HTTPError(response=response)


# ---------------------------------------------------------------------------
# handle_app_uninstalled
# ---------------------------------------------------------------------------


class TestHandleAppUninstalled:
    def test_registered_for_topic(self):
        assert get_handler("app/uninstalled") is handle_app_uninstalled

    def test_deactivates_shop_from_payload(self, installation):
        event = _make_event()
        handle_app_uninstalled(event, {"myshopify_domain": SHOP})
        installation.refresh_from_db()
        assert installation.is_active is False

    def test_falls_back_to_header_domain(self, installation):
        event = _make_event()
        handle_app_uninstalled(event, {})
        installation.refresh_from_db()
        assert installation.is_active is False

    def test_keeps_timers(self, installation, make_timer):
        make_timer()
        handle_app_uninstalled(_make_event(), {"myshopify_domain": SHOP})
        assert CountdownTimer.objects.filter(shop=SHOP).count() == 1

    def test_missing_domain_raises(self):
        event = _make_event(shop_domain="")
        with pytest.raises(ValueError, match="Missing shop domain"):
            handle_app_uninstalled(event, {})


# ---------------------------------------------------------------------------
# _process_event
# ---------------------------------------------------------------------------


class TestProcessEvent:
    def test_success_records_status_and_time(self, installation):
        event = _make_event()
        _process_event(event.id, {"myshopify_domain": SHOP})
        event.refresh_from_db()
        assert event.status == WebhookEvent.Status.SUCCESS
        assert event.processing_time_ms is not None
        assert ShopInstallation.objects.get(shop=SHOP).is_active is False

    def test_unknown_topic_marks_failed(self):
        event = _make_event(topic="shop/update")
        _process_event(event.id, {})
        event.refresh_from_db()
        assert event.status == WebhookEvent.Status.FAILED
        assert "No handler" in event.error_message

    def test_handler_error_recorded_and_reraised(self):
        event = _make_event()
        handler = MagicMock(side_effect=RuntimeError("boom"))
        with patch("countdown_timers.tasks.get_handler", return_value=handler):
            with pytest.raises(RuntimeError):
                _process_event(event.id, {})
        event.refresh_from_db()
        assert event.status == WebhookEvent.Status.FAILED
        assert event.error_message == "boom"

    def test_missing_event_is_noop(self):
        _process_event(999_999, {})

    @patch("countdown_timers.tasks.statsd")
    def test_metrics_emitted(self, mock_statsd, installation):
        event = _make_event()
        _process_event(event.id, {"myshopify_domain": SHOP})
        names = [c.args[0] for c in mock_statsd.increment.call_args_list]
        assert names == ["countdown.webhook.received", "countdown.webhook.processed"]
        mock_statsd.histogram.assert_called_once()


# ---------------------------------------------------------------------------
# should_retry
# ---------------------------------------------------------------------------


class TestShouldRetry:
    @pytest.mark.parametrize(
        "exc", [ConnectionError(), Timeout(), OSError(), _http_error(429), _http_error(503)]
    )
    def test_transient_errors_retry(self, exc):
        assert should_retry(0, exc) is True

    @pytest.mark.parametrize(
        "exc", [ValueError("bad"), KeyError("x"), _http_error(404), _http_error(422)]
    )
    def test_permanent_errors_do_not_retry(self, exc):
        assert should_retry(0, exc) is False


# ---------------------------------------------------------------------------
# increment_timer_views
# ---------------------------------------------------------------------------


class TestIncrementTimerViews:
    def test_increments_counter(self, make_timer):
        timer = make_timer()
        increment_timer_views(timer.pk)
        increment_timer_views(timer.pk)
        timer.refresh_from_db()
        assert timer.view_count == 2

    def test_missing_timer_is_noop(self):
        increment_timer_views(424242)

    @patch("countdown_timers.tasks.statsd")
    @patch("countdown_timers.tasks.timer_store.increment_view_count")
    def test_failure_is_swallowed(self, mock_increment, mock_statsd):
        mock_increment.side_effect = RuntimeError("db gone")
        increment_timer_views(1)
        mock_statsd.increment.assert_called_once_with("countdown.views.increment_failed")
