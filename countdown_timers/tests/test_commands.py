"""Tests for the register_app_webhooks management command."""

from io import StringIO
from unittest.mock import MagicMock, patch

import pytest
from django.core.management import CommandError, call_command

from countdown_timers.tests.conftest import SHOP

pytestmark = pytest.mark.django_db

BASE_URL = "https://countdown.example.com"
COMMAND_REQUESTS = "countdown_timers.management.commands.register_app_webhooks.requests"


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.text = ""
    return response


def _call(*args):
    out = StringIO()
    call_command("register_app_webhooks", "--shop", SHOP, *args, stdout=out, stderr=StringIO())
    return out.getvalue()


class TestRegisterAppWebhooks:
    def test_unknown_shop_errors(self):
        with pytest.raises(CommandError, match="No active installation"):
            _call("--base-url", BASE_URL)

    def test_base_url_required(self, installation):
        with pytest.raises(CommandError, match="--base-url"):
            _call()

    @patch(COMMAND_REQUESTS)
    def test_registers_missing_topics(self, mock_requests, installation):
        mock_requests.get.return_value = _response(payload={"webhooks": []})
        mock_requests.post.return_value = _response(201, {"webhook": {"id": 1}})

        output = _call("--base-url", f"{BASE_URL}/")

        mock_requests.post.assert_called_once()
        kwargs = mock_requests.post.call_args.kwargs
        assert kwargs["json"]["webhook"] == {
            "topic": "app/uninstalled",
            "address": f"{BASE_URL}/webhooks/app/",
            "format": "json",
        }
        assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test"
        assert "1 created" in output

    @patch(COMMAND_REQUESTS)
    def test_skips_existing_topics(self, mock_requests, installation):
        mock_requests.get.return_value = _response(
            payload={"webhooks": [{"id": 9, "topic": "app/uninstalled"}]}
        )
        output = _call("--base-url", BASE_URL)
        mock_requests.post.assert_not_called()
        assert "1 skipped" in output

    @patch(COMMAND_REQUESTS)
    def test_list(self, mock_requests, installation):
        mock_requests.get.return_value = _response(
            payload={
                "webhooks": [
                    {"id": 9, "topic": "app/uninstalled", "address": "https://x/"}
                ]
            }
        )
        output = _call("--list")
        assert "app/uninstalled" in output
        assert "Total: 1" in output

    @patch(COMMAND_REQUESTS)
    def test_delete_all(self, mock_requests, installation):
        mock_requests.get.return_value = _response(
            payload={"webhooks": [{"id": 9, "topic": "app/uninstalled"}]}
        )
        mock_requests.delete.return_value = _response(200)
        output = _call("--delete-all")
        mock_requests.delete.assert_called_once()
        assert "Deleted 1/1" in output
