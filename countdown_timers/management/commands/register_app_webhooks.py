"""
Register the app's Shopify webhook subscriptions for an installed shop.

Usage:
    python manage.py register_app_webhooks \
        --shop example.myshopify.com --base-url https://countdown.example.com

    # List current registrations
    python manage.py register_app_webhooks --shop example.myshopify.com --list

    # Remove all webhooks
    python manage.py register_app_webhooks --shop example.myshopify.com --delete-all
"""

import logging

import requests
from django.core.management.base import BaseCommand, CommandError

from countdown_timers.conf import get_setting
from countdown_timers.models import ShopInstallation
from countdown_timers.router import APP_TOPICS

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhooks/app/"


class Command(BaseCommand):
    help = "Register Shopify webhook subscriptions for an installed shop"

    def add_arguments(self, parser):
        parser.add_argument(
            "--shop",
            type=str,
            required=True,
            help="The shop's myshopify.com domain.",
        )
        parser.add_argument(
            "--base-url",
            type=str,
            default="",
            help="Public base URL of this app (e.g. https://countdown.example.com).",
        )
        parser.add_argument(
            "--list",
            action="store_true",
            dest="list_webhooks",
            help="List currently registered webhooks for this shop.",
        )
        parser.add_argument(
            "--delete-all",
            action="store_true",
            help="Delete all registered webhooks for this shop.",
        )

    def handle(self, *args, **options):
        shop = options["shop"]
        try:
            installation = ShopInstallation.objects.get(shop=shop, is_active=True)
        except ShopInstallation.DoesNotExist:
            raise CommandError(f"No active installation for shop={shop}")

        if options["list_webhooks"]:
            self._list_webhooks(installation)
            return

        if options["delete_all"]:
            self._delete_all_webhooks(installation)
            return

        base_url = options["base_url"]
        if not base_url:
            raise CommandError("--base-url is required when registering webhooks.")

        self._register_webhooks(installation, base_url.rstrip("/"))

    # ------------------------------------------------------------------
    # Shopify Admin API helpers
    # ------------------------------------------------------------------

    def _api_url(self, installation, path):
        return (
            f"https://{installation.shop}/admin/api/"
            f"{get_setting('SHOPIFY_API_VERSION')}/{path}"
        )

    def _api_headers(self, installation):
        return {
            "X-Shopify-Access-Token": installation.access_token,
            "Content-Type": "application/json",
        }

    def _fetch_webhooks(self, installation):
        """Return the shop's webhook subscriptions, or ``None`` on failure."""
        response = requests.get(
            self._api_url(installation, "webhooks.json"),
            headers=self._api_headers(installation),
            timeout=30,
        )
        if response.status_code != 200:
            self.stderr.write(
                f"ERROR: Failed to list webhooks "
                f"(HTTP {response.status_code}): {response.text}"
            )
            return None
        return response.json().get("webhooks", [])

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _list_webhooks(self, installation):
        webhooks = self._fetch_webhooks(installation)
        if webhooks is None:
            return
        if not webhooks:
            self.stdout.write(f"No webhooks registered for {installation.shop}")
            return

        self.stdout.write(f"Webhooks for {installation.shop}:")
        for wh in webhooks:
            self.stdout.write(f"{wh['id']:<15} {wh['topic']:<30} {wh.get('address', '')}")
        self.stdout.write(f"Total: {len(webhooks)}")

    def _delete_all_webhooks(self, installation):
        webhooks = self._fetch_webhooks(installation)
        if not webhooks:
            self.stdout.write(f"No webhooks to delete for {installation.shop}")
            return

        deleted = 0
        for wh in webhooks:
            response = requests.delete(
                self._api_url(installation, f"webhooks/{wh['id']}.json"),
                headers=self._api_headers(installation),
                timeout=30,
            )
            if response.status_code == 200:
                deleted += 1
            else:
                self.stderr.write(
                    f"FAILED to delete webhook {wh['id']} "
                    f"(HTTP {response.status_code}): {response.text}"
                )
        self.stdout.write(f"Deleted {deleted}/{len(webhooks)} webhooks")

    def _register_webhooks(self, installation, base_url):
        """Register every app topic, skipping any that already exist."""
        existing_topics = {
            wh["topic"] for wh in self._fetch_webhooks(installation) or []
        }
        callback_url = f"{base_url}{WEBHOOK_PATH}"

        created = skipped = failed = 0
        for topic in sorted(APP_TOPICS):
            if topic in existing_topics:
                self.stdout.write(f"SKIP: {topic} (already registered)")
                skipped += 1
                continue

            response = requests.post(
                self._api_url(installation, "webhooks.json"),
                json={
                    "webhook": {
                        "topic": topic,
                        "address": callback_url,
                        "format": "json",
                    }
                },
                headers=self._api_headers(installation),
                timeout=30,
            )
            if response.status_code in (200, 201):
                self.stdout.write(f"SUCCESS: {topic} -> {callback_url}")
                created += 1
            elif response.status_code == 422:
                # Shopify answers 422 when the subscription already exists.
                self.stdout.write(f"SKIP: {topic} (already exists per Shopify)")
                skipped += 1
            else:
                self.stderr.write(
                    f"FAILED: {topic} (HTTP {response.status_code}): {response.text}"
                )
                failed += 1

        logger.info(
            "Webhook registration for %s: %d created, %d skipped, %d failed",
            installation.shop,
            created,
            skipped,
            failed,
        )
        self.stdout.write(
            f"Done: {created} created, {skipped} skipped, {failed} failed"
        )
