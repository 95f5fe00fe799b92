import hashlib
import json
import logging

from datadog import statsd
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import tasks
from .authentication import ShopAccessTokenAuthentication
from .conf import get_setting
from .middleware import verify_app_proxy_signature, verify_shopify_hmac
from .models import CountdownTimer, WebhookEvent
from .router import APP_TOPICS
from .serializers import CountdownTimerSerializer, storefront_payload
from .services import timer_store
from .services.selection import select_timer

logger = logging.getLogger(__name__)

STOREFRONT_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
}


def _split_ids(raw):
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def _enqueue_view_increment(timer_id):
    """Fire-and-forget view count bump; never fails the response."""
    try:
        tasks.increment_timer_views.send(timer_id)
    except Exception:
        logger.exception("Could not enqueue view increment for timer %s", timer_id)


class StorefrontCountdownView(APIView):
    """Public, CORS-open endpoint returning the one timer to show.

    Query parameters: ``shop`` and ``productId`` (bare ID or GID) are
    required; ``collectionIds`` is an optional comma-separated list.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def _respond(self, body, status_code=status.HTTP_200_OK):
        return Response(body, status=status_code, headers=STOREFRONT_CORS_HEADERS)

    def get(self, request):
        params = request.query_params

        if get_setting("COUNTDOWN_VERIFY_PROXY_SIGNATURE") and not (
            verify_app_proxy_signature(params, get_setting("SHOPIFY_API_SECRET"))
        ):
            logger.warning("App proxy signature check failed for %s", params.get("shop"))
            return self._respond(
                {"error": "Invalid signature"}, status.HTTP_401_UNAUTHORIZED
            )

        shop = params.get("shop")
        product_id = params.get("productId")
        if not shop or not product_id:
            return self._respond(
                {"error": "Missing parameters"}, status.HTTP_400_BAD_REQUEST
            )

        collection_ids = _split_ids(params.get("collectionIds"))
        timers = timer_store.get_shop_timers(shop)
        winner = select_timer(timers, timezone.now(), product_id, collection_ids)

        tags = [f"shop_domain:{shop}"]
        if winner is None:
            statsd.increment("countdown.selection.empty", tags=tags)
            return self._respond({"active": False})

        statsd.increment("countdown.selection.served", tags=tags)
        _enqueue_view_increment(winner.pk)
        return self._respond(storefront_payload(winner))


class ShopScopedMixin:
    """Admin views acting on behalf of the authenticated shop.

    The shop comes from the authenticated principal, never from the
    request parameters, so a caller can only reach its own timers.
    """

    authentication_classes = [ShopAccessTokenAuthentication]
    permission_classes = [IsAuthenticated]

    @property
    def shop(self):
        return self.request.user.shop


class TimerListView(ShopScopedMixin, APIView):
    """List (GET) and create (POST) a shop's timers."""

    def get(self, request):
        timers = timer_store.list_timers(self.shop)
        return Response(CountdownTimerSerializer(timers, many=True).data)

    def post(self, request):
        timer = timer_store.upsert_timer(self.shop, request.data)
        return Response(
            CountdownTimerSerializer(timer).data, status=status.HTTP_201_CREATED
        )


class TimerDetailView(ShopScopedMixin, APIView):
    """Update (PUT) and delete (DELETE) one of a shop's timers."""

    def put(self, request, timer_id):
        try:
            timer = timer_store.upsert_timer(self.shop, request.data, timer_id)
        except CountdownTimer.DoesNotExist:
            return Response(
                {"error": "Timer not found"}, status=status.HTTP_404_NOT_FOUND
            )
        return Response(CountdownTimerSerializer(timer).data)

    def delete(self, request, timer_id):
        if not timer_store.delete_timer(self.shop, timer_id):
            return Response(
                {"error": "Timer not found"}, status=status.HTTP_404_NOT_FOUND
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class AppWebhookView(APIView):
    """Receives Shopify app lifecycle webhooks (``app/uninstalled``).

    Handles HMAC verification, idempotency, and event recording, then
    hands the payload to a Dramatiq actor for processing.
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    allowed_topics = APP_TOPICS

    def post(self, request):
        # 1. Extract shop domain
        shop_domain = request.META.get("HTTP_X_SHOPIFY_SHOP_DOMAIN")
        if not shop_domain:
            return Response(
                {"error": "Missing X-Shopify-Shop-Domain header"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        # 2. Verify HMAC signature
        raw_body = request.body
        hmac_header = request.META.get("HTTP_X_SHOPIFY_HMAC_SHA256", "")
        if not verify_shopify_hmac(
            raw_body, hmac_header, get_setting("SHOPIFY_API_SECRET")
        ):
            logger.warning("HMAC verification failed for %s", shop_domain)
            return Response(
                {"error": "HMAC verification failed"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        # 3. Extract topic and webhook ID
        topic = request.META.get("HTTP_X_SHOPIFY_TOPIC", "")
        webhook_id = request.META.get("HTTP_X_SHOPIFY_WEBHOOK_ID", "")
        if not webhook_id:
            return Response(
                {"error": "Missing X-Shopify-Webhook-Id header"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if topic not in self.allowed_topics:
            logger.warning("Topic %s not handled by %s", topic, self.__class__.__name__)
            return Response(
                {"error": f"Topic '{topic}' not handled by this endpoint"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        # 4. Idempotency: Shopify retries deliveries with the same ID
        if WebhookEvent.objects.filter(webhook_id=webhook_id).exists():
            return Response(status=status.HTTP_200_OK)

        try:
            payload = json.loads(raw_body)
        except ValueError:
            return Response(
                {"error": "Body is not valid JSON"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        # 5. Record and enqueue
        event = WebhookEvent.objects.create(
            webhook_id=webhook_id,
            topic=topic,
            shop_domain=shop_domain,
            status=WebhookEvent.Status.RECEIVED,
            payload_hash=hashlib.sha256(raw_body).hexdigest(),
        )
        tasks.process_app_webhook_event.send(event.id, payload)

        logger.info(
            "Recorded webhook event: topic=%s, webhook_id=%s, shop=%s",
            topic,
            webhook_id,
            shop_domain,
        )
        return Response(status=status.HTTP_200_OK)
