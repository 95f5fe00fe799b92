import hmac
import logging

from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from .models import ShopInstallation
from .services import timer_store

logger = logging.getLogger(__name__)

SHOP_HEADER = "HTTP_X_SHOPIFY_SHOP_DOMAIN"


class ShopPrincipal:
    """The authenticated shop behind an admin request."""

    is_authenticated = True
    is_anonymous = False

    def __init__(self, installation):
        self.installation = installation
        self.shop = installation.shop

    def __str__(self):
        return self.shop


class ShopAccessTokenAuthentication(BaseAuthentication):
    """Authenticates admin calls against the shop's stored access token.

    Expects ``X-Shopify-Shop-Domain: <shop>`` and
    ``Authorization: Bearer <access token>``. Requests without the
    bearer header are left anonymous so the permission check answers
    with 401. A bad token, an unknown shop or an uninstalled shop fails
    authentication outright.
    """

    keyword = "Bearer"

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None
        if len(auth) != 2:
            raise exceptions.AuthenticationFailed("Invalid bearer header.")

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed("Invalid bearer header.")

        shop = request.META.get(SHOP_HEADER, "")
        if not shop:
            raise exceptions.AuthenticationFailed(
                "Missing X-Shopify-Shop-Domain header."
            )

        try:
            installation = timer_store.get_active_installation(shop)
        except ShopInstallation.DoesNotExist:
            logger.warning("Admin request for unknown or inactive shop: %s", shop)
            raise exceptions.AuthenticationFailed("Unknown shop.")

        if not installation.access_token or not hmac.compare_digest(
            installation.access_token.encode(), token.encode()
        ):
            logger.warning("Admin token mismatch for shop: %s", shop)
            raise exceptions.AuthenticationFailed("Invalid token.")

        return ShopPrincipal(installation), token

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'
