import base64
import hashlib
import hmac


def verify_shopify_hmac(request_body: bytes, hmac_header: str, secret: str) -> bool:
    """Verify the HMAC-SHA256 signature from a Shopify webhook request.

    Shopify sends an X-Shopify-Hmac-Sha256 header containing a Base64-encoded
    HMAC-SHA256 digest of the raw request body, computed with the app's
    API secret.

    Args:
        request_body: The raw HTTP request body bytes.
        hmac_header: The value of X-Shopify-Hmac-Sha256 header.
        secret: The app's ``SHOPIFY_API_SECRET``.

    Returns:
        True if the signature is valid, False otherwise.
    """
    if not hmac_header or not secret:
        return False
    computed = base64.b64encode(
        hmac.new(secret.encode("utf-8"), request_body, hashlib.sha256).digest()
    ).decode("utf-8")
    return hmac.compare_digest(computed, hmac_header)


def verify_app_proxy_signature(params, secret: str) -> bool:
    """Verify the ``signature`` query parameter of a Shopify app-proxy request.

    Storefront requests routed through an app proxy carry a hex
    HMAC-SHA256 digest of every other query parameter, formatted as
    ``key=value`` (multiple values joined by ``,``), sorted by key and
    concatenated without a separator.

    Args:
        params: a ``QueryDict`` (or mapping of key to list of values).
        secret: The app's ``SHOPIFY_API_SECRET``.
    """
    if hasattr(params, "lists"):
        items = dict(params.lists())
    else:
        items = {k: v if isinstance(v, list) else [v] for k, v in params.items()}

    signature = (items.pop("signature", None) or [""])[0]
    if not signature or not secret:
        return False

    message = "".join(
        f"{key}={','.join(values)}" for key, values in sorted(items.items())
    )
    computed = hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(computed, signature)
