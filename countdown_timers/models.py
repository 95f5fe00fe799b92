from django.db import models


class ShopInstallation(models.Model):
    """Per-tenant install record. One row per Shopify shop domain."""

    shop = models.CharField(max_length=255, unique=True)
    access_token = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "countdown_shop_installation"

    def __str__(self):
        state = "active" if self.is_active else "inactive"
        return f"{self.shop} ({state})"


class CountdownTimer(models.Model):
    """A countdown promotion shown on storefront product pages."""

    class Mode(models.TextChoices):
        FIXED = "fixed"
        EVERGREEN = "evergreen"

    class TargetScope(models.TextChoices):
        ALL = "all"
        PRODUCT = "product"
        COLLECTION = "collection"

    shop = models.CharField(max_length=255, db_index=True)
    title = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    mode = models.CharField(
        max_length=20, choices=Mode.choices, default=Mode.FIXED
    )
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    target_scope = models.CharField(
        max_length=20, choices=TargetScope.choices, default=TargetScope.ALL
    )
    product_ids = models.JSONField(default=list, blank=True)
    collection_ids = models.JSONField(default=list, blank=True)
    display = models.JSONField(default=dict, blank=True)
    urgency = models.JSONField(default=dict, blank=True)
    view_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "countdown_timer"
        indexes = [
            models.Index(
                fields=["shop", "created_at"],
                name="countdown_t_shop_8c1f2e_idx",
            ),
        ]

    def __str__(self):
        return f"{self.title or self.description} [{self.mode}] (shop={self.shop})"


class WebhookEvent(models.Model):
    """Audit log for idempotency and debugging. Every webhook received is recorded."""

    class Status(models.TextChoices):
        RECEIVED = "received"
        PROCESSING = "processing"
        SUCCESS = "success"
        FAILED = "failed"

    webhook_id = models.CharField(max_length=255)
    topic = models.CharField(max_length=100)
    shop_domain = models.CharField(max_length=255, db_index=True)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.RECEIVED
    )
    payload_hash = models.CharField(max_length=64)
    error_message = models.TextField(blank=True, default="")
    processing_time_ms = models.IntegerField(null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "countdown_webhook_event"
        indexes = [
            models.Index(
                fields=["shop_domain", "topic", "created_at"],
                name="countdown_w_shop_do_4a7b3c_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["webhook_id"], name="countdown_unique_webhook_id"
            ),
        ]

    def __str__(self):
        return f"{self.topic} [{self.status}] ({self.webhook_id})"
