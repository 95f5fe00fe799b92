from django.contrib import admin

from .models import CountdownTimer, ShopInstallation, WebhookEvent


@admin.register(CountdownTimer)
class CountdownTimerAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "shop",
        "mode",
        "target_scope",
        "start_at",
        "end_at",
        "view_count",
        "created_at",
    )
    list_filter = (
        "mode",
        "target_scope",
    )
    search_fields = (
        "title",
        "description",
        "shop",
    )
    readonly_fields = ("view_count", "created_at", "updated_at")
    ordering = ("-created_at",)


@admin.register(ShopInstallation)
class ShopInstallationAdmin(admin.ModelAdmin):
    list_display = ("shop", "is_active", "updated_at")
    list_filter = ("is_active",)
    search_fields = ("shop",)
    readonly_fields = ("created_at", "updated_at")


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = (
        "webhook_id",
        "topic",
        "shop_domain",
        "status",
        "processing_time_ms",
        "created_at",
    )
    list_filter = (
        "status",
        "topic",
    )
    search_fields = (
        "webhook_id",
        "shop_domain",
    )
    readonly_fields = ("payload_hash", "processing_time_ms")
    date_hierarchy = "created_at"
    ordering = ("-created_at",)
