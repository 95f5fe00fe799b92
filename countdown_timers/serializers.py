"""Validation at the admin boundary and the storefront response shape."""

from rest_framework import serializers

from .conf import get_setting
from .models import CountdownTimer
from .utils import isoformat_z, to_shopify_gid


def default_display():
    return {"position": "top", "size": "medium", "color": "#008000"}


def default_urgency():
    return {
        "type": "pulse",
        "triggerMinutes": get_setting("COUNTDOWN_DEFAULT_URGENCY_MINUTES"),
        "color": get_setting("COUNTDOWN_DEFAULT_URGENCY_COLOR"),
    }


class DisplaySerializer(serializers.Serializer):
    position = serializers.ChoiceField(choices=["top", "bottom"], default="top")
    size = serializers.ChoiceField(
        choices=["small", "medium", "large"], default="medium"
    )
    color = serializers.CharField(max_length=64, default="#008000")


class UrgencySerializer(serializers.Serializer):
    type = serializers.ChoiceField(
        choices=["none", "pulse", "banner"], default="pulse"
    )
    triggerMinutes = serializers.IntegerField(min_value=0, required=False)
    color = serializers.CharField(max_length=64, required=False)

    def validate(self, attrs):
        attrs.setdefault(
            "triggerMinutes", get_setting("COUNTDOWN_DEFAULT_URGENCY_MINUTES")
        )
        attrs.setdefault("color", get_setting("COUNTDOWN_DEFAULT_URGENCY_COLOR"))
        return attrs


class CountdownTimerSerializer(serializers.ModelSerializer):
    """Turns loosely-typed admin input into a valid countdown timer.

    Accepts camelCase keys as sent by the admin UI. Bare product and
    collection IDs are normalised to Shopify GIDs.
    """

    mode = serializers.ChoiceField(choices=CountdownTimer.Mode.choices)
    durationMinutes = serializers.IntegerField(
        source="duration_minutes", min_value=1, required=False, allow_null=True
    )
    startDate = serializers.DateTimeField(source="start_at")
    endDate = serializers.DateTimeField(source="end_at")
    targetScope = serializers.ChoiceField(
        source="target_scope", choices=CountdownTimer.TargetScope.choices
    )
    productIds = serializers.ListField(
        source="product_ids",
        child=serializers.CharField(max_length=255),
        required=False,
    )
    collectionIds = serializers.ListField(
        source="collection_ids",
        child=serializers.CharField(max_length=255),
        required=False,
    )
    display = DisplaySerializer(required=False)
    urgency = UrgencySerializer(required=False)
    viewCount = serializers.IntegerField(source="view_count", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = CountdownTimer
        fields = [
            "id",
            "title",
            "description",
            "mode",
            "durationMinutes",
            "startDate",
            "endDate",
            "targetScope",
            "productIds",
            "collectionIds",
            "display",
            "urgency",
            "viewCount",
            "createdAt",
        ]
        read_only_fields = ["id"]

    def validate_productIds(self, value):
        return [to_shopify_gid("Product", pid) for pid in value]

    def validate_collectionIds(self, value):
        return [to_shopify_gid("Collection", cid) for cid in value]

    def validate(self, attrs):
        instance = self.instance

        def current(field, default=None):
            if field in attrs:
                return attrs[field]
            return getattr(instance, field, default) if instance else default

        start = current("start_at")
        end = current("end_at")
        if start and end and start > end:
            raise serializers.ValidationError(
                {"endDate": "End date must not be before the start date."}
            )

        if current("mode") == CountdownTimer.Mode.EVERGREEN and not current(
            "duration_minutes"
        ):
            raise serializers.ValidationError(
                {"durationMinutes": "Evergreen timers need a positive duration."}
            )

        scope = current("target_scope")
        if scope == CountdownTimer.TargetScope.PRODUCT and not current(
            "product_ids", []
        ):
            raise serializers.ValidationError(
                {"productIds": "Select at least one product."}
            )
        if scope == CountdownTimer.TargetScope.COLLECTION and not current(
            "collection_ids", []
        ):
            raise serializers.ValidationError(
                {"collectionIds": "Select at least one collection."}
            )

        if instance is None:
            attrs.setdefault("display", default_display())
            attrs.setdefault("urgency", default_urgency())
        return attrs


def storefront_payload(timer):
    """Response body for a selected timer on the storefront endpoint.

    ``endDate`` is always the campaign end, even for evergreen timers;
    the visitor's own window is computed client-side from ``duration``.
    """
    display = timer.display or {}
    urgency = timer.urgency or {}
    return {
        "active": True,
        "id": str(timer.pk),
        "type": timer.mode,
        "duration": timer.duration_minutes,
        "endDate": isoformat_z(timer.end_at),
        "description": timer.description,
        "display": {
            "position": display.get("position", "top"),
            "size": display.get("size", "medium"),
            "color": display.get("color")
            or get_setting("COUNTDOWN_DEFAULT_DISPLAY_COLOR"),
        },
        "urgency": {
            "type": urgency.get("type", "none"),
            "triggerMinutes": urgency.get(
                "triggerMinutes", get_setting("COUNTDOWN_DEFAULT_URGENCY_MINUTES")
            ),
            "color": urgency.get("color")
            or get_setting("COUNTDOWN_DEFAULT_URGENCY_COLOR"),
        },
    }
