from django.urls import path

from .views import (
    AppWebhookView,
    StorefrontCountdownView,
    TimerDetailView,
    TimerListView,
)

urlpatterns = [
    path(
        "api/countdown/",
        StorefrontCountdownView.as_view(),
        name="countdown_storefront",
    ),
    path(
        "timers/",
        TimerListView.as_view(),
        name="countdown_timer_list",
    ),
    path(
        "timers/<int:timer_id>/",
        TimerDetailView.as_view(),
        name="countdown_timer_detail",
    ),
    path(
        "webhooks/app/",
        AppWebhookView.as_view(),
        name="countdown_app_webhook",
    ),
]
