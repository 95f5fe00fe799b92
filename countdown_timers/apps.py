from django.apps import AppConfig


class CountdownTimersConfig(AppConfig):
    name = "countdown_timers"
    verbose_name = "Countdown Timers"
    default_auto_field = "django.db.models.AutoField"

    def ready(self):
        # Import handler modules to trigger topic registration in router.
        import countdown_timers.handlers.app_lifecycle  # noqa: F401
