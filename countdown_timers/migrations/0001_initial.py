# Generated manually for countdown_timers app

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ShopInstallation",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("shop", models.CharField(max_length=255, unique=True)),
                ("access_token", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "countdown_shop_installation",
            },
        ),
        migrations.CreateModel(
            name="CountdownTimer",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("shop", models.CharField(db_index=True, max_length=255)),
                ("title", models.CharField(blank=True, default="", max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "mode",
                    models.CharField(
                        choices=[("fixed", "Fixed"), ("evergreen", "Evergreen")],
                        default="fixed",
                        max_length=20,
                    ),
                ),
                (
                    "duration_minutes",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                ("start_at", models.DateTimeField()),
                ("end_at", models.DateTimeField()),
                (
                    "target_scope",
                    models.CharField(
                        choices=[
                            ("all", "All"),
                            ("product", "Product"),
                            ("collection", "Collection"),
                        ],
                        default="all",
                        max_length=20,
                    ),
                ),
                ("product_ids", models.JSONField(blank=True, default=list)),
                ("collection_ids", models.JSONField(blank=True, default=list)),
                ("display", models.JSONField(blank=True, default=dict)),
                ("urgency", models.JSONField(blank=True, default=dict)),
                ("view_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "countdown_timer",
            },
        ),
        migrations.AddIndex(
            model_name="countdowntimer",
            index=models.Index(
                fields=["shop", "created_at"],
                name="countdown_t_shop_8c1f2e_idx",
            ),
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("webhook_id", models.CharField(max_length=255)),
                ("topic", models.CharField(max_length=100)),
                ("shop_domain", models.CharField(db_index=True, max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("received", "Received"),
                            ("processing", "Processing"),
                            ("success", "Success"),
                            ("failed", "Failed"),
                        ],
                        default="received",
                        max_length=20,
                    ),
                ),
                ("payload_hash", models.CharField(max_length=64)),
                ("error_message", models.TextField(blank=True, default="")),
                ("processing_time_ms", models.IntegerField(null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "countdown_webhook_event",
            },
        ),
        migrations.AddIndex(
            model_name="webhookevent",
            index=models.Index(
                fields=["shop_domain", "topic", "created_at"],
                name="countdown_w_shop_do_4a7b3c_idx",
            ),
        ),
        migrations.AddConstraint(
            model_name="webhookevent",
            constraint=models.UniqueConstraint(
                fields=["webhook_id"], name="countdown_unique_webhook_id"
            ),
        ),
    ]
