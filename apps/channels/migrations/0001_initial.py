from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SyncAccount",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Account name, unique per channel (e.g., 'main')",
                        max_length=100,
                    ),
                ),
                (
                    "channel",
                    models.CharField(
                        choices=[
                            ("shopify", "Shopify"),
                            ("ebay", "eBay"),
                            ("mirakl", "Mirakl"),
                            ("freemans", "Freemans"),
                            ("debenhams", "Debenhams"),
                            ("bq", "B&Q"),
                            ("amazon", "Amazon"),
                        ],
                        help_text="Sales channel this account connects to",
                        max_length=30,
                    ),
                ),
                ("display_name", models.CharField(blank=True, default="", max_length=150)),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Inactive accounts are skipped by syncs and health checks",
                    ),
                ),
                (
                    "credentials",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Channel-specific secrets (API keys, tokens)",
                    ),
                ),
                (
                    "settings",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Channel-specific options (currency, category code, lead time)",
                    ),
                ),
                (
                    "marketplace_identifiers",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Remote identifiers recorded after syncs",
                    ),
                ),
                ("last_connection_test", models.DateTimeField(blank=True, null=True)),
                (
                    "connection_test_result",
                    models.CharField(
                        blank=True,
                        choices=[("", "Not tested"), ("passed", "Passed"), ("failed", "Failed")],
                        default="",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Sync Account",
                "verbose_name_plural": "Sync Accounts",
                "db_table": "sync_accounts",
                "ordering": ["channel", "name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("channel", "name"), name="unique_channel_account_name"
                    )
                ],
            },
        ),
    ]
