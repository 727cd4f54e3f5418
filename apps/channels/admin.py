"""Admin configuration for channels app."""

from django.contrib import admin

from services.marketplaces.linking import PRODUCTS_KEY

from .models import SyncAccount


@admin.register(SyncAccount)
class SyncAccountAdmin(admin.ModelAdmin):
    """Admin configuration for SyncAccount model."""

    list_display = (
        "name",
        "channel",
        "display_name",
        "is_active",
        "linked_products",
        "connection_test_result",
        "last_connection_test",
    )
    list_filter = ("channel", "is_active", "connection_test_result")
    search_fields = ("name", "display_name")
    readonly_fields = (
        "marketplace_identifiers",
        "last_connection_test",
        "connection_test_result",
        "created_at",
        "updated_at",
    )
    ordering = ("channel", "name")

    @admin.display(description="Linked products")
    def linked_products(self, obj: SyncAccount) -> int:
        """Return the number of products linked on this account."""
        return len((obj.marketplace_identifiers or {}).get(PRODUCTS_KEY) or {})
