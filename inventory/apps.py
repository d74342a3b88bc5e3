from django.apps import AppConfig


class InventoryConfig(AppConfig):
    """
    Configuration for the Inventory application.

    This app manages the practice's stock:
    - Categories (composites, anaesthetics, consumables...)
    - Products (SKU/barcode, selling price, cost, reorder level, expiry date)
    - Stock Entries (initial loads, sales, purchases, returns, adjustments)

    Features:
    - Row-locked stock adjustments with an audit trail
    - Low stock and expiry alerts
    - Barcode lookup by SKU
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'inventory'
    verbose_name = 'Inventory Management'

    def ready(self):
        """
        Import signal handlers when the app is ready.

        Signals handle:
        - Stock movement audit logging
        - Low stock / out of stock alerts
        """
        import inventory.signals  # noqa: F401
