from django.apps import AppConfig


class SalesConfig(AppConfig):
    """
    Sale and purchase invoices, payments and the point-of-sale checkout.

    Posting an invoice adjusts product stock in the same transaction;
    deleting one restores it.
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'sales'
    verbose_name = 'Sales & Purchases'

    def ready(self):
        import sales.signals  # noqa: F401
