from django.apps import AppConfig


class CashConfig(AppConfig):
    """Cash register: money in and out of the practice till."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'cash'
    verbose_name = 'Cash Register'

    def ready(self):
        import cash.signals  # noqa: F401
