from django.apps import AppConfig


class ContactsConfig(AppConfig):
    """
    Clients (patients, partner clinics) and suppliers (dental depots,
    laboratories) the practice invoices or buys from.
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'contacts'
    verbose_name = 'Clients & Suppliers'

    def ready(self):
        import contacts.signals  # noqa: F401
