from django.apps import AppConfig


class WebsiteConfig(AppConfig):
    """Dashboard metrics, AI stock insights and spreadsheet exports."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'website'
    verbose_name = 'Dashboard'
