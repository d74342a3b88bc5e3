from django.apps import AppConfig


class UsersConfig(AppConfig):
    """Practice staff: profiles, roles and API login."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'users'
    verbose_name = 'Staff'
