from django.apps import AppConfig


class WastageConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.wastage'
