from django.apps import AppConfig


class AutotestConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "autotest"
