from django.apps import AppConfig


class ClassSessionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.class_sessions"
