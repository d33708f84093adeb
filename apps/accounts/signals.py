from django.contrib.auth.signals import user_logged_in
from django.dispatch import receiver

from apps.activity_logs.services import log_activity


@receiver(user_logged_in)
def record_login(sender, request, user, **kwargs):
    log_activity("login", user=user, request=request)
