from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver
from django.urls import reverse

from apps.notifications.services import notify

from .models import Complaint


@receiver(pre_save, sender=Complaint)
def remember_previous_status(sender, instance, **kwargs):
    if instance.pk:
        instance._previous_status = (
            Complaint.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
        )
    else:
        instance._previous_status = None


@receiver(post_save, sender=Complaint)
def notify_status_change(sender, instance, created, **kwargs):
    previous = getattr(instance, "_previous_status", None)
    if created or previous is None or previous == instance.status:
        return
    notify(
        [instance.user],
        title=f"Complaint update: {instance.subject}",
        body=f"Status changed to {instance.get_status_display()}.",
        link=reverse("complaints:detail", args=[instance.pk]),
    )
