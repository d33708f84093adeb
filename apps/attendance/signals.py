from django.db.models.signals import pre_save
from django.dispatch import receiver

from .models import Attendance


@receiver(pre_save, sender=Attendance)
def _fill_duration(sender, instance: Attendance, **kwargs):
    if instance.join_time and instance.leave_time and instance.leave_time > instance.join_time:
        delta = instance.leave_time - instance.join_time
        instance.duration_minutes = int(delta.total_seconds() // 60)
