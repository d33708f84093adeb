from django.conf import settings
from django.db import models

from apps.class_sessions.models import ClassSession


class Attendance(models.Model):
    session = models.ForeignKey(
        ClassSession,
        on_delete=models.CASCADE,
        related_name="attendances",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="attendances"
    )
    is_present = models.BooleanField(default=False)
    join_time = models.DateTimeField(null=True, blank=True)
    leave_time = models.DateTimeField(null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="marked_attendances",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["session", "user"], name="uniq_attendance_session_user"),
        ]
        indexes = [models.Index(fields=["user"], name="attendance_user_idx")]
        ordering = ["-session__start_time", "user__username"]

    def __str__(self):
        state = "present" if self.is_present else "absent"
        return f"{self.user.username} - {state} ({self.session})"
