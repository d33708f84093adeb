from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from apps.common.models import TimeStampedModel

JOIN_WINDOW = timedelta(minutes=10)


class ClassSession(TimeStampedModel):
    course = models.ForeignKey(
        "courses.Course", on_delete=models.CASCADE, related_name="class_sessions"
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    meeting_link = models.URLField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_sessions",
    )
    reminder_sent = models.BooleanField(default=False)

    class Meta:
        ordering = ["start_time"]
        indexes = [models.Index(fields=["course", "start_time"], name="session_course_start_idx")]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F("start_time")),
                name="session_end_after_start",
            )
        ]

    def __str__(self):
        return f"{self.course.code}: {self.title}"

    def clean(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({"end_time": "End time must be after the start time."})

    def state(self, now=None):
        now = now or timezone.now()
        if self.end_time < now:
            return "ended"
        if self.start_time <= now <= self.end_time:
            return "live"
        if self.start_time - now <= JOIN_WINDOW:
            return "starting"
        return "scheduled"

    def can_join(self, now=None) -> bool:
        """Joinable while live or within ten minutes of the start."""
        return bool(self.meeting_link) and self.state(now) in {"live", "starting"}
