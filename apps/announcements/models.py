from django.conf import settings
from django.db import models

from apps.common.models import TimeStampedModel


class Announcement(TimeStampedModel):
    class Target(models.TextChoices):
        ALL = "all", "Everyone"
        COURSE = "course", "All students in a course"
        STUDENTS = "students", "Selected students"

    title = models.CharField(max_length=200)
    content = models.TextField()
    # Null course means the announcement is for everyone.
    course = models.ForeignKey(
        "courses.Course",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="announcements",
    )
    target = models.CharField(max_length=20, choices=Target.choices, default=Target.ALL)
    recipients = models.ManyToManyField(
        settings.AUTH_USER_MODEL, blank=True, related_name="targeted_announcements"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name="announcements_sent",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.title
