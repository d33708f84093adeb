from django.conf import settings
from django.db import models

from apps.common.models import TimeStampedModel


class Course(TimeStampedModel):
    code = models.CharField(max_length=20, unique=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    credits = models.PositiveSmallIntegerField(default=3)
    schedule = models.CharField(max_length=120, blank=True, help_text="e.g. Mon/Wed 10:00-11:30")
    room = models.CharField(max_length=50, blank=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.title}"


class Enrollment(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="enrollments"
    )
    # Courses referenced by enrollments cannot be deleted.
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name="enrollments")
    enrolled_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-enrolled_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "course"], name="uniq_enrollment_user_course"),
        ]
        indexes = [models.Index(fields=["course"], name="enrollment_course_idx")]

    def __str__(self):
        return f"{self.user.username} @ {self.course.code}"


class TeachingAssignment(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="teaching_assignments"
    )
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="teaching_assignments")
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "course"], name="uniq_teaching_user_course"),
        ]

    def __str__(self):
        return f"{self.user.username} teaches {self.course.code}"


class Deadline(TimeStampedModel):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="deadlines")
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    due_date = models.DateTimeField()
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_deadlines",
    )

    class Meta:
        ordering = ["due_date"]

    def __str__(self):
        return f"{self.course.code}: {self.title}"
