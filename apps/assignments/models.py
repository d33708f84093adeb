from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.common.models import TimeStampedModel
from apps.common.utils.uploads import assignment_upload_to, submission_upload_to
from campus_hub.storages import select_media_storage


class Assignment(TimeStampedModel):
    class SubmissionType(models.TextChoices):
        TEXT = "text", "Text"
        FILE = "file", "File upload"
        URL = "url", "Link"

    course = models.ForeignKey("courses.Course", on_delete=models.CASCADE, related_name="assignments")
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    due_date = models.DateTimeField()
    max_points = models.PositiveIntegerField(default=100)
    submission_type = models.CharField(
        max_length=10, choices=SubmissionType.choices, default=SubmissionType.TEXT
    )
    attachment = models.FileField(
        upload_to=assignment_upload_to, storage=select_media_storage, blank=True
    )
    attachment_name = models.CharField(max_length=255, blank=True)
    attachment_type = models.CharField(max_length=100, blank=True)
    attachment_size = models.PositiveBigIntegerField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name="created_assignments",
    )

    class Meta:
        ordering = ["due_date"]
        indexes = [models.Index(fields=["course", "due_date"], name="assignment_course_due_idx")]

    def __str__(self):
        return f"{self.course.code}: {self.title}"

    @property
    def is_overdue(self):
        return self.due_date < timezone.now()


class AssignmentSubmission(models.Model):
    class Status(models.TextChoices):
        SUBMITTED = "submitted", "Submitted"
        GRADED = "graded", "Graded"

    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name="submissions")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="assignment_submissions"
    )
    submission_text = models.TextField(blank=True)
    submission_url = models.URLField(blank=True)
    file = models.FileField(upload_to=submission_upload_to, storage=select_media_storage, blank=True)
    file_name = models.CharField(max_length=255, blank=True)
    file_type = models.CharField(max_length=100, blank=True)
    file_size = models.PositiveBigIntegerField(null=True, blank=True)
    submitted_at = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SUBMITTED)
    grade = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    feedback = models.TextField(blank=True)
    graded_at = models.DateTimeField(null=True, blank=True)
    graded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="graded_submissions",
    )

    class Meta:
        ordering = ["-submitted_at"]
        constraints = [
            models.UniqueConstraint(fields=["assignment", "user"], name="uniq_submission_assignment_user")
        ]
        indexes = [models.Index(fields=["user", "status"], name="submission_user_status_idx")]

    def __str__(self):
        return f"{self.user} -> {self.assignment}"

    @property
    def is_graded(self):
        return self.status == self.Status.GRADED

    @property
    def is_late(self):
        return self.submitted_at > self.assignment.due_date
