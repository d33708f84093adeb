from django.conf import settings
from django.db import models

from apps.common.models import TimeStampedModel


class Complaint(TimeStampedModel):
    class Category(models.TextChoices):
        ACADEMIC = "academic", "Academic"
        TECHNICAL = "technical", "Technical"
        ADMINISTRATIVE = "administrative", "Administrative"
        FACILITIES = "facilities", "Facilities"
        OTHER = "other", "Other"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        IN_PROGRESS = "in_progress", "In progress"
        RESOLVED = "resolved", "Resolved"
        REJECTED = "rejected", "Rejected"

    CLOSED_STATUSES = (Status.RESOLVED, Status.REJECTED)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="complaints")
    subject = models.CharField(max_length=200)
    description = models.TextField()
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.OTHER)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    resolution_notes = models.TextField(blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="resolved_complaints",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.subject

    @property
    def is_closed(self):
        return self.status in self.CLOSED_STATUSES
