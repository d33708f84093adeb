from django.conf import settings
from django.db import models


class ActivityLog(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="activity_logs",
    )
    action = models.CharField(max_length=64)
    details = models.JSONField(default=dict, blank=True)
    ip_address = models.CharField(max_length=45, default="unknown")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["action", "created_at"], name="activity_action_created_idx")]

    def __str__(self):
        return f"{self.action} by {self.user_id or 'system'}"
