import logging

from django.db import transaction
from django.utils import timezone

from apps.activity_logs.services import log_activity

from .models import Complaint

logger = logging.getLogger(__name__)


@transaction.atomic
def create_complaint(*, user, subject, description, category=Complaint.Category.OTHER, request=None) -> Complaint:
    complaint = Complaint.objects.create(
        user=user, subject=subject, description=description, category=category
    )
    log_activity(
        "create_complaint",
        user=user,
        request=request,
        details={"complaint_id": complaint.pk, "complaint_title": subject},
    )
    return complaint


@transaction.atomic
def update_complaint_status(*, complaint: Complaint, status, resolution_notes="", changed_by, request=None):
    """Change status; closing a complaint stamps resolved_at/resolved_by."""
    previous = complaint.status
    complaint.status = status
    complaint.resolution_notes = resolution_notes or ""
    if status in Complaint.CLOSED_STATUSES and previous != status:
        complaint.resolved_at = timezone.now()
        complaint.resolved_by = changed_by
    elif status not in Complaint.CLOSED_STATUSES:
        complaint.resolved_at = None
        complaint.resolved_by = None
    complaint.save()

    log_activity(
        "update_complaint_status",
        user=changed_by,
        request=request,
        details={"complaint_id": complaint.pk, "previous_status": previous, "new_status": status},
    )
    logger.info("Complaint %s: %s -> %s", complaint.pk, previous, status)
    return complaint
