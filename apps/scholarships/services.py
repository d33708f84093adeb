import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.urls import reverse
from django.utils import timezone

from apps.activity_logs.services import log_activity
from apps.notifications.services import notify

from .models import Scholarship, ScholarshipApplication

logger = logging.getLogger(__name__)


def apply_for_scholarship(*, scholarship: Scholarship, user, gpa, financial_info, statement_of_purpose, request=None):
    if not scholarship.is_active:
        raise ValidationError("This scholarship is not accepting applications.")
    if scholarship.deadline < timezone.localdate():
        raise ValidationError("The application deadline for this scholarship has passed.")
    if ScholarshipApplication.objects.filter(scholarship=scholarship, user=user).exists():
        raise ValidationError("You have already applied for this scholarship.")
    try:
        with transaction.atomic():
            application = ScholarshipApplication.objects.create(
                scholarship=scholarship,
                user=user,
                gpa=gpa,
                financial_info=financial_info,
                statement_of_purpose=statement_of_purpose,
            )
    except IntegrityError as exc:
        raise ValidationError("You have already applied for this scholarship.") from exc

    log_activity(
        "apply_scholarship",
        user=user,
        request=request,
        details={"scholarship_id": scholarship.pk, "application_id": application.pk},
    )
    return application


@transaction.atomic
def review_application(*, application: ScholarshipApplication, status, admin_notes="", reviewed_by, request=None):
    previous = application.status
    application.status = status
    application.admin_notes = admin_notes or ""
    application.reviewed_by = reviewed_by
    application.reviewed_at = timezone.now()
    application.save(update_fields=["status", "admin_notes", "reviewed_by", "reviewed_at", "updated_at"])

    if previous != status:
        notify(
            [application.user],
            title=f"Scholarship application: {application.scholarship.name}",
            body=f"Your application is now {application.get_status_display().lower()}.",
            link=reverse("scholarships:application_detail", args=[application.pk]),
        )
    log_activity(
        "review_scholarship_application",
        user=reviewed_by,
        request=request,
        details={"application_id": application.pk, "previous_status": previous, "new_status": status},
    )
    return application
