import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.urls import reverse

from apps.activity_logs.services import log_activity
from apps.courses.services import enrolled_students
from apps.notifications.services import notify

from .models import Announcement

logger = logging.getLogger(__name__)
User = get_user_model()


def announcement_audience(announcement: Announcement):
    if announcement.target == Announcement.Target.STUDENTS:
        return announcement.recipients.all()
    if announcement.target == Announcement.Target.COURSE and announcement.course_id:
        return enrolled_students(announcement.course)
    return User.objects.filter(is_active=True).exclude(pk=announcement.created_by_id)


@transaction.atomic
def publish_announcement(announcement: Announcement, *, request=None) -> int:
    """Fan the announcement out as notifications; returns the recipient count."""
    audience = list(announcement_audience(announcement))
    prefix = f"[{announcement.course.code}] " if announcement.course_id else ""
    count = notify(
        audience,
        title=f"{prefix}{announcement.title}",
        body=announcement.content,
        link=reverse("announcements:detail", args=[announcement.pk]),
        announcement=announcement,
    )
    log_activity(
        "send_announcement",
        user=announcement.created_by,
        request=request,
        details={"announcement_id": announcement.pk, "target": announcement.target, "recipients": count},
    )
    return count


def announcements_for_user(user):
    """Announcements the user created or received."""
    return (
        Announcement.objects.filter(Q(notifications__user=user) | Q(created_by=user))
        .select_related("course", "created_by")
        .distinct()
    )
