"""Session rosters with placeholder rows, toggling, and attendance stats."""
import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.courses.services import enrolled_students, is_enrolled

from .models import Attendance

logger = logging.getLogger(__name__)
User = get_user_model()

PLACEHOLDER_PREFIX = "placeholder-"


def attendance_percentage(present: int, total: int) -> int:
    """present / total * 100 rounded half up; 0 when there is nobody to count."""
    if total <= 0:
        return 0
    return (present * 200 + total) // (2 * total)


def build_roster(session):
    """One entry per enrolled student; unsaved absent placeholders fill the gaps."""
    students = list(enrolled_students(session.course))
    records = {
        att.user_id: att
        for att in Attendance.objects.filter(session=session, user__in=students)
    }

    roster = []
    for student in students:
        record = records.get(student.pk)
        if record is not None:
            roster.append({
                "id": str(record.pk),
                "student": student,
                "attendance": record,
                "is_present": record.is_present,
                "is_placeholder": False,
            })
        else:
            roster.append({
                "id": f"{PLACEHOLDER_PREFIX}{student.pk}",
                "student": student,
                "attendance": None,
                "is_present": False,
                "is_placeholder": True,
            })
    return roster


def roster_stats(roster) -> dict:
    total = len(roster)
    present = sum(1 for entry in roster if entry["is_present"])
    return {
        "total": total,
        "present": present,
        "absent": total - present,
        "percentage": attendance_percentage(present, total),
    }


@transaction.atomic
def toggle_attendance(*, session, student, marked_by=None, is_present=None) -> Attendance:
    """Create the row for a placeholder, or update the existing one.

    With ``is_present`` given the row is set to that value; otherwise the
    current value is flipped (a missing row counts as absent).
    """
    if not is_enrolled(student, session.course):
        raise ValidationError("This student is not enrolled in the course.")

    record, created = Attendance.objects.select_for_update().get_or_create(
        session=session,
        user=student,
        defaults={"is_present": True if is_present is None else bool(is_present), "marked_by": marked_by},
    )
    if created:
        logger.info("Attendance created session_id=%s user_id=%s", session.pk, student.pk)
        return record

    record.is_present = (not record.is_present) if is_present is None else bool(is_present)
    record.marked_by = marked_by
    record.save(update_fields=["is_present", "marked_by", "updated_at"])
    return record


def record_join(*, session, student) -> Attendance:
    """Mark a student present when they join the live class."""
    record, _ = Attendance.objects.update_or_create(
        session=session,
        user=student,
        defaults={"join_time": timezone.now(), "is_present": True},
    )
    return record


def student_attendance(student):
    return (
        Attendance.objects.filter(user=student)
        .select_related("session", "session__course")
        .order_by("-session__start_time")
    )


def student_stats(records) -> dict:
    records = list(records)
    total = len(records)
    present = sum(1 for r in records if r.is_present)
    return {
        "total": total,
        "present": present,
        "absent": total - present,
        "percentage": attendance_percentage(present, total),
    }
