"""Chart-ready series: ``{"labels": [...], "datasets": [{"label", "data"}, ...]}``."""
import calendar
import logging
from collections import OrderedDict, defaultdict
from datetime import date, datetime, time, timedelta

from django.db.models import Count, Q
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.activity_logs.models import ActivityLog
from apps.class_sessions.models import ClassSession
from apps.courses.models import Course, Enrollment

logger = logging.getLogger(__name__)

RANGES = ("week", "month", "semester")
KINDS = ("attendance", "enrollment", "activity")


def months_back(day: date, months: int) -> date:
    years, month_index = divmod(day.month - 1 - months, 12)
    year = day.year + years
    month = month_index + 1
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))


def range_start(range_key: str, today: date | None = None) -> datetime:
    """week = 7 days, month = 1 month, semester = 4 months back."""
    today = today or timezone.localdate()
    if range_key == "month":
        start = months_back(today, 1)
    elif range_key == "semester":
        start = months_back(today, 4)
    else:
        start = today - timedelta(days=7)
    return timezone.make_aware(datetime.combine(start, time.min))


def attendance_series(range_key="week", course=None, today=None) -> dict:
    """Present/absent per session date; enrolled students without a present row count as absent."""
    sessions = ClassSession.objects.filter(
        start_time__gte=range_start(range_key, today), start_time__lte=timezone.now()
    )
    if course is not None:
        sessions = sessions.filter(course=course)
    sessions = sessions.annotate(
        day=TruncDate("start_time"),
        present=Count("attendances", filter=Q(attendances__is_present=True), distinct=True),
    ).order_by("start_time")

    enrolled = dict(
        Enrollment.objects.order_by().values_list("course_id").annotate(n=Count("id"))
    )
    by_day = OrderedDict()
    for session in sessions:
        counts = by_day.setdefault(session.day, {"present": 0, "absent": 0})
        counts["present"] += session.present
        counts["absent"] += max(enrolled.get(session.course_id, 0) - session.present, 0)

    labels = [day.isoformat() for day in by_day]
    return {
        "labels": labels,
        "datasets": [
            {"label": "Present", "data": [c["present"] for c in by_day.values()]},
            {"label": "Absent", "data": [c["absent"] for c in by_day.values()]},
        ],
    }


def enrollment_series() -> dict:
    courses = Course.objects.annotate(students=Count("enrollments")).order_by("code")
    return {
        "labels": [c.code for c in courses],
        "datasets": [{"label": "Enrolled students", "data": [c.students for c in courses]}],
    }


def activity_series(range_key="week", today=None) -> dict:
    rows = (
        ActivityLog.objects.filter(created_at__gte=range_start(range_key, today))
        .annotate(day=TruncDate("created_at"))
        .order_by()
        .values("day", "action")
        .annotate(n=Count("id"))
    )
    counts = defaultdict(dict)
    actions = set()
    for row in rows:
        counts[row["day"]][row["action"]] = row["n"]
        actions.add(row["action"])
    days = sorted(counts)
    return {
        "labels": [day.isoformat() for day in days],
        "datasets": [
            {"label": action, "data": [counts[day].get(action, 0) for day in days]}
            for action in sorted(actions)
        ],
    }


def build_series(kind: str, *, range_key="week", course=None) -> dict:
    if range_key not in RANGES:
        range_key = "week"
    if kind == "attendance":
        return attendance_series(range_key, course)
    if kind == "enrollment":
        return enrollment_series()
    if kind == "activity":
        return activity_series(range_key)
    raise KeyError(kind)
