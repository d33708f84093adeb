"""Admin CSV exports. Each builder returns ``(headers, rows)``."""
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.attendance.models import Attendance
from apps.class_sessions.models import ClassSession
from apps.courses.models import Course, Enrollment

User = get_user_model()

EXPORT_TYPES = (
    ("students", "Students"),
    ("faculty", "Faculty"),
    ("courses", "Courses"),
    ("enrollments", "Enrollments"),
    ("attendance", "Attendance"),
    ("classes", "Class sessions"),
)
USER_HEADERS = ["ID", "Name", "Email", "Department", "Role", "Verified", "Created At"]


def _local(value, fmt):
    return timezone.localtime(value).strftime(fmt) if value else "N/A"


def _users(role):
    users = User.objects.filter(role=role).order_by("last_name", "first_name", "username")
    rows = [
        [u.pk, u.preferred_full_name(), u.email, u.department, u.get_role_display(), u.is_verified, u.date_joined]
        for u in users
    ]
    return USER_HEADERS, rows


def export_students(course=None):
    return _users(User.Role.STUDENT)


def export_faculty(course=None):
    return _users(User.Role.FACULTY)


def export_courses(course=None):
    headers = ["ID", "Code", "Title", "Description", "Credits", "Room", "Schedule", "Created At"]
    rows = [
        [c.pk, c.code, c.title, c.description, c.credits, c.room, c.schedule, c.created_at]
        for c in Course.objects.order_by("code")
    ]
    return headers, rows


def export_enrollments(course=None):
    enrollments = Enrollment.objects.select_related("user", "course").order_by("course__code", "enrolled_at")
    if course is not None:
        headers = [
            "Enrollment ID",
            "Student ID",
            "Student Name",
            "Student Email",
            "Student Department",
            "Enrollment Date",
        ]
        rows = [
            [e.pk, e.user_id, e.user.preferred_full_name(), e.user.email, e.user.department, e.enrolled_at]
            for e in enrollments.filter(course=course)
        ]
        return headers, rows

    headers = [
        "Enrollment ID",
        "Student ID",
        "Student Name",
        "Student Email",
        "Course ID",
        "Course Code",
        "Course Title",
        "Enrollment Date",
    ]
    rows = [
        [
            e.pk,
            e.user_id,
            e.user.preferred_full_name(),
            e.user.email,
            e.course_id,
            e.course.code,
            e.course.title,
            e.enrolled_at,
        ]
        for e in enrollments
    ]
    return headers, rows


def export_attendance(course=None):
    if course is None:
        raise ValidationError("Please select a course to export attendance data.")
    headers = [
        "Session ID",
        "Session Title",
        "Session Date",
        "Session Time",
        "Student ID",
        "Student Name",
        "Student Email",
        "Status",
        "Join Time",
    ]
    records = (
        Attendance.objects.filter(session__course=course)
        .select_related("session", "user")
        .order_by("-session__start_time", "user__last_name")
    )
    rows = [
        [
            a.session_id,
            a.session.title,
            timezone.localtime(a.session.start_time).date(),
            f"{_local(a.session.start_time, '%H:%M')} - {_local(a.session.end_time, '%H:%M')}",
            a.user_id,
            a.user.preferred_full_name(),
            a.user.email,
            "Present" if a.is_present else "Absent",
            _local(a.join_time, "%H:%M:%S"),
        ]
        for a in records
    ]
    return headers, rows


def export_classes(course=None):
    headers = [
        "Session ID",
        "Session Title",
        "Course Code",
        "Course Title",
        "Start Time",
        "End Time",
        "Meeting Link",
        "Created At",
    ]
    sessions = ClassSession.objects.select_related("course").order_by("-start_time")
    if course is not None:
        sessions = sessions.filter(course=course)
    rows = [
        [
            s.pk,
            s.title,
            s.course.code,
            s.course.title,
            s.start_time,
            s.end_time,
            s.meeting_link or "N/A",
            s.created_at,
        ]
        for s in sessions
    ]
    return headers, rows


BUILDERS = {
    "students": export_students,
    "faculty": export_faculty,
    "courses": export_courses,
    "enrollments": export_enrollments,
    "attendance": export_attendance,
    "classes": export_classes,
}


def export_filename(kind: str, today=None) -> str:
    today = today or timezone.localdate()
    return f"{kind}-export-{today.isoformat()}.csv"
