import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounts.permissions import role_flags
from apps.activity_logs.services import log_activity

from .models import Course, Deadline, Enrollment, TeachingAssignment

logger = logging.getLogger(__name__)
User = get_user_model()


def courses_for_user(user):
    """Courses visible to the user: all for admins, taught for faculty, enrolled for students."""
    flags = role_flags(user)
    if flags["is_admin"]:
        return Course.objects.all()
    if flags["is_faculty"]:
        return Course.objects.filter(teaching_assignments__user=user).distinct()
    if flags["is_student"]:
        return Course.objects.filter(enrollments__user=user).distinct()
    return Course.objects.none()


def is_enrolled(user, course) -> bool:
    return Enrollment.objects.filter(user=user, course=course).exists()


def teaches(user, course) -> bool:
    return TeachingAssignment.objects.filter(user=user, course=course).exists()


def can_manage_course(user, course) -> bool:
    flags = role_flags(user)
    return flags["is_admin"] or (flags["is_faculty"] and teaches(user, course))


def can_view_course(user, course) -> bool:
    return can_manage_course(user, course) or is_enrolled(user, course)


def enrolled_students(course):
    return (
        User.objects.filter(enrollments__course=course)
        .order_by("last_name", "first_name", "username")
        .distinct()
    )


@transaction.atomic
def enroll_student(*, course: Course, student, request=None) -> Enrollment:
    if student.role != User.Role.STUDENT:
        raise ValidationError("Only students can be enrolled in a course.")
    try:
        with transaction.atomic():
            enrollment = Enrollment.objects.create(user=student, course=course)
    except IntegrityError:
        raise ValidationError(f"{student.preferred_full_name()} is already enrolled in {course.code}.")
    log_activity(
        "enroll_student",
        request=request,
        details={"course_id": course.pk, "student_id": student.pk},
    )
    logger.info("Enrolled student_id=%s in course_id=%s", student.pk, course.pk)
    return enrollment


@transaction.atomic
def unenroll_student(*, course: Course, student, request=None) -> None:
    deleted, _ = Enrollment.objects.filter(course=course, user=student).delete()
    if not deleted:
        raise ValidationError("This student is not enrolled in the course.")
    log_activity(
        "unenroll_student",
        request=request,
        details={"course_id": course.pk, "student_id": student.pk},
    )


@transaction.atomic
def assign_faculty(*, course: Course, faculty, request=None) -> TeachingAssignment:
    if faculty.role != User.Role.FACULTY:
        raise ValidationError("Only faculty members can be assigned to teach a course.")
    assignment, created = TeachingAssignment.objects.get_or_create(user=faculty, course=course)
    if not created:
        raise ValidationError(f"{faculty.preferred_full_name()} already teaches {course.code}.")
    log_activity(
        "assign_faculty",
        request=request,
        details={"course_id": course.pk, "faculty_id": faculty.pk},
    )
    return assignment


def unassign_faculty(*, course: Course, faculty, request=None) -> None:
    deleted, _ = TeachingAssignment.objects.filter(course=course, user=faculty).delete()
    if not deleted:
        raise ValidationError("This faculty member does not teach the course.")
    log_activity(
        "unassign_faculty",
        request=request,
        details={"course_id": course.pk, "faculty_id": faculty.pk},
    )


def delete_course(*, course: Course, request=None) -> None:
    if course.enrollments.exists():
        raise ValidationError(
            f"Course {course.code} still has enrolled students and cannot be deleted."
        )
    code = course.code
    course.delete()
    log_activity("delete_course", request=request, details={"code": code})


def upcoming_deadlines(user, *, include_past=False):
    """Deadlines and assignment due dates for the user's courses, soonest first."""
    from apps.assignments.models import Assignment

    courses = courses_for_user(user)
    now = timezone.now()
    deadlines = Deadline.objects.filter(course__in=courses).select_related("course")
    assignments = Assignment.objects.filter(course__in=courses).select_related("course")
    if not include_past:
        deadlines = deadlines.filter(due_date__gte=now)
        assignments = assignments.filter(due_date__gte=now)

    items = [
        {
            "kind": "deadline",
            "title": d.title,
            "description": d.description,
            "course": d.course,
            "due_date": d.due_date,
            "object": d,
        }
        for d in deadlines
    ]
    items += [
        {
            "kind": "assignment",
            "title": a.title,
            "description": a.description,
            "course": a.course,
            "due_date": a.due_date,
            "object": a,
        }
        for a in assignments
    ]
    items.sort(key=lambda item: item["due_date"])
    for item in items:
        item["is_overdue"] = item["due_date"] < now
    return items
