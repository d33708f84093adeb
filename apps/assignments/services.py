import logging
from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.urls import reverse
from django.utils import timezone

from apps.accounts.permissions import role_flags
from apps.activity_logs.services import log_activity
from apps.common.utils.uploads import describe_upload
from apps.courses.services import courses_for_user, enrolled_students, is_enrolled
from apps.notifications.services import notify

from .models import Assignment, AssignmentSubmission

logger = logging.getLogger(__name__)


def assignments_for_user(user):
    return Assignment.objects.filter(course__in=courses_for_user(user)).select_related("course")


@transaction.atomic
def submit_assignment(*, assignment: Assignment, student, text="", url="", uploaded=None, request=None):
    """Create or overwrite the student's submission. Graded work is locked."""
    if not role_flags(student)["is_student"] or not is_enrolled(student, assignment.course):
        raise ValidationError("Only students enrolled in this course can submit.")

    submission = (
        AssignmentSubmission.objects.select_for_update()
        .filter(assignment=assignment, user=student)
        .first()
    )
    if submission is None:
        submission = AssignmentSubmission(assignment=assignment, user=student)
    elif submission.is_graded:
        raise ValidationError("This submission has already been graded and can no longer be changed.")

    submission.submission_text = text or ""
    submission.submission_url = url or ""
    if uploaded:
        submission.file = uploaded
        meta = describe_upload(uploaded)
        submission.file_name = meta["file_name"]
        submission.file_type = meta["file_type"]
        submission.file_size = meta["file_size"]
    submission.submitted_at = timezone.now()
    submission.status = AssignmentSubmission.Status.SUBMITTED
    submission.save()

    log_activity(
        "submit_assignment",
        user=student,
        request=request,
        details={"assignment_id": assignment.pk, "late": submission.is_late},
    )
    return submission


@transaction.atomic
def grade_submission(*, submission: AssignmentSubmission, grade, feedback="", graded_by, request=None):
    assignment = submission.assignment
    grade = Decimal(str(grade))
    if not Decimal(0) <= grade <= Decimal(assignment.max_points):
        raise ValidationError(f"Grade must be between 0 and {assignment.max_points}.")

    submission.grade = grade
    submission.feedback = feedback or ""
    submission.status = AssignmentSubmission.Status.GRADED
    submission.graded_by = graded_by
    submission.graded_at = timezone.now()
    submission.save(update_fields=["grade", "feedback", "status", "graded_by", "graded_at"])

    notify(
        [submission.user],
        title=f"Assignment graded: {assignment.title}",
        body=f'Your submission for "{assignment.title}" has been graded. Grade: {grade:g}/{assignment.max_points}',
        link=reverse("assignments:detail", args=[assignment.pk]),
    )
    log_activity(
        "grade_submission",
        user=graded_by,
        request=request,
        details={"submission_id": submission.pk, "grade": str(grade)},
    )
    return submission


def _percent(earned: Decimal, total: Decimal):
    if not total:
        return None
    return (earned / total * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def student_grades(student):
    """Graded submissions grouped per course with earned/max averages."""
    submissions = (
        AssignmentSubmission.objects.filter(user=student, status=AssignmentSubmission.Status.GRADED)
        .select_related("assignment", "assignment__course")
        .order_by("assignment__course__code", "assignment__due_date")
    )
    courses = OrderedDict()
    earned_total = Decimal(0)
    points_total = Decimal(0)
    for submission in submissions:
        course = submission.assignment.course
        entry = courses.setdefault(
            course.pk, {"course": course, "submissions": [], "earned": Decimal(0), "total": Decimal(0)}
        )
        entry["submissions"].append(submission)
        entry["earned"] += submission.grade or 0
        entry["total"] += submission.assignment.max_points
        earned_total += submission.grade or 0
        points_total += submission.assignment.max_points

    for entry in courses.values():
        entry["average"] = _percent(entry["earned"], entry["total"])
    return {
        "courses": list(courses.values()),
        "overall_average": _percent(earned_total, points_total),
        "graded_count": sum(len(e["submissions"]) for e in courses.values()),
    }


def grades_csv_rows(summary):
    for entry in summary["courses"]:
        for submission in entry["submissions"]:
            yield [
                entry["course"].code,
                submission.assignment.title,
                submission.grade,
                submission.assignment.max_points,
                _percent(submission.grade or Decimal(0), Decimal(submission.assignment.max_points)),
                submission.graded_at,
                submission.feedback,
            ]


def submission_roster(assignment: Assignment):
    """Every enrolled student with their submission, or None when missing."""
    by_user = {s.user_id: s for s in assignment.submissions.select_related("user")}
    return [
        {"student": student, "submission": by_user.get(student.pk)}
        for student in enrolled_students(assignment.course)
    ]
