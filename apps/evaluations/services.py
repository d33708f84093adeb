import hashlib
import hmac
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count

from apps.activity_logs.services import log_activity
from apps.common.utils.csv_export import join_csv_rows
from apps.courses.models import Course
from apps.courses.services import is_enrolled

from .models import CourseEvaluation, EvaluationSubmission
from .semester import current_semester

logger = logging.getLogger(__name__)

RATING_FIELDS = (
    ("teaching_quality", "Teaching Quality"),
    ("course_content", "Course Content"),
    ("course_materials", "Course Materials"),
    ("workload", "Workload"),
    ("organization", "Organization"),
    ("overall_rating", "Overall Rating"),
)
COMMENT_FIELDS = ("strengths", "improvements", "additional_comments")

ALREADY_SUBMITTED = "already_submitted"
NOT_ENROLLED = "not_enrolled"


def submission_hash(user_id, course_id, semester: str) -> str:
    """Keyed digest of (user, course, semester); irreversible without SECRET_KEY."""
    message = f"{user_id}:{course_id}:{semester}".encode()
    return hmac.new(settings.SECRET_KEY.encode(), message, hashlib.sha256).hexdigest()


def has_submitted(user, course, semester: str) -> bool:
    return EvaluationSubmission.objects.filter(user=user, course=course, semester=semester).exists()


def submit_evaluation(
    *,
    student,
    course: Course,
    ratings: dict,
    strengths="",
    improvements="",
    additional_comments="",
    semester=None,
    request=None,
) -> CourseEvaluation:
    """Write the marker and the anonymous rating together, or neither."""
    semester = semester or current_semester()
    if not is_enrolled(student, course):
        raise ValidationError("You are not enrolled in this course.", code=NOT_ENROLLED)
    if has_submitted(student, course, semester):
        raise ValidationError(
            f"You have already evaluated {course.code} for {semester}.", code=ALREADY_SUBMITTED
        )
    for name, label in RATING_FIELDS:
        value = ratings.get(name)
        if not isinstance(value, int) or not 1 <= value <= 5:
            raise ValidationError(f"{label} must be a rating from 1 to 5.", code="invalid_rating")

    try:
        with transaction.atomic():
            EvaluationSubmission.objects.create(user=student, course=course, semester=semester)
            evaluation = CourseEvaluation.objects.create(
                course=course,
                semester=semester,
                strengths=(strengths or "").strip(),
                improvements=(improvements or "").strip(),
                additional_comments=(additional_comments or "").strip(),
                submission_hash=submission_hash(student.pk, course.pk, semester),
                **{name: ratings[name] for name, _ in RATING_FIELDS},
            )
    except IntegrityError as exc:
        if has_submitted(student, course, semester):
            logger.info("Duplicate evaluation rejected for course %s (%s)", course.code, semester)
            raise ValidationError(
                f"You have already evaluated {course.code} for {semester}.", code=ALREADY_SUBMITTED
            ) from exc
        logger.warning("Evaluation for course %s (%s) could not be saved: %s", course.code, semester, exc)
        raise ValidationError(
            "Your evaluation could not be saved. Please try again.", code="save_failed"
        ) from exc

    log_activity(
        "submit_evaluation",
        user=student,
        request=request,
        details={"course": course.code, "semester": semester},
    )
    return evaluation


def _one_decimal(value):
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def evaluation_summary(evaluations) -> dict:
    """Response count, per-rating averages and 1..5 distributions, plus comments."""
    aggregates = evaluations.aggregate(
        count=Count("id"), **{f"avg_{name}": Avg(name) for name, _ in RATING_FIELDS}
    )
    distribution = {name: [0, 0, 0, 0, 0] for name, _ in RATING_FIELDS}
    for name, _ in RATING_FIELDS:
        for row in evaluations.order_by().values(name).annotate(n=Count("id")):
            distribution[name][row[name] - 1] = row["n"]

    comments = [
        {field: getattr(ev, field) for field in COMMENT_FIELDS}
        for ev in evaluations.order_by("submission_hash")
        if ev.has_comments
    ]
    return {
        "count": aggregates["count"],
        "averages": [
            {"field": name, "label": label, "average": _one_decimal(aggregates[f"avg_{name}"])}
            for name, label in RATING_FIELDS
        ],
        "distribution": distribution,
        "comments": comments,
    }


def evaluation_report_csv(course: Course, semester: str, summary: dict) -> str:
    labels = [label for _, label in RATING_FIELDS]
    rows = [
        [f"Course Evaluation Report: {course.code} - {course.title}, {semester}"],
        [f"Total Responses: {summary['count']}"],
        [""],
        ["Rating Distribution"],
        ["Rating", *labels],
    ]
    for score in range(5, 0, -1):
        rows.append([score, *(summary["distribution"][name][score - 1] for name, _ in RATING_FIELDS)])
    rows += [[""], ["Average Ratings"], ["Metric", "Average Rating"]]
    rows += [[item["label"], item["average"]] for item in summary["averages"]]
    rows += [[""], ["Anonymous Comments"], ["Strengths", "Improvements", "Additional Comments"]]
    rows += [[c["strengths"], c["improvements"], c["additional_comments"]] for c in summary["comments"]]
    return join_csv_rows(rows)


def courses_overview(semester=None):
    """Courses with response count and average overall rating."""
    evaluations = CourseEvaluation.objects.all()
    if semester:
        evaluations = evaluations.filter(semester=semester)
    stats = {
        row["course_id"]: row
        for row in evaluations.order_by().values("course_id").annotate(
            responses=Count("id"), avg_overall=Avg("overall_rating")
        )
    }
    courses = list(Course.objects.order_by("code"))
    for course in courses:
        row = stats.get(course.pk, {})
        course.response_count = row.get("responses", 0)
        course.avg_overall = _one_decimal(row.get("avg_overall"))
    return courses


def known_semesters(course=None):
    qs = CourseEvaluation.objects.all()
    if course is not None:
        qs = qs.filter(course=course)
    return sorted(set(qs.values_list("semester", flat=True)), reverse=True)
