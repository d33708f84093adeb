from django.contrib import messages
from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404, redirect, render

from apps.accounts.permissions import admin_required, role_required
from apps.common.results import load
from apps.common.utils.csv_export import csv_response
from apps.common.utils.forms import form_errors_as_text
from apps.courses.models import Course
from apps.courses.services import is_enrolled

from .forms import EvaluationForm
from .models import CourseEvaluation, EvaluationSubmission
from .semester import current_semester
from .services import (
    ALREADY_SUBMITTED,
    NOT_ENROLLED,
    courses_overview,
    evaluation_report_csv,
    evaluation_summary,
    has_submitted,
    known_semesters,
    submit_evaluation,
)


@role_required("STUDENT")
def evaluation_list(request):
    semester = current_semester()
    submitted = set(
        EvaluationSubmission.objects.filter(user=request.user, semester=semester).values_list("course_id", flat=True)
    )
    result = load(
        lambda: Course.objects.filter(enrollments__user=request.user).order_by("code"),
        what="enrolled courses",
    )
    rows = [{"course": c, "submitted": c.pk in submitted} for c in result.data or []]
    return render(
        request,
        "evaluation_list.html",
        {"result": result, "rows": rows, "semester": semester},
    )


@role_required("STUDENT")
def evaluation_submit(request, course_id):
    course = get_object_or_404(Course, pk=course_id)
    semester = current_semester()
    if not is_enrolled(request.user, course):
        messages.error(request, "You can only evaluate courses you are enrolled in.")
        return redirect("evaluations:list")
    if has_submitted(request.user, course, semester):
        return render(request, "evaluation_submitted.html", {"course": course, "semester": semester})

    if request.method == "POST":
        form = EvaluationForm(request.POST)
        if form.is_valid():
            try:
                submit_evaluation(
                    student=request.user,
                    course=course,
                    semester=semester,
                    ratings=form.ratings(),
                    strengths=form.cleaned_data["strengths"],
                    improvements=form.cleaned_data["improvements"],
                    additional_comments=form.cleaned_data["additional_comments"],
                    request=request,
                )
            except ValidationError as e:
                if e.code == ALREADY_SUBMITTED:
                    return render(request, "evaluation_submitted.html", {"course": course, "semester": semester})
                messages.error(request, e.message)
                if e.code == NOT_ENROLLED:
                    return redirect("evaluations:list")
            else:
                messages.success(request, f"Thank you! Your evaluation of {course.code} was submitted anonymously.")
                return redirect("evaluations:list")
        else:
            messages.error(request, form_errors_as_text(form))
        return render(
            request, "evaluation_form.html", {"form": form, "course": course, "semester": semester}, status=422
        )

    form = EvaluationForm()
    return render(request, "evaluation_form.html", {"form": form, "course": course, "semester": semester})


@admin_required
def admin_overview(request):
    semester = request.GET.get("semester", "")
    result = load(lambda: courses_overview(semester or None), what="evaluation overview")
    context = {
        "result": result,
        "semester": semester,
        "semesters": known_semesters(),
        "current_semester": current_semester(),
    }
    return render(request, "evaluation_overview.html", context)


def _course_evaluations(request, course_id):
    course = get_object_or_404(Course, pk=course_id)
    semesters = known_semesters(course)
    semester = request.GET.get("semester") or (semesters[0] if semesters else current_semester())
    evaluations = CourseEvaluation.objects.filter(course=course, semester=semester)
    return course, semester, semesters, evaluations


@admin_required
def admin_detail(request, course_id):
    course, semester, semesters, evaluations = _course_evaluations(request, course_id)
    summary = evaluation_summary(evaluations)
    context = {
        "course": course,
        "semester": semester,
        "semesters": semesters,
        "summary": summary,
        "distribution_rows": [
            {"score": score, "counts": [summary["distribution"][a["field"]][score - 1] for a in summary["averages"]]}
            for score in range(5, 0, -1)
        ],
    }
    return render(request, "evaluation_detail.html", context)


@admin_required
def admin_csv(request, course_id):
    course, semester, _, evaluations = _course_evaluations(request, course_id)
    content = evaluation_report_csv(course, semester, evaluation_summary(evaluations))
    filename = f"{course.code}-evaluation-{semester.replace(' ', '-')}.csv"
    return csv_response(content, filename)
