import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_POST

from apps.accounts.permissions import role_flags, role_required
from apps.common.utils.csv_export import build_csv, csv_response
from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.common.utils.pagination import paginate, query_string_without_page
from apps.common.utils.uploads import describe_upload
from apps.courses.services import can_manage_course, can_view_course, courses_for_user

from .filters import AssignmentFilter
from .forms import AssignmentForm, GradeForm, SubmissionForm
from .models import Assignment, AssignmentSubmission
from .services import (
    assignments_for_user,
    grade_submission,
    grades_csv_rows,
    student_grades,
    submission_roster,
    submit_assignment,
)

logger = logging.getLogger(__name__)


def _manageable_assignment(request, pk):
    assignment = get_object_or_404(Assignment.objects.select_related("course"), pk=pk)
    if not can_manage_course(request.user, assignment.course):
        raise PermissionDenied
    return assignment


def _store_attachment(assignment, form):
    uploaded = form.cleaned_data.get("attachment")
    if uploaded and hasattr(uploaded, "content_type"):
        meta = describe_upload(uploaded)
        assignment.attachment_name = meta["file_name"]
        assignment.attachment_type = meta["file_type"]
        assignment.attachment_size = meta["file_size"]


@login_required
def assignment_list(request):
    flags = role_flags(request.user)
    courses = courses_for_user(request.user)
    assignment_filter = AssignmentFilter(
        request.GET, queryset=assignments_for_user(request.user), courses=courses
    )
    paginator, page_obj, per_page = paginate(request, assignment_filter.qs.order_by("due_date"))

    submissions = {}
    if flags["is_student"]:
        submissions = {
            s.assignment_id: s
            for s in AssignmentSubmission.objects.filter(
                user=request.user, assignment__in=[a.pk for a in page_obj]
            )
        }
    rows = [{"assignment": a, "submission": submissions.get(a.pk)} for a in page_obj]

    context = {
        "filter": assignment_filter,
        "rows": rows,
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "current_query_params": query_string_without_page(request),
        **flags,
    }
    if is_htmx_request(request):
        return render(request, "_assignment_table.html", context)
    return render(request, "assignment_list.html", context)


@login_required
def assignment_detail(request, pk):
    assignment = get_object_or_404(Assignment.objects.select_related("course", "created_by"), pk=pk)
    if not can_view_course(request.user, assignment.course):
        raise PermissionDenied

    flags = role_flags(request.user)
    submission = None
    form = None
    if flags["is_student"]:
        submission = AssignmentSubmission.objects.filter(assignment=assignment, user=request.user).first()
        if submission is None or not submission.is_graded:
            initial = {}
            if submission:
                initial = {"submission_text": submission.submission_text, "submission_url": submission.submission_url}
            form = SubmissionForm(initial=initial, assignment=assignment, submission=submission)

    context = {
        "assignment": assignment,
        "submission": submission,
        "form": form,
        "can_manage": can_manage_course(request.user, assignment.course),
        "submission_count": assignment.submissions.count(),
        **flags,
    }
    return render(request, "assignment_detail.html", context)


@role_required("FACULTY", "ADMIN")
def assignment_create(request):
    courses = courses_for_user(request.user)
    if request.method == "POST":
        form = AssignmentForm(request.POST, request.FILES, courses=courses)
        if form.is_valid():
            assignment = form.save(commit=False)
            assignment.created_by = request.user
            _store_attachment(assignment, form)
            assignment.save()
            logger.info("Assignment %s created in %s", assignment.pk, assignment.course.code)
            messages.success(request, f'Assignment "{assignment.title}" created.')
            return redirect("assignments:detail", pk=assignment.pk)
        messages.error(request, form_errors_as_text(form))
        return render(request, "assignment_form.html", {"form": form}, status=422)
    initial = {}
    if request.GET.get("course"):
        initial["course"] = request.GET["course"]
    return render(request, "assignment_form.html", {"form": AssignmentForm(initial=initial, courses=courses)})


@role_required("FACULTY", "ADMIN")
def assignment_edit(request, pk):
    assignment = _manageable_assignment(request, pk)
    courses = courses_for_user(request.user)
    if request.method == "POST":
        form = AssignmentForm(request.POST, request.FILES, instance=assignment, courses=courses)
        if form.is_valid():
            assignment = form.save(commit=False)
            _store_attachment(assignment, form)
            assignment.save()
            messages.success(request, "Assignment updated.")
            return redirect("assignments:detail", pk=assignment.pk)
        messages.error(request, form_errors_as_text(form))
        return render(request, "assignment_form.html", {"form": form, "assignment": assignment}, status=422)
    form = AssignmentForm(instance=assignment, courses=courses)
    return render(request, "assignment_form.html", {"form": form, "assignment": assignment})


@role_required("FACULTY", "ADMIN")
@require_POST
def assignment_delete(request, pk):
    assignment = _manageable_assignment(request, pk)
    title = assignment.title
    assignment.delete()
    messages.success(request, f'Assignment "{title}" deleted.')
    if is_htmx_request(request):
        response = htmx_trigger({}, status=204)
        response["HX-Redirect"] = reverse("assignments:list")
        return response
    return redirect("assignments:list")


@role_required("STUDENT")
@require_POST
def assignment_submit(request, pk):
    assignment = get_object_or_404(Assignment.objects.select_related("course"), pk=pk)
    existing = AssignmentSubmission.objects.filter(assignment=assignment, user=request.user).first()
    form = SubmissionForm(request.POST, request.FILES, assignment=assignment, submission=existing)
    if not form.is_valid():
        messages.error(request, form_errors_as_text(form))
        return redirect("assignments:detail", pk=pk)
    try:
        submit_assignment(
            assignment=assignment,
            student=request.user,
            text=form.cleaned_data["submission_text"],
            url=form.cleaned_data["submission_url"],
            uploaded=form.cleaned_data.get("file"),
            request=request,
        )
    except ValidationError as e:
        messages.error(request, e.message)
        return redirect("assignments:detail", pk=pk)
    messages.success(request, "Assignment submitted successfully!")
    return redirect("assignments:detail", pk=pk)


@role_required("FACULTY", "ADMIN")
def assignment_submissions(request, pk):
    assignment = _manageable_assignment(request, pk)
    roster = submission_roster(assignment)
    context = {
        "assignment": assignment,
        "roster": roster,
        "submitted_count": sum(1 for row in roster if row["submission"]),
        "graded_count": sum(1 for row in roster if row["submission"] and row["submission"].is_graded),
    }
    return render(request, "assignment_submissions.html", context)


@role_required("FACULTY", "ADMIN")
def submission_grade(request, pk):
    submission = get_object_or_404(
        AssignmentSubmission.objects.select_related("assignment__course", "user"), pk=pk
    )
    if not can_manage_course(request.user, submission.assignment.course):
        raise PermissionDenied

    if request.method == "POST":
        form = GradeForm(request.POST, instance=submission)
        if form.is_valid():
            grade_submission(
                submission=submission,
                grade=form.cleaned_data["grade"],
                feedback=form.cleaned_data["feedback"],
                graded_by=request.user,
                request=request,
            )
            if is_htmx_request(request):
                return htmx_trigger(
                    {
                        **sweet_alert("success", "Submission graded successfully!"),
                        "reload-submissions": True,
                        "closeGradeModal": True,
                    },
                    status=204,
                )
            messages.success(request, "Submission graded successfully!")
            return redirect("assignments:submissions", pk=submission.assignment_id)
        response = render(request, "_grade_form.html", {"form": form, "submission": submission}, status=422)
        if is_htmx_request(request):
            htmx_trigger(sweet_alert("error", "Could not save grade", form_errors_as_text(form)), response=response)
        return response
    return render(request, "_grade_form.html", {"form": GradeForm(instance=submission), "submission": submission})


@role_required("STUDENT")
def grades_view(request):
    return render(request, "grades.html", {"summary": student_grades(request.user)})


@role_required("STUDENT")
def grades_export(request):
    summary = student_grades(request.user)
    content = build_csv(
        ["Course", "Assignment", "Grade", "Max Points", "Percentage", "Graded At", "Feedback"],
        grades_csv_rows(summary),
    )
    return csv_response(content, f"grades-{timezone.localdate().isoformat()}.csv")
