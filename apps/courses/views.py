import logging

from django.contrib import messages
from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.db.models import Count
from django.http import HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from apps.accounts.permissions import admin_required, role_flags, role_required
from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.common.utils.pagination import paginate, query_string_without_page

from .filters import CourseFilter
from .forms import AssignFacultyForm, CourseForm, DeadlineForm, EnrollStudentForm
from .models import Course, Deadline
from .services import (
    assign_faculty,
    can_manage_course,
    can_view_course,
    courses_for_user,
    delete_course,
    enroll_student,
    enrolled_students,
    unassign_faculty,
    unenroll_student,
    upcoming_deadlines,
)

logger = logging.getLogger(__name__)
User = get_user_model()


def _saved(request, message, redirect_to, reload_event="reload-courses-table", modal="closeCourseModal"):
    if is_htmx_request(request):
        return htmx_trigger(
            {**sweet_alert("success", message), reload_event: True, modal: True},
            status=204,
        )
    messages.success(request, message)
    return redirect(redirect_to)


def _invalid(request, template, context, title, form):
    response = render(request, template, context, status=422)
    if is_htmx_request(request):
        htmx_trigger(sweet_alert("error", title, form_errors_as_text(form)), response=response)
    return response


# Course list scoped to the current user
@login_required
def course_list(request):
    flags = role_flags(request.user)
    base_qs = courses_for_user(request.user).annotate(
        student_count=Count("enrollments", distinct=True)
    )
    course_filter = CourseFilter(request.GET, queryset=base_qs)
    paginator, page_obj, per_page = paginate(request, course_filter.qs.order_by("code"))

    available_courses = []
    if flags["is_student"]:
        available_courses = Course.objects.exclude(enrollments__user=request.user).order_by("code")

    context = {
        "filter": course_filter,
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "current_query_params": query_string_without_page(request),
        "available_courses": available_courses,
        **flags,
    }
    if is_htmx_request(request):
        return render(request, "_course_table.html", context)
    return render(request, "course_list.html", context)


@login_required
def course_detail(request, pk):
    course = get_object_or_404(Course, pk=pk)
    if not can_view_course(request.user, course):
        raise PermissionDenied

    can_manage = can_manage_course(request.user, course)
    context = {
        "course": course,
        "can_manage": can_manage,
        "faculty": User.objects.filter(teaching_assignments__course=course).distinct(),
        "students": enrolled_students(course) if can_manage else User.objects.none(),
        "sessions": course.class_sessions.order_by("start_time")[:10],
        "deadlines": course.deadlines.order_by("due_date"),
        "enroll_form": EnrollStudentForm(course=course) if role_flags(request.user)["is_admin"] else None,
        "assign_form": AssignFacultyForm(course=course) if role_flags(request.user)["is_admin"] else None,
        **role_flags(request.user),
    }
    return render(request, "course_detail.html", context)


@admin_required
def course_create(request):
    if request.method == "POST":
        form = CourseForm(request.POST)
        if form.is_valid():
            course = form.save()
            logger.info("Course %s created by user_id=%s", course.code, request.user.pk)
            return _saved(request, f"Course {course.code} created.", "courses:list")
        return _invalid(request, "_course_form.html", {"form": form}, "Could not create course", form)
    return render(request, "_course_form.html", {"form": CourseForm(), "is_create": True})


@admin_required
def course_edit(request, pk):
    course = get_object_or_404(Course, pk=pk)
    if request.method == "POST":
        form = CourseForm(request.POST, instance=course)
        if form.is_valid():
            form.save()
            return _saved(request, f"Course {course.code} updated.", reverse("courses:detail", args=[course.pk]))
        return _invalid(
            request, "_course_form.html", {"form": form, "course": course}, "Could not update course", form
        )
    return render(request, "_course_form.html", {"form": CourseForm(instance=course), "course": course})


@admin_required
@require_POST
def course_delete(request, pk):
    course = get_object_or_404(Course, pk=pk)
    try:
        delete_course(course=course, request=request)
    except ValidationError as e:
        if is_htmx_request(request):
            return htmx_trigger(sweet_alert("error", "Cannot delete", e.message), status=400)
        messages.error(request, e.message)
        return redirect("courses:detail", pk=pk)
    return _saved(request, "Course deleted.", "courses:list")


# Enrollment management (admin)
@admin_required
@require_POST
def course_enroll(request, pk):
    course = get_object_or_404(Course, pk=pk)
    form = EnrollStudentForm(request.POST, course=course)
    if not form.is_valid():
        messages.error(request, form_errors_as_text(form))
        return redirect("courses:detail", pk=pk)
    try:
        enroll_student(course=course, student=form.cleaned_data["student"], request=request)
    except ValidationError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, "Student enrolled.")
    return redirect("courses:detail", pk=pk)


@admin_required
@require_POST
def course_unenroll(request, pk, user_id):
    course = get_object_or_404(Course, pk=pk)
    student = get_object_or_404(User, pk=user_id)
    try:
        unenroll_student(course=course, student=student, request=request)
    except ValidationError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, "Student removed from the course.")
    return redirect("courses:detail", pk=pk)


# Student self-enrollment
@role_required("STUDENT")
@require_POST
def course_self_enroll(request, pk):
    course = get_object_or_404(Course, pk=pk)
    try:
        enroll_student(course=course, student=request.user, request=request)
    except ValidationError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, f"You are now enrolled in {course.code}.")
    return redirect("courses:list")


@admin_required
@require_POST
def course_assign_faculty(request, pk):
    course = get_object_or_404(Course, pk=pk)
    form = AssignFacultyForm(request.POST, course=course)
    if not form.is_valid():
        messages.error(request, form_errors_as_text(form))
        return redirect("courses:detail", pk=pk)
    try:
        assign_faculty(course=course, faculty=form.cleaned_data["faculty"], request=request)
    except ValidationError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, "Faculty member assigned.")
    return redirect("courses:detail", pk=pk)


@admin_required
@require_POST
def course_unassign_faculty(request, pk, user_id):
    course = get_object_or_404(Course, pk=pk)
    faculty = get_object_or_404(User, pk=user_id)
    try:
        unassign_faculty(course=course, faculty=faculty, request=request)
    except ValidationError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, "Faculty member unassigned.")
    return redirect("courses:detail", pk=pk)


# Upcoming deadlines across the user's courses
@login_required
def deadline_list(request):
    show_past = request.GET.get("past") == "1"
    items = upcoming_deadlines(request.user, include_past=show_past)
    flags = role_flags(request.user)
    manageable = courses_for_user(request.user) if (flags["is_admin"] or flags["is_faculty"]) else None
    context = {
        "items": items,
        "show_past": show_past,
        "deadline_form": DeadlineForm(courses=manageable) if manageable is not None else None,
        **flags,
    }
    return render(request, "deadline_list.html", context)


@role_required("FACULTY", "ADMIN")
def deadline_create(request):
    courses = courses_for_user(request.user)
    if request.method == "POST":
        form = DeadlineForm(request.POST, courses=courses)
        if form.is_valid():
            deadline = form.save(commit=False)
            deadline.created_by = request.user
            deadline.save()
            return _saved(
                request,
                f"Deadline '{deadline.title}' added.",
                "courses:deadlines",
                reload_event="reload-deadlines",
                modal="closeDeadlineModal",
            )
        return _invalid(request, "_deadline_form.html", {"form": form}, "Could not add deadline", form)
    return render(request, "_deadline_form.html", {"form": DeadlineForm(courses=courses)})


@role_required("FACULTY", "ADMIN")
@require_POST
def deadline_delete(request, pk):
    deadline = get_object_or_404(Deadline.objects.select_related("course"), pk=pk)
    if not can_manage_course(request.user, deadline.course):
        raise PermissionDenied
    deadline.delete()
    if is_htmx_request(request):
        return htmx_trigger({**sweet_alert("success", "Deadline removed."), "reload-deadlines": True})
    messages.success(request, "Deadline removed.")
    return redirect("courses:deadlines")
