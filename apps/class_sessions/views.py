import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from django.views.decorators.http import require_POST

from apps.accounts.permissions import role_flags, role_required
from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.common.utils.pagination import paginate, query_string_without_page
from apps.courses.services import can_manage_course, can_view_course, courses_for_user

from .filters import ClassSessionFilter
from .forms import ClassSessionForm
from .models import ClassSession

logger = logging.getLogger(__name__)


def _session_saved(request, message):
    if is_htmx_request(request):
        return htmx_trigger(
            {**sweet_alert("success", message), "reload-sessions-table": True, "closeSessionModal": True}
        )
    messages.success(request, message)
    return redirect("class_sessions:manage")


def _session_invalid(request, context, title):
    response = render(request, "_session_form.html", context, status=422)
    if is_htmx_request(request):
        htmx_trigger(sweet_alert("error", title, form_errors_as_text(context["form"])), response=response)
    return response


# Class sessions for the courses the user manages
@role_required("FACULTY", "ADMIN")
def manage_class_sessions(request):
    courses = courses_for_user(request.user)
    base_qs = ClassSession.objects.filter(course__in=courses).select_related("course", "created_by")
    session_filter = ClassSessionFilter(request.GET, queryset=base_qs, courses=courses)
    qs = session_filter.qs.order_by("-start_time")
    paginator, page_obj, per_page = paginate(request, qs)

    now = timezone.now()
    for session in page_obj.object_list:
        session.state_label = session.state(now)

    context = {
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "filter": session_filter,
        "current_query_params": query_string_without_page(request),
    }
    if is_htmx_request(request):
        return render(request, "_session_table.html", context)
    return render(request, "manage_class_sessions.html", context)


@role_required("FACULTY", "ADMIN")
def session_create_view(request):
    courses = courses_for_user(request.user)
    if request.method == "POST":
        form = ClassSessionForm(request.POST, courses=courses)
        if form.is_valid():
            session = form.save(commit=False)
            session.created_by = request.user
            session.save()
            logger.info("Class session %s created for course_id=%s", session.pk, session.course_id)
            return _session_saved(request, f"Session '{session.title}' scheduled.")
        return _session_invalid(request, {"form": form, "is_create": True}, "Could not create session")

    initial = {}
    if request.GET.get("course"):
        initial["course"] = request.GET.get("course")
    form = ClassSessionForm(courses=courses, initial=initial)
    return render(request, "_session_form.html", {"form": form, "is_create": True})


@role_required("FACULTY", "ADMIN")
def session_edit_view(request, pk):
    session = get_object_or_404(ClassSession.objects.select_related("course"), pk=pk)
    if not can_manage_course(request.user, session.course):
        raise PermissionDenied
    courses = courses_for_user(request.user)
    if request.method == "POST":
        form = ClassSessionForm(request.POST, instance=session, courses=courses)
        if form.is_valid():
            session = form.save()
            return _session_saved(request, f"Session '{session.title}' updated.")
        return _session_invalid(request, {"form": form, "session": session}, "Could not update session")

    form = ClassSessionForm(instance=session, courses=courses)
    return render(request, "_session_form.html", {"form": form, "session": session})


@role_required("FACULTY", "ADMIN")
@require_POST
def session_delete_view(request, pk):
    session = get_object_or_404(ClassSession.objects.select_related("course"), pk=pk)
    if not can_manage_course(request.user, session.course):
        raise PermissionDenied
    title = session.title
    session.delete()
    logger.info("Class session %s deleted by user_id=%s", pk, request.user.pk)
    return _session_saved(request, f"Session '{title}' deleted.")


# Upcoming and live classes for the current user
@login_required
def upcoming_classes_view(request):
    now = timezone.now()
    sessions = list(
        ClassSession.objects.filter(course__in=courses_for_user(request.user), end_time__gte=now)
        .select_related("course")
        .order_by("start_time")
    )
    for session in sessions:
        session.state_label = session.state(now)
        session.joinable = session.can_join(now)

    context = {"sessions": sessions, "now": now, **role_flags(request.user)}
    return render(request, "upcoming_classes.html", context)


@login_required
@require_POST
def join_session_view(request, pk):
    session = get_object_or_404(ClassSession.objects.select_related("course"), pk=pk)
    if not can_view_course(request.user, session.course):
        raise PermissionDenied
    if not session.can_join():
        messages.error(request, "This class can only be joined from ten minutes before it starts.")
        return redirect("class_sessions:upcoming")

    if role_flags(request.user)["is_student"]:
        from apps.attendance.services import record_join

        record_join(session=session, student=request.user)
    return redirect(session.meeting_link)
