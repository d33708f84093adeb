from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied, ValidationError
from django.db.models import Count, Q
from django.http import HttpResponseBadRequest
from django.shortcuts import get_object_or_404, render
from django.views.decorators.http import require_POST

from apps.accounts.permissions import role_required
from apps.class_sessions.models import ClassSession
from apps.common.results import load
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.common.utils.pagination import paginate, query_string_without_page
from apps.courses.services import can_manage_course, courses_for_user

from .services import build_roster, roster_stats, student_attendance, student_stats, toggle_attendance

User = get_user_model()


def _managed_session(request, session_id):
    session = get_object_or_404(ClassSession.objects.select_related("course"), pk=session_id)
    if not can_manage_course(request.user, session.course):
        raise PermissionDenied
    return session


# Recent sessions with attendance counts
@role_required("FACULTY", "ADMIN")
def attendance_overview(request):
    q = (request.GET.get("q") or "").strip()
    qs = ClassSession.objects.filter(course__in=courses_for_user(request.user)).select_related("course")
    if q:
        qs = qs.filter(Q(title__icontains=q) | Q(course__code__icontains=q) | Q(course__title__icontains=q))
    qs = qs.annotate(
        present_count=Count("attendances", filter=Q(attendances__is_present=True), distinct=True),
        enrolled_count=Count("course__enrollments", distinct=True),
    ).order_by("-start_time")
    paginator, page_obj, per_page = paginate(request, qs, default_per_page=20)
    context = {
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "q": q,
        "current_query_params": query_string_without_page(request),
    }
    return render(request, "attendance_overview.html", context)


# Roster for one session, placeholders included
@role_required("FACULTY", "ADMIN")
def session_attendance(request, session_id):
    session = _managed_session(request, session_id)
    roster = build_roster(session)
    context = {"session": session, "roster": roster, "stats": roster_stats(roster)}
    if is_htmx_request(request):
        return render(request, "_attendance_roster.html", context)
    return render(request, "session_attendance.html", context)


@role_required("FACULTY", "ADMIN")
@require_POST
def toggle_attendance_view(request, session_id, student_id):
    session = _managed_session(request, session_id)
    student = get_object_or_404(User, pk=student_id)

    raw = request.POST.get("is_present")
    if raw is None or raw == "":
        target = None
    elif raw in {"1", "true", "on"}:
        target = True
    elif raw in {"0", "false", "off"}:
        target = False
    else:
        return HttpResponseBadRequest("Invalid attendance value")

    try:
        toggle_attendance(session=session, student=student, marked_by=request.user, is_present=target)
    except ValidationError as e:
        return htmx_trigger(sweet_alert("error", "Could not update attendance", e.message), status=400)

    roster = build_roster(session)
    response = render(
        request,
        "_attendance_roster.html",
        {"session": session, "roster": roster, "stats": roster_stats(roster)},
    )
    return response


# Student's own attendance history
@role_required("STUDENT")
def my_attendance(request):
    result = load(lambda: student_attendance(request.user), what="attendance records")
    context = {
        "result": result,
        "stats": student_stats(result.data),
    }
    return render(request, "my_attendance.html", context)
