import logging

from django.contrib import messages
from django.core.exceptions import ValidationError
from django.shortcuts import render

from apps.accounts.permissions import admin_required
from apps.common.utils.csv_export import build_csv, csv_response
from apps.courses.models import Course

from .exports import BUILDERS, EXPORT_TYPES, export_filename
from .services import RANGES, build_series

logger = logging.getLogger(__name__)


def _selected_course(request):
    course_id = request.GET.get("course", "")
    if course_id.isdigit():
        return Course.objects.filter(pk=course_id).first()
    return None


@admin_required
def reports_dashboard(request):
    range_key = request.GET.get("range", "week")
    if range_key not in RANGES:
        range_key = "week"
    course = _selected_course(request)
    context = {
        "range": range_key,
        "ranges": RANGES,
        "courses": Course.objects.order_by("code"),
        "selected_course": course,
        "attendance_chart": build_series("attendance", range_key=range_key, course=course),
        "enrollment_chart": build_series("enrollment"),
        "activity_chart": build_series("activity", range_key=range_key),
    }
    return render(request, "reports_dashboard.html", context)


@admin_required
def export_data(request):
    kind = request.GET.get("type", "")
    course = _selected_course(request)
    context = {
        "export_types": EXPORT_TYPES,
        "courses": Course.objects.order_by("code"),
        "selected_type": kind,
        "selected_course": course,
    }
    if kind not in BUILDERS:
        if kind:
            messages.error(request, "Unknown export type.")
        return render(request, "export_data.html", context)

    try:
        headers, rows = BUILDERS[kind](course=course)
    except ValidationError as e:
        messages.error(request, e.message)
        return render(request, "export_data.html", context, status=400)
    if not rows:
        messages.info(request, "No data available to export.")
        return render(request, "export_data.html", context)

    logger.info("Export %s (%d rows) by user_id=%s", kind, len(rows), request.user.pk)
    return csv_response(build_csv(headers, rows), export_filename(kind))
