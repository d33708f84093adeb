from django.core.paginator import InvalidPage, Paginator
from django.shortcuts import render

from apps.accounts.permissions import admin_required
from apps.common.utils.http import is_htmx_request

from .filters import ActivityLogFilter
from .models import ActivityLog


# Audit trail for admins
@admin_required
def activity_log_list(request):
    log_filter = ActivityLogFilter(request.GET, queryset=ActivityLog.objects.select_related("user"))
    qs = log_filter.qs.order_by("-created_at")

    try:
        per_page = int(request.GET.get("per_page", 25))
    except (TypeError, ValueError):
        per_page = 25
    paginator = Paginator(qs, per_page)
    try:
        page_obj = paginator.page(request.GET.get("page", 1))
    except InvalidPage:
        page_obj = paginator.page(1)

    query_params = request.GET.copy()
    query_params.pop("page", None)

    context = {
        "filter": log_filter,
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "current_query_params": query_params.urlencode(),
    }
    if is_htmx_request(request):
        return render(request, "_activity_log_table.html", context)
    return render(request, "activity_log_list.html", context)
