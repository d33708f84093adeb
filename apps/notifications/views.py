from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from apps.common.utils.http import htmx_trigger, is_htmx_request
from apps.common.utils.pagination import paginate

from .models import Notification
from .services import mark_all_read


@login_required
def notification_list(request):
    qs = Notification.objects.filter(user=request.user)
    if request.GET.get("unread") == "1":
        qs = qs.filter(is_read=False)
    paginator, page_obj, per_page = paginate(request, qs, default_per_page=20)
    context = {
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "unread_only": request.GET.get("unread") == "1",
    }
    if is_htmx_request(request):
        return render(request, "_notification_list.html", context)
    return render(request, "notification_list.html", context)


@login_required
@require_POST
def notification_mark_read(request, pk):
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=["is_read"])
    if is_htmx_request(request):
        return htmx_trigger({"reload-notifications": True})
    if notification.link:
        return redirect(notification.link)
    return redirect("notifications:list")


@login_required
@require_POST
def notification_mark_all_read(request):
    mark_all_read(request.user)
    if is_htmx_request(request):
        return htmx_trigger({"reload-notifications": True})
    return redirect("notifications:list")
