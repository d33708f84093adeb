import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from apps.accounts.permissions import role_flags, role_required
from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.common.utils.pagination import paginate
from apps.courses.services import courses_for_user

from .forms import AnnouncementForm
from .models import Announcement
from .services import announcements_for_user, publish_announcement

logger = logging.getLogger(__name__)


def _managed_announcements(user):
    qs = Announcement.objects.select_related("course", "created_by")
    if role_flags(user)["is_admin"]:
        return qs
    return qs.filter(created_by=user)


@login_required
def announcement_list(request):
    paginator, page_obj, per_page = paginate(request, announcements_for_user(request.user).order_by("-created_at"))
    return render(
        request,
        "announcement_list.html",
        {"page_obj": page_obj, "paginator": paginator, "per_page": per_page},
    )


@login_required
def announcement_detail(request, pk):
    announcement = get_object_or_404(Announcement.objects.select_related("course", "created_by"), pk=pk)
    is_owner = announcement.created_by_id == request.user.pk
    if not (
        is_owner
        or role_flags(request.user)["is_admin"]
        or announcement.notifications.filter(user=request.user).exists()
    ):
        raise PermissionDenied
    announcement.notifications.filter(user=request.user, is_read=False).update(is_read=True)
    return render(request, "announcement_detail.html", {"announcement": announcement, "is_owner": is_owner})


@role_required("FACULTY", "ADMIN")
def manage_announcements(request):
    qs = _managed_announcements(request.user)
    paginator, page_obj, per_page = paginate(request, qs)
    context = {"page_obj": page_obj, "paginator": paginator, "per_page": per_page}
    if is_htmx_request(request):
        return render(request, "_announcement_table.html", context)
    return render(request, "manage_announcements.html", context)


@role_required("FACULTY", "ADMIN")
def announcement_create(request):
    is_admin = role_flags(request.user)["is_admin"]
    form_kwargs = {"courses": courses_for_user(request.user), "allow_everyone": is_admin}
    if request.method == "POST":
        form = AnnouncementForm(request.POST, **form_kwargs)
        if form.is_valid():
            announcement = form.save(commit=False)
            announcement.created_by = request.user
            announcement.save()
            form.save_m2m()
            count = publish_announcement(announcement, request=request)
            logger.info("Announcement %s sent to %s users", announcement.pk, count)
            message = f"Announcement sent to {count} recipient(s)."
            if is_htmx_request(request):
                return htmx_trigger(
                    {
                        **sweet_alert("success", message),
                        "reload-announcements-table": True,
                        "closeAnnouncementModal": True,
                    },
                    status=204,
                )
            messages.success(request, message)
            return redirect("announcements:manage")
        response = render(request, "_announcement_form.html", {"form": form}, status=422)
        if is_htmx_request(request):
            htmx_trigger(sweet_alert("error", "Could not send announcement", form_errors_as_text(form)), response=response)
        return response
    return render(request, "_announcement_form.html", {"form": AnnouncementForm(**form_kwargs)})


@role_required("FACULTY", "ADMIN")
@require_POST
def announcement_delete(request, pk):
    announcement = get_object_or_404(_managed_announcements(request.user), pk=pk)
    announcement.delete()
    if is_htmx_request(request):
        return htmx_trigger(
            {**sweet_alert("success", "Announcement deleted."), "reload-announcements-table": True},
            status=204,
        )
    messages.success(request, "Announcement deleted.")
    return redirect("announcements:manage")
