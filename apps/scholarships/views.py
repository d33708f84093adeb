import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from django.views.decorators.http import require_POST

from apps.accounts.permissions import admin_required, role_flags, role_required
from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.common.utils.pagination import paginate

from .forms import ApplicationReviewForm, ScholarshipApplicationForm, ScholarshipForm
from .models import Scholarship, ScholarshipApplication
from .services import apply_for_scholarship, review_application

logger = logging.getLogger(__name__)


@login_required
def scholarship_list(request):
    scholarships = Scholarship.objects.filter(is_active=True, deadline__gte=timezone.localdate())
    applications = ScholarshipApplication.objects.filter(user=request.user).select_related("scholarship")
    applied_ids = {a.scholarship_id for a in applications}
    context = {
        "scholarships": scholarships,
        "applications": applications,
        "applied_ids": applied_ids,
        **role_flags(request.user),
    }
    return render(request, "scholarship_list.html", context)


@role_required("STUDENT")
def scholarship_apply(request, pk):
    scholarship = get_object_or_404(Scholarship, pk=pk)
    existing = ScholarshipApplication.objects.filter(scholarship=scholarship, user=request.user).first()
    if existing:
        messages.info(request, "You have already applied for this scholarship.")
        return redirect("scholarships:application_detail", pk=existing.pk)

    if request.method == "POST":
        form = ScholarshipApplicationForm(request.POST)
        if form.is_valid():
            try:
                application = apply_for_scholarship(
                    scholarship=scholarship, user=request.user, request=request, **form.cleaned_data
                )
            except ValidationError as e:
                messages.error(request, e.message)
                return redirect("scholarships:list")
            messages.success(request, "Your application has been submitted.")
            return redirect("scholarships:application_detail", pk=application.pk)
        messages.error(request, form_errors_as_text(form, "Please fill in all required fields."))
        return render(request, "scholarship_apply.html", {"scholarship": scholarship, "form": form}, status=422)

    if not scholarship.is_open:
        messages.error(request, "This scholarship is not accepting applications.")
        return redirect("scholarships:list")
    form = ScholarshipApplicationForm()
    return render(request, "scholarship_apply.html", {"scholarship": scholarship, "form": form})


@login_required
def application_detail(request, pk):
    qs = ScholarshipApplication.objects.select_related("scholarship", "user", "reviewed_by")
    if role_flags(request.user)["is_admin"]:
        application = get_object_or_404(qs, pk=pk)
    else:
        application = get_object_or_404(qs, pk=pk, user=request.user)
    return render(request, "application_detail.html", {"application": application})


@admin_required
def manage_scholarships(request):
    qs = Scholarship.objects.annotate(
        application_count=Count("applications"),
        pending_count=Count("applications", filter=Q(applications__status=ScholarshipApplication.Status.PENDING)),
    ).order_by("-created_at")
    paginator, page_obj, per_page = paginate(request, qs)
    context = {"page_obj": page_obj, "paginator": paginator, "per_page": per_page}
    if is_htmx_request(request):
        return render(request, "_scholarship_table.html", context)
    return render(request, "manage_scholarships.html", context)


def _scholarship_form_view(request, instance=None):
    if request.method == "POST":
        form = ScholarshipForm(request.POST, instance=instance)
        if form.is_valid():
            scholarship = form.save()
            message = "Scholarship updated." if instance else "Scholarship created."
            if is_htmx_request(request):
                return htmx_trigger(
                    {
                        **sweet_alert("success", message),
                        "reload-scholarships-table": True,
                        "closeScholarshipModal": True,
                    },
                    status=204,
                )
            messages.success(request, message)
            return redirect("scholarships:applications", pk=scholarship.pk)
        response = render(request, "_scholarship_form.html", {"form": form, "scholarship": instance}, status=422)
        if is_htmx_request(request):
            htmx_trigger(sweet_alert("error", "Could not save scholarship", form_errors_as_text(form)), response=response)
        return response
    return render(request, "_scholarship_form.html", {"form": ScholarshipForm(instance=instance), "scholarship": instance})


@admin_required
def scholarship_create(request):
    return _scholarship_form_view(request)


@admin_required
def scholarship_edit(request, pk):
    return _scholarship_form_view(request, get_object_or_404(Scholarship, pk=pk))


@admin_required
@require_POST
def scholarship_delete(request, pk):
    scholarship = get_object_or_404(Scholarship, pk=pk)
    name = scholarship.name
    scholarship.delete()
    logger.info("Scholarship %r deleted by user_id=%s", name, request.user.pk)
    if is_htmx_request(request):
        return htmx_trigger(
            {**sweet_alert("success", "Scholarship deleted."), "reload-scholarships-table": True}, status=204
        )
    messages.success(request, "Scholarship deleted.")
    return redirect("scholarships:manage")


@admin_required
def scholarship_applications(request, pk):
    scholarship = get_object_or_404(Scholarship, pk=pk)
    qs = scholarship.applications.select_related("user", "reviewed_by")
    status = request.GET.get("status")
    if status in ScholarshipApplication.Status.values:
        qs = qs.filter(status=status)
    context = {
        "scholarship": scholarship,
        "applications": qs,
        "status": status or "",
        "status_choices": ScholarshipApplication.Status.choices,
    }
    return render(request, "scholarship_applications.html", context)


@admin_required
def application_review(request, pk):
    application = get_object_or_404(
        ScholarshipApplication.objects.select_related("scholarship", "user"), pk=pk
    )
    if request.method == "POST":
        form = ApplicationReviewForm(request.POST, instance=application)
        if form.is_valid():
            review_application(
                application=application,
                status=form.cleaned_data["status"],
                admin_notes=form.cleaned_data["admin_notes"],
                reviewed_by=request.user,
                request=request,
            )
            messages.success(request, "Application updated.")
            return redirect("scholarships:applications", pk=application.scholarship_id)
        messages.error(request, form_errors_as_text(form))
        return render(request, "application_review.html", {"application": application, "form": form}, status=422)
    form = ApplicationReviewForm(instance=application)
    return render(request, "application_review.html", {"application": application, "form": form})
