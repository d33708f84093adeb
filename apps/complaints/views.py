from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db.models import Count
from django.shortcuts import get_object_or_404, redirect, render

from apps.accounts.permissions import admin_required
from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.common.utils.pagination import paginate, query_string_without_page

from .filters import ComplaintFilter
from .forms import ComplaintForm, ComplaintStatusForm
from .models import Complaint
from .services import create_complaint, update_complaint_status


@login_required
def complaint_list(request):
    qs = Complaint.objects.filter(user=request.user)
    status = request.GET.get("status", "all")
    if status in Complaint.Status.values:
        qs = qs.filter(status=status)
    paginator, page_obj, per_page = paginate(request, qs)
    context = {
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "status": status,
        "status_choices": Complaint.Status.choices,
    }
    return render(request, "complaint_list.html", context)


@login_required
def complaint_create(request):
    if request.method == "POST":
        form = ComplaintForm(request.POST)
        if form.is_valid():
            complaint = create_complaint(user=request.user, request=request, **form.cleaned_data)
            messages.success(request, "Your complaint has been submitted.")
            return redirect("complaints:detail", pk=complaint.pk)
        messages.error(request, form_errors_as_text(form))
        return render(request, "complaint_form.html", {"form": form}, status=422)
    return render(request, "complaint_form.html", {"form": ComplaintForm()})


@login_required
def complaint_detail(request, pk):
    complaint = get_object_or_404(Complaint.objects.select_related("resolved_by"), pk=pk, user=request.user)
    return render(request, "complaint_detail.html", {"complaint": complaint})


@admin_required
def manage_complaints(request):
    qs = Complaint.objects.select_related("user", "resolved_by")
    complaint_filter = ComplaintFilter(request.GET, queryset=qs)
    paginator, page_obj, per_page = paginate(request, complaint_filter.qs)
    counts = dict(Complaint.objects.order_by().values_list("status").annotate(n=Count("id")))
    context = {
        "filter": complaint_filter,
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "current_query_params": query_string_without_page(request),
        "status_counts": [
            {"value": value, "label": label, "count": counts.get(value, 0)}
            for value, label in Complaint.Status.choices
        ],
    }
    if is_htmx_request(request):
        return render(request, "_complaint_table.html", context)
    return render(request, "manage_complaints.html", context)


@admin_required
def complaint_admin_detail(request, pk):
    complaint = get_object_or_404(Complaint.objects.select_related("user", "resolved_by"), pk=pk)
    if request.method == "POST":
        form = ComplaintStatusForm(request.POST)
        if form.is_valid():
            update_complaint_status(
                complaint=complaint,
                status=form.cleaned_data["status"],
                resolution_notes=form.cleaned_data["resolution_notes"],
                changed_by=request.user,
                request=request,
            )
            if is_htmx_request(request):
                return htmx_trigger(
                    {**sweet_alert("success", "Complaint updated."), "reload-complaint": True}, status=204
                )
            messages.success(request, "Complaint updated.")
            return redirect("complaints:admin_detail", pk=pk)
        response = render(
            request, "complaint_admin_detail.html", {"complaint": complaint, "form": form}, status=422
        )
        if is_htmx_request(request):
            htmx_trigger(sweet_alert("error", "Could not update complaint", form_errors_as_text(form)), response=response)
        return response
    form = ComplaintStatusForm(
        initial={"status": complaint.status, "resolution_notes": complaint.resolution_notes}
    )
    return render(request, "complaint_admin_detail.html", {"complaint": complaint, "form": form})
