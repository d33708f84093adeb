from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from apps.accounts.permissions import role_flags, role_required
from apps.common.results import load
from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.courses.services import courses_for_user

from .forms import StudyMaterialForm
from .models import StudyMaterial
from .services import can_delete_material, delete_material, materials_for_user, upload_material


@login_required
def material_list(request):
    courses = courses_for_user(request.user).order_by("code")
    course = None
    if request.GET.get("course", "").isdigit():
        course = courses.filter(pk=request.GET["course"]).first()
    result = load(lambda: materials_for_user(request.user, course=course), what="study materials")
    flags = role_flags(request.user)
    context = {
        "result": result,
        "courses": courses,
        "selected_course": course,
        "deletable": {m.pk for m in result if can_delete_material(request.user, m)},
        "can_upload": flags["is_admin"] or flags["is_faculty"],
        **flags,
    }
    if is_htmx_request(request):
        return render(request, "_material_list.html", context)
    return render(request, "material_list.html", context)


@role_required("FACULTY", "ADMIN")
def material_upload(request):
    courses = courses_for_user(request.user)
    if request.method == "POST":
        form = StudyMaterialForm(request.POST, request.FILES, courses=courses)
        if form.is_valid():
            material = upload_material(
                course=form.cleaned_data["course"],
                uploaded=form.cleaned_data["file"],
                title=form.cleaned_data["title"],
                description=form.cleaned_data["description"],
                user=request.user,
                request=request,
            )
            messages.success(request, f'"{material.title}" uploaded.')
            return redirect(f"{reverse('materials:list')}?course={material.course_id}")
        messages.error(request, form_errors_as_text(form))
        return render(request, "material_form.html", {"form": form}, status=422)
    initial = {"course": request.GET.get("course")} if request.GET.get("course") else {}
    return render(request, "material_form.html", {"form": StudyMaterialForm(initial=initial, courses=courses)})


@login_required
@require_POST
def material_delete(request, pk):
    material = get_object_or_404(StudyMaterial.objects.select_related("course"), pk=pk)
    delete_material(material=material, user=request.user, request=request)
    if is_htmx_request(request):
        return htmx_trigger(
            {**sweet_alert("success", "Material deleted."), "reload-materials": True}, status=204
        )
    messages.success(request, "Material deleted.")
    return redirect("materials:list")
