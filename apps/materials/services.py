import logging

from django.core.exceptions import PermissionDenied

from apps.accounts.permissions import role_flags
from apps.activity_logs.services import log_activity
from apps.common.utils.uploads import describe_upload
from apps.courses.services import can_manage_course, courses_for_user

from .models import StudyMaterial

logger = logging.getLogger(__name__)


def materials_for_user(user, *, course=None):
    qs = StudyMaterial.objects.filter(course__in=courses_for_user(user)).select_related("course", "uploaded_by")
    if course is not None:
        qs = qs.filter(course=course)
    return qs


def upload_material(*, course, uploaded, title, description="", user, request=None) -> StudyMaterial:
    if not can_manage_course(user, course):
        raise PermissionDenied
    material = StudyMaterial(course=course, title=title, description=description, uploaded_by=user)
    meta = describe_upload(uploaded)
    material.file_name = meta["file_name"]
    material.file_type = meta["file_type"]
    material.file_size = meta["file_size"]
    material.file = uploaded
    material.save()
    log_activity(
        "upload_material",
        user=user,
        request=request,
        details={"material_id": material.pk, "course": course.code, "file_name": material.file_name},
    )
    return material


def can_delete_material(user, material: StudyMaterial) -> bool:
    return role_flags(user)["is_admin"] or material.uploaded_by_id == user.pk


def delete_material(*, material: StudyMaterial, user, request=None) -> None:
    if not can_delete_material(user, material):
        raise PermissionDenied
    details = {"course": material.course.code, "file_name": material.file_name}
    material.file.delete(save=False)
    material.delete()
    log_activity("delete_material", user=user, request=request, details=details)
