import mimetypes
import os
import time
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.template.defaultfilters import filesizeformat


def build_upload_path(scope: str, course_id, filename: str) -> str:
    """`{scope}/{course_id}/{ms_timestamp}_{hex8}.{ext}`"""
    ext = os.path.splitext(filename)[1].lstrip(".").lower() or "bin"
    stamp = int(time.time() * 1000)
    return f"{scope}/{course_id}/{stamp}_{uuid.uuid4().hex[:8]}.{ext}"


def assignment_upload_to(instance, filename):
    return build_upload_path("assignments", instance.course_id, filename)


def submission_upload_to(instance, filename):
    return build_upload_path(
        f"submissions/{instance.assignment_id}", instance.user_id, filename
    )


def material_upload_to(instance, filename):
    return build_upload_path("materials", instance.course_id, filename)


def validate_upload_size(uploaded):
    limit = getattr(settings, "MAX_UPLOAD_SIZE", 25 * 1024 * 1024)
    if uploaded and uploaded.size > limit:
        raise ValidationError(f"File is too large (max {filesizeformat(limit)}).")


def describe_upload(uploaded) -> dict:
    """Original filename, MIME type and size of an uploaded file."""
    content_type = getattr(uploaded, "content_type", "") or mimetypes.guess_type(uploaded.name)[0]
    return {
        "file_name": os.path.basename(uploaded.name),
        "file_type": content_type or "application/octet-stream",
        "file_size": uploaded.size,
    }
