from django.conf import settings
from django.db import models

from apps.common.models import TimeStampedModel
from apps.common.utils.uploads import material_upload_to
from campus_hub.storages import select_media_storage


class StudyMaterial(TimeStampedModel):
    course = models.ForeignKey("courses.Course", on_delete=models.CASCADE, related_name="materials")
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    file = models.FileField(upload_to=material_upload_to, storage=select_media_storage)
    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=100, blank=True)
    file_size = models.PositiveBigIntegerField(default=0)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name="uploaded_materials",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["course", "created_at"], name="material_course_created_idx")]

    def __str__(self):
        return self.title

    @property
    def extension(self):
        return self.file_name.rsplit(".", 1)[-1].lower() if "." in self.file_name else ""
