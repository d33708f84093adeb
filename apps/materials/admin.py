from django.contrib import admin
from django.template.defaultfilters import filesizeformat

from .models import StudyMaterial


@admin.register(StudyMaterial)
class StudyMaterialAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "file_name", "size", "uploaded_by", "created_at")
    list_filter = ("course",)
    search_fields = ("title", "file_name")

    @admin.display(description="Size")
    def size(self, obj):
        return filesizeformat(obj.file_size)
