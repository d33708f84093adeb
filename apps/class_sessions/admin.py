from django.contrib import admin

from .models import ClassSession


@admin.register(ClassSession)
class ClassSessionAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "start_time", "end_time", "reminder_sent")
    list_filter = ("course", "reminder_sent")
    search_fields = ("title", "course__code", "course__title")
    date_hierarchy = "start_time"
    raw_id_fields = ("created_by",)
