from django.contrib import admin

from .models import Attendance


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ("session", "user", "is_present", "join_time", "duration_minutes")
    list_filter = ("is_present", "session__course")
    search_fields = ("user__username", "user__email", "session__title")
    raw_id_fields = ("session", "user", "marked_by")
