from django.contrib import admin

from .models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "user", "action", "ip_address")
    list_filter = ("action",)
    search_fields = ("user__username", "user__email", "action")
    date_hierarchy = "created_at"
    raw_id_fields = ("user",)
    readonly_fields = ("user", "action", "details", "ip_address", "created_at")
