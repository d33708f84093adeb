from django.contrib import admin

from .models import Complaint


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ("subject", "user", "category", "status", "created_at", "resolved_at")
    list_filter = ("status", "category")
    search_fields = ("subject", "description", "user__username")
    raw_id_fields = ("user", "resolved_by")
