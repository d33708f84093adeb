from django.contrib import admin

from .models import Scholarship, ScholarshipApplication


@admin.register(Scholarship)
class ScholarshipAdmin(admin.ModelAdmin):
    list_display = ("name", "amount", "deadline", "academic_year", "is_active")
    list_filter = ("is_active", "academic_year")
    search_fields = ("name",)


@admin.register(ScholarshipApplication)
class ScholarshipApplicationAdmin(admin.ModelAdmin):
    list_display = ("scholarship", "user", "gpa", "status", "created_at")
    list_filter = ("status", "scholarship")
    raw_id_fields = ("user", "reviewed_by")
