from django.contrib import admin

from .models import Assignment, AssignmentSubmission


class SubmissionInline(admin.TabularInline):
    model = AssignmentSubmission
    extra = 0
    fk_name = "assignment"
    raw_id_fields = ("user", "graded_by")
    fields = ("user", "status", "grade", "submitted_at")


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "due_date", "max_points", "submission_type")
    list_filter = ("course", "submission_type")
    search_fields = ("title",)
    inlines = [SubmissionInline]


@admin.register(AssignmentSubmission)
class AssignmentSubmissionAdmin(admin.ModelAdmin):
    list_display = ("assignment", "user", "status", "grade", "submitted_at")
    list_filter = ("status",)
    raw_id_fields = ("user", "graded_by")
