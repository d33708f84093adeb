from django.contrib import admin

from .models import CourseEvaluation, EvaluationSubmission


@admin.register(CourseEvaluation)
class CourseEvaluationAdmin(admin.ModelAdmin):
    list_display = ("course", "semester", "overall_rating", "submitted_on")
    list_filter = ("semester", "course")
    exclude = ("submission_hash",)
    ordering = ("course", "semester", "submission_hash")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(EvaluationSubmission)
class EvaluationSubmissionAdmin(admin.ModelAdmin):
    list_display = ("user", "course", "semester")
    list_filter = ("semester",)
    raw_id_fields = ("user",)
