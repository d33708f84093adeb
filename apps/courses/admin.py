from django.contrib import admin

from .models import Course, Deadline, Enrollment, TeachingAssignment


class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    extra = 0
    raw_id_fields = ("user",)


class TeachingAssignmentInline(admin.TabularInline):
    model = TeachingAssignment
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("code", "title", "credits", "room", "schedule")
    search_fields = ("code", "title")
    inlines = [TeachingAssignmentInline, EnrollmentInline]


@admin.register(Deadline)
class DeadlineAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "due_date")
    list_filter = ("course",)
    date_hierarchy = "due_date"
