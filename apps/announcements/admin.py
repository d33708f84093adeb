from django.contrib import admin

from .models import Announcement


@admin.register(Announcement)
class AnnouncementAdmin(admin.ModelAdmin):
    list_display = ("title", "target", "course", "created_by", "created_at")
    list_filter = ("target", "course")
    search_fields = ("title", "content")
    filter_horizontal = ("recipients",)
