from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "announcement", "is_read", "created_at")
    list_filter = ("is_read", ("announcement", admin.EmptyFieldListFilter))
    list_select_related = ("user", "announcement")
    search_fields = ("title", "body", "user__username", "user__email")
    date_hierarchy = "created_at"
    raw_id_fields = ("user", "announcement")
    actions = ["mark_read"]

    @admin.action(description="Mark selected notifications as read")
    def mark_read(self, request, queryset):
        updated = queryset.filter(is_read=False).update(is_read=True)
        self.message_user(request, f"{updated} notification(s) marked as read.")
