from django.contrib import admin

from .models import Discussion, DiscussionComment, DiscussionUpvote


class CommentInline(admin.TabularInline):
    model = DiscussionComment
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Discussion)
class DiscussionAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "created_by", "is_pinned", "is_closed", "view_count", "created_at")
    list_filter = ("course", "is_pinned", "is_closed")
    search_fields = ("title", "content")
    inlines = [CommentInline]


admin.site.register(DiscussionUpvote)
