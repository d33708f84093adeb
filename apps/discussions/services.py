import logging
from datetime import timedelta

from django.core.cache import cache
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Exists, F, OuterRef, Q
from django.utils import timezone

from apps.activity_logs.services import log_activity
from apps.courses.services import can_view_course, courses_for_user

from .models import Discussion, DiscussionComment, DiscussionUpvote

logger = logging.getLogger(__name__)

CHANGE_VERSION_KEY = "discussions:change-version"
TABS = ("all", "mine", "popular", "unanswered", "recent")
RECENT_DAYS = 7


# Change version used by list pages to decide when to refetch
def current_version() -> int:
    version = cache.get(CHANGE_VERSION_KEY)
    if version is None:
        cache.add(CHANGE_VERSION_KEY, 1, timeout=None)
        version = cache.get(CHANGE_VERSION_KEY, 1)
    return int(version)


def bump_version() -> int:
    try:
        return cache.incr(CHANGE_VERSION_KEY)
    except ValueError:
        cache.set(CHANGE_VERSION_KEY, 2, timeout=None)
        return 2


def visible_discussions(user):
    return Discussion.objects.filter(course__in=courses_for_user(user))


def list_discussions(user, *, tab="all", search="", course=None):
    """Full list query for one tab; re-run on every refresh."""
    qs = (
        visible_discussions(user)
        .select_related("course", "created_by")
        .annotate(
            upvote_count=Count("upvotes", distinct=True),
            comment_count=Count("comments", distinct=True),
            has_solution=Exists(DiscussionComment.objects.filter(discussion=OuterRef("pk"), is_solution=True)),
        )
    )
    if course is not None:
        qs = qs.filter(course=course)
    search = (search or "").strip()
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(content__icontains=search))

    if tab == "mine":
        qs = qs.filter(created_by=user)
    elif tab == "popular":
        return qs.order_by("-upvote_count", "-comment_count", "-created_at")
    elif tab == "unanswered":
        qs = qs.filter(comment_count=0)
    elif tab == "recent":
        return qs.filter(created_at__gte=timezone.now() - timedelta(days=RECENT_DAYS)).order_by("-created_at")
    return qs.order_by("-is_pinned", "-created_at")


def create_discussion(*, user, course, title, content, request=None) -> Discussion:
    if not can_view_course(user, course):
        raise PermissionDenied
    discussion = Discussion.objects.create(course=course, created_by=user, title=title, content=content)
    log_activity(
        "create_discussion",
        user=user,
        request=request,
        details={"discussion_id": discussion.pk, "course": course.code},
    )
    return discussion


def record_view(discussion: Discussion) -> None:
    Discussion.objects.filter(pk=discussion.pk).update(view_count=F("view_count") + 1)
    discussion.refresh_from_db(fields=["view_count"])


def add_comment(*, discussion: Discussion, user, content) -> DiscussionComment:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment cannot be empty.")
    if discussion.is_closed:
        raise ValidationError("This discussion is closed.")
    return DiscussionComment.objects.create(discussion=discussion, user=user, content=content)


def toggle_upvote(*, user, discussion=None, comment=None) -> bool:
    """Add the user's upvote if absent, remove it if present. Returns True when now upvoted."""
    if (discussion is None) == (comment is None):
        raise ValueError("Exactly one of discussion or comment is required.")
    lookup = {"discussion": discussion} if discussion is not None else {"comment": comment}
    try:
        with transaction.atomic():
            deleted, _ = DiscussionUpvote.objects.filter(user=user, **lookup).delete()
            if deleted:
                return False
            DiscussionUpvote.objects.create(user=user, **lookup)
    except IntegrityError:
        # A concurrent request from the same user inserted the row first.
        logger.info("Duplicate upvote ignored user_id=%s", user.pk)
    return True


@transaction.atomic
def mark_solution(*, comment: DiscussionComment, user) -> DiscussionComment:
    discussion = comment.discussion
    if discussion.created_by_id != user.pk:
        raise PermissionDenied
    discussion.comments.filter(is_solution=True).exclude(pk=comment.pk).update(is_solution=False)
    comment.is_solution = not comment.is_solution
    comment.save(update_fields=["is_solution", "updated_at"])
    return comment
