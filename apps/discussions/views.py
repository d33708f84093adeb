from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.db.models import Count
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_GET, require_POST

from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request
from apps.common.utils.pagination import paginate
from apps.courses.services import can_manage_course, can_view_course, courses_for_user

from .forms import CommentForm, DiscussionForm
from .models import Discussion, DiscussionComment, DiscussionUpvote
from .services import (
    TABS,
    add_comment,
    create_discussion,
    current_version,
    list_discussions,
    mark_solution,
    record_view,
    toggle_upvote,
)


def _visible_discussion(request, pk):
    discussion = get_object_or_404(Discussion.objects.select_related("course", "created_by"), pk=pk)
    if not can_view_course(request.user, discussion.course):
        raise PermissionDenied
    return discussion


@login_required
def discussion_list(request):
    tab = request.GET.get("tab", "all")
    if tab not in TABS:
        tab = "all"
    courses = courses_for_user(request.user).order_by("code")
    course = None
    if request.GET.get("course", "").isdigit():
        course = courses.filter(pk=request.GET["course"]).first()

    qs = list_discussions(request.user, tab=tab, search=request.GET.get("q", ""), course=course)
    paginator, page_obj, per_page = paginate(request, qs, default_per_page=15)
    upvoted = set(
        DiscussionUpvote.objects.filter(user=request.user, discussion__in=[d.pk for d in page_obj]).values_list(
            "discussion_id", flat=True
        )
    )
    context = {
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "tab": tab,
        "tabs": TABS,
        "courses": courses,
        "selected_course": course,
        "q": request.GET.get("q", ""),
        "upvoted": upvoted,
        "version": current_version(),
        "poll_seconds": settings.DISCUSSION_POLL_SECONDS,
    }
    if is_htmx_request(request):
        return render(request, "_discussion_list.html", context)
    return render(request, "discussion_list.html", context)


@login_required
@require_GET
def discussion_poll(request):
    """Report whether anything changed since the client's version."""
    version = current_version()
    try:
        seen = int(request.GET.get("version", ""))
    except ValueError:
        seen = None
    response = render(
        request, "_discussion_poll.html", {"version": version, "poll_seconds": settings.DISCUSSION_POLL_SECONDS}
    )
    if seen != version:
        htmx_trigger({"discussions-changed": {"version": version}}, response=response)
    return response


@login_required
def discussion_create(request):
    courses = courses_for_user(request.user)
    if request.method == "POST":
        form = DiscussionForm(request.POST, courses=courses)
        if form.is_valid():
            discussion = create_discussion(user=request.user, request=request, **form.cleaned_data)
            messages.success(request, "Discussion created.")
            return redirect("discussions:detail", pk=discussion.pk)
        messages.error(request, form_errors_as_text(form))
        return render(request, "discussion_form.html", {"form": form}, status=422)
    initial = {"course": request.GET.get("course")} if request.GET.get("course") else {}
    return render(request, "discussion_form.html", {"form": DiscussionForm(initial=initial, courses=courses)})


@login_required
def discussion_detail(request, pk):
    discussion = _visible_discussion(request, pk)
    record_view(discussion)
    comments = discussion.comments.select_related("user").annotate(upvote_count=Count("upvotes"))
    context = {
        "discussion": discussion,
        "comments": comments,
        "discussion_upvotes": discussion.upvotes.count(),
        "discussion_upvoted": discussion.upvotes.filter(user=request.user).exists(),
        "upvoted_comments": set(
            DiscussionUpvote.objects.filter(user=request.user, comment__discussion=discussion).values_list(
                "comment_id", flat=True
            )
        ),
        "is_author": discussion.created_by_id == request.user.pk,
        "can_moderate": can_manage_course(request.user, discussion.course),
        "comment_form": CommentForm(),
    }
    return render(request, "discussion_detail.html", context)


@login_required
@require_POST
def discussion_comment(request, pk):
    discussion = _visible_discussion(request, pk)
    try:
        add_comment(discussion=discussion, user=request.user, content=request.POST.get("content", ""))
    except ValidationError as e:
        messages.error(request, e.message)
    return redirect("discussions:detail", pk=pk)


@login_required
@require_POST
def discussion_upvote(request, pk):
    discussion = _visible_discussion(request, pk)
    upvoted = toggle_upvote(user=request.user, discussion=discussion)
    if is_htmx_request(request):
        return render(
            request,
            "_upvote_button.html",
            {
                "url_name": "discussions:upvote",
                "target_id": discussion.pk,
                "upvoted": upvoted,
                "count": discussion.upvotes.count(),
            },
        )
    return redirect("discussions:detail", pk=pk)


@login_required
@require_POST
def comment_upvote(request, pk):
    comment = get_object_or_404(DiscussionComment.objects.select_related("discussion__course"), pk=pk)
    if not can_view_course(request.user, comment.discussion.course):
        raise PermissionDenied
    upvoted = toggle_upvote(user=request.user, comment=comment)
    if is_htmx_request(request):
        return render(
            request,
            "_upvote_button.html",
            {
                "url_name": "discussions:comment_upvote",
                "target_id": comment.pk,
                "upvoted": upvoted,
                "count": comment.upvotes.count(),
            },
        )
    return redirect("discussions:detail", pk=comment.discussion_id)


@login_required
@require_POST
def comment_mark_solution(request, pk):
    comment = get_object_or_404(DiscussionComment.objects.select_related("discussion"), pk=pk)
    mark_solution(comment=comment, user=request.user)
    return redirect("discussions:detail", pk=comment.discussion_id)


@login_required
@require_POST
def discussion_moderate(request, pk):
    """Pin/unpin or close/reopen; course managers only."""
    discussion = _visible_discussion(request, pk)
    if not can_manage_course(request.user, discussion.course):
        raise PermissionDenied
    action = request.POST.get("action")
    if action == "pin":
        discussion.is_pinned = not discussion.is_pinned
    elif action == "close":
        discussion.is_closed = not discussion.is_closed
    else:
        messages.error(request, "Unknown action.")
        return redirect("discussions:detail", pk=pk)
    discussion.save(update_fields=["is_pinned", "is_closed", "updated_at"])
    return redirect("discussions:detail", pk=pk)
