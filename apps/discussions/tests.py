from unittest import mock

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import IntegrityError
from django.test import TestCase
from django.urls import reverse

from apps.common.factories import (
    CourseFactory,
    DiscussionCommentFactory,
    DiscussionFactory,
    FacultyFactory,
    StudentFactory,
)

from .models import DiscussionUpvote
from .services import add_comment, current_version, list_discussions, mark_solution, toggle_upvote


class DiscussionServiceTests(TestCase):
    def setUp(self):
        self.author = StudentFactory()
        self.peer = StudentFactory()
        self.course = CourseFactory(students=[self.author, self.peer])
        self.discussion = DiscussionFactory(course=self.course, created_by=self.author)

    def test_upvote_toggles(self):
        self.assertTrue(toggle_upvote(user=self.peer, discussion=self.discussion))
        self.assertEqual(DiscussionUpvote.objects.count(), 1)
        self.assertFalse(toggle_upvote(user=self.peer, discussion=self.discussion))
        self.assertEqual(DiscussionUpvote.objects.count(), 0)

    def test_concurrent_upvote_is_not_an_error(self):
        with mock.patch.object(DiscussionUpvote.objects, "create", side_effect=IntegrityError("duplicate")):
            with self.assertLogs("apps.discussions.services", level="INFO"):
                self.assertTrue(toggle_upvote(user=self.peer, discussion=self.discussion))
        self.assertEqual(DiscussionUpvote.objects.count(), 0)

    def test_upvote_needs_exactly_one_target(self):
        with self.assertRaises(ValueError):
            toggle_upvote(user=self.peer)

    def test_only_author_marks_single_solution(self):
        first = DiscussionCommentFactory(discussion=self.discussion, user=self.peer)
        second = DiscussionCommentFactory(discussion=self.discussion, user=self.peer)
        with self.assertRaises(PermissionDenied):
            mark_solution(comment=first, user=self.peer)

        mark_solution(comment=first, user=self.author)
        mark_solution(comment=second, user=self.author)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertFalse(first.is_solution)
        self.assertTrue(second.is_solution)

    def test_closed_discussion_rejects_comments(self):
        self.discussion.is_closed = True
        self.discussion.save()
        with self.assertRaises(ValidationError):
            add_comment(discussion=self.discussion, user=self.peer, content="Late reply")

    def test_blank_comment_rejected(self):
        with self.assertRaises(ValidationError):
            add_comment(discussion=self.discussion, user=self.peer, content="   ")

    def test_changes_bump_version(self):
        before = current_version()
        add_comment(discussion=self.discussion, user=self.peer, content="Same question here")
        self.assertGreater(current_version(), before)

    def test_tabs(self):
        answered = DiscussionFactory(course=self.course, created_by=self.peer)
        DiscussionCommentFactory(discussion=answered, user=self.author)
        toggle_upvote(user=self.author, discussion=answered)

        self.assertEqual(list(list_discussions(self.author, tab="mine")), [self.discussion])
        self.assertEqual(list(list_discussions(self.author, tab="unanswered")), [self.discussion])
        self.assertEqual(list(list_discussions(self.author, tab="popular"))[0], answered)
        self.assertEqual(list(list_discussions(StudentFactory())), [])


class DiscussionViewTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.course = CourseFactory(students=[self.student])
        self.client.force_login(self.student)

    def test_poll_triggers_only_when_version_changed(self):
        version = current_version()
        response = self.client.get(reverse("discussions:poll"), {"version": version}, HTTP_HX_REQUEST="true")
        self.assertNotIn("HX-Trigger", response)

        DiscussionFactory(course=self.course, created_by=self.student)
        response = self.client.get(reverse("discussions:poll"), {"version": version}, HTTP_HX_REQUEST="true")
        self.assertIn("discussions-changed", response["HX-Trigger"])

    def test_detail_counts_views(self):
        discussion = DiscussionFactory(course=self.course)
        self.client.get(reverse("discussions:detail", args=[discussion.pk]))
        self.client.get(reverse("discussions:detail", args=[discussion.pk]))
        discussion.refresh_from_db()
        self.assertEqual(discussion.view_count, 2)

    def test_other_course_discussion_is_forbidden(self):
        discussion = DiscussionFactory()
        response = self.client.get(reverse("discussions:detail", args=[discussion.pk]))
        self.assertEqual(response.status_code, 403)

    def test_upvote_view_renders_button(self):
        discussion = DiscussionFactory(course=self.course)
        response = self.client.post(reverse("discussions:upvote", args=[discussion.pk]), HTTP_HX_REQUEST="true")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.context["upvoted"])
        self.assertEqual(response.context["count"], 1)

    def test_students_cannot_moderate(self):
        discussion = DiscussionFactory(course=self.course)
        response = self.client.post(reverse("discussions:moderate", args=[discussion.pk]), {"action": "pin"})
        self.assertEqual(response.status_code, 403)

    def test_faculty_closes_discussion(self):
        faculty = FacultyFactory()
        course = CourseFactory(faculty=[faculty])
        discussion = DiscussionFactory(course=course)
        self.client.force_login(faculty)
        self.client.post(reverse("discussions:moderate", args=[discussion.pk]), {"action": "close"})
        discussion.refresh_from_db()
        self.assertTrue(discussion.is_closed)
