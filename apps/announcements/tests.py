from django.test import TestCase
from django.urls import reverse

from apps.activity_logs.models import ActivityLog
from apps.common.factories import (
    AdminFactory,
    AnnouncementFactory,
    CourseFactory,
    FacultyFactory,
    StudentFactory,
)
from apps.courses.models import Course
from apps.notifications.models import Notification

from .forms import AnnouncementForm
from .models import Announcement
from .services import announcements_for_user, publish_announcement


class PublishAnnouncementTests(TestCase):
    def setUp(self):
        self.admin = AdminFactory()
        self.faculty = FacultyFactory()
        self.enrolled = StudentFactory()
        self.other = StudentFactory()
        self.course = CourseFactory(students=[self.enrolled], faculty=[self.faculty])

    def test_everyone_except_author(self):
        announcement = AnnouncementFactory(created_by=self.admin)
        count = publish_announcement(announcement)
        self.assertEqual(count, 3)
        self.assertFalse(Notification.objects.filter(user=self.admin).exists())
        log = ActivityLog.objects.get(action="send_announcement")
        self.assertEqual(log.details["recipients"], 3)

    def test_course_audience_is_enrolled_students(self):
        announcement = AnnouncementFactory(
            created_by=self.faculty, target=Announcement.Target.COURSE, course=self.course
        )
        self.assertEqual(publish_announcement(announcement), 1)
        note = Notification.objects.get()
        self.assertEqual(note.user, self.enrolled)
        self.assertTrue(note.title.startswith(f"[{self.course.code}] "))

    def test_selected_students(self):
        announcement = AnnouncementFactory(
            created_by=self.faculty, target=Announcement.Target.STUDENTS, course=self.course
        )
        announcement.recipients.set([self.other])
        self.assertEqual(publish_announcement(announcement), 1)
        self.assertEqual(list(announcements_for_user(self.other)), [announcement])
        self.assertEqual(list(announcements_for_user(self.enrolled)), [])


class AnnouncementFormTests(TestCase):
    def setUp(self):
        self.course = CourseFactory()

    def test_faculty_cannot_target_everyone(self):
        form = AnnouncementForm(
            {"title": "Hi", "content": "Body", "target": "all"},
            courses=Course.objects.all(),
            allow_everyone=False,
        )
        self.assertFalse(form.is_valid())

    def test_course_target_needs_course(self):
        form = AnnouncementForm({"title": "Hi", "content": "Body", "target": "course"})
        self.assertFalse(form.is_valid())
        self.assertIn("course", form.errors)

    def test_blank_content_rejected(self):
        form = AnnouncementForm({"title": "Hi", "content": "   ", "target": "all"})
        self.assertFalse(form.is_valid())
        self.assertIn("content", form.errors)


class AnnouncementViewTests(TestCase):
    def test_admin_creates_over_htmx(self):
        admin = AdminFactory()
        StudentFactory()
        self.client.force_login(admin)
        response = self.client.post(
            reverse("announcements:create"),
            {"title": "Campus closed", "content": "Snow day", "target": "all"},
            HTTP_HX_REQUEST="true",
        )
        self.assertEqual(response.status_code, 204)
        self.assertIn("reload-announcements-table", response["HX-Trigger"])
        self.assertEqual(Notification.objects.count(), 1)

    def test_detail_marks_notification_read(self):
        student = StudentFactory()
        announcement = AnnouncementFactory()
        publish_announcement(announcement)
        self.client.force_login(student)
        response = self.client.get(reverse("announcements:detail", args=[announcement.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Notification.objects.filter(user=student, is_read=False).exists())

    def test_uninvolved_user_gets_403(self):
        faculty = FacultyFactory()
        course = CourseFactory(faculty=[faculty])
        announcement = AnnouncementFactory(created_by=faculty, target="course", course=course)
        self.client.force_login(StudentFactory())
        response = self.client.get(reverse("announcements:detail", args=[announcement.pk]))
        self.assertEqual(response.status_code, 403)
