from datetime import timedelta

from django.db import IntegrityError, transaction
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.attendance.models import Attendance
from apps.common.factories import ClassSessionFactory, CourseFactory, FacultyFactory, StudentFactory

from .models import ClassSession


class SessionStateTests(TestCase):
    def setUp(self):
        self.now = timezone.now()

    def _session(self, start_offset, length=60):
        start = self.now + timedelta(minutes=start_offset)
        return ClassSession(start_time=start, end_time=start + timedelta(minutes=length), meeting_link="https://meet.example.com/x")

    def test_states(self):
        self.assertEqual(self._session(30).state(self.now), "scheduled")
        self.assertEqual(self._session(10).state(self.now), "starting")
        self.assertEqual(self._session(-5).state(self.now), "live")
        self.assertEqual(self._session(-120).state(self.now), "ended")

    def test_join_window_is_ten_minutes(self):
        self.assertFalse(self._session(11).can_join(self.now))
        self.assertTrue(self._session(9).can_join(self.now))
        self.assertTrue(self._session(-30).can_join(self.now))
        self.assertFalse(self._session(-90).can_join(self.now))

    def test_no_link_means_no_join(self):
        session = self._session(0)
        session.meeting_link = ""
        self.assertFalse(session.can_join(self.now))

    def test_end_must_follow_start(self):
        course = CourseFactory()
        with self.assertRaises(IntegrityError), transaction.atomic():
            ClassSession.objects.create(course=course, title="Broken", start_time=self.now, end_time=self.now)


class JoinSessionViewTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.course = CourseFactory(students=[self.student])
        self.client.force_login(self.student)

    def test_joining_live_class_records_attendance(self):
        session = ClassSessionFactory(
            course=self.course, start_time=timezone.now() - timedelta(minutes=5)
        )
        response = self.client.post(reverse("class_sessions:join", args=[session.pk]))
        self.assertRedirects(response, session.meeting_link, fetch_redirect_response=False)
        record = Attendance.objects.get(session=session, user=self.student)
        self.assertTrue(record.is_present)
        self.assertIsNotNone(record.join_time)

    def test_joining_too_early_is_refused(self):
        session = ClassSessionFactory(course=self.course, start_time=timezone.now() + timedelta(hours=2))
        response = self.client.post(reverse("class_sessions:join", args=[session.pk]))
        self.assertRedirects(response, reverse("class_sessions:upcoming"), fetch_redirect_response=False)
        self.assertFalse(Attendance.objects.exists())

    def test_outsiders_cannot_join(self):
        session = ClassSessionFactory(start_time=timezone.now() - timedelta(minutes=5))
        response = self.client.post(reverse("class_sessions:join", args=[session.pk]))
        self.assertEqual(response.status_code, 403)

    def test_upcoming_page_lists_only_own_sessions(self):
        mine = ClassSessionFactory(course=self.course)
        ClassSessionFactory()
        response = self.client.get(reverse("class_sessions:upcoming"))
        self.assertEqual(list(response.context["sessions"]), [mine])


class ManageSessionViewTests(TestCase):
    def setUp(self):
        self.faculty = FacultyFactory()
        self.course = CourseFactory(faculty=[self.faculty])
        self.client.force_login(self.faculty)

    def test_create_session(self):
        start = timezone.localtime() + timedelta(days=2)
        response = self.client.post(
            reverse("class_sessions:create"),
            {
                "course": self.course.pk,
                "title": "Week 3",
                "description": "",
                "start_time": start.strftime("%Y-%m-%dT%H:%M"),
                "end_time": (start + timedelta(hours=1)).strftime("%Y-%m-%dT%H:%M"),
                "meeting_link": "https://meet.example.com/w3",
            },
            HTTP_HX_REQUEST="true",
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("reload-sessions-table", response["HX-Trigger"])
        self.assertEqual(ClassSession.objects.get().created_by, self.faculty)

    def test_cannot_edit_sessions_of_other_courses(self):
        session = ClassSessionFactory()
        self.assertEqual(self.client.get(reverse("class_sessions:edit", args=[session.pk])).status_code, 403)

    def test_students_cannot_manage(self):
        self.client.force_login(StudentFactory())
        self.assertEqual(self.client.get(reverse("class_sessions:manage")).status_code, 403)
