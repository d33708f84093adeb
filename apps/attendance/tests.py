from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from apps.common.factories import (
    AttendanceFactory,
    ClassSessionFactory,
    CourseFactory,
    FacultyFactory,
    StudentFactory,
)

from .models import Attendance
from .services import (
    PLACEHOLDER_PREFIX,
    attendance_percentage,
    build_roster,
    roster_stats,
    student_stats,
    toggle_attendance,
)


class AttendancePercentageTests(TestCase):
    def test_rounds_half_up(self):
        self.assertEqual(attendance_percentage(1, 8), 13)  # 12.5
        self.assertEqual(attendance_percentage(2, 3), 67)
        self.assertEqual(attendance_percentage(1, 3), 33)

    def test_empty_is_zero(self):
        self.assertEqual(attendance_percentage(0, 0), 0)


class RosterTests(TestCase):
    def setUp(self):
        self.present = StudentFactory(last_name="Adams")
        self.missing = StudentFactory(last_name="Brown")
        self.faculty = FacultyFactory()
        self.course = CourseFactory(students=[self.present, self.missing], faculty=[self.faculty])
        self.session = ClassSessionFactory(course=self.course)
        AttendanceFactory(session=self.session, user=self.present, is_present=True)

    def test_missing_students_get_placeholders(self):
        roster = build_roster(self.session)
        self.assertEqual(len(roster), 2)
        placeholder = next(e for e in roster if e["student"] == self.missing)
        self.assertTrue(placeholder["is_placeholder"])
        self.assertEqual(placeholder["id"], f"{PLACEHOLDER_PREFIX}{self.missing.pk}")
        self.assertFalse(placeholder["is_present"])
        self.assertEqual(roster_stats(roster), {"total": 2, "present": 1, "absent": 1, "percentage": 50})

    def test_toggling_placeholder_creates_present_row(self):
        record = toggle_attendance(session=self.session, student=self.missing, marked_by=self.faculty)
        self.assertTrue(record.is_present)
        self.assertEqual(record.marked_by, self.faculty)
        self.assertEqual(Attendance.objects.filter(session=self.session).count(), 2)
        other = Attendance.objects.get(session=self.session, user=self.present)
        self.assertTrue(other.is_present)
        self.assertIsNone(other.marked_by)

    def test_stats_match_once_placeholders_are_saved(self):
        with_placeholders = roster_stats(build_roster(self.session))
        Attendance.objects.create(session=self.session, user=self.missing, is_present=False)
        saved = build_roster(self.session)
        self.assertFalse(any(entry["is_placeholder"] for entry in saved))
        self.assertEqual(roster_stats(saved), with_placeholders)

    def test_toggling_existing_row_flips_it(self):
        record = toggle_attendance(session=self.session, student=self.present)
        self.assertFalse(record.is_present)
        record = toggle_attendance(session=self.session, student=self.present, is_present=True)
        self.assertTrue(record.is_present)

    def test_outsider_cannot_be_marked(self):
        with self.assertRaises(ValidationError):
            toggle_attendance(session=self.session, student=StudentFactory())

    def test_toggle_view_returns_roster(self):
        self.client.force_login(self.faculty)
        response = self.client.post(
            reverse("attendance:toggle", args=[self.session.pk, self.missing.pk]),
            {"is_present": "1"},
            HTTP_HX_REQUEST="true",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["stats"]["present"], 2)

    def test_toggle_view_rejects_garbage(self):
        self.client.force_login(self.faculty)
        response = self.client.post(
            reverse("attendance:toggle", args=[self.session.pk, self.missing.pk]), {"is_present": "maybe"}
        )
        self.assertEqual(response.status_code, 400)

    def test_other_faculty_gets_403(self):
        self.client.force_login(FacultyFactory())
        response = self.client.get(reverse("attendance:session", args=[self.session.pk]))
        self.assertEqual(response.status_code, 403)


class StudentAttendanceTests(TestCase):
    def test_stats_and_page(self):
        student = StudentFactory()
        course = CourseFactory(students=[student])
        AttendanceFactory(session=ClassSessionFactory(course=course), user=student, is_present=True)
        AttendanceFactory(session=ClassSessionFactory(course=course), user=student, is_present=False)

        stats = student_stats(Attendance.objects.filter(user=student))
        self.assertEqual(stats, {"total": 2, "present": 1, "absent": 1, "percentage": 50})

        self.client.force_login(student)
        response = self.client.get(reverse("attendance:my_attendance"))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.context["result"].is_ok)

    def test_empty_history(self):
        self.client.force_login(StudentFactory())
        response = self.client.get(reverse("attendance:my_attendance"))
        self.assertTrue(response.context["result"].is_empty)
