from datetime import date, timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.activity_logs.services import log_activity
from apps.common.factories import (
    AdminFactory,
    AttendanceFactory,
    ClassSessionFactory,
    CourseFactory,
    FacultyFactory,
    StudentFactory,
)

from .exports import export_filename
from .services import attendance_series, enrollment_series, months_back


class SeriesTests(TestCase):
    def test_months_back_clamps_day(self):
        self.assertEqual(months_back(date(2025, 3, 31), 1), date(2025, 2, 28))
        self.assertEqual(months_back(date(2025, 1, 15), 4), date(2024, 9, 15))

    def test_attendance_counts_missing_rows_as_absent(self):
        present, absent = StudentFactory(), StudentFactory()
        course = CourseFactory(students=[present, absent])
        session = ClassSessionFactory(course=course, start_time=timezone.now() - timedelta(days=1))
        AttendanceFactory(session=session, user=present)
        ClassSessionFactory(course=course)  # future sessions are ignored

        series = attendance_series("week")
        self.assertEqual(len(series["labels"]), 1)
        self.assertEqual(series["datasets"][0], {"label": "Present", "data": [1]})
        self.assertEqual(series["datasets"][1], {"label": "Absent", "data": [1]})

    def test_enrollment_per_course(self):
        CourseFactory(code="AAA100", students=[StudentFactory(), StudentFactory()])
        CourseFactory(code="BBB100")
        series = enrollment_series()
        self.assertEqual(series["labels"], ["AAA100", "BBB100"])
        self.assertEqual(series["datasets"][0]["data"], [2, 0])


class ReportApiTests(TestCase):
    def setUp(self):
        self.admin = AdminFactory()
        self.client.force_login(self.admin)

    def test_activity_series(self):
        log_activity("login", user=self.admin)
        response = self.client.get(reverse("reports:api_series", args=["activity"]), {"range": "month"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["datasets"][0]["label"], "login")

    def test_unknown_kind_is_404(self):
        response = self.client.get(reverse("reports:api_series", args=["revenue"]))
        self.assertEqual(response.status_code, 404)

    def test_bad_course_is_400(self):
        response = self.client.get(reverse("reports:api_series", args=["attendance"]), {"course": "abc"})
        self.assertEqual(response.status_code, 400)

    def test_non_admin_is_403(self):
        self.client.force_login(FacultyFactory())
        response = self.client.get(reverse("reports:api_series", args=["enrollment"]))
        self.assertEqual(response.status_code, 403)


class ExportTests(TestCase):
    def setUp(self):
        self.client.force_login(AdminFactory())

    def test_students_csv(self):
        StudentFactory(first_name="Ada", last_name="Lovelace")
        response = self.client.get(reverse("reports:exports"), {"type": "students"})
        self.assertEqual(response.status_code, 200)
        self.assertIn(f'filename="{export_filename("students")}"', response["Content-Disposition"])
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], "ID,Name,Email,Department,Role,Verified,Created At")
        self.assertIn("Ada Lovelace", lines[1])

    def test_attendance_needs_course(self):
        response = self.client.get(reverse("reports:exports"), {"type": "attendance"})
        self.assertEqual(response.status_code, 400)

    def test_empty_export_stays_on_page(self):
        response = self.client.get(reverse("reports:exports"), {"type": "classes"})
        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, "export_data.html")

    def test_dashboard_is_admin_only(self):
        self.client.force_login(StudentFactory())
        self.assertEqual(self.client.get(reverse("reports:dashboard")).status_code, 403)
