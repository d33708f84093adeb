from datetime import datetime
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db import DatabaseError
from django.test import RequestFactory, TestCase
from django.urls import reverse

from apps.courses.models import Course
from apps.evaluations.models import CourseEvaluation

from .factories import AdminFactory, CourseFactory, FacultyFactory, StudentFactory
from .navigation import links_for
from .results import load
from .utils.csv_export import build_csv, csv_cell
from .utils.http import htmx_trigger, is_htmx_request, sweet_alert
from .utils.pagination import paginate
from .utils.uploads import build_upload_path

User = get_user_model()


class CsvExportTests(TestCase):
    def test_cells(self):
        self.assertEqual(csv_cell(None), "")
        self.assertEqual(csv_cell(True), "Yes")
        self.assertEqual(csv_cell("Smith, John"), "Smith; John")
        self.assertEqual(csv_cell("line one\nline two"), "line one line two")
        self.assertEqual(csv_cell(datetime(2025, 1, 2, 9, 30)), "2025-01-02 09:30")

    def test_build_csv(self):
        self.assertEqual(build_csv(["A", "B"], [[1, "x,y"]]), "A,B\n1,x;y\n")

    def test_any_line_break_stays_in_one_row(self):
        self.assertEqual(csv_cell("line one\rline two"), "line one line two")
        self.assertEqual(csv_cell("a\r\nb c"), "a b c")
        content = build_csv(["Title", "Description"], [["Intro", "line one\rline two"], ["Next", "x\r\ny"]])
        self.assertEqual(len(content.splitlines()), 3)


class LoadResultTests(TestCase):
    def test_ok_and_empty(self):
        result = load(lambda: [1, 2])
        self.assertTrue(result.is_ok)
        self.assertEqual(list(result), [1, 2])
        self.assertTrue(load(lambda: Course.objects.none()).is_empty)

    def test_database_error(self):
        def broken():
            raise DatabaseError("connection lost")

        with self.assertLogs("apps.common.results", level="ERROR"):
            result = load(broken, what="courses")
        self.assertTrue(result.is_error)
        self.assertIn("courses", result.reason)
        self.assertEqual(list(result), [])


class HttpHelperTests(TestCase):
    def test_trigger_payload(self):
        response = htmx_trigger({**sweet_alert("success", "Saved"), "reload": True}, status=204)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(
            response["HX-Trigger"], '{"show-sweet-alert": {"icon": "success", "title": "Saved"}, "reload": true}'
        )

    def test_htmx_detection_and_pagination(self):
        factory = RequestFactory()
        self.assertTrue(is_htmx_request(factory.get("/", HTTP_HX_REQUEST="true")))
        self.assertFalse(is_htmx_request(factory.get("/")))

        request = factory.get("/", {"per_page": "999", "page": "42"})
        paginator, page_obj, per_page = paginate(request, list(range(500)))
        self.assertEqual(per_page, 200)
        self.assertEqual(page_obj.number, 1)

    def test_upload_path(self):
        path = build_upload_path("materials", 7, "Lecture Notes.PDF")
        self.assertRegex(path, r"^materials/7/\d+_[0-9a-f]{8}\.pdf$")


class NavigationTests(TestCase):
    def test_links_per_role(self):
        student_links = {link["url_name"] for link in links_for(StudentFactory())}
        admin_links = {link["url_name"] for link in links_for(AdminFactory())}
        self.assertIn("assignments:grades", student_links)
        self.assertNotIn("reports:dashboard", student_links)
        self.assertIn("reports:dashboard", admin_links)
        self.assertNotIn("class_sessions:manage", student_links)


class DashboardTests(TestCase):
    def test_home_redirects_anonymous_to_login(self):
        response = self.client.get(reverse("common:home"))
        self.assertRedirects(response, reverse("accounts:login"), fetch_redirect_response=False)

    def test_each_role_gets_its_dashboard(self):
        student = StudentFactory()
        faculty = FacultyFactory()
        CourseFactory(students=[student], faculty=[faculty])
        for user, role in ((student, "student"), (faculty, "faculty"), (AdminFactory(), "admin")):
            self.client.force_login(user)
            response = self.client.get(reverse("common:dashboard"))
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.context["dashboard_role"], role)

    def test_student_cards(self):
        student = StudentFactory()
        CourseFactory(students=[student])
        self.client.force_login(student)
        response = self.client.get(reverse("common:dashboard"))
        cards = {card["label"]: card["value"] for card in response.context["cards"]}
        self.assertEqual(cards["Enrolled courses"], 1)
        self.assertEqual(cards["Attendance"], "0%")


class SeedCommandTests(TestCase):
    def test_seed_small_dataset(self):
        out = StringIO()
        call_command("seed_db", students=10, faculty=2, courses=2, sessions_per_course=4, seed=7, stdout=out)
        self.assertIn("Seeding Completed", out.getvalue())
        self.assertEqual(User.objects.filter(role=User.Role.STUDENT).count(), 10)
        self.assertEqual(Course.objects.count(), 2)
        self.assertTrue(CourseEvaluation.objects.exists())
