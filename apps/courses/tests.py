from datetime import timedelta

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.activity_logs.models import ActivityLog
from apps.common.factories import (
    AdminFactory,
    AssignmentFactory,
    CourseFactory,
    DeadlineFactory,
    FacultyFactory,
    StudentFactory,
)

from .models import Course, Enrollment
from .services import (
    assign_faculty,
    can_manage_course,
    can_view_course,
    courses_for_user,
    delete_course,
    enroll_student,
    unenroll_student,
    upcoming_deadlines,
)


class CourseVisibilityTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.faculty = FacultyFactory()
        self.admin = AdminFactory()
        self.taught = CourseFactory(students=[self.student], faculty=[self.faculty])
        self.other = CourseFactory()

    def test_courses_for_each_role(self):
        self.assertQuerySetEqual(courses_for_user(self.student), [self.taught])
        self.assertQuerySetEqual(courses_for_user(self.faculty), [self.taught])
        self.assertEqual(courses_for_user(self.admin).count(), 2)

    def test_manage_and_view_rights(self):
        self.assertTrue(can_manage_course(self.faculty, self.taught))
        self.assertFalse(can_manage_course(self.faculty, self.other))
        self.assertFalse(can_manage_course(self.student, self.taught))
        self.assertTrue(can_view_course(self.student, self.taught))
        self.assertFalse(can_view_course(self.student, self.other))
        self.assertTrue(can_manage_course(self.admin, self.other))

    def test_student_cannot_open_foreign_course(self):
        self.client.force_login(self.student)
        self.assertEqual(self.client.get(reverse("courses:detail", args=[self.other.pk])).status_code, 403)
        self.assertEqual(self.client.get(reverse("courses:detail", args=[self.taught.pk])).status_code, 200)

    def test_course_list_renders_for_student(self):
        self.client.force_login(self.student)
        response = self.client.get(reverse("courses:list"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, self.taught.code)
        self.assertIn(self.other, list(response.context["available_courses"]))


class EnrollmentServiceTests(TestCase):
    def setUp(self):
        self.course = CourseFactory()
        self.student = StudentFactory()

    def test_enroll_logs_activity(self):
        enroll_student(course=self.course, student=self.student)
        self.assertTrue(Enrollment.objects.filter(course=self.course, user=self.student).exists())
        self.assertTrue(ActivityLog.objects.filter(action="enroll_student").exists())

    def test_duplicate_enrollment_is_rejected(self):
        enroll_student(course=self.course, student=self.student)
        with self.assertRaises(ValidationError):
            enroll_student(course=self.course, student=self.student)
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_only_students_can_enroll(self):
        with self.assertRaises(ValidationError):
            enroll_student(course=self.course, student=FacultyFactory())

    def test_unenroll_missing_student(self):
        with self.assertRaises(ValidationError):
            unenroll_student(course=self.course, student=self.student)

    def test_assign_faculty_twice(self):
        faculty = FacultyFactory()
        assign_faculty(course=self.course, faculty=faculty)
        with self.assertRaises(ValidationError):
            assign_faculty(course=self.course, faculty=faculty)

    def test_course_with_students_cannot_be_deleted(self):
        enroll_student(course=self.course, student=self.student)
        with self.assertRaises(ValidationError):
            delete_course(course=self.course)
        unenroll_student(course=self.course, student=self.student)
        delete_course(course=self.course)
        self.assertFalse(Course.objects.filter(pk=self.course.pk).exists())

    def test_self_enroll_view(self):
        self.client.force_login(self.student)
        response = self.client.post(reverse("courses:self_enroll", args=[self.course.pk]))
        self.assertRedirects(response, reverse("courses:list"), fetch_redirect_response=False)
        self.assertTrue(Enrollment.objects.filter(course=self.course, user=self.student).exists())


class CourseAdminViewTests(TestCase):
    def setUp(self):
        self.admin = AdminFactory()
        self.client.force_login(self.admin)

    def test_create_course_over_htmx(self):
        response = self.client.post(
            reverse("courses:create"),
            {"code": "ma201", "title": "Linear Algebra", "description": "", "credits": 4, "schedule": "", "room": ""},
            HTTP_HX_REQUEST="true",
        )
        self.assertEqual(response.status_code, 204)
        self.assertIn("reload-courses-table", response["HX-Trigger"])
        self.assertTrue(Course.objects.filter(title="Linear Algebra").exists())

    def test_invalid_course_returns_422(self):
        response = self.client.post(
            reverse("courses:create"),
            {"code": "", "title": "", "credits": 3},
            HTTP_HX_REQUEST="true",
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn("show-sweet-alert", response["HX-Trigger"])

    def test_faculty_cannot_create_course(self):
        self.client.force_login(FacultyFactory())
        self.assertEqual(self.client.get(reverse("courses:create")).status_code, 403)


class DeadlineTests(TestCase):
    def test_upcoming_deadlines_merges_assignments_and_sorts(self):
        student = StudentFactory()
        course = CourseFactory(students=[student])
        now = timezone.now()
        later = DeadlineFactory(course=course, due_date=now + timedelta(days=5))
        sooner = AssignmentFactory(course=course, due_date=now + timedelta(days=2))
        DeadlineFactory(course=course, due_date=now - timedelta(days=1))
        DeadlineFactory(course=CourseFactory(), due_date=now + timedelta(days=1))

        items = upcoming_deadlines(student)
        self.assertEqual([item["object"] for item in items], [sooner, later])
        self.assertEqual(items[0]["kind"], "assignment")
        self.assertEqual(len(upcoming_deadlines(student, include_past=True)), 3)
        self.assertTrue(upcoming_deadlines(student, include_past=True)[0]["is_overdue"])

    def test_students_cannot_add_deadlines(self):
        self.client.force_login(StudentFactory())
        self.assertEqual(self.client.get(reverse("courses:deadline_create")).status_code, 403)
