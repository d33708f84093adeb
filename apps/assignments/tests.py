from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from apps.activity_logs.models import ActivityLog
from apps.common.factories import (
    AssignmentFactory,
    AssignmentSubmissionFactory,
    CourseFactory,
    EnrollmentFactory,
    FacultyFactory,
    StudentFactory,
)
from apps.notifications.models import Notification

from .models import AssignmentSubmission
from .services import grade_submission, student_grades, submission_roster, submit_assignment


class SubmitAssignmentTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.course = CourseFactory(students=[self.student])
        self.assignment = AssignmentFactory(course=self.course)

    def test_submit_then_resubmit_overwrites(self):
        first = submit_assignment(assignment=self.assignment, student=self.student, text="Draft")
        second = submit_assignment(assignment=self.assignment, student=self.student, text="Final")
        self.assertEqual(first.pk, second.pk)
        second.refresh_from_db()
        self.assertEqual(second.submission_text, "Final")
        self.assertEqual(AssignmentSubmission.objects.count(), 1)
        self.assertEqual(ActivityLog.objects.filter(action="submit_assignment").count(), 2)

    def test_not_enrolled_student_is_rejected(self):
        with self.assertRaises(ValidationError):
            submit_assignment(assignment=self.assignment, student=StudentFactory(), text="Hi")

    def test_graded_submission_is_locked(self):
        submission = submit_assignment(assignment=self.assignment, student=self.student, text="Done")
        grade_submission(submission=submission, grade=80, graded_by=FacultyFactory())
        with self.assertRaises(ValidationError):
            submit_assignment(assignment=self.assignment, student=self.student, text="Again")

    def test_submit_view_requires_text_for_text_assignments(self):
        self.client.force_login(self.student)
        response = self.client.post(
            reverse("assignments:submit", args=[self.assignment.pk]), {"submission_text": "  "}
        )
        self.assertRedirects(response, reverse("assignments:detail", args=[self.assignment.pk]))
        self.assertFalse(AssignmentSubmission.objects.exists())


class GradeSubmissionTests(TestCase):
    def setUp(self):
        self.faculty = FacultyFactory()
        self.student = StudentFactory()
        self.course = CourseFactory(students=[self.student], faculty=[self.faculty])
        self.assignment = AssignmentFactory(course=self.course, max_points=50)
        self.submission = AssignmentSubmissionFactory(assignment=self.assignment, user=self.student)

    def test_grading_notifies_student(self):
        grade_submission(submission=self.submission, grade=42, feedback="Good", graded_by=self.faculty)
        self.submission.refresh_from_db()
        self.assertTrue(self.submission.is_graded)
        self.assertEqual(self.submission.grade, Decimal("42"))
        self.assertEqual(self.submission.graded_by, self.faculty)
        note = Notification.objects.get(user=self.student)
        self.assertIn("42/50", note.body)

    def test_grade_out_of_range(self):
        with self.assertRaises(ValidationError):
            grade_submission(submission=self.submission, grade=51, graded_by=self.faculty)

    def test_grade_view_over_htmx(self):
        self.client.force_login(self.faculty)
        response = self.client.post(
            reverse("assignments:grade", args=[self.submission.pk]),
            {"grade": "45", "feedback": "Nice"},
            HTTP_HX_REQUEST="true",
        )
        self.assertEqual(response.status_code, 204)
        self.assertIn("reload-submissions", response["HX-Trigger"])

    def test_grade_view_rejects_bad_grade(self):
        self.client.force_login(self.faculty)
        response = self.client.post(
            reverse("assignments:grade", args=[self.submission.pk]), {"grade": "500"}, HTTP_HX_REQUEST="true"
        )
        self.assertEqual(response.status_code, 422)

    def test_roster_includes_missing_students(self):
        late = StudentFactory()
        EnrollmentFactory(user=late, course=self.course)
        roster = submission_roster(self.assignment)
        by_student = {row["student"]: row["submission"] for row in roster}
        self.assertEqual(by_student[self.student], self.submission)
        self.assertIsNone(by_student[late])


class StudentGradesTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.faculty = FacultyFactory()
        self.course = CourseFactory(students=[self.student])
        a1 = AssignmentFactory(course=self.course, max_points=100)
        a2 = AssignmentFactory(course=self.course, max_points=50)
        AssignmentFactory(course=self.course)
        for assignment, grade in ((a1, 90), (a2, 20)):
            submission = AssignmentSubmissionFactory(assignment=assignment, user=self.student)
            grade_submission(submission=submission, grade=grade, feedback="ok, fine", graded_by=self.faculty)

    def test_averages(self):
        summary = student_grades(self.student)
        self.assertEqual(summary["graded_count"], 2)
        entry = summary["courses"][0]
        self.assertEqual(entry["earned"], Decimal(110))
        self.assertEqual(entry["total"], Decimal(150))
        self.assertEqual(entry["average"], Decimal("73.3"))
        self.assertEqual(summary["overall_average"], Decimal("73.3"))

    def test_no_grades(self):
        summary = student_grades(StudentFactory())
        self.assertEqual(summary["courses"], [])
        self.assertIsNone(summary["overall_average"])

    def test_csv_export(self):
        self.client.force_login(self.student)
        response = self.client.get(reverse("assignments:grades_export"))
        self.assertEqual(response["Content-Type"], "text/csv; charset=utf-8")
        self.assertIn('filename="grades-', response["Content-Disposition"])
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], "Course,Assignment,Grade,Max Points,Percentage,Graded At,Feedback")
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[1].endswith("ok; fine"))

    def test_faculty_cannot_view_student_grades_page(self):
        self.client.force_login(self.faculty)
        self.assertEqual(self.client.get(reverse("assignments:grades")).status_code, 403)
