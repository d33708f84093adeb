import uuid
from datetime import date
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ImproperlyConfigured, ValidationError
from django.db import IntegrityError
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.common.factories import AdminFactory, CourseFactory, EnrollmentFactory, StudentFactory

from .models import CourseEvaluation, EvaluationSubmission
from .semester import current_semester
from .services import (
    ALREADY_SUBMITTED,
    NOT_ENROLLED,
    RATING_FIELDS,
    evaluation_summary,
    has_submitted,
    submission_hash,
    submit_evaluation,
)

SEMESTER = "Fall 2025"

def _ratings(score=4, **overrides):
    ratings = {name: score for name, _ in RATING_FIELDS}
    ratings.update(overrides)
    return ratings


class SemesterTests(TestCase):
    def test_quarters(self):
        self.assertEqual(current_semester(date(2025, 2, 1), "quarters"), "Winter 2025")
        self.assertEqual(current_semester(date(2025, 6, 30), "quarters"), "Spring 2025")
        self.assertEqual(current_semester(date(2025, 11, 5), "quarters"), "Fall 2025")

    def test_trimesters(self):
        self.assertEqual(current_semester(date(2025, 4, 30), "trimesters"), "Spring 2025")
        self.assertEqual(current_semester(date(2025, 5, 1), "trimesters"), "Summer 2025")
        self.assertEqual(current_semester(date(2025, 9, 1), "trimesters"), "Fall 2025")

    @override_settings(SEMESTER_SCHEME="semesters")
    def test_unknown_scheme(self):
        with self.assertRaises(ImproperlyConfigured):
            current_semester(date(2025, 1, 1))


class SubmitEvaluationTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.course = CourseFactory(students=[self.student])

    def test_rating_is_anonymous(self):
        evaluation = submit_evaluation(
            student=self.student, course=self.course, ratings=_ratings(), strengths=" Clear ", semester=SEMESTER
        )
        self.assertEqual(evaluation.strengths, "Clear")
        field_names = {f.name for f in CourseEvaluation._meta.get_fields()}
        self.assertNotIn("user", field_names)
        self.assertEqual(evaluation.submission_hash, submission_hash(self.student.pk, self.course.pk, SEMESTER))
        self.assertTrue(EvaluationSubmission.objects.filter(user=self.student, course=self.course).exists())

    def test_second_submission_rejected(self):
        submit_evaluation(student=self.student, course=self.course, ratings=_ratings(), semester=SEMESTER)
        with self.assertRaises(ValidationError) as ctx:
            submit_evaluation(student=self.student, course=self.course, ratings=_ratings(), semester=SEMESTER)
        self.assertEqual(ctx.exception.code, ALREADY_SUBMITTED)
        self.assertEqual(CourseEvaluation.objects.count(), 1)

    def test_next_semester_is_allowed(self):
        submit_evaluation(student=self.student, course=self.course, ratings=_ratings(), semester=SEMESTER)
        submit_evaluation(student=self.student, course=self.course, ratings=_ratings(), semester="Winter 2026")
        self.assertEqual(CourseEvaluation.objects.count(), 2)

    def test_enrollment_required(self):
        with self.assertRaises(ValidationError) as ctx:
            submit_evaluation(student=StudentFactory(), course=self.course, ratings=_ratings(), semester=SEMESTER)
        self.assertEqual(ctx.exception.code, NOT_ENROLLED)

    def test_invalid_rating_writes_nothing(self):
        with self.assertRaises(ValidationError):
            submit_evaluation(
                student=self.student, course=self.course, ratings=_ratings(workload=6), semester=SEMESTER
            )
        self.assertFalse(EvaluationSubmission.objects.exists())
        self.assertFalse(CourseEvaluation.objects.exists())

    def test_failed_rating_insert_leaves_no_marker(self):
        with mock.patch.object(CourseEvaluation.objects, "create", side_effect=IntegrityError("rating insert")):
            with self.assertLogs("apps.evaluations.services", level="WARNING"):
                with self.assertRaises(ValidationError) as ctx:
                    submit_evaluation(
                        student=self.student, course=self.course, ratings=_ratings(), semester=SEMESTER
                    )
        self.assertEqual(ctx.exception.code, "save_failed")
        self.assertFalse(EvaluationSubmission.objects.exists())
        self.assertFalse(has_submitted(self.student, self.course, SEMESTER))

    def test_concurrent_duplicate_reports_already_submitted(self):
        EvaluationSubmission.objects.create(user=self.student, course=self.course, semester=SEMESTER)
        with mock.patch("apps.evaluations.services.has_submitted", side_effect=[False, True]):
            with self.assertRaises(ValidationError) as ctx:
                submit_evaluation(student=self.student, course=self.course, ratings=_ratings(), semester=SEMESTER)
        self.assertEqual(ctx.exception.code, ALREADY_SUBMITTED)
        self.assertFalse(CourseEvaluation.objects.exists())


class AnonymityTests(TestCase):
    def setUp(self):
        self.course = CourseFactory()
        self.students = StudentFactory.create_batch(3)
        for score, student in enumerate(self.students, start=1):
            EnrollmentFactory(user=student, course=self.course)
            submit_evaluation(
                student=student,
                course=self.course,
                ratings=_ratings(score),
                strengths=f"comment {score}",
                semester=SEMESTER,
            )

    def test_rating_keys_are_not_sequential(self):
        marker_ids = set(EvaluationSubmission.objects.values_list("id", flat=True))
        for pk in CourseEvaluation.objects.values_list("id", flat=True):
            self.assertIsInstance(pk, uuid.UUID)
            self.assertNotIn(pk, marker_ids)

    def test_comments_follow_hash_order_not_submission_order(self):
        summary = evaluation_summary(CourseEvaluation.objects.filter(course=self.course))
        by_hash = list(
            CourseEvaluation.objects.order_by("submission_hash").values_list("strengths", flat=True)
        )
        self.assertEqual([c["strengths"] for c in summary["comments"]], by_hash)

    def test_hash_needs_the_secret_key(self):
        student = self.students[0]
        digest = submission_hash(student.pk, self.course.pk, SEMESTER)
        with override_settings(SECRET_KEY="another-secret"):
            self.assertNotEqual(submission_hash(student.pk, self.course.pk, SEMESTER), digest)


class SummaryTests(TestCase):
    def setUp(self):
        self.course = CourseFactory(code="EVAL101")
        for score, comment in ((5, "Great, really"), (4, ""), (4, "")):
            student = StudentFactory()
            EnrollmentFactory(user=student, course=self.course)
            submit_evaluation(
                student=student, course=self.course, ratings=_ratings(score), strengths=comment, semester=SEMESTER
            )

    def test_summary(self):
        summary = evaluation_summary(CourseEvaluation.objects.filter(course=self.course))
        self.assertEqual(summary["count"], 3)
        overall = next(a for a in summary["averages"] if a["field"] == "overall_rating")
        self.assertEqual(overall["average"], Decimal("4.3"))
        self.assertEqual(summary["distribution"]["overall_rating"], [0, 0, 0, 2, 1])
        self.assertEqual(len(summary["comments"]), 1)

    def test_csv_download(self):
        self.client.force_login(AdminFactory())
        response = self.client.get(reverse("evaluations:admin_csv", args=[self.course.pk]), {"semester": SEMESTER})
        self.assertIn('filename="EVAL101-evaluation-Fall-2025.csv"', response["Content-Disposition"])
        body = response.content.decode()
        self.assertIn("Total Responses: 3", body)
        self.assertIn("Great; really", body)

    def test_students_cannot_see_reports(self):
        self.client.force_login(StudentFactory())
        response = self.client.get(reverse("evaluations:admin_detail", args=[self.course.pk]))
        self.assertEqual(response.status_code, 403)


class EvaluationViewTests(TestCase):
    def test_submit_then_already_submitted_page(self):
        student = StudentFactory()
        course = CourseFactory(students=[student])
        self.client.force_login(student)
        data = {name: "5" for name, _ in RATING_FIELDS}
        response = self.client.post(reverse("evaluations:submit", args=[course.pk]), data)
        self.assertRedirects(response, reverse("evaluations:list"))

        response = self.client.get(reverse("evaluations:submit", args=[course.pk]))
        self.assertTemplateUsed(response, "evaluation_submitted.html")

    def test_missing_rating_is_422(self):
        student = StudentFactory()
        course = CourseFactory(students=[student])
        self.client.force_login(student)
        response = self.client.post(reverse("evaluations:submit", args=[course.pk]), {"workload": "3"})
        self.assertEqual(response.status_code, 422)
