from datetime import timedelta

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.common.factories import AdminFactory, ScholarshipFactory, StudentFactory
from apps.notifications.models import Notification

from .models import ScholarshipApplication
from .services import apply_for_scholarship, review_application


def _apply(scholarship, user):
    return apply_for_scholarship(
        scholarship=scholarship,
        user=user,
        gpa="3.50",
        financial_info="Part-time job",
        statement_of_purpose="I want to study abroad.",
    )


class ApplyTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.scholarship = ScholarshipFactory()

    def test_one_application_per_student(self):
        _apply(self.scholarship, self.student)
        with self.assertRaises(ValidationError):
            _apply(self.scholarship, self.student)
        self.assertEqual(ScholarshipApplication.objects.count(), 1)

    def test_inactive_scholarship_rejected(self):
        with self.assertRaises(ValidationError):
            _apply(ScholarshipFactory(is_active=False), self.student)

    def test_past_deadline_rejected(self):
        closed = ScholarshipFactory(deadline=timezone.localdate() - timedelta(days=1))
        self.assertFalse(closed.is_open)
        with self.assertRaises(ValidationError):
            _apply(closed, self.student)

    def test_apply_view(self):
        self.client.force_login(self.student)
        response = self.client.post(
            reverse("scholarships:apply", args=[self.scholarship.pk]),
            {"gpa": "3.8", "financial_info": "None", "statement_of_purpose": "Research"},
        )
        application = ScholarshipApplication.objects.get()
        self.assertRedirects(response, reverse("scholarships:application_detail", args=[application.pk]))

        again = self.client.get(reverse("scholarships:apply", args=[self.scholarship.pk]))
        self.assertRedirects(again, reverse("scholarships:application_detail", args=[application.pk]))

    def test_gpa_out_of_range_is_422(self):
        self.client.force_login(self.student)
        response = self.client.post(
            reverse("scholarships:apply", args=[self.scholarship.pk]),
            {"gpa": "4.5", "financial_info": "None", "statement_of_purpose": "Research"},
        )
        self.assertEqual(response.status_code, 422)


class ReviewTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.admin = AdminFactory()
        self.application = _apply(ScholarshipFactory(), self.student)

    def test_review_notifies_on_status_change(self):
        review_application(
            application=self.application, status=ScholarshipApplication.Status.APPROVED, reviewed_by=self.admin
        )
        self.application.refresh_from_db()
        self.assertEqual(self.application.reviewed_by, self.admin)
        self.assertIsNotNone(self.application.reviewed_at)
        note = Notification.objects.get(user=self.student)
        self.assertIn("approved", note.body)

    def test_notes_only_update_is_silent(self):
        review_application(
            application=self.application,
            status=ScholarshipApplication.Status.PENDING,
            admin_notes="Waiting for transcript",
            reviewed_by=self.admin,
        )
        self.assertFalse(Notification.objects.exists())

    def test_other_students_cannot_see_application(self):
        self.client.force_login(StudentFactory())
        response = self.client.get(reverse("scholarships:application_detail", args=[self.application.pk]))
        self.assertEqual(response.status_code, 404)

    def test_manage_requires_admin(self):
        self.client.force_login(self.student)
        self.assertEqual(self.client.get(reverse("scholarships:manage")).status_code, 403)
