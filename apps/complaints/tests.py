from django.test import TestCase
from django.urls import reverse

from apps.activity_logs.models import ActivityLog
from apps.common.factories import AdminFactory, ComplaintFactory, StudentFactory
from apps.notifications.models import Notification

from .forms import ComplaintStatusForm
from .models import Complaint
from .services import create_complaint, update_complaint_status


class ComplaintServiceTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.admin = AdminFactory()

    def test_create_logs_activity(self):
        complaint = create_complaint(user=self.student, subject="Wi-Fi down", description="Library Wi-Fi")
        self.assertEqual(complaint.status, Complaint.Status.PENDING)
        log = ActivityLog.objects.get(action="create_complaint")
        self.assertEqual(log.details["complaint_title"], "Wi-Fi down")
        self.assertFalse(Notification.objects.exists())

    def test_resolving_stamps_and_reopening_clears(self):
        complaint = ComplaintFactory(user=self.student)
        update_complaint_status(
            complaint=complaint, status=Complaint.Status.RESOLVED, resolution_notes="Fixed", changed_by=self.admin
        )
        complaint.refresh_from_db()
        self.assertIsNotNone(complaint.resolved_at)
        self.assertEqual(complaint.resolved_by, self.admin)

        update_complaint_status(complaint=complaint, status=Complaint.Status.IN_PROGRESS, changed_by=self.admin)
        complaint.refresh_from_db()
        self.assertIsNone(complaint.resolved_at)
        self.assertIsNone(complaint.resolved_by)
        self.assertEqual(ActivityLog.objects.filter(action="update_complaint_status").count(), 2)

    def test_status_change_notifies_owner_once(self):
        complaint = ComplaintFactory(user=self.student)
        update_complaint_status(complaint=complaint, status=Complaint.Status.IN_PROGRESS, changed_by=self.admin)
        update_complaint_status(complaint=complaint, status=Complaint.Status.IN_PROGRESS, changed_by=self.admin)
        note = Notification.objects.get(user=self.student)
        self.assertIn("In progress", note.body)

    def test_closing_requires_notes(self):
        form = ComplaintStatusForm({"status": "rejected", "resolution_notes": " "})
        self.assertFalse(form.is_valid())
        self.assertIn("resolution_notes", form.errors)
        self.assertTrue(ComplaintStatusForm({"status": "in_progress"}).is_valid())


class ComplaintViewTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.admin = AdminFactory()

    def test_student_submits_and_sees_only_own(self):
        self.client.force_login(self.student)
        response = self.client.post(
            reverse("complaints:create"),
            {"subject": "Broken projector", "category": "facilities", "description": "Room B-101"},
        )
        complaint = Complaint.objects.get()
        self.assertRedirects(response, reverse("complaints:detail", args=[complaint.pk]))

        foreign = ComplaintFactory()
        self.assertEqual(self.client.get(reverse("complaints:detail", args=[foreign.pk])).status_code, 404)

    def test_manage_is_admin_only(self):
        self.client.force_login(self.student)
        self.assertEqual(self.client.get(reverse("complaints:manage")).status_code, 403)

    def test_admin_status_counts(self):
        ComplaintFactory()
        ComplaintFactory(status=Complaint.Status.RESOLVED)
        self.client.force_login(self.admin)
        response = self.client.get(reverse("complaints:manage"))
        counts = {row["value"]: row["count"] for row in response.context["status_counts"]}
        self.assertEqual(counts, {"pending": 1, "in_progress": 0, "resolved": 1, "rejected": 0})

    def test_admin_update_over_htmx(self):
        complaint = ComplaintFactory(user=self.student)
        self.client.force_login(self.admin)
        response = self.client.post(
            reverse("complaints:admin_detail", args=[complaint.pk]),
            {"status": "resolved", "resolution_notes": "Replaced the bulb"},
            HTTP_HX_REQUEST="true",
        )
        self.assertEqual(response.status_code, 204)
        complaint.refresh_from_db()
        self.assertEqual(complaint.status, Complaint.Status.RESOLVED)

    def test_admin_close_without_notes_is_422(self):
        complaint = ComplaintFactory(user=self.student)
        self.client.force_login(self.admin)
        response = self.client.post(
            reverse("complaints:admin_detail", args=[complaint.pk]), {"status": "resolved"}
        )
        self.assertEqual(response.status_code, 422)
