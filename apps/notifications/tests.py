from django.test import TestCase
from django.urls import reverse

from apps.common.factories import StudentFactory

from .models import Notification
from .services import mark_all_read, notify


class NotificationTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()

    def test_notify_deduplicates_users(self):
        other = StudentFactory()
        count = notify([self.student, other, self.student], title="Exam moved")
        self.assertEqual(count, 2)
        self.assertEqual(Notification.objects.filter(user=self.student).count(), 1)

    def test_mark_read_redirects_to_link(self):
        notify([self.student], title="Graded", link="/assignments/")
        note = Notification.objects.get()
        self.client.force_login(self.student)
        response = self.client.post(reverse("notifications:mark_read", args=[note.pk]))
        self.assertRedirects(response, "/assignments/", fetch_redirect_response=False)
        note.refresh_from_db()
        self.assertTrue(note.is_read)

    def test_cannot_touch_others_notifications(self):
        notify([StudentFactory()], title="Private")
        self.client.force_login(self.student)
        response = self.client.post(reverse("notifications:mark_read", args=[Notification.objects.get().pk]))
        self.assertEqual(response.status_code, 404)

    def test_mark_all_read(self):
        notify([self.student], title="One")
        notify([self.student], title="Two")
        self.assertEqual(mark_all_read(self.student), 2)

        self.client.force_login(self.student)
        response = self.client.post(reverse("notifications:mark_all_read"), HTTP_HX_REQUEST="true")
        self.assertIn("reload-notifications", response["HX-Trigger"])

    def test_unread_filter(self):
        notify([self.student], title="Unread")
        Notification.objects.create(user=self.student, title="Read", is_read=True)
        self.client.force_login(self.student)
        response = self.client.get(reverse("notifications:list"), {"unread": "1"})
        self.assertEqual([n.title for n in response.context["page_obj"]], ["Unread"])
