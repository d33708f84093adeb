from django.test import RequestFactory, TestCase
from django.urls import reverse

from apps.common.factories import AdminFactory, FacultyFactory, StudentFactory

from .models import ActivityLog
from .services import client_ip, log_activity


class ClientIpTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def test_forwarded_for_wins(self):
        request = self.factory.get("/", HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1", REMOTE_ADDR="10.0.0.2")
        self.assertEqual(client_ip(request), "203.0.113.9")

    def test_remote_addr_fallback(self):
        self.assertEqual(client_ip(self.factory.get("/", REMOTE_ADDR="198.51.100.4")), "198.51.100.4")

    def test_unknown(self):
        self.assertEqual(client_ip(None), "unknown")

    def test_malformed_forwarded_for_falls_back_to_remote_addr(self):
        request = self.factory.get("/", HTTP_X_FORWARDED_FOR="x" * 60, REMOTE_ADDR="198.51.100.4")
        self.assertEqual(client_ip(request), "198.51.100.4")

    def test_ipv6_forwarded_for(self):
        request = self.factory.get("/", HTTP_X_FORWARDED_FOR="2001:db8::1")
        self.assertEqual(client_ip(request), "2001:db8::1")

    def test_invalid_remote_addr_is_unknown(self):
        self.assertEqual(client_ip(self.factory.get("/", REMOTE_ADDR="not-an-ip")), "unknown")


class ActivityLogTests(TestCase):
    def test_log_uses_request_user(self):
        user = StudentFactory()
        request = RequestFactory().post("/", REMOTE_ADDR="192.0.2.1")
        request.user = user
        entry = log_activity("submit_assignment", request=request, details={"assignment_id": 3})
        self.assertEqual(entry.user, user)
        self.assertEqual(entry.ip_address, "192.0.2.1")
        self.assertEqual(entry.details, {"assignment_id": 3})

    def test_login_is_logged(self):
        user = StudentFactory()
        self.client.post(reverse("accounts:login"), {"login": user.username, "password": "password123"})
        self.assertTrue(ActivityLog.objects.filter(user=user, action="login").exists())

    def test_login_with_oversized_forwarded_for(self):
        user = StudentFactory()
        response = self.client.post(
            reverse("accounts:login"),
            {"login": user.username, "password": "password123"},
            HTTP_X_FORWARDED_FOR="a" * 200 + ", 10.0.0.1",
        )
        self.assertEqual(response.status_code, 302)
        entry = ActivityLog.objects.get(user=user, action="login")
        self.assertEqual(entry.ip_address, "127.0.0.1")

    def test_list_filters_by_action(self):
        admin = AdminFactory()
        log_activity("approve_tutor", user=admin)
        log_activity("delete_course", user=admin)
        self.client.force_login(admin)
        response = self.client.get(reverse("activity_logs:list"), {"action": "delete_course"})
        self.assertEqual([e.action for e in response.context["page_obj"]], ["delete_course"])

    def test_list_is_admin_only(self):
        self.client.force_login(FacultyFactory())
        self.assertEqual(self.client.get(reverse("activity_logs:list")).status_code, 403)
