import json

from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core import mail
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode

from apps.activity_logs.models import ActivityLog
from apps.common.factories import AdminFactory, FacultyFactory, StudentFactory

from .permissions import has_role, role_flags
from .services import (
	PASSWORD_RESET_RATE_LIMIT,
	apply_for_tutor,
	decide_tutor_application,
	email_verification_token,
)

User = get_user_model()


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class PasswordResetFlowTests(TestCase):
	def setUp(self):
		cache.clear()
		self.user = User.objects.create_user(
			username="tester",
			email="tester@example.com",
			phone="0123456789",
			password="OldPass!234",
			is_active=True,
		)

	def test_request_password_reset_sends_email_for_existing_user(self):
		response = self.client.post(
			reverse("accounts:password_reset"),
			{"identifier": self.user.email},
			follow=False,
		)
		self.assertRedirects(response, reverse("accounts:password_reset_done"))
		self.assertEqual(len(mail.outbox), 1)
		email = mail.outbox[0]
		self.assertIn("reset your password", email.subject)
		self.assertTrue(any("Choose a new password" in alt[0] for alt in email.alternatives))

	def test_request_password_reset_by_phone(self):
		response = self.client.post(reverse("accounts:password_reset"), {"identifier": "0123456789"})
		self.assertRedirects(response, reverse("accounts:password_reset_done"))
		self.assertEqual(len(mail.outbox), 1)

	def test_request_password_reset_is_silent_for_unknown_user(self):
		response = self.client.post(
			reverse("accounts:password_reset"),
			{"identifier": "unknown@example.com"},
			follow=False,
		)
		self.assertRedirects(response, reverse("accounts:password_reset_done"))
		self.assertEqual(len(mail.outbox), 0)

	def test_password_reset_is_rate_limited(self):
		cache.set("pwd-reset-rate:127.0.0.1", PASSWORD_RESET_RATE_LIMIT, 60)
		response = self.client.post(reverse("accounts:password_reset"), {"identifier": self.user.email})
		self.assertEqual(response.status_code, 429)
		self.assertEqual(len(mail.outbox), 0)

	def test_password_reset_confirm_updates_password(self):
		uid = urlsafe_base64_encode(force_bytes(self.user.pk))
		token = default_token_generator.make_token(self.user)
		url = reverse("accounts:password_reset_confirm", kwargs={"uidb64": uid, "token": token})
		response = self.client.post(
			url,
			{"new_password1": "NewPass!234", "new_password2": "NewPass!234"},
			follow=False,
		)
		self.assertRedirects(response, reverse("accounts:password_reset_complete"))
		self.assertTrue(self.client.login(username="tester", password="NewPass!234"))

	def test_password_reset_confirm_rejects_bad_token(self):
		uid = urlsafe_base64_encode(force_bytes(self.user.pk))
		url = reverse("accounts:password_reset_confirm", kwargs={"uidb64": uid, "token": "bad-token"})
		response = self.client.get(url)
		self.assertEqual(response.status_code, 400)
		self.assertFalse(response.context["validlink"])


class LoginTests(TestCase):
	def setUp(self):
		self.user = StudentFactory(username="alice", email="alice@campus.test", phone="0987654321")

	def test_login_with_username(self):
		response = self.client.post(reverse("accounts:login"), {"login": "alice", "password": "password123"})
		self.assertRedirects(response, reverse("common:dashboard"), fetch_redirect_response=False)

	def test_login_with_email_is_case_insensitive(self):
		response = self.client.post(
			reverse("accounts:login"), {"login": "ALICE@campus.test", "password": "password123"}
		)
		self.assertRedirects(response, reverse("common:dashboard"), fetch_redirect_response=False)

	def test_login_with_phone(self):
		response = self.client.post(reverse("accounts:login"), {"login": "0987654321", "password": "password123"})
		self.assertRedirects(response, reverse("common:dashboard"), fetch_redirect_response=False)

	def test_bad_password_returns_to_login(self):
		response = self.client.post(reverse("accounts:login"), {"login": "alice", "password": "wrong"})
		self.assertRedirects(response, reverse("accounts:login"))
		self.assertNotIn("_auth_user_id", self.client.session)

	def test_htmx_login_reports_redirect_in_trigger(self):
		response = self.client.post(
			reverse("accounts:login"),
			{"login": "alice", "password": "password123"},
			HTTP_HX_REQUEST="true",
		)
		self.assertEqual(response.status_code, 200)
		self.assertIn("show-sweet-alert", response["HX-Trigger"])
		self.assertIn(reverse("common:dashboard"), response["HX-Trigger"])

	def test_next_parameter_is_honoured_for_local_urls(self):
		response = self.client.post(
			reverse("accounts:login"),
			{"login": "alice", "password": "password123", "next": reverse("courses:list")},
		)
		self.assertRedirects(response, reverse("courses:list"), fetch_redirect_response=False)

	def test_external_next_is_ignored(self):
		response = self.client.post(
			reverse("accounts:login"),
			{"login": "alice", "password": "password123", "next": "https://evil.example.com/"},
		)
		self.assertRedirects(response, reverse("common:dashboard"), fetch_redirect_response=False)

	def test_logout_requires_post(self):
		self.client.force_login(self.user)
		self.assertEqual(self.client.get(reverse("accounts:logout")).status_code, 405)
		response = self.client.post(reverse("accounts:logout"))
		self.assertRedirects(response, reverse("common:home"), fetch_redirect_response=False)


class RoleTests(TestCase):
	def test_role_flags(self):
		self.assertEqual(
			role_flags(StudentFactory()), {"is_admin": False, "is_faculty": False, "is_student": True}
		)
		self.assertTrue(role_flags(FacultyFactory())["is_faculty"])
		self.assertTrue(role_flags(AdminFactory())["is_admin"])

	def test_superuser_counts_as_admin(self):
		user = StudentFactory(is_superuser=True)
		self.assertTrue(has_role(user, "ADMIN"))
		self.assertFalse(role_flags(user)["is_student"])

	def test_manage_accounts_is_admin_only(self):
		self.client.force_login(StudentFactory())
		self.assertEqual(self.client.get(reverse("accounts:manage_accounts")).status_code, 403)
		self.client.force_login(FacultyFactory())
		self.assertEqual(self.client.get(reverse("accounts:manage_accounts")).status_code, 403)
		self.client.force_login(AdminFactory())
		self.assertEqual(self.client.get(reverse("accounts:manage_accounts")).status_code, 200)

	def test_anonymous_users_are_sent_to_login(self):
		response = self.client.get(reverse("accounts:manage_accounts"))
		self.assertEqual(response.status_code, 302)
		self.assertIn(reverse("accounts:login"), response["Location"])


class ProfileTests(TestCase):
	def setUp(self):
		self.user = StudentFactory()
		self.client.force_login(self.user)

	def test_profile_update(self):
		response = self.client.post(
			reverse("accounts:profile"),
			{"first_name": "Ada", "last_name": "Lovelace", "email": "ada@campus.test", "phone": "", "department": "Math", "bio": ""},
		)
		self.assertRedirects(response, reverse("accounts:profile"))
		self.user.refresh_from_db()
		self.assertEqual(self.user.preferred_full_name(), "Ada Lovelace")

	def test_profile_rejects_email_of_another_account(self):
		StudentFactory(email="taken@campus.test")
		response = self.client.post(
			reverse("accounts:profile"),
			{"first_name": "A", "last_name": "B", "email": "TAKEN@campus.test", "phone": "", "department": "", "bio": ""},
			HTTP_HX_REQUEST="true",
		)
		self.assertEqual(response.status_code, 422)


class TutorApplicationTests(TestCase):
	def setUp(self):
		self.student = StudentFactory()
		self.admin = AdminFactory()

	def test_apply_then_approve(self):
		apply_for_tutor(user=self.student)
		self.assertEqual(self.student.tutor_application_status, User.TutorStatus.PENDING)

		decide_tutor_application(tutor=self.student, action="approve", decided_by=self.admin)
		self.student.refresh_from_db()
		self.assertTrue(self.student.is_tutor)
		self.assertTrue(ActivityLog.objects.filter(action="approve_tutor", user=self.admin).exists())

	def test_cannot_apply_twice_while_pending(self):
		from django.core.exceptions import ValidationError

		apply_for_tutor(user=self.student)
		with self.assertRaises(ValidationError):
			apply_for_tutor(user=self.student)

	def test_revoke_requires_active_tutor(self):
		from django.core.exceptions import ValidationError

		with self.assertRaises(ValidationError):
			decide_tutor_application(tutor=self.student, action="revoke", decided_by=self.admin)


class UserImportTests(TestCase):
	def setUp(self):
		self.client.force_login(AdminFactory())

	def test_unreadable_file_is_rejected(self):
		upload = SimpleUploadedFile("users.xlsx", b"not a workbook")
		response = self.client.post(reverse("accounts:import_users"), {"file": upload}, HTTP_HX_REQUEST="true")
		self.assertEqual(response.status_code, 422)
		self.assertIn("Import failed", response["HX-Trigger"])

	def test_missing_file_is_422(self):
		response = self.client.post(reverse("accounts:import_users"), {})
		self.assertEqual(response.status_code, 422)

	def test_template_download(self):
		response = self.client.get(reverse("accounts:import_template"))
		self.assertIn('filename="import_users_template.xlsx"', response["Content-Disposition"])


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class SignUpTests(TestCase):
	def _signup(self, **overrides):
		data = {
			"first_name": "Grace",
			"last_name": "Hopper",
			"email": "grace@example.com",
			"password1": "Campus-Hub-2025!",
			"password2": "Campus-Hub-2025!",
		}
		data.update(overrides)
		return self.client.post(reverse("accounts:signup"), data)

	def test_signup_creates_unverified_student(self):
		response = self._signup()
		self.assertRedirects(response, reverse("accounts:login"))
		user = User.objects.get(email="grace@example.com")
		self.assertEqual(user.role, User.Role.STUDENT)
		self.assertFalse(user.is_verified)
		self.assertTrue(user.check_password("Campus-Hub-2025!"))
		self.assertEqual(len(mail.outbox), 1)
		html_body, _ = mail.outbox[0].alternatives[0]
		self.assertIn("/accounts/verify-email/", html_body)
		self.assertTrue(ActivityLog.objects.filter(user=user, action="signup").exists())

	def test_verification_link_is_single_use(self):
		self._signup()
		user = User.objects.get(email="grace@example.com")
		url = reverse(
			"accounts:verify_email",
			kwargs={
				"uidb64": urlsafe_base64_encode(force_bytes(user.pk)),
				"token": email_verification_token.make_token(user),
			},
		)
		response = self.client.get(url)
		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.context["verified"])
		user.refresh_from_db()
		self.assertTrue(user.is_verified)

		self.assertEqual(self.client.get(url).status_code, 400)

	def test_bad_token_is_rejected(self):
		user = StudentFactory(is_verified=False)
		url = reverse(
			"accounts:verify_email",
			kwargs={"uidb64": urlsafe_base64_encode(force_bytes(user.pk)), "token": "bad-token"},
		)
		response = self.client.get(url)
		self.assertEqual(response.status_code, 400)
		user.refresh_from_db()
		self.assertFalse(user.is_verified)

	def test_reset_token_does_not_verify(self):
		user = StudentFactory(is_verified=False)
		url = reverse(
			"accounts:verify_email",
			kwargs={
				"uidb64": urlsafe_base64_encode(force_bytes(user.pk)),
				"token": default_token_generator.make_token(user),
			},
		)
		self.assertEqual(self.client.get(url).status_code, 400)

	def test_duplicate_email_is_rejected(self):
		StudentFactory(email="grace@example.com")
		response = self._signup(email="GRACE@example.com")
		self.assertEqual(response.status_code, 422)
		self.assertEqual(User.objects.filter(email__iexact="grace@example.com").count(), 1)

	def test_password_mismatch_is_rejected(self):
		response = self._signup(password2="Something-Else-99")
		self.assertEqual(response.status_code, 422)
		self.assertFalse(User.objects.filter(email="grace@example.com").exists())

	def test_resend_verification(self):
		user = StudentFactory(is_verified=False)
		self.client.force_login(user)
		response = self.client.post(reverse("accounts:resend_verification"))
		self.assertRedirects(response, reverse("accounts:profile"), fetch_redirect_response=False)
		self.assertEqual(len(mail.outbox), 1)
		self.assertEqual(mail.outbox[0].to, [user.email])


class UserManagementTests(TestCase):
	def setUp(self):
		self.admin = AdminFactory()
		self.client.force_login(self.admin)

	def test_create_form_renders(self):
		response = self.client.get(reverse("accounts:user_create"), HTTP_HX_REQUEST="true")
		self.assertTemplateUsed(response, "_user_form.html")

	def test_create_user(self):
		response = self.client.post(
			reverse("accounts:user_create"),
			{
				"first_name": "Ada",
				"last_name": "Lovelace",
				"email": "ada@example.com",
				"phone": "",
				"role": User.Role.FACULTY,
				"department": "Mathematics",
				"is_active": "on",
				"password1": "Analytical-Engine-1843",
				"password2": "Analytical-Engine-1843",
			},
			HTTP_HX_REQUEST="true",
		)
		self.assertEqual(response.status_code, 200)
		trigger = json.loads(response["HX-Trigger"])
		self.assertTrue(trigger["reload-accounts-table"])
		self.assertTrue(trigger["closeUserModal"])
		user = User.objects.get(email="ada@example.com")
		self.assertEqual(user.username, "ada-lovelace")
		self.assertEqual(user.role, User.Role.FACULTY)
		self.assertEqual(user.department, "Mathematics")
		self.assertTrue(user.is_verified)
		self.assertFalse(user.is_staff)
		self.assertTrue(user.check_password("Analytical-Engine-1843"))
		self.assertTrue(ActivityLog.objects.filter(user=self.admin, action="create_user").exists())

	def test_create_with_mismatched_passwords_is_422(self):
		response = self.client.post(
			reverse("accounts:user_create"),
			{
				"first_name": "Ada",
				"email": "ada@example.com",
				"role": User.Role.STUDENT,
				"password1": "one-password",
				"password2": "another-password",
			},
			HTTP_HX_REQUEST="true",
		)
		self.assertEqual(response.status_code, 422)
		self.assertIn("Could not create account", response["HX-Trigger"])
		self.assertFalse(User.objects.filter(email="ada@example.com").exists())

	def _edit_data(self, account, **overrides):
		data = {
			"first_name": account.first_name,
			"last_name": account.last_name,
			"email": account.email,
			"phone": account.phone,
			"role": account.role,
			"department": account.department,
			"is_active": "on",
			"is_verified": "on",
			"password": "",
		}
		data.update(overrides)
		return data

	def test_edit_user_keeps_password_when_blank(self):
		student = StudentFactory()
		response = self.client.post(
			reverse("accounts:user_edit", args=[student.pk]),
			self._edit_data(student, role=User.Role.FACULTY, department="Physics"),
			HTTP_HX_REQUEST="true",
		)
		self.assertEqual(response.status_code, 200)
		self.assertIn("reload-accounts-table", response["HX-Trigger"])
		student.refresh_from_db()
		self.assertEqual(student.role, User.Role.FACULTY)
		self.assertEqual(student.department, "Physics")
		self.assertTrue(student.is_verified)
		self.assertTrue(student.check_password("password123"))

	def test_edit_user_sets_new_password(self):
		student = StudentFactory()
		self.client.post(
			reverse("accounts:user_edit", args=[student.pk]),
			self._edit_data(student, password="Fresh-Password-77"),
			HTTP_HX_REQUEST="true",
		)
		student.refresh_from_db()
		self.assertTrue(student.check_password("Fresh-Password-77"))

	def test_admin_cannot_demote_themselves(self):
		response = self.client.post(
			reverse("accounts:user_edit", args=[self.admin.pk]),
			self._edit_data(self.admin, role=User.Role.STUDENT),
			HTTP_HX_REQUEST="true",
		)
		self.assertEqual(response.status_code, 422)
		self.admin.refresh_from_db()
		self.assertEqual(self.admin.role, User.Role.ADMIN)

	def test_students_cannot_manage_users(self):
		self.client.force_login(StudentFactory())
		self.assertEqual(self.client.get(reverse("accounts:user_create")).status_code, 403)
		self.assertEqual(self.client.get(reverse("accounts:user_edit", args=[self.admin.pk])).status_code, 403)
