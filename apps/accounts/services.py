import logging
from zipfile import BadZipFile

from django.conf import settings
from django.contrib.auth.tokens import PasswordResetTokenGenerator, default_token_generator
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.template.loader import render_to_string
from django.urls import reverse
from django.utils.encoding import force_bytes
from django.utils.html import strip_tags
from django.utils.text import slugify
from django.utils.http import urlsafe_base64_encode
from tablib import Dataset
from tablib.exceptions import TablibException

from apps.activity_logs.services import client_ip, log_activity

from .models import User
from .resources import UserResource

logger = logging.getLogger(__name__)

PASSWORD_RESET_RATE_LIMIT = getattr(settings, "PASSWORD_RESET_RATE_LIMIT", 5)
PASSWORD_RESET_RATE_WINDOW = getattr(settings, "PASSWORD_RESET_RATE_WINDOW", 300)


def build_password_reset_link(user, request) -> str:
    uidb64 = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    path = reverse(
        "accounts:password_reset_confirm",
        kwargs={"uidb64": uidb64, "token": token},
    )
    return request.build_absolute_uri(path)


def _send_account_email(user, template_prefix: str, context: dict) -> None:
    context = {
        "user": user,
        "site_name": getattr(settings, "SITE_NAME", "Campus Hub"),
        "support_email": getattr(settings, "SUPPORT_EMAIL", settings.DEFAULT_FROM_EMAIL),
        **context,
    }
    subject = render_to_string(f"emails/{template_prefix}_subject.txt", context).strip()
    html_body = render_to_string(f"emails/{template_prefix}_body.html", context)

    message = EmailMultiAlternatives(
        subject=subject,
        body=strip_tags(html_body),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[user.preferred_email()],
    )
    message.attach_alternative(html_body, "text/html")
    message.send(fail_silently=False)


def send_password_reset_email(user, request) -> bool:
    if not user.preferred_email():
        return False
    timeout = getattr(settings, "PASSWORD_RESET_TIMEOUT", 3600)
    _send_account_email(
        user,
        "password_reset",
        {
            "reset_link": build_password_reset_link(user, request),
            "timeout_hours": max(round(timeout / 3600), 1),
        },
    )
    logger.info("Password reset email sent to user_id=%s", user.pk)
    return True


class EmailVerificationTokenGenerator(PasswordResetTokenGenerator):
    """Like the reset token, but spent once the account is verified."""

    key_salt = "apps.accounts.services.EmailVerificationTokenGenerator"

    def _make_hash_value(self, user, timestamp):
        return f"{user.pk}{user.email}{user.is_verified}{timestamp}"


email_verification_token = EmailVerificationTokenGenerator()


def build_verification_link(user, request) -> str:
    uidb64 = urlsafe_base64_encode(force_bytes(user.pk))
    path = reverse(
        "accounts:verify_email",
        kwargs={"uidb64": uidb64, "token": email_verification_token.make_token(user)},
    )
    return request.build_absolute_uri(path)


def send_verification_email(user, request) -> bool:
    if user.is_verified or not user.preferred_email():
        return False
    _send_account_email(user, "verify_email", {"verify_link": build_verification_link(user, request)})
    logger.info("Verification email sent to user_id=%s", user.pk)
    return True


def unique_username(*parts) -> str:
    """Slug of the given parts, numbered until no account uses it."""
    base = slugify(" ".join(p for p in parts if p))[:140] or "user"
    username = base
    i = 1
    while User.objects.filter(username=username).exists():
        i += 1
        username = f"{base}{i}"
    return username


@transaction.atomic
def register_student(*, first_name, last_name, email, password, request=None) -> User:
    user = User(
        username=unique_username(email.split("@")[0]),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email.strip(),
        role=User.Role.STUDENT,
        is_verified=False,
    )
    user.set_password(password)
    user.save()
    log_activity("signup", user=user, request=request)
    return user


def verify_email(*, user: User, request=None) -> bool:
    """Mark the account verified; False when it already was."""
    if user.is_verified:
        return False
    user.is_verified = True
    user.save(update_fields=["is_verified"])
    log_activity("verify_email", user=user, request=request)
    return True


@transaction.atomic
def apply_for_tutor(*, user: User, request=None) -> User:
    if not user.is_student:
        raise ValidationError("Only students can apply to become tutors.")
    if user.is_tutor:
        raise ValidationError("You are already an approved tutor.")
    if user.tutor_application_status == User.TutorStatus.PENDING:
        raise ValidationError("Your tutor application is already pending review.")

    user.tutor_application_status = User.TutorStatus.PENDING
    user.save(update_fields=["tutor_application_status"])
    log_activity("apply_tutor", user=user, request=request)
    return user


@transaction.atomic
def decide_tutor_application(*, tutor: User, action: str, decided_by: User, request=None) -> User:
    """Approve, reject or revoke a tutor; returns the updated user."""
    if action == "approve":
        tutor.is_tutor = True
        tutor.tutor_application_status = User.TutorStatus.APPROVED
    elif action == "reject":
        tutor.is_tutor = False
        tutor.tutor_application_status = User.TutorStatus.REJECTED
    elif action == "revoke":
        if not tutor.is_tutor:
            raise ValidationError("This user is not an active tutor.")
        tutor.is_tutor = False
        tutor.tutor_application_status = User.TutorStatus.REJECTED
    else:
        raise ValidationError(f"Unknown tutor action: {action}")

    tutor.save(update_fields=["is_tutor", "tutor_application_status"])
    log_activity(
        f"{action}_tutor",
        user=decided_by,
        request=request,
        details={"tutor_id": tutor.pk},
    )
    logger.info("Tutor %s by user_id=%s for tutor_id=%s", action, decided_by.pk, tutor.pk)
    return tutor


# Reset requests per client IP within a sliding cache window
def _reset_rate_key(request) -> str:
    return f"pwd-reset-rate:{client_ip(request)}"


def password_reset_rate_limited(request) -> bool:
    return cache.get(_reset_rate_key(request), 0) >= PASSWORD_RESET_RATE_LIMIT


def record_password_reset_attempt(request) -> int:
    key = _reset_rate_key(request)
    attempts = cache.get(key, 0) + 1
    cache.set(key, attempts, PASSWORD_RESET_RATE_WINDOW)
    return attempts


def read_user_dataset(upload) -> Dataset:
    """Load an uploaded .csv or .xlsx file; raises ValidationError when unreadable."""
    dataset = Dataset()
    raw = upload.read()
    try:
        if upload.name.lower().endswith(".csv"):
            try:
                text = raw.decode("utf-8-sig")
            except UnicodeDecodeError:
                text = raw.decode("cp1252")
            dataset.load(text, format="csv")
        else:
            dataset.load(raw, format="xlsx")
    except (UnicodeDecodeError, BadZipFile, TablibException, ValueError) as exc:
        logger.warning("User import could not be read: %s", exc)
        raise ValidationError("Could not read the file. Please upload a valid .xlsx or .csv file.") from exc
    return dataset


def import_users(dataset: Dataset, *, request=None) -> list[str]:
    """Dry run first; commit only when every row is clean. Returns row errors."""
    resource = UserResource()
    result = resource.import_data(dataset, dry_run=True, raise_errors=False)
    if not result.has_errors() and not result.has_validation_errors():
        resource.import_data(dataset, dry_run=False)
        log_activity("import_users", request=request, details={"rows": len(dataset)})
        return []

    errors = [f"Row {row.number}: {row.error_dict}" for row in result.invalid_rows]
    for row_number, row_errors in result.row_errors():
        texts = []
        for error in row_errors:
            texts.extend(getattr(error.error, "messages", None) or [str(error.error)])
        errors.append(f"Row {row_number}: {', '.join(texts)}")
    return errors
