import logging
from datetime import timedelta

from django.conf import settings
from django.contrib import messages
from django.contrib.auth import (
    REDIRECT_FIELD_NAME,
    authenticate,
    get_user_model,
    login,
    logout,
    update_session_auth_hash,
)
from django.contrib.auth.decorators import login_required
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404, redirect, render, resolve_url
from django.template.loader import render_to_string
from django.utils.encoding import force_str
from django.utils.http import url_has_allowed_host_and_scheme, urlsafe_base64_decode
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_POST
from tablib import Dataset

from apps.activity_logs.services import log_activity
from apps.common.utils.forms import form_errors_as_text
from apps.common.utils.http import htmx_trigger, is_htmx_request, sweet_alert
from apps.common.utils.pagination import paginate, query_string_without_page

from .filters import TutorFilter, UserFilter
from .forms import (
    AdminUserCreateForm,
    AdminUserUpdateForm,
    ForgotPasswordForm,
    ImportUserForm,
    SignUpForm,
    TutorDecisionForm,
    UserPasswordChangeForm,
    UserProfileUpdateForm,
    UserSetPasswordForm,
)
from .permissions import admin_required, role_required
from .resources import UserResource
from .services import (
    apply_for_tutor,
    decide_tutor_application,
    email_verification_token,
    import_users,
    password_reset_rate_limited,
    read_user_dataset,
    record_password_reset_attempt,
    register_student,
    send_password_reset_email,
    send_verification_email,
    verify_email,
)

logger = logging.getLogger(__name__)

User = get_user_model()
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _user_from_uid(uidb64):
    try:
        uid = force_str(urlsafe_base64_decode(uidb64))
        return User.objects.get(pk=uid, is_active=True)
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        return None


def _safe_next(request):
    target = request.POST.get(REDIRECT_FIELD_NAME) or request.GET.get(REDIRECT_FIELD_NAME)
    if target and url_has_allowed_host_and_scheme(
        target, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return target
    return resolve_url(settings.LOGIN_REDIRECT_URL)


def _spreadsheet(dataset: Dataset, fmt: str, basename: str) -> HttpResponse:
    if fmt == "csv":
        response = HttpResponse(dataset.export("csv"), content_type="text/csv")
    else:
        fmt = "xlsx"
        response = HttpResponse(dataset.export("xlsx"), content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = f'attachment; filename="{basename}.{fmt}"'
    return response


# Sign in with email, username or phone
@ensure_csrf_cookie
def login_view(request):
    if request.user.is_authenticated:
        return redirect(settings.LOGIN_REDIRECT_URL)
    if request.method != "POST":
        return render(request, "login.html", {"next": request.GET.get(REDIRECT_FIELD_NAME, "")})

    login_id = request.POST.get("login", "").strip()
    password = request.POST.get("password", "")
    if not login_id:
        if is_htmx_request(request):
            return htmx_trigger(sweet_alert("error", "Please enter your email or username"), status=400)
        messages.error(request, "Please enter your email or username.")
        return redirect("accounts:login")

    account = User.objects.filter(Q(email__iexact=login_id) | Q(username=login_id) | Q(phone=login_id)).first()
    user = authenticate(request, username=account.username, password=password) if account else None
    if user is None:
        logger.info("Failed sign-in attempt for %r", login_id)
        if is_htmx_request(request):
            return htmx_trigger(sweet_alert("error", "Invalid credentials"), status=400)
        messages.error(request, "Invalid credentials.")
        return redirect("accounts:login")

    login(request, user)
    request.session.set_expiry(timedelta(days=14) if request.POST.get("remember") == "on" else 0)
    target = _safe_next(request)
    if is_htmx_request(request):
        return htmx_trigger(sweet_alert("success", "Signed in", redirect=target))
    return redirect(target)


@require_POST
def logout_view(request):
    logout(request)
    if is_htmx_request(request):
        return htmx_trigger(sweet_alert("success", "Signed out", redirect=resolve_url("accounts:login")))
    return redirect("common:home")


# Student self-registration and email verification
@ensure_csrf_cookie
def signup_view(request):
    if request.user.is_authenticated:
        return redirect(settings.LOGIN_REDIRECT_URL)
    if request.method != "POST":
        return render(request, "signup.html", {"form": SignUpForm()})

    form = SignUpForm(request.POST)
    if not form.is_valid():
        return render(request, "signup.html", {"form": form}, status=422)

    user = register_student(
        first_name=form.cleaned_data["first_name"],
        last_name=form.cleaned_data["last_name"],
        email=form.cleaned_data["email"],
        password=form.cleaned_data["password1"],
        request=request,
    )
    send_verification_email(user, request)
    messages.success(request, "Registration successful! Please check your email for a verification link.")
    return redirect("accounts:login")


def verify_email_view(request, uidb64, token):
    user = _user_from_uid(uidb64)
    if user is None or not email_verification_token.check_token(user, token):
        return render(request, "verify_email.html", {"verified": False}, status=400)
    verify_email(user=user, request=request)
    return render(request, "verify_email.html", {"verified": True})


@login_required
@require_POST
def resend_verification_view(request):
    if request.user.is_verified:
        messages.info(request, "Your email address is already verified.")
    elif send_verification_email(request.user, request):
        messages.success(request, "We sent a new verification link to your email.")
    else:
        messages.error(request, "Add an email address to your profile first.")
    return redirect("accounts:profile")


# Request a password reset link by email or phone
@ensure_csrf_cookie
def password_reset_request_view(request):
    if request.method != "POST":
        return render(request, "resetpassword/password_reset_form.html", {"form": ForgotPasswordForm()})

    if password_reset_rate_limited(request):
        alert = sweet_alert("warning", "Too many requests", "Please wait a few minutes before trying again.")
        if is_htmx_request(request):
            return htmx_trigger(alert, status=429)
        context = {"form": ForgotPasswordForm(), "rate_limited": True, "alert": alert["show-sweet-alert"]}
        return render(request, "resetpassword/password_reset_form.html", context, status=429)

    form = ForgotPasswordForm(request.POST)
    if not form.is_valid():
        return render(request, "resetpassword/password_reset_form.html", {"form": form})

    user = form.get_user()
    if user and user.preferred_email():
        send_password_reset_email(user, request)
    record_password_reset_attempt(request)
    if is_htmx_request(request):
        return htmx_trigger(
            sweet_alert("success", "Check your inbox", "If the account exists we have sent reset instructions.")
        )
    return redirect("accounts:password_reset_done")


def password_reset_done_view(request):
    return render(request, "resetpassword/password_reset_done.html")


@ensure_csrf_cookie
def password_reset_confirm_view(request, uidb64, token):
    user = _user_from_uid(uidb64)
    if user is None or not default_token_generator.check_token(user, token):
        return render(request, "resetpassword/password_reset_confirm.html", {"validlink": False}, status=400)

    if request.method == "POST":
        form = UserSetPasswordForm(user, request.POST)
        if form.is_valid():
            form.save()
            logger.info("Password reset completed for user_id=%s", user.pk)
            done_url = resolve_url("accounts:password_reset_complete")
            if is_htmx_request(request):
                return htmx_trigger(sweet_alert("success", "Password updated", redirect=done_url))
            return redirect(done_url)
        if is_htmx_request(request):
            html = render_to_string("resetpassword/_password_reset_confirm_form.html", {"form": form}, request=request)
            return htmx_trigger(
                sweet_alert("error", "Could not update password", form_errors_as_text(form)),
                status=422,
                content=html,
            )
    else:
        form = UserSetPasswordForm(user)
    return render(request, "resetpassword/password_reset_confirm.html", {"form": form, "validlink": True})


def password_reset_complete_view(request):
    return render(request, "resetpassword/password_reset_complete.html")


# User directory for admins
@admin_required
def manage_accounts(request):
    user_filter = UserFilter(request.GET, queryset=User.objects.all())
    paginator, page_obj, per_page = paginate(request, user_filter.qs.order_by("last_name", "first_name", "username"))
    context = {
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "filter": user_filter,
        "current_query_params": query_string_without_page(request),
    }
    if is_htmx_request(request):
        return render(request, "_account_table.html", context)
    return render(request, "manage_accounts.html", context)


def _user_form_invalid(request, form, context, title):
    html = render_to_string("_user_form.html", {"form": form, **context}, request=request)
    return htmx_trigger(sweet_alert("error", title, form_errors_as_text(form)), status=422, content=html)


@admin_required
def user_create_view(request):
    context = {"title": "Add user", "action": resolve_url("accounts:user_create")}
    if request.method != "POST":
        return render(request, "_user_form.html", {"form": AdminUserCreateForm(), **context})

    form = AdminUserCreateForm(request.POST)
    if not form.is_valid():
        return _user_form_invalid(request, form, context, "Could not create account")
    user = form.save()
    log_activity("create_user", request=request, details={"username": user.username, "role": user.role})
    return htmx_trigger(
        {
            **sweet_alert("success", "Account created", f"Created account {user.username}"),
            "reload-accounts-table": True,
            "closeUserModal": True,
        }
    )


@admin_required
def user_edit_view(request, user_id):
    account = get_object_or_404(User, pk=user_id)
    context = {
        "title": f"Edit {account.preferred_full_name()}",
        "action": resolve_url("accounts:user_edit", user_id=account.pk),
    }
    if request.method != "POST":
        form = AdminUserUpdateForm(instance=account, acting_user=request.user)
        return render(request, "_user_form.html", {"form": form, **context})

    form = AdminUserUpdateForm(request.POST, instance=account, acting_user=request.user)
    if not form.is_valid():
        return _user_form_invalid(request, form, context, "Could not update account")
    account = form.save()
    log_activity(
        "update_user",
        request=request,
        details={"username": account.username, "changed": sorted(form.changed_data)},
    )
    return htmx_trigger(
        {
            **sweet_alert("success", "Account updated", account.preferred_full_name()),
            "reload-accounts-table": True,
            "closeUserModal": True,
        }
    )


@admin_required
def export_users_view(request):
    user_filter = UserFilter(request.GET, queryset=User.objects.all())
    dataset = UserResource().export(user_filter.qs.order_by("id"))
    return _spreadsheet(dataset, request.GET.get("format", "xlsx"), "users")


@admin_required
def export_import_template_view(request):
    return _spreadsheet(Dataset(headers=UserResource().get_export_headers()), "xlsx", "import_users_template")


@admin_required
def import_users_view(request):
    if request.method != "POST":
        return render(request, "_import_users_form.html", {"form": ImportUserForm()})

    form = ImportUserForm(request.POST, request.FILES)
    if not form.is_valid():
        errors = [form_errors_as_text(form, "Please choose a file to import.")]
        return render(request, "_import_users_form.html", {"form": form, "errors": errors}, status=422)

    try:
        dataset = read_user_dataset(form.cleaned_data["file"])
    except ValidationError as e:
        errors = [e.message]
    else:
        errors = import_users(dataset, request=request)
        if not errors:
            logger.info("Imported %s user rows", len(dataset))
            return htmx_trigger(
                {
                    **sweet_alert("success", f"{len(dataset)} user(s) imported"),
                    "reload-accounts-table": True,
                    "closeUserModal": True,
                }
            )

    response = render(request, "_import_users_form.html", {"form": ImportUserForm(), "errors": errors}, status=422)
    return htmx_trigger(sweet_alert("error", "Import failed", "Please review the errors in the form."), response=response)


# Own profile: view and inline edit
@login_required
def profile_view(request):
    user = request.user
    if request.method == "POST":
        form = UserProfileUpdateForm(request.POST, instance=user)
        if form.is_valid():
            form.save()
            if is_htmx_request(request):
                response = render(request, "_profile_detail.html", {"user": user})
                return htmx_trigger(sweet_alert("success", "Profile updated"), response=response)
            messages.success(request, "Profile updated.")
            return redirect("accounts:profile")
        if is_htmx_request(request):
            response = render(request, "_profile_form_edit.html", {"form": form}, status=422)
            return htmx_trigger(
                sweet_alert("error", "Could not update profile", form_errors_as_text(form)), response=response
            )
        context = {"user": user, "form": form, "password_form": UserPasswordChangeForm(user=user)}
        return render(request, "profile.html", context, status=422)

    if is_htmx_request(request):
        return render(request, "_profile_detail.html", {"user": user})
    context = {
        "user": user,
        "form": UserProfileUpdateForm(instance=user),
        "password_form": UserPasswordChangeForm(user=user),
    }
    return render(request, "profile.html", context)


@login_required
def profile_edit_view(request):
    return render(request, "_profile_form_edit.html", {"form": UserProfileUpdateForm(instance=request.user)})


@login_required
@require_POST
def change_password_view(request):
    form = UserPasswordChangeForm(user=request.user, data=request.POST)
    if form.is_valid():
        user = form.save()
        update_session_auth_hash(request, user)
        if is_htmx_request(request):
            return htmx_trigger(
                {**sweet_alert("success", "Password changed"), "resetPasswordForm": True, "closePasswordModal": True}
            )
        messages.success(request, "Password changed.")
        return redirect("accounts:profile")

    response = render(request, "_password_change_form.html", {"password_form": form}, status=422)
    return htmx_trigger(sweet_alert("error", "Error", form_errors_as_text(form)), response=response)


@role_required("STUDENT")
@require_POST
def tutor_apply_view(request):
    try:
        apply_for_tutor(user=request.user, request=request)
    except ValidationError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, "Your tutor application has been submitted.")
    return redirect("accounts:profile")


# Admin review of tutor applications
@admin_required
def manage_tutors(request):
    base_qs = User.objects.filter(Q(is_tutor=True) | ~Q(tutor_application_status=User.TutorStatus.NONE))
    tutor_filter = TutorFilter(request.GET, queryset=base_qs)
    qs = tutor_filter.qs.order_by("tutor_application_status", "last_name", "first_name")
    paginator, page_obj, per_page = paginate(request, qs)
    context = {
        "page_obj": page_obj,
        "paginator": paginator,
        "per_page": per_page,
        "filter": tutor_filter,
        "current_query_params": query_string_without_page(request),
        "pending_count": base_qs.filter(tutor_application_status=User.TutorStatus.PENDING).count(),
        "active_count": base_qs.filter(is_tutor=True).count(),
    }
    if is_htmx_request(request):
        return render(request, "_tutor_table.html", context)
    return render(request, "manage_tutors.html", context)


@admin_required
@require_POST
def tutor_decision_view(request, user_id):
    tutor = get_object_or_404(User, pk=user_id)
    form = TutorDecisionForm(request.POST)
    if not form.is_valid():
        messages.error(request, form_errors_as_text(form))
        return redirect("accounts:manage_tutors")

    action = form.cleaned_data["action"]
    try:
        decide_tutor_application(tutor=tutor, action=action, decided_by=request.user, request=request)
    except ValidationError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, f"Tutor {tutor.preferred_full_name()}: {action} done.")

    if is_htmx_request(request):
        return htmx_trigger({"reload-tutors-table": True}, status=204)
    return redirect("accounts:manage_tutors")
