from django.urls import path
from . import views

app_name = "accounts"
urlpatterns = [
    # Sign in / sign out
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),
    # Registration
    path("signup/", views.signup_view, name="signup"),
    path("verify-email/<uidb64>/<token>/", views.verify_email_view, name="verify_email"),
    path("verify-email/resend/", views.resend_verification_view, name="resend_verification"),
    # Password reset
    path("password-reset/", views.password_reset_request_view, name="password_reset"),
    path("password-reset/done/", views.password_reset_done_view, name="password_reset_done"),
    path(
        "password-reset/<uidb64>/<token>/",
        views.password_reset_confirm_view,
        name="password_reset_confirm",
    ),
    path(
        "password-reset/complete/",
        views.password_reset_complete_view,
        name="password_reset_complete",
    ),
    # Profile
    path("profile/", views.profile_view, name="profile"),
    path("profile/edit/", views.profile_edit_view, name="profile_edit"),
    path("profile/change-password/", views.change_password_view, name="change_password"),
    path("profile/tutor-apply/", views.tutor_apply_view, name="tutor_apply"),
    # User management
    path("manage/", views.manage_accounts, name="manage_accounts"),
    path("manage/create/", views.user_create_view, name="user_create"),
    path("manage/<int:user_id>/edit/", views.user_edit_view, name="user_edit"),
    path("export/", views.export_users_view, name="export_users"),
    path("import/", views.import_users_view, name="import_users"),
    path("import/template/", views.export_import_template_view, name="import_template"),
    # Tutors
    path("tutors/", views.manage_tutors, name="manage_tutors"),
    path("tutors/<int:user_id>/decision/", views.tutor_decision_view, name="tutor_decision"),
]
