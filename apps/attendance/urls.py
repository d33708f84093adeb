from django.urls import path

from . import views

app_name = "attendance"

urlpatterns = [
    path("", views.attendance_overview, name="overview"),
    path("me/", views.my_attendance, name="my_attendance"),
    path("sessions/<int:session_id>/", views.session_attendance, name="session"),
    path(
        "sessions/<int:session_id>/toggle/<int:student_id>/",
        views.toggle_attendance_view,
        name="toggle",
    ),
]
