from django.urls import path

from . import views

app_name = "class_sessions"
urlpatterns = [
    path("", views.upcoming_classes_view, name="upcoming"),
    path("manage/", views.manage_class_sessions, name="manage"),
    path("create/", views.session_create_view, name="create"),
    path("<int:pk>/edit/", views.session_edit_view, name="edit"),
    path("<int:pk>/delete/", views.session_delete_view, name="delete"),
    path("<int:pk>/join/", views.join_session_view, name="join"),
]
