from django.urls import path

from . import views

app_name = "courses"
urlpatterns = [
    path("", views.course_list, name="list"),
    path("create/", views.course_create, name="create"),
    path("<int:pk>/", views.course_detail, name="detail"),
    path("<int:pk>/edit/", views.course_edit, name="edit"),
    path("<int:pk>/delete/", views.course_delete, name="delete"),
    path("<int:pk>/enroll/", views.course_enroll, name="enroll"),
    path("<int:pk>/self-enroll/", views.course_self_enroll, name="self_enroll"),
    path("<int:pk>/unenroll/<int:user_id>/", views.course_unenroll, name="unenroll"),
    path("<int:pk>/faculty/", views.course_assign_faculty, name="assign_faculty"),
    path("<int:pk>/faculty/<int:user_id>/remove/", views.course_unassign_faculty, name="unassign_faculty"),
    path("deadlines/", views.deadline_list, name="deadlines"),
    path("deadlines/create/", views.deadline_create, name="deadline_create"),
    path("deadlines/<int:pk>/delete/", views.deadline_delete, name="deadline_delete"),
]
