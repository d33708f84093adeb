from django.urls import path

from . import views

app_name = "assignments"
urlpatterns = [
    path("", views.assignment_list, name="list"),
    path("create/", views.assignment_create, name="create"),
    path("grades/", views.grades_view, name="grades"),
    path("grades/export/", views.grades_export, name="grades_export"),
    path("<int:pk>/", views.assignment_detail, name="detail"),
    path("<int:pk>/edit/", views.assignment_edit, name="edit"),
    path("<int:pk>/delete/", views.assignment_delete, name="delete"),
    path("<int:pk>/submit/", views.assignment_submit, name="submit"),
    path("<int:pk>/submissions/", views.assignment_submissions, name="submissions"),
    path("submissions/<int:pk>/grade/", views.submission_grade, name="grade"),
]
