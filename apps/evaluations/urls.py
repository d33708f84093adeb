from django.urls import path

from . import views

app_name = "evaluations"
urlpatterns = [
    path("", views.evaluation_list, name="list"),
    path("course/<int:course_id>/", views.evaluation_submit, name="submit"),
    path("admin/", views.admin_overview, name="admin_overview"),
    path("admin/course/<int:course_id>/", views.admin_detail, name="admin_detail"),
    path("admin/course/<int:course_id>/csv/", views.admin_csv, name="admin_csv"),
]
