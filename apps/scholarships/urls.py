from django.urls import path

from . import views

app_name = "scholarships"
urlpatterns = [
    path("", views.scholarship_list, name="list"),
    path("<int:pk>/apply/", views.scholarship_apply, name="apply"),
    path("applications/<int:pk>/", views.application_detail, name="application_detail"),
    path("manage/", views.manage_scholarships, name="manage"),
    path("manage/create/", views.scholarship_create, name="create"),
    path("manage/<int:pk>/edit/", views.scholarship_edit, name="edit"),
    path("manage/<int:pk>/delete/", views.scholarship_delete, name="delete"),
    path("manage/<int:pk>/applications/", views.scholarship_applications, name="applications"),
    path("manage/applications/<int:pk>/review/", views.application_review, name="review"),
]
