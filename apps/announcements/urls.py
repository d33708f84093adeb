from django.urls import path

from . import views

app_name = "announcements"
urlpatterns = [
    path("", views.announcement_list, name="list"),
    path("manage/", views.manage_announcements, name="manage"),
    path("create/", views.announcement_create, name="create"),
    path("<int:pk>/", views.announcement_detail, name="detail"),
    path("<int:pk>/delete/", views.announcement_delete, name="delete"),
]
