from django.urls import path

from . import views

app_name = "discussions"
urlpatterns = [
    path("", views.discussion_list, name="list"),
    path("poll/", views.discussion_poll, name="poll"),
    path("new/", views.discussion_create, name="create"),
    path("<int:pk>/", views.discussion_detail, name="detail"),
    path("<int:pk>/comment/", views.discussion_comment, name="comment"),
    path("<int:pk>/upvote/", views.discussion_upvote, name="upvote"),
    path("<int:pk>/moderate/", views.discussion_moderate, name="moderate"),
    path("comments/<int:pk>/upvote/", views.comment_upvote, name="comment_upvote"),
    path("comments/<int:pk>/solution/", views.comment_mark_solution, name="solution"),
]
