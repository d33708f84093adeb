from django.contrib import admin
from django.urls import include, path
from django.conf import settings
from django.conf.urls.static import static
from drf_spectacular.views import SpectacularAPIView


urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("apps.common.urls")),
    path("accounts/", include("apps.accounts.urls")),
    path("courses/", include("apps.courses.urls")),
    path("sessions/", include("apps.class_sessions.urls")),
    path("attendance/", include("apps.attendance.urls")),
    path("assignments/", include("apps.assignments.urls")),
    path("notifications/", include("apps.notifications.urls")),
    path("announcements/", include("apps.announcements.urls")),
    path("complaints/", include("apps.complaints.urls")),
    path("scholarships/", include("apps.scholarships.urls")),
    path("discussions/", include("apps.discussions.urls")),
    path("evaluations/", include("apps.evaluations.urls")),
    path("materials/", include("apps.materials.urls")),
    path("activity-logs/", include("apps.activity_logs.urls")),
    path("reports/", include("apps.reports.urls")),
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
]
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
