from django.urls import path

from . import views
from .api import ReportSeriesView

app_name = "reports"

urlpatterns = [
    path("", views.reports_dashboard, name="dashboard"),
    path("exports/", views.export_data, name="exports"),
    path("api/<str:kind>/", ReportSeriesView.as_view(), name="api_series"),
]
