from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.permissions import IsAdminRole
from apps.courses.models import Course

from .serializers import ChartSeriesSerializer
from .services import KINDS, RANGES, build_series


class ReportSeriesView(APIView):
    """
    GET /reports/api/<kind>/?range=week|month|semester&course=<id>
    kind: attendance | enrollment | activity
    """

    permission_classes = [IsAuthenticated, IsAdminRole]

    @extend_schema(
        parameters=[
            OpenApiParameter("range", OpenApiTypes.STR, enum=list(RANGES), required=False),
            OpenApiParameter("course", OpenApiTypes.INT, required=False),
        ],
        responses=ChartSeriesSerializer,
    )
    def get(self, request, kind: str):
        if kind not in KINDS:
            return Response(
                {"detail": f"Unknown report {kind!r}. Expected one of: {', '.join(KINDS)}."},
                status=status.HTTP_404_NOT_FOUND,
            )
        course = None
        course_id = request.query_params.get("course")
        if course_id:
            if not course_id.isdigit():
                return Response({"detail": "course must be an integer id."}, status=status.HTTP_400_BAD_REQUEST)
            course = get_object_or_404(Course, pk=course_id)
        series = build_series(kind, range_key=request.query_params.get("range", "week"), course=course)
        return Response(ChartSeriesSerializer(series).data)
