import django_filters
from django.db.models import Q

from .models import Course


class CourseFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_search", label="Search")
    credits = django_filters.NumberFilter(label="Credits")

    class Meta:
        model = Course
        fields = []

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(code__icontains=value) | Q(title__icontains=value) | Q(description__icontains=value)
        )
