import django_filters
from django.db.models import Q
from django.utils import timezone

from apps.courses.models import Course

from .models import Assignment


class AssignmentFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_search", label="Search")
    course = django_filters.ModelChoiceFilter(queryset=Course.objects.none(), label="Course")
    when = django_filters.ChoiceFilter(
        method="filter_when",
        label="Due",
        choices=(("upcoming", "Upcoming"), ("past", "Past due")),
        empty_label="All",
    )

    class Meta:
        model = Assignment
        fields = []

    def __init__(self, *args, courses=None, **kwargs):
        super().__init__(*args, **kwargs)
        if courses is not None:
            self.filters["course"].queryset = courses.order_by("code")

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(Q(title__icontains=value) | Q(description__icontains=value))

    def filter_when(self, queryset, name, value):
        now = timezone.now()
        if value == "upcoming":
            return queryset.filter(due_date__gte=now)
        if value == "past":
            return queryset.filter(due_date__lt=now)
        return queryset
