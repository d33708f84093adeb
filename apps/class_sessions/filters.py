import django_filters
from django import forms
from django.db.models import Q
from django.utils import timezone

from apps.courses.models import Course

from .models import ClassSession


class ClassSessionFilter(django_filters.FilterSet):
    WHEN_CHOICES = (
        ("", "All sessions"),
        ("upcoming", "Upcoming"),
        ("past", "Past"),
    )

    q = django_filters.CharFilter(
        method="filter_search",
        label="Title/Course",
        widget=forms.TextInput(attrs={"class": "form-control", "placeholder": "Search title or course"}),
    )
    course = django_filters.ModelChoiceFilter(
        queryset=Course.objects.none(),
        label="Course",
        widget=forms.Select(attrs={"class": "form-select tom-select"}),
    )
    when = django_filters.ChoiceFilter(choices=WHEN_CHOICES, method="filter_when", label="When")
    date_from = django_filters.DateFilter(field_name="start_time", lookup_expr="date__gte", label="From")
    date_to = django_filters.DateFilter(field_name="start_time", lookup_expr="date__lte", label="To")

    class Meta:
        model = ClassSession
        fields = []

    def __init__(self, *args, courses=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.filters["course"].queryset = courses if courses is not None else Course.objects.all()

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) | Q(course__code__icontains=value) | Q(course__title__icontains=value)
        )

    def filter_when(self, queryset, name, value):
        now = timezone.now()
        if value == "upcoming":
            return queryset.filter(end_time__gte=now)
        if value == "past":
            return queryset.filter(end_time__lt=now)
        return queryset
