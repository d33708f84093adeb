import django_filters
from django.db.models import Q

from .models import Complaint


class ComplaintFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_search", label="Search")
    status = django_filters.ChoiceFilter(choices=Complaint.Status.choices, empty_label="All statuses")
    category = django_filters.ChoiceFilter(choices=Complaint.Category.choices, empty_label="All categories")

    class Meta:
        model = Complaint
        fields = []

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(subject__icontains=value)
            | Q(description__icontains=value)
            | Q(user__username__icontains=value)
            | Q(user__email__icontains=value)
        )
