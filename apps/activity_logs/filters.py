import django_filters
from django.contrib.auth import get_user_model
from django.db.models import Q

from .models import ActivityLog

User = get_user_model()


class ActivityLogFilter(django_filters.FilterSet):
    action = django_filters.ChoiceFilter(label="Action", choices=())
    user = django_filters.CharFilter(method="filter_user", label="User")
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte", label="From")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte", label="To")

    class Meta:
        model = ActivityLog
        fields = []

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        actions = (
            ActivityLog.objects.order_by("action").values_list("action", flat=True).distinct()
        )
        self.filters["action"].extra["choices"] = [(a, a.replace("_", " ")) for a in actions]

    def filter_user(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(user__username__icontains=value)
            | Q(user__email__icontains=value)
            | Q(user__first_name__icontains=value)
            | Q(user__last_name__icontains=value)
        )
