import django_filters
from django.contrib.auth import get_user_model
from django.db.models import Q

User = get_user_model()


class UserFilter(django_filters.FilterSet):
    STATUS_CHOICES = (
        ("", "All statuses"),
        ("active", "Active"),
        ("inactive", "Inactive"),
    )

    q = django_filters.CharFilter(method="filter_search", label="Search")
    role = django_filters.ChoiceFilter(choices=User.Role.choices, label="Role")
    department = django_filters.CharFilter(lookup_expr="icontains", label="Department")
    status = django_filters.ChoiceFilter(
        choices=STATUS_CHOICES, method="filter_status", label="Status"
    )
    date_joined_from = django_filters.DateFilter(
        field_name="date_joined", lookup_expr="date__gte", label="Joined from"
    )
    date_joined_to = django_filters.DateFilter(
        field_name="date_joined", lookup_expr="date__lte", label="Joined to"
    )

    class Meta:
        model = User
        fields = []

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(username__icontains=value)
            | Q(first_name__icontains=value)
            | Q(last_name__icontains=value)
            | Q(email__icontains=value)
            | Q(phone__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        if value == "active":
            return queryset.filter(is_active=True)
        if value == "inactive":
            return queryset.filter(is_active=False)
        return queryset


class TutorFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_search", label="Search")
    tutor_application_status = django_filters.ChoiceFilter(
        choices=[c for c in User.TutorStatus.choices if c[0]], label="Application status"
    )

    class Meta:
        model = User
        fields = []

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(first_name__icontains=value)
            | Q(last_name__icontains=value)
            | Q(email__icontains=value)
            | Q(department__icontains=value)
        )
