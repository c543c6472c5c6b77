import django_filters
from django.db.models import Q

from .models import MealSubmission


class MealSubmissionFilter(django_filters.FilterSet):
    form = django_filters.CharFilter(field_name="form__slug")
    project = django_filters.CharFilter(method="filter_project")
    submitted_from = django_filters.IsoDateTimeFilter(field_name="submitted_at", lookup_expr="gte")
    submitted_to = django_filters.IsoDateTimeFilter(field_name="submitted_at", lookup_expr="lte")

    class Meta:
        model = MealSubmission
        fields = ["form", "project", "submitted_from", "submitted_to"]

    def filter_project(self, queryset, name, value):
        # a blank project on the submission inherits the form's project (see MealSubmission.as_raw)
        return queryset.filter(
            Q(project_name__iexact=value) | Q(project_name="", form__project_name__iexact=value)
        )
