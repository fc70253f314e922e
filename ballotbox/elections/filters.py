import django_filters

from .models import Candidate


class CandidateFilter(django_filters.FilterSet):
    """Narrow the admin candidate roster by party or by a name fragment."""

    party = django_filters.CharFilter(field_name="party", lookup_expr="iexact")
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")

    class Meta:
        model = Candidate
        fields = ["party", "name"]
