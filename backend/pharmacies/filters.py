import django_filters
from django.db.models import Q
from backend.core.utils import sanitize_search_query
from .models import Pharmacy


class PharmacyFilter(django_filters.FilterSet):
    """Filter pharmacies by name/address search and approval state"""
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = Pharmacy
        fields = ['search']

    def filter_search(self, queryset, name, value):
        search = sanitize_search_query(value)
        if not search:
            return queryset
        return queryset.filter(Q(name__icontains=search) | Q(address__icontains=search))
