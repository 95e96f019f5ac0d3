import django_filters
from django.db.models import Q
from backend.core.utils import sanitize_search_query
from .models import Medicine


class MedicineFilter(django_filters.FilterSet):
    """Filter for Medicine model using django-filter"""

    # Search across name and active ingredient
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category')
    prescription_required = django_filters.BooleanFilter(field_name='prescription_required')

    class Meta:
        model = Medicine
        fields = ['search', 'category', 'prescription_required']

    def filter_search(self, queryset, name, value):
        search = sanitize_search_query(value)
        if not search:
            return queryset
        return queryset.filter(
            Q(name__icontains=search) | Q(active_ingredient__icontains=search)
        )
