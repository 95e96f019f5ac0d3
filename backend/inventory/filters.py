import django_filters
from backend.core.utils import sanitize_search_query
from .models import Inventory


class InventoryFilter(django_filters.FilterSet):
    """Filter a pharmacy's inventory by stock status and medicine name"""
    status = django_filters.ChoiceFilter(choices=Inventory.STATUS_CHOICES)
    search = django_filters.CharFilter(method='filter_search', label='Medicine name')

    class Meta:
        model = Inventory
        fields = ['status', 'search']

    def filter_search(self, queryset, name, value):
        search = sanitize_search_query(value)
        if not search:
            return queryset
        return queryset.filter(medicine__name__icontains=search)
