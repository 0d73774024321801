import django_filters
from django.db.models import Q
from .models import WastageRecord, DiscountRecord


class LossRecordFilter(django_filters.FilterSet):
    """Date range and free-text search shared by wastage and discount lists"""

    start_date = django_filters.DateFilter(field_name='recorded_at', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='recorded_at', lookup_expr='date__lte')
    search = django_filters.CharFilter(method='filter_search', label='Search')

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(item_name__icontains=value) | Q(variation_name__icontains=value) | Q(sku__icontains=value)
        )


class WastageFilter(LossRecordFilter):
    adjustment_type = django_filters.CharFilter(field_name='adjustment_type', lookup_expr='iexact')

    class Meta:
        model = WastageRecord
        fields = ['start_date', 'end_date', 'search', 'adjustment_type']


class DiscountFilter(LossRecordFilter):
    source = django_filters.CharFilter(field_name='discount_source')

    class Meta:
        model = DiscountRecord
        fields = ['start_date', 'end_date', 'search', 'source']
