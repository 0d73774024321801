import django_filters
from datetime import timedelta
from django.db.models import Q
from django.utils import timezone
from .models import Item, Vendor
from .serializers import PRICE_CHANGE_WINDOW_DAYS

TRUE_VALUES = ('true', '1', 'yes')


class ItemFilter(django_filters.FilterSet):
    """Filters for the item list"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    name = django_filters.CharFilter(field_name='name', lookup_expr='iexact')
    category = django_filters.CharFilter(method='filter_category', label='Category')
    subcategory = django_filters.CharFilter(field_name='subcategory', lookup_expr='iexact')
    vendor_id = django_filters.NumberFilter(field_name='vendor_id', lookup_expr='exact')
    active = django_filters.CharFilter(method='filter_active', label='Active')
    price_changed = django_filters.CharFilter(method='filter_price_changed', label='Price changed recently')

    class Meta:
        model = Item
        fields = ['search', 'name', 'category', 'subcategory', 'vendor_id', 'active', 'price_changed']

    def filter_search(self, queryset, name, value):
        """Match any of name, SKU or barcode; every word must appear in the name"""
        value = (value or '').strip()
        if not value:
            return queryset

        name_q = Q()
        for word in value.split():
            name_q &= Q(name__icontains=word)
        return queryset.filter(
            name_q | Q(sku__icontains=value) | Q(barcode__icontains=value)
        )

    def filter_category(self, queryset, name, value):
        from backend.pricing.calculator import canonical_category
        return queryset.filter(category__iexact=canonical_category(value))

    def filter_active(self, queryset, name, value):
        if value.lower() in TRUE_VALUES:
            return queryset.filter(is_active=True)
        if value.lower() in ('false', '0', 'no'):
            return queryset.filter(is_active=False)
        return queryset

    def filter_price_changed(self, queryset, name, value):
        if value.lower() not in TRUE_VALUES:
            return queryset
        since = timezone.now() - timedelta(days=PRICE_CHANGE_WINDOW_DAYS)
        return queryset.filter(price_history__changed_at__gte=since).distinct()


class VendorFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    active = django_filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Vendor
        fields = ['search', 'active']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(contact_name__icontains=value) | Q(email__icontains=value))
