from django.contrib import admin
from .models import WastageRecord, DiscountRecord


@admin.register(WastageRecord)
class WastageRecordAdmin(admin.ModelAdmin):
    list_display = ['item_name', 'variation_name', 'adjustment_type', 'quantity', 'unit', 'total_cost', 'recorded_at']
    list_filter = ['adjustment_type', 'location']
    search_fields = ['item_name', 'sku', 'gtin']
    date_hierarchy = 'recorded_at'


@admin.register(DiscountRecord)
class DiscountRecordAdmin(admin.ModelAdmin):
    list_display = ['item_name', 'discount_type', 'discount_source', 'discount_amount', 'discount_percent', 'recorded_at']
    list_filter = ['discount_source', 'discount_type']
    search_fields = ['item_name', 'sku', 'transaction_id']
    date_hierarchy = 'recorded_at'
