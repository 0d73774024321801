from django.contrib import admin
from .models import InventoryItem, StockMovement


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['item', 'current_stock', 'reorder_point', 'minimum_stock', 'pack_size', 'last_stock_take']
    search_fields = ['item__name', 'item__sku']
    list_filter = ['item__category']


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['inventory_item', 'movement_type', 'quantity', 'previous_stock', 'new_stock',
                    'reason', 'created_by', 'created_at']
    list_filter = ['movement_type']
    search_fields = ['inventory_item__item__name', 'reason']
    readonly_fields = ['created_at']
