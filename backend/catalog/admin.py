from django.contrib import admin
from .models import Vendor, VendorOrderSettings, Item, ItemPriceHistory


class VendorOrderSettingsInline(admin.StackedInline):
    model = VendorOrderSettings
    can_delete = False


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_name', 'email', 'phone', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'contact_name', 'email']
    inlines = [VendorOrderSettingsInline]


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'vendor', 'category', 'sku', 'current_cost_ex_gst', 'current_markup',
                    'current_sell_inc_gst', 'is_active']
    list_filter = ['category', 'is_active', 'has_gst', 'vendor']
    search_fields = ['name', 'sku', 'barcode']
    readonly_fields = ['current_sell_ex_gst', 'current_sell_inc_gst', 'created_at', 'updated_at']

    def save_model(self, request, obj, form, change):
        obj.apply_pricing()
        super().save_model(request, obj, form, change)


@admin.register(ItemPriceHistory)
class ItemPriceHistoryAdmin(admin.ModelAdmin):
    list_display = ['item', 'old_sell_inc_gst', 'new_sell_inc_gst', 'changed_by', 'changed_at']
    search_fields = ['item__name']
    readonly_fields = ['changed_at']
