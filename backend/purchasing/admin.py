from django.contrib import admin
from .models import PurchaseOrder, PurchaseOrderLine


class PurchaseOrderLineInline(admin.TabularInline):
    model = PurchaseOrderLine
    extra = 1
    fields = ['item', 'item_name', 'quantity', 'unit_cost_ex_gst', 'total_cost_ex_gst', 'received_quantity']
    readonly_fields = ['total_cost_ex_gst']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'vendor', 'status', 'order_date', 'get_total', 'created_by', 'approved_by']
    list_filter = ['status', 'vendor', 'order_date']
    search_fields = ['order_number', 'vendor__name', 'notes']
    ordering = ['-created_at']
    inlines = [PurchaseOrderLineInline]
    readonly_fields = ['order_number', 'subtotal_ex_gst', 'gst_amount', 'total_inc_gst',
                       'approved_at', 'created_at', 'updated_at']

    def get_total(self, obj):
        return f"${obj.total_inc_gst:.2f}"
    get_total.short_description = 'Total (inc GST)'
