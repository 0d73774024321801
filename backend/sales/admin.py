from django.contrib import admin
from .models import SalesReport, SalesAggregate


@admin.register(SalesReport)
class SalesReportAdmin(admin.ModelAdmin):
    list_display = ['filename', 'start_date', 'end_date', 'row_count', 'total_revenue', 'uploaded_by', 'created_at']
    search_fields = ['filename']
    readonly_fields = ['file_hash', 'created_at']


@admin.register(SalesAggregate)
class SalesAggregateAdmin(admin.ModelAdmin):
    list_display = ['date', 'category', 'item_name', 'quantity', 'revenue']
    list_filter = ['category']
    search_fields = ['item_name']
    date_hierarchy = 'date'
