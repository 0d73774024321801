from django.conf import settings
from django.db import models
from decimal import Decimal


class SalesReport(models.Model):
    """An uploaded POS item-sales export"""
    filename = models.CharField(max_length=255)
    file_hash = models.CharField(max_length=64, unique=True)
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='sales_reports')
    row_count = models.PositiveIntegerField(default=0)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.filename} ({self.start_date} - {self.end_date})"

    class Meta:
        db_table = 'sales_reports'
        ordering = ['-created_at']


class SalesAggregate(models.Model):
    """Daily sales per item, one row per (date, category, item)"""
    report = models.ForeignKey(SalesReport, on_delete=models.CASCADE, related_name='aggregates')
    date = models.DateField()
    category = models.CharField(max_length=100, blank=True)
    item_name = models.CharField(max_length=255)
    revenue = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'))

    def __str__(self):
        return f"{self.date} {self.item_name}: {self.quantity} / ${self.revenue}"

    class Meta:
        db_table = 'sales_aggregates'
        ordering = ['date', 'item_name']
        indexes = [
            models.Index(fields=['date'], name='idx_sales_agg_date'),
            models.Index(fields=['category'], name='idx_sales_agg_category'),
            models.Index(fields=['item_name'], name='idx_sales_agg_item'),
        ]
