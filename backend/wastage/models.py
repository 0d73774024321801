from django.db import models
from decimal import Decimal
from backend.catalog.models import Item


class WastageRecord(models.Model):
    """Stock written off (lost, damaged, theft...) from a POS inventory adjustment export"""
    item = models.ForeignKey(Item, on_delete=models.SET_NULL, null=True, blank=True, related_name='wastage_records')
    item_name = models.CharField(max_length=255)
    variation_name = models.CharField(max_length=255, blank=True)
    sku = models.CharField(max_length=100, blank=True)
    gtin = models.CharField(max_length=100, blank=True)
    vendor_name = models.CharField(max_length=200, blank=True)
    quantity = models.DecimalField(max_digits=10, decimal_places=3)
    unit = models.CharField(max_length=20, blank=True)
    total_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    adjustment_type = models.CharField(max_length=50)
    location = models.CharField(max_length=200, blank=True)
    recorded_at = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.item_name} {self.adjustment_type} {self.quantity}{self.unit}"

    class Meta:
        db_table = 'wastage_records'
        ordering = ['-recorded_at']


class DiscountRecord(models.Model):
    """Discounted sale line from a POS sales export"""
    REGULAR = 'regular'
    REWARDS = 'rewards'
    SOURCE_CHOICES = [
        (REGULAR, 'Regular'),
        (REWARDS, 'Rewards'),
    ]

    item = models.ForeignKey(Item, on_delete=models.SET_NULL, null=True, blank=True, related_name='discount_records')
    item_name = models.CharField(max_length=255)
    variation_name = models.CharField(max_length=255, blank=True)
    sku = models.CharField(max_length=100, blank=True)
    quantity = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('1'))
    original_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2)
    final_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    discount_percent = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    discount_type = models.CharField(max_length=100, blank=True, null=True)
    discount_source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default=REGULAR)
    transaction_id = models.CharField(max_length=100, blank=True)
    recorded_at = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.item_name} -${self.discount_amount} ({self.discount_type or 'Uncategorized'})"

    class Meta:
        db_table = 'discount_records'
        ordering = ['-recorded_at']
