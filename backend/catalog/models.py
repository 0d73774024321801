from django.conf import settings
from django.db import models
from decimal import Decimal


class Vendor(models.Model):
    """Supplier of stocked items"""
    name = models.CharField(max_length=200, unique=True)
    contact_name = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'vendors'
        ordering = ['name']


class VendorOrderSettings(models.Model):
    """How and when a vendor is ordered from"""
    FREQUENCY_CHOICES = [
        ('weekly', 'Weekly'),
        ('fortnightly', 'Fortnightly'),
        ('monthly', 'Monthly'),
    ]

    vendor = models.OneToOneField(Vendor, on_delete=models.CASCADE, related_name='order_settings')
    order_frequency = models.CharField(max_length=20, choices=FREQUENCY_CHOICES, default='weekly')
    order_day = models.CharField(max_length=20, blank=True)
    minimum_order_value = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    free_shipping_threshold = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    shipping_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    lead_time_days = models.PositiveIntegerField(default=7)
    contact_email = models.EmailField(blank=True)
    contact_name = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Order settings for {self.vendor.name}"

    def shipping_for(self, subtotal):
        """Shipping charged on an order of this subtotal"""
        if self.free_shipping_threshold is not None and subtotal >= self.free_shipping_threshold:
            return Decimal('0.00')
        return self.shipping_cost

    class Meta:
        db_table = 'vendor_order_settings'


class Item(models.Model):
    """Stocked item with its current cost and shelf price"""
    name = models.CharField(max_length=255, db_index=True)
    vendor = models.ForeignKey(Vendor, on_delete=models.SET_NULL, null=True, blank=True, related_name='items')
    category = models.CharField(max_length=100, db_index=True)
    subcategory = models.CharField(max_length=100, blank=True)
    display_order = models.IntegerField(default=0)
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True)
    barcode = models.CharField(max_length=100, unique=True, blank=True, null=True)
    current_cost_ex_gst = models.DecimalField(max_digits=10, decimal_places=4, default=Decimal('0'))
    current_markup = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal('1.65'))
    current_sell_ex_gst = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    current_sell_inc_gst = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    has_gst = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku or 'NO-SKU'})"

    def apply_pricing(self):
        """Recompute sell prices from cost, markup and GST status"""
        from backend.pricing.calculator import calculate_shelf_price

        pricing = calculate_shelf_price(self.current_cost_ex_gst, self.current_markup, has_gst=self.has_gst)
        self.current_sell_ex_gst = pricing['sell_ex_gst']
        self.current_sell_inc_gst = pricing['sell_inc_gst']
        return pricing

    class Meta:
        db_table = 'items'
        ordering = ['name']


class ItemPriceHistory(models.Model):
    """Snapshot of an item's pricing before and after a change"""
    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name='price_history')
    old_cost_ex_gst = models.DecimalField(max_digits=10, decimal_places=4)
    new_cost_ex_gst = models.DecimalField(max_digits=10, decimal_places=4)
    old_markup = models.DecimalField(max_digits=6, decimal_places=4)
    new_markup = models.DecimalField(max_digits=6, decimal_places=4)
    old_sell_ex_gst = models.DecimalField(max_digits=10, decimal_places=2)
    new_sell_ex_gst = models.DecimalField(max_digits=10, decimal_places=2)
    old_sell_inc_gst = models.DecimalField(max_digits=10, decimal_places=2)
    new_sell_inc_gst = models.DecimalField(max_digits=10, decimal_places=2)
    changed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    changed_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.item.name}: {self.old_sell_inc_gst} -> {self.new_sell_inc_gst}"

    class Meta:
        db_table = 'item_price_history'
        ordering = ['-changed_at']
        verbose_name_plural = 'item price history'
