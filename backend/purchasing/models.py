from django.conf import settings
from django.db import models
from decimal import Decimal
from backend.catalog.models import Vendor, Item
from backend.pricing.calculator import GST_RATE, round_money


class PurchaseOrder(models.Model):
    """Purchase order raised against a vendor"""
    DRAFT = 'DRAFT'
    PENDING_APPROVAL = 'PENDING_APPROVAL'
    APPROVED = 'APPROVED'
    SENT = 'SENT'
    ACKNOWLEDGED = 'ACKNOWLEDGED'
    PARTIALLY_RECEIVED = 'PARTIALLY_RECEIVED'
    RECEIVED = 'RECEIVED'
    CANCELLED = 'CANCELLED'
    COMPLETED = 'COMPLETED'
    STATUS_CHOICES = [
        (DRAFT, 'Draft'),
        (PENDING_APPROVAL, 'Pending Approval'),
        (APPROVED, 'Approved'),
        (SENT, 'Sent'),
        (ACKNOWLEDGED, 'Acknowledged'),
        (PARTIALLY_RECEIVED, 'Partially Received'),
        (RECEIVED, 'Received'),
        (CANCELLED, 'Cancelled'),
        (COMPLETED, 'Completed'),
    ]
    OPEN_STATUSES = [DRAFT, PENDING_APPROVAL, APPROVED, SENT, ACKNOWLEDGED, PARTIALLY_RECEIVED]
    # Lines, vendor and shipping can only change before approval
    EDITABLE_STATUSES = [DRAFT, PENDING_APPROVAL]
    # Status changes allowed through a plain update; approve and receive have their own endpoints
    STATUS_TRANSITIONS = {
        DRAFT: {PENDING_APPROVAL, CANCELLED},
        PENDING_APPROVAL: {DRAFT, CANCELLED},
        APPROVED: {SENT, CANCELLED},
        SENT: {ACKNOWLEDGED, CANCELLED},
        ACKNOWLEDGED: {CANCELLED},
        RECEIVED: {COMPLETED},
    }

    order_number = models.CharField(max_length=20, unique=True)
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name='purchase_orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=DRAFT)
    order_date = models.DateField()
    expected_delivery_date = models.DateField(null=True, blank=True)
    subtotal_ex_gst = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    gst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shipping_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_inc_gst = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='purchase_orders_created')
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='purchase_orders_approved')
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    @staticmethod
    def next_order_number():
        """PO-000001, PO-000002, ... based on the highest existing number"""
        last = PurchaseOrder.objects.filter(order_number__startswith='PO-').order_by('-order_number').first()
        number = 1
        if last:
            try:
                number = int(last.order_number.split('-', 1)[1]) + 1
            except (ValueError, IndexError):
                number = PurchaseOrder.objects.count() + 1
        return f"PO-{number:06d}"

    def recalculate_totals(self, shipping_cost=None):
        """
        subtotal = sum of line totals, gst = 10% of subtotal,
        total = subtotal + gst + shipping.
        Shipping defaults from the vendor's order settings when not given.
        """
        subtotal = PurchaseOrderLine.objects.filter(order=self).aggregate(
            total=models.Sum('total_cost_ex_gst')
        )['total'] or Decimal('0.00')
        if shipping_cost is None:
            order_settings = getattr(self.vendor, 'order_settings', None)
            shipping_cost = order_settings.shipping_for(subtotal) if order_settings else Decimal('0.00')

        self.subtotal_ex_gst = round_money(subtotal)
        self.gst_amount = round_money(subtotal * GST_RATE)
        self.shipping_cost = round_money(shipping_cost)
        self.total_inc_gst = self.subtotal_ex_gst + self.gst_amount + self.shipping_cost
        self.save(update_fields=['subtotal_ex_gst', 'gst_amount', 'shipping_cost', 'total_inc_gst', 'updated_at'])

    @property
    def is_editable(self):
        return self.status in self.EDITABLE_STATUSES

    def can_change_status_to(self, new_status):
        return new_status == self.status or new_status in self.STATUS_TRANSITIONS.get(self.status, set())

    @property
    def is_fully_received(self):
        lines = list(self.lines.all())
        return bool(lines) and all(line.received_quantity >= line.quantity for line in lines)

    class Meta:
        db_table = 'purchase_orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_po_status'),
            models.Index(fields=['vendor', 'status'], name='idx_po_vendor_status'),
        ]


class PurchaseOrderLine(models.Model):
    """Purchase order line"""
    order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='lines')
    item = models.ForeignKey(Item, on_delete=models.SET_NULL, null=True, blank=True, related_name='po_lines')
    item_name = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=10, decimal_places=3)
    unit_cost_ex_gst = models.DecimalField(max_digits=10, decimal_places=4)
    total_cost_ex_gst = models.DecimalField(max_digits=12, decimal_places=2)
    received_quantity = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0.000'))

    def __str__(self):
        return f"{self.item_name} x {self.quantity}"

    def save(self, *args, **kwargs):
        self.total_cost_ex_gst = round_money(Decimal(self.quantity) * Decimal(self.unit_cost_ex_gst))
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'purchase_order_lines'
        ordering = ['id']
