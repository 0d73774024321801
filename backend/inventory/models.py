from django.conf import settings
from django.db import models, transaction
from decimal import Decimal
from backend.catalog.models import Item


class InsufficientStock(Exception):
    pass


class InventoryItem(models.Model):
    """Stock levels and reorder thresholds for an item"""
    item = models.OneToOneField(Item, on_delete=models.CASCADE, related_name='inventory')
    current_stock = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0.000'))
    minimum_stock = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0.000'))
    maximum_stock = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    reorder_point = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0.000'))
    pack_size = models.PositiveIntegerField(default=1)
    minimum_order_quantity = models.PositiveIntegerField(default=1)
    last_stock_take = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.item.name}: {self.current_stock}"

    @property
    def is_low_stock(self):
        return self.current_stock <= self.reorder_point

    def move_stock(self, movement_type, quantity, reason='', notes='', user=None):
        """
        Apply a stock movement and record it.

        IN adds, OUT subtracts, ADJUSTMENT sets the absolute level (stock take).
        Raises InsufficientStock if the result would be negative.
        """
        quantity = Decimal(str(quantity))
        with transaction.atomic():
            locked = InventoryItem.objects.select_for_update().get(pk=self.pk)
            previous = locked.current_stock

            if movement_type == StockMovement.IN:
                new_stock = previous + quantity
            elif movement_type == StockMovement.OUT:
                new_stock = previous - quantity
            elif movement_type == StockMovement.ADJUSTMENT:
                new_stock = quantity
            else:
                raise ValueError(f"Unknown movement type: {movement_type}")

            if new_stock < 0:
                raise InsufficientStock(
                    f"Insufficient stock for {self.item.name}: have {previous}, movement would leave {new_stock}"
                )

            locked.current_stock = new_stock
            update_fields = ['current_stock', 'updated_at']
            if movement_type == StockMovement.ADJUSTMENT:
                from django.utils import timezone
                locked.last_stock_take = timezone.now()
                update_fields.append('last_stock_take')
            locked.save(update_fields=update_fields)

            movement = StockMovement.objects.create(
                inventory_item=locked,
                movement_type=movement_type,
                quantity=abs(new_stock - previous),
                previous_stock=previous,
                new_stock=new_stock,
                reason=reason or '',
                notes=notes or '',
                created_by=user if user is not None and user.is_authenticated else None,
            )

        self.current_stock = locked.current_stock
        self.last_stock_take = locked.last_stock_take
        return movement

    class Meta:
        db_table = 'inventory_items'


class StockMovement(models.Model):
    """Every change to an item's stock level"""
    IN = 'IN'
    OUT = 'OUT'
    ADJUSTMENT = 'ADJUSTMENT'
    MOVEMENT_TYPE_CHOICES = [
        (IN, 'Stock In'),
        (OUT, 'Stock Out'),
        (ADJUSTMENT, 'Stock Take Adjustment'),
    ]

    inventory_item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity = models.DecimalField(max_digits=10, decimal_places=3)
    previous_stock = models.DecimalField(max_digits=10, decimal_places=3)
    new_stock = models.DecimalField(max_digits=10, decimal_places=3)
    reason = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='stock_movements')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.movement_type} {self.quantity} ({self.inventory_item.item.name})"

    class Meta:
        db_table = 'stock_movements'
        ordering = ['-created_at']
