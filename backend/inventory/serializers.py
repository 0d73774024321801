from rest_framework import serializers
from .models import InventoryItem, StockMovement


class InventoryItemSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source='item.name', read_only=True)
    sku = serializers.CharField(source='item.sku', read_only=True, default=None)
    category = serializers.CharField(source='item.category', read_only=True)
    vendor_name = serializers.CharField(source='item.vendor.name', read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryItem
        fields = ['id', 'item', 'item_name', 'sku', 'category', 'vendor_name', 'current_stock',
                  'minimum_stock', 'maximum_stock', 'reorder_point', 'pack_size',
                  'minimum_order_quantity', 'last_stock_take', 'is_low_stock', 'updated_at']
        read_only_fields = ['last_stock_take', 'updated_at']
        # Duplicate inventory for an item is reported as a 409 by the views
        extra_kwargs = {'item': {'validators': []}}

    def validate(self, attrs):
        for field in ('current_stock', 'minimum_stock', 'reorder_point'):
            if field in attrs and attrs[field] is not None and attrs[field] < 0:
                raise serializers.ValidationError({field: 'Cannot be negative'})
        maximum = attrs.get('maximum_stock', getattr(self.instance, 'maximum_stock', None))
        minimum = attrs.get('minimum_stock', getattr(self.instance, 'minimum_stock', None))
        if maximum is not None and minimum is not None and maximum < minimum:
            raise serializers.ValidationError({'maximum_stock': 'Must not be below minimum stock'})
        return attrs


class InventoryItemUpdateSerializer(InventoryItemSerializer):
    """Levels only; stock quantity changes go through adjust-stock"""

    class Meta(InventoryItemSerializer.Meta):
        read_only_fields = ['item', 'current_stock', 'last_stock_take', 'updated_at']


class StockMovementSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = ['id', 'inventory_item', 'movement_type', 'quantity', 'previous_stock', 'new_stock',
                  'reason', 'notes', 'created_by_name', 'created_at']


class StockAdjustmentSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[c[0] for c in StockMovement.MOVEMENT_TYPE_CHOICES])
    quantity = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=0)
    reason = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['type'] != StockMovement.ADJUSTMENT and attrs['quantity'] <= 0:
            raise serializers.ValidationError({'quantity': 'Quantity must be greater than zero'})
        return attrs
