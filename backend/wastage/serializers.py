from rest_framework import serializers
from .models import WastageRecord, DiscountRecord


class WastageRecordSerializer(serializers.ModelSerializer):
    item_id = serializers.IntegerField(source='item.id', read_only=True, default=None)

    class Meta:
        model = WastageRecord
        fields = ['id', 'item_id', 'item_name', 'variation_name', 'sku', 'gtin', 'vendor_name', 'quantity',
                  'unit', 'total_cost', 'adjustment_type', 'location', 'recorded_at', 'created_at']


class DiscountRecordSerializer(serializers.ModelSerializer):
    item_id = serializers.IntegerField(source='item.id', read_only=True, default=None)

    class Meta:
        model = DiscountRecord
        fields = ['id', 'item_id', 'item_name', 'variation_name', 'sku', 'quantity', 'original_price',
                  'discount_amount', 'final_price', 'discount_percent', 'discount_type', 'discount_source',
                  'transaction_id', 'recorded_at', 'created_at']
