from django.db import transaction
from django.utils import timezone
from rest_framework import serializers
from backend.catalog.models import Vendor, Item
from .models import PurchaseOrder, PurchaseOrderLine


class PurchaseOrderLineSerializer(serializers.ModelSerializer):
    item_id = serializers.IntegerField(source='item.id', read_only=True, default=None)
    sku = serializers.CharField(source='item.sku', read_only=True, default=None)

    class Meta:
        model = PurchaseOrderLine
        fields = ['id', 'item_id', 'item_name', 'sku', 'quantity', 'unit_cost_ex_gst',
                  'total_cost_ex_gst', 'received_quantity']


class PurchaseOrderLineInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField(required=False, allow_null=True)
    item_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=10, decimal_places=3)
    unit_cost_ex_gst = serializers.DecimalField(max_digits=10, decimal_places=4, required=False, allow_null=True)

    def validate(self, attrs):
        if attrs['quantity'] <= 0:
            raise serializers.ValidationError({'quantity': 'Quantity must be greater than zero'})

        item = None
        if attrs.get('item_id'):
            item = Item.objects.filter(pk=attrs['item_id']).first()
            if item is None:
                raise serializers.ValidationError({'item_id': f"Item {attrs['item_id']} does not exist"})
        elif not (attrs.get('item_name') or '').strip():
            raise serializers.ValidationError('Each line needs an item_id or an item_name')

        if attrs.get('unit_cost_ex_gst') is None:
            if item is None:
                raise serializers.ValidationError({'unit_cost_ex_gst': 'Unit cost is required for lines without an item'})
            attrs['unit_cost_ex_gst'] = item.current_cost_ex_gst
        elif attrs['unit_cost_ex_gst'] < 0:
            raise serializers.ValidationError({'unit_cost_ex_gst': 'Cannot be negative'})

        attrs['item'] = item
        attrs['item_name'] = (attrs.get('item_name') or '').strip() or item.name
        return attrs


class PurchaseOrderSerializer(serializers.ModelSerializer):
    vendor_id = serializers.PrimaryKeyRelatedField(source='vendor', queryset=Vendor.objects.all())
    vendor_name = serializers.CharField(source='vendor.name', read_only=True)
    lines = PurchaseOrderLineSerializer(many=True, read_only=True)
    line_count = serializers.SerializerMethodField()
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)
    approved_by_name = serializers.CharField(source='approved_by.username', read_only=True, default=None)
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    order_date = serializers.DateField(required=False)

    class Meta:
        model = PurchaseOrder
        fields = ['id', 'order_number', 'vendor_id', 'vendor_name', 'status', 'order_date',
                  'expected_delivery_date', 'subtotal_ex_gst', 'gst_amount', 'shipping_cost',
                  'total_inc_gst', 'notes', 'lines', 'line_count', 'created_by_name',
                  'approved_by_name', 'approved_at', 'created_at', 'updated_at']
        read_only_fields = ['order_number', 'subtotal_ex_gst', 'gst_amount', 'total_inc_gst',
                            'approved_at', 'created_at', 'updated_at']

    def get_line_count(self, obj):
        return len(obj.lines.all())

    def validate_status(self, value):
        # Approval and receiving have their own endpoints
        if self.instance is None and value not in (PurchaseOrder.DRAFT, PurchaseOrder.PENDING_APPROVAL):
            raise serializers.ValidationError('New orders must be DRAFT or PENDING_APPROVAL')
        return value

    def validate(self, attrs):
        self._lines = self._validated_lines()
        return attrs

    def _validated_lines(self):
        lines_data = self.context.get('lines_data')
        if lines_data is None:
            return None
        if not isinstance(lines_data, list):
            raise serializers.ValidationError({'lines': 'Expected a list of lines'})
        line_serializer = PurchaseOrderLineInputSerializer(data=lines_data, many=True)
        if not line_serializer.is_valid():
            raise serializers.ValidationError({'lines': line_serializer.errors})
        return line_serializer.validated_data

    def _write_lines(self, order, lines):
        order.lines.all().delete()
        for line in lines:
            PurchaseOrderLine.objects.create(
                order=order,
                item=line['item'],
                item_name=line['item_name'],
                quantity=line['quantity'],
                unit_cost_ex_gst=line['unit_cost_ex_gst'],
            )

    def create(self, validated_data):
        lines = self._lines or []
        shipping_cost = validated_data.pop('shipping_cost', None)
        validated_data.setdefault('order_date', timezone.localdate())

        with transaction.atomic():
            validated_data['order_number'] = PurchaseOrder.next_order_number()
            order = PurchaseOrder.objects.create(**validated_data)
            self._write_lines(order, lines)
            order.recalculate_totals(shipping_cost=shipping_cost)
        return order

    def update(self, instance, validated_data):
        lines = self._lines
        shipping_cost = validated_data.pop('shipping_cost', None)
        vendor_changed = 'vendor' in validated_data and validated_data['vendor'] != instance.vendor

        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.save()

            if lines is not None:
                self._write_lines(instance, lines)
            if lines is not None or shipping_cost is not None or vendor_changed:
                instance.recalculate_totals(shipping_cost=shipping_cost)
        return instance


class ReceiveLineSerializer(serializers.Serializer):
    line_id = serializers.IntegerField()
    received_quantity = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=0)
