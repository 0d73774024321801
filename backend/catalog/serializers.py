from datetime import timedelta
from django.utils import timezone
from rest_framework import serializers
from .models import Vendor, VendorOrderSettings, Item, ItemPriceHistory
from backend.core.utils import create_audit_log
from backend.pricing.calculator import get_category_markup, canonical_category

PRICE_CHANGE_WINDOW_DAYS = 30


class VendorSerializer(serializers.ModelSerializer):
    item_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Vendor
        fields = ['id', 'name', 'contact_name', 'email', 'phone', 'notes', 'is_active',
                  'item_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {'name': {'validators': []}}


class VendorOrderSettingsSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor.name', read_only=True)

    class Meta:
        model = VendorOrderSettings
        fields = ['id', 'vendor', 'vendor_name', 'order_frequency', 'order_day', 'minimum_order_value',
                  'free_shipping_threshold', 'shipping_cost', 'lead_time_days', 'contact_email',
                  'contact_name', 'notes', 'updated_at']
        read_only_fields = ['vendor', 'updated_at']


class ItemPriceHistorySerializer(serializers.ModelSerializer):
    changed_by_name = serializers.CharField(source='changed_by.username', read_only=True, default=None)

    class Meta:
        model = ItemPriceHistory
        fields = ['id', 'item', 'old_cost_ex_gst', 'new_cost_ex_gst', 'old_markup', 'new_markup',
                  'old_sell_ex_gst', 'new_sell_ex_gst', 'old_sell_inc_gst', 'new_sell_inc_gst',
                  'changed_by_name', 'changed_at']


class ItemSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source='vendor.name', read_only=True, default=None)
    current_markup = serializers.DecimalField(max_digits=6, decimal_places=4, required=False, allow_null=True)
    has_price_changed = serializers.SerializerMethodField()
    last_price_change = serializers.SerializerMethodField()

    class Meta:
        model = Item
        fields = ['id', 'name', 'vendor', 'vendor_name', 'category', 'subcategory', 'display_order',
                  'sku', 'barcode', 'current_cost_ex_gst', 'current_markup', 'current_sell_ex_gst',
                  'current_sell_inc_gst', 'has_gst', 'is_active', 'has_price_changed',
                  'last_price_change', 'created_at', 'updated_at']
        read_only_fields = ['current_sell_ex_gst', 'current_sell_inc_gst', 'created_at', 'updated_at']
        # Duplicate sku/barcode is reported as a 409 by the views
        extra_kwargs = {
            'sku': {'validators': []},
            'barcode': {'validators': []},
        }

    def get_last_price_change(self, obj):
        if hasattr(obj, 'last_price_change_at'):
            return obj.last_price_change_at
        latest = obj.price_history.first()
        return latest.changed_at if latest else None

    def get_has_price_changed(self, obj):
        last_change = self.get_last_price_change(obj)
        if not last_change:
            return False
        return last_change >= timezone.now() - timedelta(days=PRICE_CHANGE_WINDOW_DAYS)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required')
        return value

    def validate_sku(self, value):
        return value.strip() or None if value else None

    def validate_barcode(self, value):
        return value.strip() or None if value else None

    def validate_category(self, value):
        return canonical_category(value)

    def validate_current_cost_ex_gst(self, value):
        if value < 0:
            raise serializers.ValidationError('Cost cannot be negative')
        return value

    def validate_current_markup(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError('Markup must be greater than zero')
        return value

    def create(self, validated_data):
        if validated_data.get('current_markup') is None:
            validated_data['current_markup'] = get_category_markup(validated_data.get('category'))
        item = Item(**validated_data)
        item.apply_pricing()
        item.save()
        return item

    def update(self, instance, validated_data):
        if 'current_markup' in validated_data and validated_data['current_markup'] is None:
            validated_data.pop('current_markup')

        old = {
            'cost': instance.current_cost_ex_gst,
            'markup': instance.current_markup,
            'sell_ex': instance.current_sell_ex_gst,
            'sell_inc': instance.current_sell_inc_gst,
            'has_gst': instance.has_gst,
        }

        for attr, value in validated_data.items():
            setattr(instance, attr, value)

        pricing_changed = (
            instance.current_cost_ex_gst != old['cost']
            or instance.current_markup != old['markup']
            or instance.has_gst != old['has_gst']
        )
        if pricing_changed:
            instance.apply_pricing()
        instance.save()

        if instance.current_cost_ex_gst != old['cost'] or instance.current_markup != old['markup']:
            request = self.context.get('request')
            user = request.user if request and request.user.is_authenticated else None
            ItemPriceHistory.objects.create(
                item=instance,
                old_cost_ex_gst=old['cost'],
                new_cost_ex_gst=instance.current_cost_ex_gst,
                old_markup=old['markup'],
                new_markup=instance.current_markup,
                old_sell_ex_gst=old['sell_ex'],
                new_sell_ex_gst=instance.current_sell_ex_gst,
                old_sell_inc_gst=old['sell_inc'],
                new_sell_inc_gst=instance.current_sell_inc_gst,
                changed_by=user,
            )
            create_audit_log(
                request=request,
                action='price_change',
                model_name='Item',
                object_id=instance.id,
                object_name=instance.name,
                changes={
                    'cost_ex_gst': {'old': str(old['cost']), 'new': str(instance.current_cost_ex_gst)},
                    'markup': {'old': str(old['markup']), 'new': str(instance.current_markup)},
                    'sell_inc_gst': {'old': str(old['sell_inc']), 'new': str(instance.current_sell_inc_gst)},
                },
            )
        return instance


class PrintSheetItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = Item
        fields = ['id', 'name', 'sku', 'barcode', 'subcategory', 'display_order', 'current_sell_inc_gst']
