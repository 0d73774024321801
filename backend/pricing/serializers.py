from rest_framework import serializers


class PriceCalculationSerializer(serializers.Serializer):
    cost = serializers.DecimalField(max_digits=10, decimal_places=4, min_value=0)
    markup = serializers.DecimalField(max_digits=6, decimal_places=4, required=False, allow_null=True)
    category = serializers.CharField(required=False, allow_blank=True)
    has_gst = serializers.BooleanField(required=False, default=True)
    pack_size = serializers.IntegerField(required=False, min_value=1, default=1)

    def validate_cost(self, value):
        if value <= 0:
            raise serializers.ValidationError('Cost must be greater than zero')
        return value

    def validate_markup(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError('Markup must be greater than zero')
        return value


class PackSizeSerializer(serializers.Serializer):
    name = serializers.CharField()
    unit_description = serializers.CharField(required=False, allow_blank=True, default='')
