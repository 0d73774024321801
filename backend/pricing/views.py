from decimal import Decimal
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from backend.core.api_utils import success_response, error_response, validation_error
from backend.core.utils import set_setting
from .calculator import (
    calculate_shelf_price, calculate_pricing, detect_pack_size, validate_pricing,
    get_category_markup, get_all_category_markups, canonical_category, to_decimal,
    CATEGORY_SETTING_KEYS,
)
from .serializers import PriceCalculationSerializer, PackSizeSerializer


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def price_calculate(request):
    """Markup calculator: cost + markup (or category) -> shelf price"""
    serializer = PriceCalculationSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)

    data = serializer.validated_data
    markup = data.get('markup')
    category = canonical_category(data.get('category'))
    if markup is None:
        markup = get_category_markup(category)

    result = calculate_shelf_price(data['cost'], markup, has_gst=data['has_gst'])
    result['category'] = category or None
    if data['pack_size'] > 1:
        result['pack_pricing'] = calculate_pricing(data['cost'], markup, pack_size=data['pack_size'])
    result['warnings'] = validate_pricing(
        result['cost_ex_gst'], markup, result['sell_ex_gst'], result['sell_inc_gst'], result['gst_amount']
    )
    return success_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pack_size_detect(request):
    serializer = PackSizeSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)
    pack_size = detect_pack_size(serializer.validated_data['name'], serializer.validated_data['unit_description'])
    return success_response({'pack_size': pack_size})


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def category_markups(request):
    """
    GET: effective markup for every category.
    PUT: {"Bulk": 1.8, "House": "1.7"} stores overrides.
    """
    if request.method == 'GET':
        return success_response(get_all_category_markups())

    if not isinstance(request.data, dict) or not request.data:
        return error_response('VALIDATION_ERROR', 'Provide a mapping of category to markup')

    updates = {}
    errors = {}
    for category, raw in request.data.items():
        name = canonical_category(category)
        key = CATEGORY_SETTING_KEYS.get(name)
        value = to_decimal(raw)
        if not key:
            errors[category] = 'Unknown category'
        elif value is None or value <= Decimal('0'):
            errors[category] = 'Markup must be a positive number'
        else:
            updates[key] = (name, value)

    if errors:
        return validation_error(errors, message='Invalid markup values')

    for key, (name, value) in updates.items():
        set_setting(key, value, description=f'Default markup for {name}')

    return success_response(get_all_category_markups(), message=f'Updated {len(updates)} markups')
