import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, F
from django.shortcuts import get_object_or_404

from backend.core.api_utils import (
    success_response, error_response, validation_error, paginated_response,
)
from backend.core.utils import create_audit_log
from .models import InventoryItem, InsufficientStock
from .serializers import (
    InventoryItemSerializer, InventoryItemUpdateSerializer,
    StockMovementSerializer, StockAdjustmentSerializer,
)

logger = logging.getLogger('backend.inventory')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def inventory_list_create(request):
    """List inventory with filters or start tracking stock for an item"""
    if request.method == 'GET':
        queryset = InventoryItem.objects.select_related('item', 'item__vendor')

        vendor_id = request.query_params.get('vendor_id')
        category = request.query_params.get('category')
        search = (request.query_params.get('search') or '').strip()
        low_stock = request.query_params.get('low_stock', '').lower() in ('true', '1', 'yes')

        if vendor_id:
            queryset = queryset.filter(item__vendor_id=vendor_id)
        if category:
            queryset = queryset.filter(item__category__iexact=category)
        if search:
            queryset = queryset.filter(
                Q(item__name__icontains=search) | Q(item__sku__icontains=search) | Q(item__barcode__icontains=search)
            )
        if low_stock:
            queryset = queryset.filter(current_stock__lte=F('reorder_point'))

        return paginated_response(request, queryset.order_by('item__name'), InventoryItemSerializer)

    item_id = request.data.get('item')
    if item_id and InventoryItem.objects.filter(item_id=item_id).exists():
        return error_response('DUPLICATE_INVENTORY', 'Inventory already exists for this item', status.HTTP_409_CONFLICT)

    serializer = InventoryItemSerializer(data=request.data)
    if serializer.is_valid():
        inventory = serializer.save()
        return success_response(InventoryItemSerializer(inventory).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def inventory_detail(request, pk):
    inventory = get_object_or_404(InventoryItem.objects.select_related('item', 'item__vendor'), pk=pk)

    if request.method == 'GET':
        return success_response(InventoryItemSerializer(inventory).data)

    serializer = InventoryItemUpdateSerializer(inventory, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return success_response(serializer.data)
    return validation_error(serializer.errors)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def inventory_adjust_stock(request, pk):
    """
    Adjust stock for an inventory item.
    Body: {"type": "IN|OUT|ADJUSTMENT", "quantity": 5, "reason": "...", "notes": "..."}
    """
    inventory = get_object_or_404(InventoryItem.objects.select_related('item'), pk=pk)

    serializer = StockAdjustmentSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)
    data = serializer.validated_data

    try:
        movement = inventory.move_stock(
            data['type'], data['quantity'], reason=data['reason'], notes=data['notes'], user=request.user
        )
    except InsufficientStock as e:
        return error_response('INSUFFICIENT_STOCK', str(e), status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='stock_adjust',
        model_name='InventoryItem',
        object_id=inventory.id,
        object_name=inventory.item.name,
        changes={
            'type': data['type'],
            'previous_stock': str(movement.previous_stock),
            'new_stock': str(movement.new_stock),
            'reason': data['reason'],
        },
    )
    logger.info(f"Stock {data['type']} for {inventory.item.name}: {movement.previous_stock} -> {movement.new_stock}")

    return success_response({
        'inventory': InventoryItemSerializer(inventory).data,
        'movement': StockMovementSerializer(movement).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_movements(request, pk):
    inventory = get_object_or_404(InventoryItem, pk=pk)
    movements = inventory.movements.select_related('created_by').order_by('-created_at', '-id')
    return paginated_response(request, movements, StockMovementSerializer, default_limit=50)
