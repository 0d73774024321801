import logging
from itertools import groupby
from django.db import transaction
from django.db.models import Count, Max
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from backend.core.api_utils import (
    success_response, error_response, validation_error, paginated_response,
)
from .models import Vendor, VendorOrderSettings, Item
from .serializers import (
    VendorSerializer, VendorOrderSettingsSerializer, ItemSerializer,
    ItemPriceHistorySerializer, PrintSheetItemSerializer,
)
from .filters import ItemFilter, VendorFilter
from .label_generator import generate_item_label, format_price
from . import dymo_service, shelf_checker

logger = logging.getLogger('backend.catalog')


def _duplicate_item_response(sku, barcode, exclude_pk=None):
    """409 when another item already uses this SKU or barcode"""
    queryset = Item.objects.all()
    if exclude_pk:
        queryset = queryset.exclude(pk=exclude_pk)
    sku = (sku or '').strip()
    barcode = (barcode or '').strip()
    if sku and queryset.filter(sku__iexact=sku).exists():
        return error_response('DUPLICATE_ITEM', f'An item with SKU {sku} already exists', status.HTTP_409_CONFLICT)
    if barcode and queryset.filter(barcode=barcode).exists():
        return error_response('DUPLICATE_ITEM', f'An item with barcode {barcode} already exists', status.HTTP_409_CONFLICT)
    return None


# Vendor views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vendor_list_create(request):
    """List vendors or create a new vendor"""
    if request.method == 'GET':
        queryset = Vendor.objects.annotate(item_count=Count('items')).order_by('name')
        queryset = VendorFilter(request.query_params, queryset=queryset).qs
        return success_response(VendorSerializer(queryset, many=True).data)

    name = (request.data.get('name') or '').strip()
    if name and Vendor.objects.filter(name__iexact=name).exists():
        return error_response('DUPLICATE_VENDOR', f'Vendor {name} already exists', status.HTTP_409_CONFLICT)

    serializer = VendorSerializer(data=request.data)
    if serializer.is_valid():
        vendor = serializer.save()
        return success_response(VendorSerializer(vendor).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vendor_detail(request, pk):
    """Retrieve, update or delete a vendor"""
    vendor = get_object_or_404(Vendor, pk=pk)

    if request.method == 'GET':
        return success_response(VendorSerializer(vendor).data)
    elif request.method in ('PUT', 'PATCH'):
        name = (request.data.get('name') or '').strip()
        if name and Vendor.objects.filter(name__iexact=name).exclude(pk=pk).exists():
            return error_response('DUPLICATE_VENDOR', f'Vendor {name} already exists', status.HTTP_409_CONFLICT)
        serializer = VendorSerializer(vendor, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return success_response(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        if vendor.items.exists() or vendor.purchase_orders.exists():
            return error_response(
                'VENDOR_IN_USE',
                'Vendor has items or purchase orders; deactivate it instead',
                status.HTTP_409_CONFLICT
            )
        vendor.delete()
        return success_response(None, message='Vendor deleted')


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def vendor_order_settings(request, pk):
    """Get or upsert a vendor's ordering settings"""
    vendor = get_object_or_404(Vendor, pk=pk)
    order_settings = VendorOrderSettings.objects.filter(vendor=vendor).first()

    if request.method == 'GET':
        if not order_settings:
            order_settings = VendorOrderSettings(vendor=vendor)
        return success_response(VendorOrderSettingsSerializer(order_settings).data)

    serializer = VendorOrderSettingsSerializer(order_settings, data=request.data, partial=order_settings is not None)
    if serializer.is_valid():
        serializer.save(vendor=vendor)
        return success_response(serializer.data)
    return validation_error(serializer.errors)


# Item views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def item_list_create(request):
    """List items (filtered, paginated) or create a new item"""
    if request.method == 'GET':
        queryset = Item.objects.select_related('vendor')
        queryset = ItemFilter(request.query_params, queryset=queryset).qs
        queryset = queryset.annotate(last_price_change_at=Max('price_history__changed_at')).order_by('name', 'id')
        return paginated_response(request, queryset, ItemSerializer, default_limit=20)

    duplicate = _duplicate_item_response(request.data.get('sku'), request.data.get('barcode'))
    if duplicate:
        return duplicate

    serializer = ItemSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        item = serializer.save()
        logger.info(f"Item created: {item.name} (sell {item.current_sell_inc_gst})")
        return success_response(ItemSerializer(item).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def item_detail(request, pk):
    """Retrieve, update or delete an item"""
    item = get_object_or_404(Item.objects.select_related('vendor'), pk=pk)

    if request.method == 'GET':
        return success_response(ItemSerializer(item).data)
    elif request.method in ('PUT', 'PATCH'):
        duplicate = _duplicate_item_response(request.data.get('sku'), request.data.get('barcode'), exclude_pk=pk)
        if duplicate:
            return duplicate
        serializer = ItemSerializer(
            item, data=request.data, partial=request.method == 'PATCH', context={'request': request}
        )
        if serializer.is_valid():
            with transaction.atomic():
                item = serializer.save()
            return success_response(ItemSerializer(item).data)
        return validation_error(serializer.errors)
    else:  # DELETE
        from backend.inventory.models import StockMovement

        in_use = (
            item.po_lines.exists()
            or StockMovement.objects.filter(inventory_item__item=item).exists()
        )
        if in_use:
            return error_response(
                'ITEM_IN_USE',
                'Item is referenced by purchase orders or stock movements; deactivate it instead',
                status.HTTP_409_CONFLICT
            )
        item.delete()
        return success_response(None, message='Item deleted')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def item_price_history(request, pk):
    item = get_object_or_404(Item, pk=pk)
    history = item.price_history.select_related('changed_by')
    return success_response(ItemPriceHistorySerializer(history, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def item_print_sheet(request):
    """Active items grouped by category in shelf order, for the printable price sheet"""
    queryset = Item.objects.filter(is_active=True)
    category = request.query_params.get('category')
    vendor_id = request.query_params.get('vendor_id')
    if category:
        queryset = queryset.filter(category__iexact=category)
    if vendor_id:
        queryset = queryset.filter(vendor_id=vendor_id)
    queryset = queryset.order_by('category', 'display_order', 'name')

    sheet = [
        {'category': category_name, 'items': PrintSheetItemSerializer(list(items), many=True).data}
        for category_name, items in groupby(queryset, key=lambda i: i.category)
    ]
    return success_response(sheet)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def item_bulk_update_positions(request):
    """Body: {"items": [{"id": 1, "display_order": 3}, ...]}"""
    entries = request.data.get('items')
    if not isinstance(entries, list) or not entries:
        return error_response('VALIDATION_ERROR', 'items must be a non-empty list')

    positions = {}
    for entry in entries:
        try:
            positions[int(entry['id'])] = int(entry['display_order'])
        except (KeyError, TypeError, ValueError):
            return error_response('VALIDATION_ERROR', 'Each entry needs an integer id and display_order')

    items = list(Item.objects.filter(id__in=positions.keys()))
    for item in items:
        item.display_order = positions[item.id]
    with transaction.atomic():
        Item.objects.bulk_update(items, ['display_order'])
    return success_response({'updated': len(items)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def item_bulk_categorize(request):
    """Body: {"item_ids": [...], "category": "Bulk", "subcategory": "Nuts"}"""
    from backend.pricing.calculator import canonical_category

    item_ids = request.data.get('item_ids')
    category = canonical_category((request.data.get('category') or '').strip())
    if not isinstance(item_ids, list) or not item_ids or not category:
        return error_response('VALIDATION_ERROR', 'item_ids and category are required')

    updates = {'category': category}
    if 'subcategory' in request.data:
        updates['subcategory'] = request.data.get('subcategory') or ''
    updated = Item.objects.filter(id__in=item_ids).update(**updates)
    return success_response({'updated': updated})


# Labels
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def item_label(request, pk):
    """PNG shelf label for an item as a data URL"""
    item = get_object_or_404(Item.objects.select_related('vendor'), pk=pk)
    return success_response({'item_id': item.id, 'image': generate_item_label(item)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dymo_label_preview(request):
    item_id = request.query_params.get('item_id')
    if not item_id:
        return error_response('INVALID_PARAMS', 'item_id is required')
    item = get_object_or_404(Item, pk=item_id)
    xml = dymo_service.build_label_xml(item.name, format_price(item.current_sell_inc_gst))
    return success_response({'item_id': item.id, 'label_xml': xml})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def dymo_print(request):
    """Print shelf labels for items on the shop's DYMO printer"""
    item_ids = request.data.get('item_ids')
    if not isinstance(item_ids, list) or not item_ids:
        return error_response('VALIDATION_ERROR', 'item_ids must be a non-empty list')
    try:
        copies = int(request.data.get('copies', 1))
    except (TypeError, ValueError):
        return error_response('VALIDATION_ERROR', 'copies must be an integer')

    items = Item.objects.filter(id__in=item_ids).order_by('category', 'display_order', 'name')
    labels = [{'name': item.name, 'price': format_price(item.current_sell_inc_gst)} for item in items]
    if not labels:
        return error_response('NOT_FOUND', 'No matching items', status.HTTP_404_NOT_FOUND)

    try:
        result = dymo_service.print_labels(labels, copies=copies, printer_name=request.data.get('printer_name'))
    except dymo_service.DymoServiceUnavailable as e:
        return error_response('PRINT_SERVICE_UNAVAILABLE', str(e), status.HTTP_503_SERVICE_UNAVAILABLE)
    return success_response(result)


# Shelf checker
@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def shelf_checker_state(request):
    """Server copy of the shelf checker checkboxes and label needs"""
    if request.method == 'GET':
        state = shelf_checker.load_state()
        state['stats'] = shelf_checker.compute_stats(state['checked_items'], state['label_needs'])
        return success_response(state)

    if request.method == 'DELETE':
        return success_response(shelf_checker.reset_state(), message='Shelf checker state reset')

    checked_items = request.data.get('checked_items', {})
    label_needs = request.data.get('label_needs', {})
    errors = shelf_checker.validate_state(checked_items, label_needs)
    if errors:
        return validation_error(errors)

    state, stats = shelf_checker.save_state(checked_items, label_needs)
    message = (
        f"Saved! {stats['checked_count']} items checked, "
        f"{stats['missing_labels']} missing labels, {stats['needs_update']} need updates"
    )
    return success_response({'last_updated': state['last_updated'], 'stats': stats}, message=message)
