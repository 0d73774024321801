import logging
from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated

from backend.catalog.models import Vendor
from backend.core.api_utils import (
    success_response, error_response, validation_error, paginated_response, parse_int_param,
)
from backend.core.csv_utils import CsvFormatError
from backend.core.utils import create_audit_log
from backend.inventory.models import StockMovement, InsufficientStock
from .models import PurchaseOrder, PurchaseOrderLine
from .serializers import PurchaseOrderSerializer, ReceiveLineSerializer
from .sales_analysis import analyze_sales
from .ai_suggestions import generate_order_suggestions, SuggestionError
from .sales_insights import smart_alerts, sales_trends

logger = logging.getLogger('backend.purchasing')


def _order_queryset():
    return PurchaseOrder.objects.select_related(
        'vendor', 'created_by', 'approved_by'
    ).prefetch_related('lines', 'lines__item')


def _fresh(order):
    return _order_queryset().get(pk=order.pk)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def purchase_order_list_create(request):
    """List purchase orders or create a new one"""
    if request.method == 'GET':
        queryset = _order_queryset()

        status_filter = request.query_params.get('status')
        vendor_id = request.query_params.get('vendor_id')
        search = (request.query_params.get('search') or '').strip()

        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if vendor_id:
            queryset = queryset.filter(vendor_id=vendor_id)
        if search:
            queryset = queryset.filter(Q(order_number__icontains=search) | Q(vendor__name__icontains=search))

        queryset = queryset.order_by('-created_at', '-id')
        return paginated_response(request, queryset, PurchaseOrderSerializer)

    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    lines_data = data.pop('lines', [])

    serializer = PurchaseOrderSerializer(data=data, context={'lines_data': lines_data, 'request': request})
    if not serializer.is_valid():
        return validation_error(serializer.errors)

    order = serializer.save(created_by=request.user)
    create_audit_log(
        request=request,
        action='create',
        model_name='PurchaseOrder',
        object_id=order.id,
        object_name=order.vendor.name,
        object_reference=order.order_number,
        changes={'total_inc_gst': str(order.total_inc_gst), 'lines': order.lines.count()},
    )
    logger.info(f"Created {order.order_number} for {order.vendor.name}: ${order.total_inc_gst}")
    return success_response(PurchaseOrderSerializer(_fresh(order)).data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def purchase_order_detail(request, pk):
    """Retrieve, update or delete a purchase order"""
    order = get_object_or_404(_order_queryset(), pk=pk)

    if request.method == 'GET':
        return success_response(PurchaseOrderSerializer(order).data)

    if request.method in ('PUT', 'PATCH'):
        data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
        lines_data = data.pop('lines', None)

        changes_contents = lines_data is not None or 'vendor_id' in data or 'shipping_cost' in data
        if changes_contents and not order.is_editable:
            return error_response(
                'INVALID_STATUS',
                f'Lines, vendor and shipping can only change on draft or pending orders '
                f'({order.order_number} is {order.status})',
            )
        new_status = data.get('status')
        if new_status and not order.can_change_status_to(new_status):
            return error_response(
                'INVALID_STATUS', f'Cannot change {order.order_number} from {order.status} to {new_status}'
            )

        serializer = PurchaseOrderSerializer(
            order, data=data, partial=True,
            context={'lines_data': lines_data, 'request': request},
        )
        if not serializer.is_valid():
            return validation_error(serializer.errors)
        order = serializer.save()
        create_audit_log(
            request=request,
            action='update',
            model_name='PurchaseOrder',
            object_id=order.id,
            object_name=order.vendor.name,
            object_reference=order.order_number,
            changes={'fields': sorted(k for k in data.keys()), 'lines_replaced': lines_data is not None},
        )
        return success_response(PurchaseOrderSerializer(_fresh(order)).data)

    # DELETE
    if order.status not in (PurchaseOrder.DRAFT, PurchaseOrder.CANCELLED):
        return error_response(
            'INVALID_STATUS',
            f'Only draft or cancelled orders can be deleted ({order.order_number} is {order.status})',
        )
    order_id, order_number = order.id, order.order_number
    order.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name='PurchaseOrder',
        object_id=order_id,
        object_reference=order_number,
    )
    return success_response(None, message=f'{order_number} deleted')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def purchase_order_approve(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)

    if order.status not in (PurchaseOrder.DRAFT, PurchaseOrder.PENDING_APPROVAL):
        return error_response('INVALID_STATUS', f'Cannot approve an order with status {order.status}')

    previous_status = order.status
    order.status = PurchaseOrder.APPROVED
    order.approved_by = request.user
    order.approved_at = timezone.now()
    order.save(update_fields=['status', 'approved_by', 'approved_at', 'updated_at'])

    create_audit_log(
        request=request,
        action='po_approve',
        model_name='PurchaseOrder',
        object_id=order.id,
        object_name=order.vendor.name,
        object_reference=order.order_number,
        changes={'status': {'old': previous_status, 'new': order.status}},
    )
    return success_response(PurchaseOrderSerializer(_fresh(order)).data, message=f'{order.order_number} approved')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def purchase_order_receive(request, pk):
    """
    Record received quantities.
    Body: {"lines": [{"line_id": 1, "received_quantity": 12}, ...]}
    Stock IN movements are written for lines whose item has inventory;
    lowering a received quantity writes an OUT movement for the difference.
    """
    order = get_object_or_404(_order_queryset(), pk=pk)

    if order.status in (PurchaseOrder.DRAFT, PurchaseOrder.CANCELLED, PurchaseOrder.COMPLETED):
        return error_response('INVALID_STATUS', f'Cannot receive an order with status {order.status}')

    serializer = ReceiveLineSerializer(data=request.data.get('lines') or [], many=True)
    if not serializer.is_valid():
        return validation_error(serializer.errors)

    lines_by_id = {line.id: line for line in order.lines.all()}
    unknown = [entry['line_id'] for entry in serializer.validated_data if entry['line_id'] not in lines_by_id]
    if unknown:
        return error_response('VALIDATION_ERROR', f'Lines not on this order: {unknown}')

    received = []
    try:
        with transaction.atomic():
            for entry in serializer.validated_data:
                line = PurchaseOrderLine.objects.select_for_update().get(pk=entry['line_id'])
                delta = entry['received_quantity'] - line.received_quantity
                line.received_quantity = entry['received_quantity']
                line.save()

                inventory = getattr(line.item, 'inventory', None) if line.item_id else None
                if inventory is not None and delta > 0:
                    inventory.move_stock(
                        StockMovement.IN, delta,
                        reason='Purchase order received',
                        notes=order.order_number,
                        user=request.user,
                    )
                elif inventory is not None and delta < 0:
                    inventory.move_stock(
                        StockMovement.OUT, -delta,
                        reason='Purchase order receipt corrected',
                        notes=order.order_number,
                        user=request.user,
                    )
                received.append({'line_id': line.id, 'item_name': line.item_name, 'received': str(delta)})

            order = _fresh(order)
            order.status = PurchaseOrder.RECEIVED if order.is_fully_received else PurchaseOrder.PARTIALLY_RECEIVED
            order.save(update_fields=['status', 'updated_at'])
    except InsufficientStock as e:
        return error_response('INSUFFICIENT_STOCK', str(e))

    create_audit_log(
        request=request,
        action='stock_receive',
        model_name='PurchaseOrder',
        object_id=order.id,
        object_name=order.vendor.name,
        object_reference=order.order_number,
        changes={'lines': received, 'status': order.status},
    )
    return success_response(PurchaseOrderSerializer(_fresh(order)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def analyze_sales_view(request):
    """
    Suggest order quantities from weekly POS item-sales CSVs.
    Form fields: files (one per week), catalogue, vendor_id, order_frequency, actual_weeks
    """
    files = request.FILES.getlist('files') or request.FILES.getlist('file')
    if not files:
        return error_response('NO_FILE', 'No files uploaded')

    try:
        order_frequency = int(request.data.get('order_frequency') or 1)
        actual_weeks = int(request.data.get('actual_weeks') or len(files))
    except (TypeError, ValueError):
        return error_response('VALIDATION_ERROR', 'order_frequency and actual_weeks must be whole numbers')
    if order_frequency <= 0 or actual_weeks <= 0:
        return error_response('VALIDATION_ERROR', 'order_frequency and actual_weeks must be greater than zero')

    vendor_name = None
    vendor_id = request.data.get('vendor_id')
    if vendor_id:
        vendor = Vendor.objects.filter(pk=vendor_id).first() if str(vendor_id).isdigit() else None
        vendor_name = vendor.name if vendor else str(vendor_id)

    try:
        result = analyze_sales(
            files,
            catalogue_file=request.FILES.get('catalogue'),
            vendor_name=vendor_name,
            order_frequency=order_frequency,
            actual_weeks=actual_weeks,
        )
    except (CsvFormatError, ValueError, KeyError) as e:
        logger.error(f"Sales analysis failed: {e}")
        return error_response('ANALYSIS_ERROR', f'Failed to analyze sales data: {e}',
                              status.HTTP_500_INTERNAL_SERVER_ERROR)

    return success_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ai_order_suggestions(request):
    vendor_name = (request.data.get('vendor_name') or '').strip()
    if not vendor_name:
        return error_response('MISSING_VENDOR', 'Vendor name is required')

    if not settings.ANTHROPIC_API_KEY:
        return error_response('CONFIG_ERROR', 'ANTHROPIC_API_KEY not configured',
                              status.HTTP_500_INTERNAL_SERVER_ERROR)

    try:
        weeks = int(request.data.get('weeks') or 6)
    except (TypeError, ValueError):
        return error_response('VALIDATION_ERROR', 'weeks must be a whole number')
    if weeks <= 0:
        return error_response('VALIDATION_ERROR', 'weeks must be greater than zero')

    try:
        result = generate_order_suggestions(vendor_name, weeks)
    except SuggestionError as e:
        logger.error(f"AI order suggestions failed for {vendor_name}: {e}")
        return error_response('AI_ERROR', f'Failed to generate suggestions: {e}',
                              status.HTTP_500_INTERNAL_SERVER_ERROR)

    return success_response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def smart_alerts_view(request):
    """Sales and wastage alerts for the last four weeks, critical first"""
    return success_response(smart_alerts())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_trends_view(request):
    """
    Per-item and per-category sales movement.
    Query params: weeks (default 6), vendor (name contains, case-insensitive)
    """
    weeks = parse_int_param(request, 'weeks', 6, minimum=1, maximum=52)
    vendor = (request.query_params.get('vendor') or '').strip() or None
    return success_response(sales_trends(weeks, vendor))
