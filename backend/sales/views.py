import csv
import logging
from decimal import Decimal
from django.db.models import Sum, Min, Max
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated

from backend.core.api_utils import success_response, error_response, paginated_response, ApiError
from backend.core.cache_utils import invalidate_dashboard_cache
from backend.core.csv_utils import CsvFormatError, parse_iso_date
from backend.core.utils import create_audit_log
from .models import SalesReport, SalesAggregate
from .serializers import SalesReportSerializer
from .importer import import_sales_report, DuplicateReport

logger = logging.getLogger('backend.sales')

TOP_CATEGORIES = 10
TOP_ITEMS = 25
TIMESERIES_CATEGORY_BREAKDOWN = 5


def _date_param(request, name):
    raw = request.query_params.get(name)
    if not raw:
        return None
    value = parse_iso_date(raw)
    if value is None:
        raise ApiError('INVALID_PARAMS', f'{name} must be a date in YYYY-MM-DD format')
    return value


def filtered_aggregates(request):
    """SalesAggregate rows matching start_date, end_date, category and item_name"""
    queryset = SalesAggregate.objects.all()
    start = _date_param(request, 'start_date')
    end = _date_param(request, 'end_date')
    category = request.query_params.get('category')
    item_name = request.query_params.get('item_name')

    if start:
        queryset = queryset.filter(date__gte=start)
    if end:
        queryset = queryset.filter(date__lte=end)
    if category:
        queryset = queryset.filter(category=category)
    if item_name:
        queryset = queryset.filter(item_name__icontains=item_name)
    return queryset


def _percentage(part, whole):
    if not whole:
        return 0.0
    return round(float(Decimal(part) / Decimal(whole) * 100), 2)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def sales_upload(request):
    uploaded = request.FILES.get('file')
    if uploaded is None:
        return error_response('NO_FILE', 'No file uploaded')

    try:
        result = import_sales_report(uploaded, user=request.user)
    except DuplicateReport as e:
        return error_response('DUPLICATE_REPORT', str(e), status.HTTP_409_CONFLICT)
    except CsvFormatError as e:
        return error_response('INVALID_CSV', str(e))

    create_audit_log(
        request=request,
        action='import',
        model_name='SalesReport',
        object_id=result['report_id'],
        object_name=uploaded.name,
        changes={'rows': result['rows_processed'], 'aggregates': result['aggregates_created']},
    )
    return success_response(result, message='Sales report uploaded and processed successfully',
                            status_code=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_summary(request):
    """Totals with the top categories and items by revenue"""
    queryset = filtered_aggregates(request)

    totals = queryset.aggregate(
        revenue=Sum('revenue'), quantity=Sum('quantity'), start=Min('date'), end=Max('date')
    )
    total_revenue = totals['revenue'] or Decimal('0')

    categories = (queryset.exclude(category='')
                  .values('category')
                  .annotate(revenue=Sum('revenue'), quantity=Sum('quantity'))
                  .order_by('-revenue')[:TOP_CATEGORIES])
    items = (queryset.values('item_name')
             .annotate(revenue=Sum('revenue'), quantity=Sum('quantity'))
             .order_by('-revenue')[:TOP_ITEMS])

    return success_response({
        'overview': {
            'total_revenue': total_revenue,
            'total_quantity': totals['quantity'] or Decimal('0'),
            'report_count': SalesReport.objects.count(),
            'date_range': {'start': totals['start'], 'end': totals['end']},
        },
        'top_categories': [
            {
                'category': row['category'],
                'revenue': row['revenue'],
                'quantity': row['quantity'],
                'percentage': _percentage(row['revenue'], total_revenue),
            }
            for row in categories
        ],
        'top_items': [
            {
                'item_name': row['item_name'],
                'revenue': row['revenue'],
                'quantity': row['quantity'],
                'percentage': _percentage(row['revenue'], total_revenue),
            }
            for row in items
        ],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_timeseries(request):
    """
    Daily revenue and quantity.
    Without a category filter each day also carries its top categories.
    """
    queryset = filtered_aggregates(request)

    daily = (queryset.values('date')
             .annotate(revenue=Sum('revenue'), quantity=Sum('quantity'))
             .order_by('date'))
    series = [
        {'date': row['date'], 'revenue': row['revenue'], 'quantity': row['quantity']}
        for row in daily
    ]

    if not request.query_params.get('category'):
        by_day = {}
        rows = (queryset.exclude(category='')
                .values('date', 'category')
                .annotate(revenue=Sum('revenue'), quantity=Sum('quantity'))
                .order_by('date', '-revenue'))
        for row in rows:
            by_day.setdefault(row['date'], []).append({
                'category': row['category'],
                'revenue': row['revenue'],
                'quantity': row['quantity'],
            })
        for point in series:
            point['categories'] = by_day.get(point['date'], [])[:TIMESERIES_CATEGORY_BREAKDOWN]

    return success_response(series)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_export(request):
    """Download aggregates as CSV"""
    queryset = filtered_aggregates(request).order_by('date', 'category', 'item_name')

    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = 'attachment; filename="sales-export.csv"'
    writer = csv.writer(response)
    writer.writerow(['Date', 'Category', 'Item', 'Quantity', 'Revenue'])
    for row in queryset.iterator():
        writer.writerow([row.date.isoformat(), row.category, row.item_name, row.quantity, row.revenue])
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_report_list(request):
    queryset = SalesReport.objects.select_related('uploaded_by').order_by('-created_at')
    return paginated_response(request, queryset, SalesReportSerializer)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def sales_report_delete(request, pk):
    report = get_object_or_404(SalesReport, pk=pk)
    aggregate_count = report.aggregates.count()
    filename = report.filename
    report.delete()
    invalidate_dashboard_cache()

    create_audit_log(
        request=request,
        action='delete',
        model_name='SalesReport',
        object_id=pk,
        object_name=filename,
        changes={'aggregates_deleted': aggregate_count},
    )
    logger.info(f"Deleted sales report {filename} with {aggregate_count} aggregates")
    return success_response({'deleted_aggregates': aggregate_count}, message=f'{filename} deleted')
