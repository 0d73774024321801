import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated

from backend.core.api_utils import success_response, error_response, paginated_response
from backend.core.csv_utils import CsvFormatError
from backend.core.utils import create_audit_log
from .models import WastageRecord, DiscountRecord
from .serializers import WastageRecordSerializer, DiscountRecordSerializer
from .filters import WastageFilter, DiscountFilter
from .importers import import_wastage, import_discounts

logger = logging.getLogger('backend.wastage')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wastage_list(request):
    queryset = WastageRecord.objects.select_related('item').order_by('-recorded_at', '-id')
    queryset = WastageFilter(request.query_params, queryset=queryset).qs
    return paginated_response(request, queryset, WastageRecordSerializer, default_limit=50)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def wastage_import(request):
    uploaded = request.FILES.get('file')
    if uploaded is None:
        return error_response('NO_FILE', 'No file uploaded')

    try:
        result = import_wastage(uploaded)
    except CsvFormatError as e:
        return error_response('INVALID_CSV', str(e))

    create_audit_log(
        request=request,
        action='import',
        model_name='WastageRecord',
        object_id='import',
        object_name=uploaded.name,
        changes={'imported': result['imported'], 'skipped': result['skipped'], 'errors': result['errors']},
    )
    return success_response(result, message='Wastage data imported successfully')


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def wastage_clear(request):
    deleted_count, _ = WastageRecord.objects.all().delete()
    create_audit_log(request=request, action='clear', model_name='WastageRecord', object_id='all',
                     changes={'deleted_count': deleted_count})
    logger.warning(f"Cleared {deleted_count} wastage records")
    return success_response({'deleted_count': deleted_count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def discount_list(request):
    queryset = DiscountRecord.objects.select_related('item').order_by('-recorded_at', '-id')
    queryset = DiscountFilter(request.query_params, queryset=queryset).qs
    return paginated_response(request, queryset, DiscountRecordSerializer, default_limit=50)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def discount_import(request):
    uploaded = request.FILES.get('file')
    if uploaded is None:
        return error_response('NO_FILE', 'No file uploaded')

    source = request.data.get('source') or DiscountRecord.REGULAR
    if source not in dict(DiscountRecord.SOURCE_CHOICES):
        return error_response('VALIDATION_ERROR', 'source must be regular or rewards')

    try:
        result = import_discounts(uploaded, source=source)
    except CsvFormatError as e:
        return error_response('INVALID_CSV', str(e))

    create_audit_log(
        request=request,
        action='import',
        model_name='DiscountRecord',
        object_id='import',
        object_name=uploaded.name,
        changes={'source': source, 'imported': result['imported'], 'skipped': result['skipped']},
    )
    return success_response(result, message='Discount data imported successfully')


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def discount_clear(request):
    deleted_count, _ = DiscountRecord.objects.all().delete()
    create_audit_log(request=request, action='clear', model_name='DiscountRecord', object_id='all',
                     changes={'deleted_count': deleted_count})
    logger.warning(f"Cleared {deleted_count} discount records")
    return success_response({'deleted_count': deleted_count})
