from django.db.models import Case, When, Value, IntegerField, F
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from backend.core.api_utils import success_response, validation_error
from .models import DiaryEntry
from .serializers import DiaryEntrySerializer


def ordered_entries(queryset):
    """Open first, then urgency (urgent first), due date (undated last), newest"""
    urgency_rank = Case(
        *[When(urgency=key, then=Value(rank)) for key, rank in DiaryEntry.URGENCY_RANK.items()],
        default=Value(len(DiaryEntry.URGENCY_RANK)),
        output_field=IntegerField(),
    )
    return queryset.annotate(urgency_rank=urgency_rank).order_by(
        'is_completed', 'urgency_rank', F('due_date').asc(nulls_last=True), '-created_at'
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def diary_list_create(request):
    if request.method == 'GET':
        queryset = DiaryEntry.objects.select_related('created_by')
        if request.query_params.get('show_completed', '').lower() not in ('true', '1', 'yes'):
            queryset = queryset.filter(is_completed=False)
        return success_response(DiaryEntrySerializer(ordered_entries(queryset), many=True).data)

    serializer = DiaryEntrySerializer(data=request.data)
    if serializer.is_valid():
        entry = serializer.save(created_by=request.user)
        return success_response(DiaryEntrySerializer(entry).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def diary_detail(request, pk):
    entry = get_object_or_404(DiaryEntry, pk=pk)

    if request.method == 'GET':
        return success_response(DiaryEntrySerializer(entry).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = DiaryEntrySerializer(entry, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return success_response(serializer.data)
        return validation_error(serializer.errors)

    entry.delete()
    return success_response(None, message='Diary entry deleted')
