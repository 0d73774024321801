import logging
from django.conf import settings
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from backend.core.api_utils import success_response, error_response, validation_error
from backend.core.csv_utils import parse_iso_date
from backend.core.utils import create_audit_log
from .models import Staff, Roster, Shift, PublicHoliday
from .serializers import (
    StaffSerializer, RosterSerializer, ShiftInputSerializer, PublicHolidaySerializer,
)
from .costing import calculate_roster_costs, week_start_for
from .notifications import send_roster_emails

logger = logging.getLogger('backend.roster')


def _roster_payload(roster):
    roster = Roster.objects.prefetch_related('shifts', 'shifts__staff').get(pk=roster.pk)
    data = RosterSerializer(roster).data
    data['costs'] = calculate_roster_costs(roster, shifts=list(roster.shifts.all()))
    return data


def _validate_shifts(shifts_data):
    """Returns (validated_shifts, errors)"""
    if shifts_data is None:
        return [], None
    if not isinstance(shifts_data, list):
        return None, {'shifts': 'Expected a list of shifts'}
    serializer = ShiftInputSerializer(data=shifts_data, many=True)
    if not serializer.is_valid():
        return None, {'shifts': serializer.errors}
    return serializer.validated_data, None


def _replace_shifts(roster, shifts):
    roster.shifts.all().delete()
    Shift.objects.bulk_create([
        Shift(
            roster=roster,
            staff_id=shift['staff_id'],
            day_of_week=shift['day_of_week'],
            start_time=shift['start_time'],
            end_time=shift['end_time'],
            break_minutes=shift['break_minutes'],
            role=shift['role'],
            is_backup_barista=shift['is_backup_barista'],
            notes=shift['notes'],
        )
        for shift in shifts
    ])


# Staff
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def staff_list_create(request):
    if request.method == 'GET':
        queryset = Staff.objects.all()
        if request.query_params.get('include_inactive', '').lower() not in ('true', '1', 'yes'):
            queryset = queryset.filter(is_active=True)
        return success_response(StaffSerializer(queryset.order_by('-role', 'name'), many=True).data)

    name = (request.data.get('name') or '').strip()
    if name and Staff.objects.filter(name__iexact=name).exists():
        return error_response('DUPLICATE_STAFF', f'A staff member named {name} already exists',
                              status.HTTP_409_CONFLICT)

    serializer = StaffSerializer(data=request.data)
    if serializer.is_valid():
        staff = serializer.save()
        return success_response(StaffSerializer(staff).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def staff_detail(request, pk):
    staff = get_object_or_404(Staff, pk=pk)

    if request.method == 'GET':
        return success_response(StaffSerializer(staff).data)

    if request.method in ('PUT', 'PATCH'):
        name = (request.data.get('name') or '').strip()
        if name and Staff.objects.filter(name__iexact=name).exclude(pk=pk).exists():
            return error_response('DUPLICATE_STAFF', f'A staff member named {name} already exists',
                                  status.HTTP_409_CONFLICT)
        serializer = StaffSerializer(staff, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return success_response(serializer.data)
        return validation_error(serializer.errors)

    # Staff with shifts are kept for roster history
    if staff.shifts.exists():
        staff.is_active = False
        staff.save(update_fields=['is_active', 'updated_at'])
        return success_response(StaffSerializer(staff).data,
                                message=f'{staff.name} has rostered shifts and was deactivated')

    name = staff.name
    staff.delete()
    return success_response(None, message=f'{name} deleted')


# Weekly roster
@api_view(['GET', 'POST', 'PUT'])
@permission_classes([IsAuthenticated])
def roster_weekly(request):
    """
    GET  ?week=YYYY-MM-DD      roster for that week (created as a draft if missing)
    POST {week_start_date, shifts}
    PUT  {roster_id, shifts, status?}
    """
    if request.method == 'GET':
        raw = request.query_params.get('week')
        day = parse_iso_date(raw) if raw else timezone.localdate()
        if day is None:
            return error_response('INVALID_PARAMS', 'week must be a date in YYYY-MM-DD format')
        roster, created = Roster.objects.get_or_create(
            week_start_date=week_start_for(day),
            defaults={'status': Roster.DRAFT, 'created_by': request.user},
        )
        if created:
            logger.info(f"Created draft roster for week of {roster.week_start_date}")
        return success_response(_roster_payload(roster))

    if request.method == 'POST':
        day = parse_iso_date(request.data.get('week_start_date'))
        if day is None:
            return error_response('VALIDATION_ERROR', 'week_start_date must be a date in YYYY-MM-DD format')
        week_start = week_start_for(day)
        if Roster.objects.filter(week_start_date=week_start).exists():
            return error_response('ROSTER_EXISTS', f'A roster for the week of {week_start} already exists',
                                  status.HTTP_409_CONFLICT)

        shifts, errors = _validate_shifts(request.data.get('shifts', []))
        if errors:
            return validation_error(errors)

        with transaction.atomic():
            roster = Roster.objects.create(week_start_date=week_start, created_by=request.user)
            _replace_shifts(roster, shifts)
        return success_response(_roster_payload(roster), status_code=status.HTTP_201_CREATED)

    # PUT
    roster_id = str(request.data.get('roster_id') or '')
    if not roster_id.isdigit():
        return error_response('VALIDATION_ERROR', 'roster_id is required')
    roster = get_object_or_404(Roster, pk=roster_id)
    shifts, errors = _validate_shifts(request.data.get('shifts', []))
    if errors:
        return validation_error(errors)

    new_status = request.data.get('status')
    if new_status and new_status not in dict(Roster.STATUS_CHOICES):
        return error_response('VALIDATION_ERROR', 'status must be draft, published or archived')

    with transaction.atomic():
        _replace_shifts(roster, shifts)
        if new_status:
            roster.status = new_status
        roster.save()
    return success_response(_roster_payload(roster))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def roster_duplicate(request):
    """Copy a roster's shifts into another week, replacing whatever is there"""
    source_id = str(request.data.get('source_roster_id') or '')
    if not source_id.isdigit():
        return error_response('VALIDATION_ERROR', 'source_roster_id is required')
    source = get_object_or_404(Roster, pk=source_id)
    target_day = parse_iso_date(request.data.get('target_week_start_date'))
    if target_day is None:
        return error_response('VALIDATION_ERROR', 'target_week_start_date must be a date in YYYY-MM-DD format')
    target_week = week_start_for(target_day)
    if target_week == source.week_start_date:
        return error_response('VALIDATION_ERROR', 'Target week is the same as the source week')

    with transaction.atomic():
        Roster.objects.filter(week_start_date=target_week).delete()
        target = Roster.objects.create(week_start_date=target_week, status=Roster.DRAFT, created_by=request.user)
        Shift.objects.bulk_create([
            Shift(
                roster=target,
                staff_id=shift.staff_id,
                day_of_week=shift.day_of_week,
                start_time=shift.start_time,
                end_time=shift.end_time,
                break_minutes=shift.break_minutes,
                role=shift.role,
                is_backup_barista=shift.is_backup_barista,
                notes=shift.notes,
            )
            for shift in source.shifts.all()
        ])

    logger.info(f"Duplicated roster {source.week_start_date} to {target_week}")
    return success_response(_roster_payload(target), status_code=status.HTTP_201_CREATED)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def roster_status(request, pk):
    roster = get_object_or_404(Roster, pk=pk)
    new_status = request.data.get('status')
    if new_status not in dict(Roster.STATUS_CHOICES):
        return error_response('VALIDATION_ERROR', 'Invalid status. Must be draft, published, or archived')

    previous_status = roster.status
    roster.status = new_status
    roster.save(update_fields=['status', 'updated_at'])

    email_results = None
    if new_status == Roster.PUBLISHED:
        email_results = send_roster_emails(roster)
        create_audit_log(
            request=request,
            action='roster_publish',
            model_name='Roster',
            object_id=roster.id,
            object_name=str(roster.week_start_date),
            changes={'status': {'old': previous_status, 'new': new_status},
                     'emails_sent': email_results['emails_sent']},
        )

    data = _roster_payload(roster)
    data['emails_sent'] = email_results['emails_sent'] if email_results else 0
    data['email_results'] = email_results
    return success_response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def roster_send_emails(request, pk):
    roster = get_object_or_404(Roster, pk=pk)
    results = send_roster_emails(roster)
    sent = results['emails_sent']
    return success_response(
        results,
        message=f"Roster emails sent to {sent} staff member{'s' if sent != 1 else ''}",
    )


# Public holidays
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def public_holiday_list_create(request):
    if request.method == 'GET':
        start = parse_iso_date(request.query_params.get('start') or '')
        end = parse_iso_date(request.query_params.get('end') or '')
        if start is None or end is None:
            return error_response('INVALID_PARAMS', 'start and end dates (YYYY-MM-DD) are required')
        state = request.query_params.get('state') or settings.SHOP_STATE
        holidays = PublicHoliday.objects.filter(date__gte=start, date__lte=end, state=state).order_by('date')
        return success_response(PublicHolidaySerializer(holidays, many=True).data)

    if not request.data.get('name') or not request.data.get('date'):
        return error_response('VALIDATION_ERROR', 'name and date are required')

    data = request.data.copy()
    data.setdefault('state', settings.SHOP_STATE)
    serializer = PublicHolidaySerializer(data=data)
    if not serializer.is_valid():
        return validation_error(serializer.errors)

    if PublicHoliday.objects.filter(date=serializer.validated_data['date'],
                                    state=serializer.validated_data['state']).exists():
        return error_response('DUPLICATE_HOLIDAY', 'A public holiday already exists on that date',
                              status.HTTP_409_CONFLICT)
    holiday = serializer.save()
    return success_response(PublicHolidaySerializer(holiday).data, status_code=status.HTTP_201_CREATED)
