"""
Wage cost calculations for weekly rosters.

Days use 0=Sunday .. 6=Saturday; a roster week starts on Monday.
"""
from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal
from django.conf import settings

from backend.pricing.calculator import round_money

DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']
# Monday first, as the roster week runs
WEEK_ORDER = [1, 2, 3, 4, 5, 6, 0]
SATURDAY = 6
SUNDAY = 0


def parse_time(value):
    """'HH:MM' -> minutes since midnight"""
    hours, minutes = str(value).split(':')
    return int(hours) * 60 + int(minutes)


def calculate_hours(start_time, end_time, break_minutes=0):
    """Paid hours for a shift, never negative"""
    minutes = parse_time(end_time) - parse_time(start_time) - int(break_minutes or 0)
    return max(Decimal('0'), Decimal(minutes) / Decimal(60))


def shift_date(week_start, day_of_week):
    """Calendar date of a shift; Sunday is the last day of the week"""
    offset = 6 if day_of_week == SUNDAY else day_of_week - 1
    return week_start + timedelta(days=offset)


def week_start_for(day):
    """The Monday on or before day"""
    return day - timedelta(days=day.weekday())


def get_hourly_rate(staff, day_of_week, is_public_holiday=False):
    if is_public_holiday:
        return staff.public_holiday_hourly_rate or staff.base_hourly_rate
    if day_of_week == SATURDAY:
        return staff.saturday_hourly_rate or staff.base_hourly_rate
    if day_of_week == SUNDAY:
        return staff.sunday_hourly_rate or staff.base_hourly_rate
    return staff.base_hourly_rate


def calculate_shift_cost(staff, shift, is_public_holiday=False):
    rate = get_hourly_rate(staff, shift.day_of_week, is_public_holiday)
    hours = calculate_hours(shift.start_time, shift.end_time, shift.break_minutes)
    return round_money(Decimal(rate) * hours)


def public_holiday_dates(start, end, state=None):
    from .models import PublicHoliday
    state = state or getattr(settings, 'SHOP_STATE', 'NSW')
    return set(
        PublicHoliday.objects.filter(date__gte=start, date__lte=end, state=state).values_list('date', flat=True)
    )


def calculate_roster_costs(roster, shifts=None):
    """
    Hours and wage costs for a roster, per staff member, per day and in total.

    tax is withheld from gross; super is paid on top, so total_cost = gross + super.
    """
    if shifts is None:
        shifts = list(roster.shifts.select_related('staff'))

    week_start = roster.week_start_date
    holidays = public_holiday_dates(week_start, week_start + timedelta(days=6))

    staff_totals = OrderedDict()
    day_totals = OrderedDict(
        (dow, {
            'day_of_week': dow,
            'day': DAY_NAMES[dow],
            'date': shift_date(week_start, dow),
            'is_public_holiday': shift_date(week_start, dow) in holidays,
            'hours': Decimal('0'),
            'gross': Decimal('0'),
        })
        for dow in WEEK_ORDER
    )

    for shift in shifts:
        staff = shift.staff
        is_holiday = shift_date(week_start, shift.day_of_week) in holidays
        hours = calculate_hours(shift.start_time, shift.end_time, shift.break_minutes)
        cost = calculate_shift_cost(staff, shift, is_holiday)

        entry = staff_totals.setdefault(staff.id, {
            'staff_id': staff.id,
            'name': staff.name,
            'role': staff.role,
            'shift_count': 0,
            'hours': Decimal('0'),
            'gross': Decimal('0'),
            '_staff': staff,
        })
        entry['shift_count'] += 1
        entry['hours'] += hours
        entry['gross'] += cost

        day = day_totals[shift.day_of_week]
        day['hours'] += hours
        day['gross'] += cost

    totals = {'hours': Decimal('0'), 'gross': Decimal('0'), 'tax': Decimal('0'),
              'super': Decimal('0'), 'total_cost': Decimal('0')}
    staff_rows = []
    for entry in staff_totals.values():
        staff = entry.pop('_staff')
        gross = round_money(entry['gross'])
        tax = round_money(gross * staff.tax_rate / 100)
        superannuation = round_money(gross * staff.super_rate / 100) if staff.super_rate is not None else Decimal('0.00')
        entry.update({
            'hours': entry['hours'].quantize(Decimal('0.01')),
            'gross': gross,
            'tax': tax,
            'net': gross - tax,
            'super': superannuation,
            'total_cost': gross + superannuation,
        })
        staff_rows.append(entry)
        totals['hours'] += entry['hours']
        for key in ('gross', 'tax', 'super', 'total_cost'):
            totals[key] += entry[key]

    days = []
    for day in day_totals.values():
        day['hours'] = day['hours'].quantize(Decimal('0.01'))
        day['gross'] = round_money(day['gross'])
        days.append(day)

    return {
        'staff': staff_rows,
        'days': days,
        'totals': totals,
    }
