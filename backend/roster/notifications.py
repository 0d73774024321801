"""
Roster emails to staff.

Each active staff member with an email address gets their own shifts for the
week. A failed send is logged and counted; it never aborts the others.
"""
import logging
from collections import OrderedDict
from smtplib import SMTPException
from django.conf import settings
from django.core.mail import send_mail

from .costing import DAY_NAMES, WEEK_ORDER, calculate_hours, shift_date

logger = logging.getLogger(__name__)


def group_shifts_by_staff(roster):
    grouped = OrderedDict()
    shifts = sorted(
        roster.shifts.select_related('staff'),
        key=lambda s: (WEEK_ORDER.index(s.day_of_week), s.start_time),
    )
    for shift in shifts:
        if not shift.staff.is_active:
            continue
        grouped.setdefault(shift.staff, []).append(shift)
    return grouped


def build_roster_email(roster, staff, shifts):
    """Subject and plain-text body listing a staff member's shifts"""
    week = roster.week_start_date.strftime('%d %b %Y')
    total_hours = sum(calculate_hours(s.start_time, s.end_time, s.break_minutes) for s in shifts)

    lines = [f"Hi {staff.name},", "", f"Here are your shifts for the week starting {week}:", ""]
    for shift in shifts:
        day = shift_date(roster.week_start_date, shift.day_of_week)
        line = f"  {DAY_NAMES[shift.day_of_week]} {day.strftime('%d %b')}: {shift.start_time} - {shift.end_time}"
        if shift.role:
            line += f" ({shift.role})"
        if shift.is_backup_barista:
            line += " [backup barista]"
        if shift.break_minutes:
            line += f", {shift.break_minutes} min break"
        lines.append(line)
        if shift.notes:
            lines.append(f"      {shift.notes}")
    lines += ["", f"Total hours: {total_hours:.2f}", "", "Thanks!"]

    subject = f"Your roster for the week starting {week}"
    return subject, "\n".join(lines)


def send_roster_emails(roster):
    """
    Email each rostered staff member their shifts.
    Returns {"emails_sent", "emails_failed", "staff_without_email", "results"}.
    """
    from_email = getattr(settings, 'ROSTER_FROM_EMAIL', None) or settings.DEFAULT_FROM_EMAIL
    results = []
    without_email = []

    for staff, shifts in group_shifts_by_staff(roster).items():
        if not staff.email:
            without_email.append(staff.name)
            continue

        subject, body = build_roster_email(roster, staff, shifts)
        try:
            send_mail(subject, body, from_email, [staff.email], fail_silently=False)
            results.append({'staff': staff.name, 'email': staff.email, 'success': True})
        except (SMTPException, OSError) as e:
            logger.error(f"Failed to send roster email to {staff.name} <{staff.email}>: {e}")
            results.append({'staff': staff.name, 'email': staff.email, 'success': False, 'error': str(e)})

    sent = sum(1 for r in results if r['success'])
    logger.info(f"Roster {roster.week_start_date}: {sent} emails sent, {len(results) - sent} failed, "
                f"{len(without_email)} staff without email")
    return {
        'emails_sent': sent,
        'emails_failed': len(results) - sent,
        'staff_without_email': without_email,
        'results': results,
    }
