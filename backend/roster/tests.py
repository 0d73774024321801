"""
Tests for staff, weekly rosters, wage costing, public holidays and roster emails
"""
from django.core import mail
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from datetime import date
from smtplib import SMTPException
from unittest.mock import patch
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import AuditLog
from backend.roster.models import Staff, Roster, Shift, PublicHoliday
from backend.roster.costing import (
    calculate_hours, shift_date, week_start_for, get_hourly_rate, calculate_roster_costs,
)
from backend.roster.notifications import build_roster_email, send_roster_emails

WEEK = date(2024, 3, 11)  # a Monday


class CostingTests(TestCase):

    def setUp(self):
        self.staff = TestDataFactory.create_staff(
            name='Jess', base_rate=Decimal('30.00'),
            saturday_hourly_rate=Decimal('36.00'),
            sunday_hourly_rate=Decimal('42.00'),
            public_holiday_hourly_rate=Decimal('60.00'),
            tax_rate=Decimal('30.00'),
            super_rate=Decimal('11.50'),
        )
        self.roster = TestDataFactory.create_roster(WEEK)

    def test_calculate_hours(self):
        self.assertEqual(calculate_hours('09:00', '17:00', 30), Decimal('7.5'))
        self.assertEqual(calculate_hours('09:00', '09:15', 30), Decimal('0'))

    def test_shift_date_and_week_start(self):
        self.assertEqual(shift_date(WEEK, 1), date(2024, 3, 11))
        self.assertEqual(shift_date(WEEK, 6), date(2024, 3, 16))
        self.assertEqual(shift_date(WEEK, 0), date(2024, 3, 17))
        self.assertEqual(week_start_for(date(2024, 3, 17)), WEEK)

    def test_hourly_rates(self):
        self.assertEqual(get_hourly_rate(self.staff, 1), Decimal('30.00'))
        self.assertEqual(get_hourly_rate(self.staff, 6), Decimal('36.00'))
        self.assertEqual(get_hourly_rate(self.staff, 0), Decimal('42.00'))
        self.assertEqual(get_hourly_rate(self.staff, 1, is_public_holiday=True), Decimal('60.00'))

        basic = TestDataFactory.create_staff(base_rate=Decimal('25.00'))
        self.assertEqual(get_hourly_rate(basic, 0), Decimal('25.00'))

    def test_roster_costs(self):
        TestDataFactory.create_shift(self.roster, self.staff, day_of_week=1, start_time='09:00', end_time='17:00',
                                     break_minutes=30)
        TestDataFactory.create_shift(self.roster, self.staff, day_of_week=6, start_time='08:00', end_time='12:00')

        costs = calculate_roster_costs(self.roster)
        jess = costs['staff'][0]
        self.assertEqual(jess['hours'], Decimal('11.50'))
        self.assertEqual(jess['gross'], Decimal('369.00'))
        self.assertEqual(jess['tax'], Decimal('110.70'))
        self.assertEqual(jess['net'], Decimal('258.30'))
        self.assertEqual(jess['super'], Decimal('42.44'))
        self.assertEqual(jess['total_cost'], Decimal('411.44'))
        self.assertEqual(costs['totals']['total_cost'], Decimal('411.44'))

        monday = costs['days'][0]
        self.assertEqual(monday['day'], 'Monday')
        self.assertEqual(monday['gross'], Decimal('225.00'))
        self.assertEqual(costs['days'][-1]['day'], 'Sunday')

    def test_public_holiday_rate(self):
        PublicHoliday.objects.create(name='Canberra Day', date=WEEK, state='NSW')
        TestDataFactory.create_shift(self.roster, self.staff, day_of_week=1, start_time='09:00', end_time='17:00',
                                     break_minutes=30)
        costs = calculate_roster_costs(self.roster)
        self.assertEqual(costs['staff'][0]['gross'], Decimal('450.00'))
        self.assertTrue(costs['days'][0]['is_public_holiday'])

    def test_no_super_rate(self):
        casual = TestDataFactory.create_staff(base_rate=Decimal('20.00'))
        TestDataFactory.create_shift(self.roster, casual, day_of_week=2, start_time='10:00', end_time='12:00')
        row = calculate_roster_costs(self.roster)['staff'][0]
        self.assertEqual(row['super'], Decimal('0.00'))
        self.assertEqual(row['total_cost'], Decimal('40.00'))


class StaffAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_create_staff(self):
        response = self.client.post('/api/roster/staff/', {
            'name': 'Sam', 'role': 'Barista', 'base_hourly_rate': '28.50',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post('/api/roster/staff/', {
            'name': 'sam', 'role': 'Barista', 'base_hourly_rate': '28.50',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'DUPLICATE_STAFF')

    def test_negative_rate(self):
        response = self.client.post('/api/roster/staff/', {
            'name': 'Sam', 'role': 'Barista', 'base_hourly_rate': '-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inactive_staff_hidden_by_default(self):
        TestDataFactory.create_staff(name='Active')
        TestDataFactory.create_staff(name='Gone', is_active=False)
        response = self.client.get('/api/roster/staff/')
        self.assertEqual([s['name'] for s in response.data['data']], ['Active'])

        response = self.client.get('/api/roster/staff/', {'include_inactive': 'true'})
        self.assertEqual(len(response.data['data']), 2)

    def test_delete_staff_with_shifts_deactivates(self):
        staff = TestDataFactory.create_staff()
        TestDataFactory.create_shift(TestDataFactory.create_roster(WEEK), staff)
        response = self.client.delete(f'/api/roster/staff/{staff.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        staff.refresh_from_db()
        self.assertFalse(staff.is_active)

        unused = TestDataFactory.create_staff()
        self.client.delete(f'/api/roster/staff/{unused.id}/')
        self.assertFalse(Staff.objects.filter(pk=unused.id).exists())


class RosterAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.staff = TestDataFactory.create_staff(name='Jess', email='jess@example.com')

    def test_get_creates_draft_for_week(self):
        response = self.client.get('/api/roster/weekly/', {'week': '2024-03-14'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['week_start_date'], '2024-03-11')
        self.assertEqual(response.data['data']['status'], Roster.DRAFT)
        self.assertIn('costs', response.data['data'])

    def test_create_roster_with_shifts(self):
        response = self.client.post('/api/roster/weekly/', {
            'week_start_date': '2024-03-11',
            'shifts': [{'staff_id': self.staff.id, 'day_of_week': 1, 'start_time': '09:00', 'end_time': '15:00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['data']['shifts']), 1)
        self.assertEqual(response.data['data']['costs']['totals']['gross'], Decimal('180.00'))

        response = self.client.post('/api/roster/weekly/', {'week_start_date': '2024-03-11'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'ROSTER_EXISTS')

    def test_shift_validation(self):
        response = self.client.post('/api/roster/weekly/', {
            'week_start_date': '2024-03-11',
            'shifts': [{'staff_id': self.staff.id, 'day_of_week': 1, 'start_time': '15:00', 'end_time': '09:00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/roster/weekly/', {
            'week_start_date': '2024-03-11',
            'shifts': [{'staff_id': self.staff.id, 'day_of_week': 1, 'start_time': '9am', 'end_time': '17:00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Roster.objects.exists())

    def test_put_replaces_shifts(self):
        roster = TestDataFactory.create_roster(WEEK)
        TestDataFactory.create_shift(roster, self.staff, day_of_week=1)
        TestDataFactory.create_shift(roster, self.staff, day_of_week=2)

        response = self.client.put('/api/roster/weekly/', {
            'roster_id': roster.id,
            'shifts': [{'staff_id': self.staff.id, 'day_of_week': 3, 'start_time': '10:00', 'end_time': '14:00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(roster.shifts.values_list('day_of_week', flat=True)), [3])

    def test_duplicate_replaces_target_week(self):
        source = TestDataFactory.create_roster(WEEK)
        TestDataFactory.create_shift(source, self.staff, day_of_week=1)
        TestDataFactory.create_shift(source, self.staff, day_of_week=2)
        target = TestDataFactory.create_roster(date(2024, 3, 18), status=Roster.PUBLISHED)
        TestDataFactory.create_shift(target, self.staff, day_of_week=5)

        response = self.client.post('/api/roster/weekly/duplicate/', {
            'source_roster_id': source.id, 'target_week_start_date': '2024-03-18',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        new_roster = Roster.objects.get(week_start_date=date(2024, 3, 18))
        self.assertEqual(new_roster.status, Roster.DRAFT)
        self.assertEqual(sorted(new_roster.shifts.values_list('day_of_week', flat=True)), [1, 2])
        self.assertEqual(source.shifts.count(), 2)

    def test_duplicate_same_week(self):
        source = TestDataFactory.create_roster(WEEK)
        response = self.client.post('/api/roster/weekly/duplicate/', {
            'source_roster_id': source.id, 'target_week_start_date': '2024-03-13',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_publish_sends_emails(self):
        roster = TestDataFactory.create_roster(WEEK)
        TestDataFactory.create_shift(roster, self.staff, day_of_week=1, role='Barista')
        no_email = TestDataFactory.create_staff(name='Alex')
        TestDataFactory.create_shift(roster, no_email, day_of_week=2)

        response = self.client.patch(f'/api/roster/weekly/{roster.id}/status/', {'status': 'published'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['emails_sent'], 1)
        self.assertEqual(response.data['data']['email_results']['staff_without_email'], ['Alex'])
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['jess@example.com'])
        self.assertIn('Monday 11 Mar: 09:00 - 17:00 (Barista)', mail.outbox[0].body)
        self.assertTrue(AuditLog.objects.filter(action='roster_publish', object_id=str(roster.id)).exists())

    def test_invalid_status(self):
        roster = TestDataFactory.create_roster(WEEK)
        response = self.client.patch(f'/api/roster/weekly/{roster.id}/status/', {'status': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_failed_email_does_not_stop_others(self):
        roster = TestDataFactory.create_roster(WEEK)
        other = TestDataFactory.create_staff(name='Kim', email='kim@example.com')
        TestDataFactory.create_shift(roster, self.staff, day_of_week=1)
        TestDataFactory.create_shift(roster, other, day_of_week=2)

        with patch('backend.roster.notifications.send_mail', side_effect=[SMTPException('down'), 1]):
            results = send_roster_emails(roster)
        self.assertEqual(results['emails_sent'], 1)
        self.assertEqual(results['emails_failed'], 1)

    def test_email_body(self):
        roster = TestDataFactory.create_roster(WEEK)
        shift = TestDataFactory.create_shift(roster, self.staff, day_of_week=0, start_time='08:00', end_time='12:00',
                                             notes='Stocktake')
        subject, body = build_roster_email(roster, self.staff, [shift])
        self.assertEqual(subject, 'Your roster for the week starting 11 Mar 2024')
        self.assertIn('Sunday 17 Mar: 08:00 - 12:00', body)
        self.assertIn('Stocktake', body)
        self.assertIn('Total hours: 4.00', body)


class PublicHolidayAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_create_and_list(self):
        response = self.client.post('/api/roster/public-holidays/', {'name': 'Good Friday', 'date': '2024-03-29'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['state'], 'NSW')

        response = self.client.post('/api/roster/public-holidays/', {'name': 'Again', 'date': '2024-03-29'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'DUPLICATE_HOLIDAY')

        response = self.client.get('/api/roster/public-holidays/', {'start': '2024-03-01', 'end': '2024-03-31'})
        self.assertEqual(len(response.data['data']), 1)

    def test_list_requires_range(self):
        response = self.client.get('/api/roster/public-holidays/')
        self.assertEqual(response.data['error']['code'], 'INVALID_PARAMS')
