"""
Tests for authentication, settings, audit logging and the API envelope
"""
from django.test import TestCase, RequestFactory
from rest_framework import status
from rest_framework.test import APIClient
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import Setting, AuditLog
from backend.core.utils import create_audit_log, get_setting, set_setting, get_json_setting, set_json_setting
from backend.core.csv_utils import read_csv_upload, parse_money, parse_date, parse_iso_date, CsvFormatError
from decimal import Decimal
from datetime import date


class AuthenticationTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(username='manager', password='secret123')
        self.client = APIClient()

    def test_login_returns_tokens_and_user(self):
        response = self.client.post('/api/auth/login/', {'username': 'manager', 'password': 'secret123'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'manager')

    def test_login_with_wrong_password(self):
        response = self.client.post('/api/auth/login/', {'username': 'manager', 'password': 'wrong'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED')

    def test_unauthenticated_request_is_rejected(self):
        response = self.client.get('/api/items/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED')

    def test_me(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['username'], 'manager')


class SettingTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_upsert_setting(self):
        response = self.client.post('/api/settings/', {'key': 'markup_bulk', 'value': '1.8'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post('/api/settings/', {'key': 'markup_bulk', 'value': '1.9'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Setting.objects.get(key='markup_bulk').value, '1.9')

    def test_setting_detail_missing(self):
        response = self.client.get('/api/settings/nope/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_setting_helpers(self):
        set_setting('shop_name', 'Green Pantry')
        self.assertEqual(get_setting('shop_name'), 'Green Pantry')
        self.assertEqual(get_setting('missing', 'default'), 'default')

        set_json_setting('shelf_state', {'checked': [1, 2]})
        self.assertEqual(get_json_setting('shelf_state'), {'checked': [1, 2]})


class UserManagementTests(TestCase):

    def setUp(self):
        self.staff = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_user()
        self.admin.role = 'admin'
        self.admin.save()
        self.client = AuthenticatedAPIClient()

    def test_any_user_can_list_users(self):
        self.client.authenticate_user(self.staff)
        response = self.client.get('/api/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(f'/api/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['role'], 'admin')

    def test_admin_role_can_manage_users(self):
        self.assertFalse(self.admin.is_staff)
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/users/', {
            'username': 'new_starter',
            'password': 'Kombucha-Shelf-42',
            'password_confirm': 'Kombucha-Shelf-42',
            'role': 'staff',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.patch(f'/api/users/{self.staff.id}/', {'role': 'manager'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.staff.refresh_from_db()
        self.assertEqual(self.staff.role, 'manager')

    def test_non_admin_cannot_change_users(self):
        manager = TestDataFactory.create_user(is_staff=True)
        manager.role = 'manager'
        manager.save()
        self.client.authenticate_user(manager)

        response = self.client.patch(f'/api/users/{self.staff.id}/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/users/{self.staff.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.staff.refresh_from_db()
        self.assertEqual(self.staff.role, 'staff')

    def test_superuser_counts_as_admin(self):
        superuser = TestDataFactory.create_user(is_superuser=True)
        self.client.authenticate_user(superuser)
        response = self.client.delete(f'/api/users/{self.staff.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class AuditLogTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_create_audit_log_records_ip_and_user(self):
        request = RequestFactory().post('/api/items/', REMOTE_ADDR='10.0.0.5')
        request.user = self.user
        create_audit_log(request=request, action='create', model_name='Item', object_id=7,
                         object_name='Oat Milk', changes={'name': 'Oat Milk'})

        log = AuditLog.objects.get()
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.object_id, '7')
        self.assertEqual(log.ip_address, '10.0.0.5')

    def test_audit_log_without_object_id_is_skipped(self):
        create_audit_log(action='create', model_name='Item', object_id=None)
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_audit_log_list_requires_admin(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        admin = TestDataFactory.create_user(is_staff=True)
        client.authenticate_user(admin)
        response = client.get('/api/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('pagination', response.data)


class CsvUtilsTests(TestCase):

    def test_read_csv_strips_and_skips_blank_rows(self):
        upload = TestDataFactory.csv_file('\ufeff Name , Qty \n Apple , 2 \n,\n')
        headers, rows = read_csv_upload(upload)
        self.assertEqual(headers, ['Name', 'Qty'])
        self.assertEqual(rows, [{'Name': 'Apple', 'Qty': '2'}])

    def test_read_csv_without_header_row(self):
        with self.assertRaises(CsvFormatError):
            read_csv_upload(TestDataFactory.csv_file(''))

    def test_parse_money(self):
        self.assertEqual(parse_money('$1,234.50'), Decimal('1234.50'))
        self.assertEqual(parse_money('($12.00)'), Decimal('-12.00'))
        self.assertEqual(parse_money(''), Decimal('0'))
        self.assertIsNone(parse_money('abc', default=None))

    def test_parse_dates(self):
        self.assertEqual(parse_date('03/15/2024'), date(2024, 3, 15))
        self.assertEqual(parse_date('2024-03-15'), date(2024, 3, 15))
        self.assertEqual(parse_iso_date('2024-03-15'), date(2024, 3, 15))
        self.assertIsNone(parse_iso_date('15/03/2024'))
