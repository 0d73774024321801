"""
Tests for vendors, items, price history, labels and the shelf checker
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from unittest.mock import patch, MagicMock
import requests
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import AuditLog, Setting
from backend.catalog.models import Vendor, Item, ItemPriceHistory
from backend.catalog import dymo_service, shelf_checker
from backend.catalog.label_generator import format_price


class VendorAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_create_vendor(self):
        response = self.client.post('/api/vendors/', {'name': 'Wholefoods Direct'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Vendor.objects.filter(name='Wholefoods Direct').exists())

    def test_duplicate_vendor_name(self):
        TestDataFactory.create_vendor(name='Wholefoods Direct')
        response = self.client.post('/api/vendors/', {'name': 'wholefoods direct'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'DUPLICATE_VENDOR')

    def test_vendor_with_items_cannot_be_deleted(self):
        vendor = TestDataFactory.create_vendor()
        TestDataFactory.create_item(vendor=vendor)
        response = self.client.delete(f'/api/vendors/{vendor.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'VENDOR_IN_USE')

    def test_order_settings_upsert(self):
        vendor = TestDataFactory.create_vendor()
        response = self.client.put(f'/api/vendors/{vendor.id}/order-settings/', {
            'order_frequency': 'fortnightly',
            'shipping_cost': '15.00',
            'free_shipping_threshold': '300.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        vendor.refresh_from_db()
        self.assertEqual(vendor.order_settings.order_frequency, 'fortnightly')
        self.assertEqual(vendor.order_settings.shipping_for(Decimal('350')), Decimal('0.00'))
        self.assertEqual(vendor.order_settings.shipping_for(Decimal('100')), Decimal('15.00'))


class ItemAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.vendor = TestDataFactory.create_vendor()

    def test_create_item_calculates_prices(self):
        response = self.client.post('/api/items/', {
            'name': 'Organic Oats 1kg',
            'vendor': self.vendor.id,
            'category': 'Bulk',
            'current_cost_ex_gst': '4.00',
            'has_gst': False,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item = Item.objects.get(name='Organic Oats 1kg')
        self.assertEqual(item.current_markup, Decimal('1.75'))
        self.assertEqual(item.current_sell_ex_gst, Decimal('7.00'))
        self.assertEqual(item.current_sell_inc_gst, Decimal('7.00'))

    def test_duplicate_sku(self):
        TestDataFactory.create_item(sku='OAT-1')
        response = self.client.post('/api/items/', {
            'name': 'Oats again', 'category': 'Bulk', 'current_cost_ex_gst': '4.00', 'sku': 'oat-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'DUPLICATE_ITEM')

    def test_price_change_records_history_and_audit(self):
        item = TestDataFactory.create_item(cost=Decimal('10.00'), markup=Decimal('1.65'))
        self.assertEqual(item.current_sell_inc_gst, Decimal('18.15'))

        response = self.client.patch(f'/api/items/{item.id}/', {'current_cost_ex_gst': '12.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertEqual(item.current_sell_ex_gst, Decimal('19.80'))
        self.assertEqual(item.current_sell_inc_gst, Decimal('21.80'))

        history = ItemPriceHistory.objects.get(item=item)
        self.assertEqual(history.old_sell_inc_gst, Decimal('18.15'))
        self.assertEqual(history.new_sell_inc_gst, Decimal('21.80'))
        self.assertTrue(AuditLog.objects.filter(action='price_change', object_id=str(item.id)).exists())
        self.assertTrue(response.data['data']['has_price_changed'])

    def test_rename_does_not_record_price_history(self):
        item = TestDataFactory.create_item()
        self.client.patch(f'/api/items/{item.id}/', {'name': 'Renamed'}, format='json')
        self.assertFalse(ItemPriceHistory.objects.filter(item=item).exists())

    def test_list_is_paginated_and_searchable(self):
        TestDataFactory.create_item(name='Raw Cacao Powder')
        TestDataFactory.create_item(name='Cacao Nibs')
        TestDataFactory.create_item(name='Chia Seeds')

        response = self.client.get('/api/items/', {'search': 'cacao powder', 'limit': 10})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 1)
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_delete_item_used_on_purchase_order(self):
        item = TestDataFactory.create_item()
        TestDataFactory.create_purchase_order(self.user, lines=[(item, 2, '5.00')])
        response = self.client.delete(f'/api/items/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'ITEM_IN_USE')

    def test_bulk_update_positions(self):
        first = TestDataFactory.create_item()
        second = TestDataFactory.create_item()
        response = self.client.post('/api/items/bulk-update-positions/', {'items': [
            {'id': first.id, 'display_order': 2},
            {'id': second.id, 'display_order': 1},
        ]}, format='json')
        self.assertEqual(response.data['data']['updated'], 2)
        first.refresh_from_db()
        self.assertEqual(first.display_order, 2)

    def test_print_sheet_groups_by_category(self):
        TestDataFactory.create_item(name='Almonds', category='Bulk')
        TestDataFactory.create_item(name='Kombucha', category='Drinks Fridge')
        response = self.client.get('/api/items/print-sheet/')
        categories = [group['category'] for group in response.data['data']]
        self.assertEqual(categories, ['Bulk', 'Drinks Fridge'])


class LabelTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.item = TestDataFactory.create_item(name='Tahini & Honey', barcode='9300000000001')

    def test_format_price(self):
        self.assertEqual(format_price(Decimal('4.5')), '$4.50')

    def test_item_label_is_png_data_url(self):
        response = self.client.get(f'/api/items/{self.item.id}/label/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['data']['image'].startswith('data:image/png;base64,'))

    def test_label_xml_escapes_name(self):
        xml = dymo_service.build_label_xml('Tahini & Honey', '$5.95')
        self.assertIn('Tahini &amp; Honey', xml)
        self.assertIn('$5.95', xml)

    @patch('backend.catalog.dymo_service.requests')
    def test_print_labels(self, mock_requests):
        mock_requests.exceptions = requests.exceptions
        mock_requests.get.return_value = MagicMock(status_code=200, text='<Name>LabelWriter</Name>')
        mock_requests.post.return_value = MagicMock(status_code=200)

        response = self.client.post('/api/labels/dymo/print/', {'item_ids': [self.item.id], 'copies': 2},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['printed'], 2)
        self.assertEqual(response.data['data']['printer'], 'LabelWriter')

    @patch('backend.catalog.dymo_service.requests')
    def test_print_service_unavailable(self, mock_requests):
        mock_requests.exceptions = requests.exceptions
        mock_requests.get.side_effect = requests.exceptions.ConnectionError('refused')

        response = self.client.post('/api/labels/dymo/print/', {'item_ids': [self.item.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['error']['code'], 'PRINT_SERVICE_UNAVAILABLE')


class ShelfCheckerTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_save_and_load_state(self):
        response = self.client.post('/api/shelf-checker-state/', {
            'checked_items': {'1': True, '2': True, '3': False},
            'label_needs': {'1': 'missing', '4': 'update'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Saved! 2 items checked, 1 missing labels, 1 need updates')

        response = self.client.get('/api/shelf-checker-state/')
        self.assertEqual(response.data['data']['label_needs'], {'1': 'missing', '4': 'update'})
        self.assertEqual(response.data['data']['stats']['checked_count'], 2)

    def test_invalid_label_need(self):
        response = self.client.post('/api/shelf-checker-state/', {
            'checked_items': {}, 'label_needs': {'1': 'broken'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_backups_are_pruned(self):
        for _ in range(shelf_checker.MAX_BACKUPS + 3):
            shelf_checker.save_state({'1': True}, {})
        backups = Setting.objects.filter(key__startswith=shelf_checker.BACKUP_PREFIX).count()
        self.assertEqual(backups, shelf_checker.MAX_BACKUPS)

    def test_reset_keeps_backups(self):
        shelf_checker.save_state({'1': True}, {})
        response = self.client.delete('/api/shelf-checker-state/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Setting.objects.filter(key=shelf_checker.STATE_KEY).exists())
        self.assertTrue(Setting.objects.filter(key__startswith=shelf_checker.BACKUP_PREFIX).exists())
