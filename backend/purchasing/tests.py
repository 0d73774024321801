"""
Test suite for purchasing
Tests: purchase order totals, approval, receiving, sales analysis and AI suggestions
"""
from django.test import TestCase, override_settings
from rest_framework import status
from decimal import Decimal
from datetime import timedelta
from unittest.mock import patch, MagicMock
from django.utils import timezone
import anthropic
import httpx
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import AuditLog
from backend.inventory.models import StockMovement
from backend.purchasing.models import PurchaseOrder, PurchaseOrderLine
from backend.purchasing.sales_analysis import analyze_sales, item_key
from backend.purchasing.sales_insights import percent_change, trend_direction
from backend.purchasing.ai_suggestions import (
    sales_trend, week_key, parse_suggestions, build_sales_summary,
)
from backend.wastage.models import WastageRecord


class PurchaseOrderModelTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_order_numbers_increment(self):
        first = TestDataFactory.create_purchase_order(self.user)
        second = TestDataFactory.create_purchase_order(self.user)
        self.assertEqual(first.order_number, 'PO-000001')
        self.assertEqual(second.order_number, 'PO-000002')

    def test_line_total(self):
        order = TestDataFactory.create_purchase_order(self.user)
        line = PurchaseOrderLine.objects.create(order=order, item_name='Dates 5kg', quantity=Decimal('3'),
                                                unit_cost_ex_gst=Decimal('12.3333'))
        self.assertEqual(line.total_cost_ex_gst, Decimal('37.00'))

    def test_totals_include_gst_and_shipping(self):
        vendor = TestDataFactory.create_vendor(shipping_cost=Decimal('15.00'),
                                               free_shipping_threshold=Decimal('500.00'))
        item = TestDataFactory.create_item(vendor=vendor)
        order = TestDataFactory.create_purchase_order(self.user, vendor=vendor, lines=[(item, 10, '20.00')])

        self.assertEqual(order.subtotal_ex_gst, Decimal('200.00'))
        self.assertEqual(order.gst_amount, Decimal('20.00'))
        self.assertEqual(order.shipping_cost, Decimal('15.00'))
        self.assertEqual(order.total_inc_gst, Decimal('235.00'))

    def test_free_shipping_over_threshold(self):
        vendor = TestDataFactory.create_vendor(shipping_cost=Decimal('15.00'),
                                               free_shipping_threshold=Decimal('100.00'))
        item = TestDataFactory.create_item(vendor=vendor)
        order = TestDataFactory.create_purchase_order(self.user, vendor=vendor, lines=[(item, 10, '20.00')])
        self.assertEqual(order.shipping_cost, Decimal('0.00'))
        self.assertEqual(order.total_inc_gst, Decimal('220.00'))


class PurchaseOrderAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.vendor = TestDataFactory.create_vendor()
        self.item = TestDataFactory.create_item(vendor=self.vendor, cost=Decimal('4.50'))

    def test_create_order(self):
        response = self.client.post('/api/purchase-orders/', {
            'vendor_id': self.vendor.id,
            'lines': [
                {'item_id': self.item.id, 'quantity': '10'},
                {'item_name': 'Special order honey', 'quantity': '2', 'unit_cost_ex_gst': '18.00'},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['status'], PurchaseOrder.DRAFT)
        self.assertEqual(data['line_count'], 2)
        self.assertEqual(Decimal(data['subtotal_ex_gst']), Decimal('81.00'))
        self.assertEqual(Decimal(data['total_inc_gst']), Decimal('89.10'))
        self.assertTrue(AuditLog.objects.filter(model_name='PurchaseOrder', action='create').exists())

    def test_create_order_with_unknown_item(self):
        response = self.client.post('/api/purchase-orders/', {
            'vendor_id': self.vendor.id,
            'lines': [{'item_id': 99999, 'quantity': '1'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')
        self.assertFalse(PurchaseOrder.objects.exists())

    def test_create_order_line_without_cost_or_item(self):
        response = self.client.post('/api/purchase-orders/', {
            'vendor_id': self.vendor.id,
            'lines': [{'item_name': 'Mystery', 'quantity': '1'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_replaces_lines(self):
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, lines=[(self.item, 10, '4.50')])
        response = self.client.patch(f'/api/purchase-orders/{order.id}/', {
            'lines': [{'item_id': self.item.id, 'quantity': '4', 'unit_cost_ex_gst': '5.00'}],
            'notes': 'Call before delivery',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.lines.count(), 1)
        self.assertEqual(order.subtotal_ex_gst, Decimal('20.00'))
        self.assertEqual(order.notes, 'Call before delivery')

    def test_approve(self):
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, lines=[(self.item, 1, '4.50')])
        response = self.client.post(f'/api/purchase-orders/{order.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, PurchaseOrder.APPROVED)
        self.assertEqual(order.approved_by, self.user)
        self.assertTrue(AuditLog.objects.filter(action='po_approve', object_id=str(order.id)).exists())

        response = self.client.post(f'/api/purchase-orders/{order.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_STATUS')

    def test_only_draft_or_cancelled_can_be_deleted(self):
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, status=PurchaseOrder.APPROVED)
        response = self.client.delete(f'/api/purchase-orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_STATUS')

        draft = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor)
        response = self.client.delete(f'/api/purchase-orders/{draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(PurchaseOrder.objects.filter(pk=draft.id).exists())

    def test_receive_partially_then_fully(self):
        inventory = TestDataFactory.create_inventory(self.item, current_stock=2)
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, status=PurchaseOrder.APPROVED,
                                                      lines=[(self.item, 10, '4.50')])
        line = order.lines.get()

        response = self.client.post(f'/api/purchase-orders/{order.id}/receive/', {
            'lines': [{'line_id': line.id, 'received_quantity': '6'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], PurchaseOrder.PARTIALLY_RECEIVED)
        inventory.refresh_from_db()
        self.assertEqual(inventory.current_stock, Decimal('8'))

        response = self.client.post(f'/api/purchase-orders/{order.id}/receive/', {
            'lines': [{'line_id': line.id, 'received_quantity': '10'}],
        }, format='json')
        self.assertEqual(response.data['data']['status'], PurchaseOrder.RECEIVED)
        inventory.refresh_from_db()
        self.assertEqual(inventory.current_stock, Decimal('12'))
        self.assertEqual(StockMovement.objects.filter(inventory_item=inventory, movement_type='IN').count(), 2)

    def test_received_order_lines_are_locked(self):
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, status=PurchaseOrder.APPROVED,
                                                      lines=[(self.item, 10, '4.50')])
        line = order.lines.get()
        self.client.post(f'/api/purchase-orders/{order.id}/receive/', {
            'lines': [{'line_id': line.id, 'received_quantity': '10'}],
        }, format='json')

        response = self.client.put(f'/api/purchase-orders/{order.id}/', {
            'lines': [{'item_id': self.item.id, 'quantity': '1', 'unit_cost_ex_gst': '1.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_STATUS')

        response = self.client.patch(f'/api/purchase-orders/{order.id}/', {'shipping_cost': '0.00'}, format='json')
        self.assertEqual(response.data['error']['code'], 'INVALID_STATUS')

        order.refresh_from_db()
        line.refresh_from_db()
        self.assertEqual(order.status, PurchaseOrder.RECEIVED)
        self.assertEqual(line.received_quantity, Decimal('10'))
        self.assertEqual(order.subtotal_ex_gst, Decimal('45.00'))

        # Notes can still be added
        response = self.client.patch(f'/api/purchase-orders/{order.id}/', {'notes': 'Box 3 dented'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_status_cannot_skip_approval(self):
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, status=PurchaseOrder.CANCELLED)
        response = self.client.patch(f'/api/purchase-orders/{order.id}/', {'status': 'APPROVED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_STATUS')

        draft = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor)
        response = self.client.patch(f'/api/purchase-orders/{draft.id}/', {'status': 'APPROVED'}, format='json')
        self.assertEqual(response.data['error']['code'], 'INVALID_STATUS')
        draft.refresh_from_db()
        self.assertEqual(draft.status, PurchaseOrder.DRAFT)
        self.assertIsNone(draft.approved_by)

    def test_cancel_through_update(self):
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, status=PurchaseOrder.APPROVED)
        response = self.client.patch(f'/api/purchase-orders/{order.id}/', {'status': 'CANCELLED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], PurchaseOrder.CANCELLED)

    def test_lowering_received_quantity_takes_stock_back_out(self):
        inventory = TestDataFactory.create_inventory(self.item, current_stock=0)
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, status=PurchaseOrder.APPROVED,
                                                      lines=[(self.item, 10, '4.50')])
        line = order.lines.get()
        self.client.post(f'/api/purchase-orders/{order.id}/receive/', {
            'lines': [{'line_id': line.id, 'received_quantity': '10'}],
        }, format='json')

        response = self.client.post(f'/api/purchase-orders/{order.id}/receive/', {
            'lines': [{'line_id': line.id, 'received_quantity': '4'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], PurchaseOrder.PARTIALLY_RECEIVED)
        inventory.refresh_from_db()
        self.assertEqual(inventory.current_stock, Decimal('4'))
        correction = StockMovement.objects.get(inventory_item=inventory, movement_type='OUT')
        self.assertEqual(correction.quantity, Decimal('6'))

    def test_receipt_correction_cannot_leave_negative_stock(self):
        inventory = TestDataFactory.create_inventory(self.item, current_stock=0)
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, status=PurchaseOrder.APPROVED,
                                                      lines=[(self.item, 10, '4.50')])
        line = order.lines.get()
        self.client.post(f'/api/purchase-orders/{order.id}/receive/', {
            'lines': [{'line_id': line.id, 'received_quantity': '10'}],
        }, format='json')
        inventory.move_stock(StockMovement.OUT, 8)

        response = self.client.post(f'/api/purchase-orders/{order.id}/receive/', {
            'lines': [{'line_id': line.id, 'received_quantity': '4'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INSUFFICIENT_STOCK')
        line.refresh_from_db()
        self.assertEqual(line.received_quantity, Decimal('10'))

    def test_cannot_receive_draft(self):
        order = TestDataFactory.create_purchase_order(self.user, vendor=self.vendor, lines=[(self.item, 1, '4.50')])
        response = self.client.post(f'/api/purchase-orders/{order.id}/receive/', {
            'lines': [{'line_id': order.lines.get().id, 'received_quantity': '1'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_STATUS')


WEEK_ONE = """Category,Item Name,Item Variation,SKU,Units Sold,Gross Sales,Vendor Name
Bulk,Almonds,Regular,ALM-1,5,$50.00,Nutty Co
Bulk,Cashews,,,3,$36.00,Nutty Co
Drinks Fridge,Kombucha,,KOM-1,12,$60.00,Brew Bros
"""

WEEK_TWO = """Category,Item Name,Item Variation,SKU,Units Sold,Gross Sales,Vendor Name
Bulk,Almonds,Regular,ALM-1,6,$60.00,Nutty Co
Bulk,Cashews,,,2,$24.00,Nutty Co
"""


class SalesAnalysisTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.vendor = TestDataFactory.create_vendor(name='Nutty Co')
        self.almonds = TestDataFactory.create_item(name='Almonds', vendor=self.vendor, sku='ALM-1',
                                                   cost=Decimal('6.00'), category='Bulk')
        TestDataFactory.create_inventory(self.almonds, current_stock=3)

    def test_item_key(self):
        self.assertEqual(item_key('ALM-1', 'Nutty Co', 'Almonds', 'Regular'), 'sku:ALM-1')
        self.assertEqual(item_key('ALM-1', 'Nutty Co', 'Almonds', 'Salted'), 'name:Nutty Co|Almonds|Salted')
        self.assertEqual(item_key('', 'Nutty Co', 'Cashews', ''), 'name:Nutty Co|Cashews|')

    def test_suggested_quantity_rounds_up_net_of_stock(self):
        result = analyze_sales(
            [TestDataFactory.csv_file(WEEK_ONE), TestDataFactory.csv_file(WEEK_TWO)],
            vendor_name='Nutty Co', order_frequency=1,
        )
        items = {entry['item_name']: entry for entry in result['items']}
        self.assertEqual(set(items), {'Almonds', 'Cashews'})

        almonds = items['Almonds']
        self.assertEqual(almonds['weeks'], [5.0, 6.0])
        self.assertEqual(almonds['avg_weekly'], 5.5)
        # ceil(5.5) - 3 on hand
        self.assertEqual(almonds['suggested_quantity'], 3)
        self.assertEqual(almonds['item_id'], self.almonds.id)
        self.assertEqual(almonds['cost_price'], 6.0)

        cashews = items['Cashews']
        self.assertIsNone(cashews['item_id'])
        self.assertEqual(cashews['suggested_quantity'], 3)
        self.assertEqual(result['summary']['weeks_analyzed'], 2)
        self.assertEqual(result['summary']['total_suggested_units'], 6)

    def test_catalogue_cost_overrides_item_cost(self):
        catalogue = TestDataFactory.csv_file('Item Name,Default Unit Cost\nAlmonds,$7.25\n')
        result = analyze_sales([TestDataFactory.csv_file(WEEK_ONE)], catalogue_file=catalogue,
                               vendor_name='Nutty Co')
        almonds = next(e for e in result['items'] if e['item_name'] == 'Almonds')
        self.assertEqual(almonds['cost_price'], 7.25)

    def test_wastage_is_attached(self):
        WastageRecord.objects.create(item=self.almonds, item_name='Almonds', quantity=Decimal('2'),
                                     total_cost=Decimal('12.00'), adjustment_type='Damaged',
                                     recorded_at=timezone.now() - timedelta(days=2))
        result = analyze_sales([TestDataFactory.csv_file(WEEK_ONE)], vendor_name='Nutty Co')
        almonds = next(e for e in result['items'] if e['item_name'] == 'Almonds')
        self.assertEqual(almonds['wastage_qty'], 2.0)
        self.assertEqual(almonds['wastage_cost'], 12.0)

    def test_analyze_sales_endpoint(self):
        response = self.client.post('/api/orders/analyze-sales/', {
            'files': [TestDataFactory.csv_file(WEEK_ONE, 'w1.csv'), TestDataFactory.csv_file(WEEK_TWO, 'w2.csv')],
            'vendor_id': str(self.vendor.id),
            'order_frequency': '2',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        almonds = next(e for e in response.data['data']['items'] if e['item_name'] == 'Almonds')
        # ceil(5.5 * 2) - 3 on hand
        self.assertEqual(almonds['suggested_quantity'], 8)

    def test_analyze_sales_without_files(self):
        response = self.client.post('/api/orders/analyze-sales/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'NO_FILE')


class AISuggestionTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        vendor = TestDataFactory.create_vendor(name='Brew Bros')
        TestDataFactory.create_item(name='Kombucha', vendor=vendor)
        today = timezone.localdate()
        for weeks_ago, qty in ((3, 4), (2, 5), (1, 9), (0, 10)):
            TestDataFactory.create_sales_aggregate('Kombucha', date=today - timedelta(weeks=weeks_ago), quantity=qty)

    def test_sales_trend(self):
        self.assertEqual(sales_trend([4, 5, 9, 10]), 'increasing')
        self.assertEqual(sales_trend([10, 9, 5, 4]), 'decreasing')
        self.assertEqual(sales_trend([5, 5, 5, 5]), 'stable')
        self.assertEqual(sales_trend([5]), 'stable')

    def test_week_key_is_monday(self):
        from datetime import date
        self.assertEqual(week_key(date(2024, 3, 17)), '2024-03-11')

    def test_build_sales_summary(self):
        summary = build_sales_summary('brew', 6)
        self.assertEqual(len(summary), 1)
        self.assertEqual(summary[0]['name'], 'Kombucha')
        self.assertEqual(summary[0]['total_sold'], 28.0)
        self.assertEqual(summary[0]['trend'], 'increasing')

    def test_parse_suggestions(self):
        text = 'Here you go: [{"itemName": "Kombucha", "action": "increase"}]'
        self.assertEqual(parse_suggestions(text), [{'itemName': 'Kombucha', 'action': 'increase'}])
        self.assertEqual(parse_suggestions('no json here'), [])
        fallback = parse_suggestions('[not valid json]')
        self.assertEqual(fallback[0]['itemName'], 'Parse Error')

    def test_missing_vendor(self):
        response = self.client.post('/api/ai/order-suggestions/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'MISSING_VENDOR')

    @override_settings(ANTHROPIC_API_KEY='')
    def test_missing_api_key(self):
        response = self.client.post('/api/ai/order-suggestions/', {'vendor_name': 'Brew Bros'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error']['code'], 'CONFIG_ERROR')

    @override_settings(ANTHROPIC_API_KEY='test-key', ANTHROPIC_MODEL='claude-test')
    @patch('backend.purchasing.ai_suggestions.anthropic.Anthropic')
    def test_suggestions(self, mock_client_class):
        mock_client = mock_client_class.return_value
        mock_client.messages.create.return_value = MagicMock(content=[
            MagicMock(type='text', text='[{"itemName": "Kombucha", "action": "increase", '
                                        '"suggestedWeeklyQty": 12}]'),
        ])
        response = self.client.post('/api/ai/order-suggestions/', {'vendor_name': 'Brew Bros', 'weeks': 4},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['suggestions'][0]['suggestedWeeklyQty'], 12)
        self.assertEqual(data['total_items'], 1)

        self.assertEqual(mock_client_class.call_args.kwargs['api_key'], 'test-key')
        create_kwargs = mock_client.messages.create.call_args.kwargs
        self.assertEqual(create_kwargs['model'], 'claude-test')
        self.assertEqual(create_kwargs['max_tokens'], 4096)
        self.assertIn('Kombucha', create_kwargs['messages'][0]['content'])

    @override_settings(ANTHROPIC_API_KEY='test-key')
    @patch('backend.purchasing.ai_suggestions.anthropic.Anthropic')
    def test_api_failure(self, mock_client_class):
        request = httpx.Request('POST', 'https://api.anthropic.com/v1/messages')
        mock_client_class.return_value.messages.create.side_effect = anthropic.APIConnectionError(request=request)
        response = self.client.post('/api/ai/order-suggestions/', {'vendor_name': 'Brew Bros'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error']['code'], 'AI_ERROR')

    def test_sales_names_match_regardless_of_case(self):
        vendor = TestDataFactory.create_vendor(name='Seed Co')
        TestDataFactory.create_item(name='Chia Seeds 500g', vendor=vendor)
        today = timezone.localdate()
        TestDataFactory.create_sales_aggregate('CHIA SEEDS 500G', date=today - timedelta(days=3), quantity=6)
        TestDataFactory.create_sales_aggregate('chia seeds 500g', date=today - timedelta(days=10), quantity=4)

        summary = build_sales_summary('seed co', 4)
        self.assertEqual(len(summary), 1)
        self.assertEqual(summary[0]['name'], 'Chia Seeds 500g')
        self.assertEqual(summary[0]['total_sold'], 10.0)


class SalesInsightTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.today = timezone.localdate()

    def _sold(self, name, days_ago, quantity):
        TestDataFactory.create_sales_aggregate(name, date=self.today - timedelta(days=days_ago), quantity=quantity)

    def test_percent_change_and_direction(self):
        self.assertEqual(percent_change(15, 10), 50.0)
        self.assertEqual(percent_change(5, 0), 100.0)
        self.assertEqual(percent_change(0, 0), 0.0)
        self.assertEqual(trend_direction(10.5), 'up')
        self.assertEqual(trend_direction(-10), 'flat')
        self.assertEqual(trend_direction(-11), 'down')

    def test_smart_alerts(self):
        self._sold('KOMBUCHA', 35, 10)
        self._sold('Kombucha', 3, 3)
        self._sold('Oat Milk', 40, 10)
        self._sold('Oat Milk', 5, 20)
        self._sold('Tofu', 30, 5)
        sourdough = TestDataFactory.create_item(name='Sourdough')
        self._sold('Sourdough', 2, 6)
        WastageRecord.objects.create(item=sourdough, item_name='Sourdough', quantity=Decimal('4'),
                                     total_cost=Decimal('16.00'), adjustment_type='Expired',
                                     recorded_at=timezone.now() - timedelta(days=3))

        response = self.client.get('/api/ai/smart-alerts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        alerts = {(a['type'], a['item_name']): a for a in data['alerts']}

        self.assertEqual(alerts[('declining_sales', 'Kombucha')]['severity'], 'critical')
        self.assertEqual(alerts[('increasing_sales', 'Oat Milk')]['severity'], 'info')
        self.assertEqual(alerts[('dead_stock', 'Tofu')]['severity'], 'warning')
        wastage = alerts[('high_wastage', 'Sourdough')]
        self.assertEqual(wastage['severity'], 'critical')
        self.assertIn('40% wastage ratio', wastage['message'])

        self.assertEqual([a['severity'] for a in data['alerts']], ['critical', 'critical', 'warning', 'info'])
        self.assertEqual(data['summary']['total'], 4)
        self.assertEqual(data['summary']['critical'], 2)
        self.assertEqual(data['summary']['by_type']['dead_stock'], 1)

    def test_small_previous_sales_do_not_alert(self):
        self._sold('Ginger Shot', 35, 2)
        self._sold('Ginger Shot', 3, 10)
        response = self.client.get('/api/ai/smart-alerts/')
        self.assertEqual(response.data['data']['alerts'], [])

    def test_sales_trends(self):
        self._sold('Almonds', 20, 6)
        self._sold('Almonds', 3, 12)
        self._sold('Dates', 16, 10)
        self._sold('Dates', 2, 5)
        self._sold('Honey', 20, 10)
        self._sold('Honey', 4, 10)

        response = self.client.get('/api/ai/sales-trends/', {'weeks': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        trends = {t['name']: t for t in data['item_trends']}
        self.assertEqual(trends['Almonds']['trend'], 'up')
        self.assertEqual(trends['Almonds']['change'], 100.0)
        self.assertEqual(trends['Dates']['trend'], 'down')
        self.assertEqual(trends['Honey']['trend'], 'flat')
        self.assertEqual(trends['Honey']['avg_weekly'], 5.0)

        self.assertEqual([t['name'] for t in data['top_movers']['increasing']], ['Almonds'])
        self.assertEqual([t['name'] for t in data['top_movers']['decreasing']], ['Dates'])
        self.assertEqual(data['category_trends'][0]['current_qty'], 27.0)
        self.assertEqual(data['category_trends'][0]['previous_qty'], 26.0)
        self.assertEqual(data['period']['weeks'], 2)

    def test_sales_trends_by_vendor(self):
        vendor = TestDataFactory.create_vendor(name='Nutty Co')
        TestDataFactory.create_item(name='Almonds', vendor=vendor)
        self._sold('almonds', 3, 12)
        self._sold('Honey', 3, 10)

        response = self.client.get('/api/ai/sales-trends/', {'vendor': 'nutty'})
        trends = response.data['data']['item_trends']
        self.assertEqual([t['name'] for t in trends], ['almonds'])
        self.assertEqual(trends[0]['vendor'], 'Nutty Co')

    def test_sales_trends_rejects_bad_weeks(self):
        response = self.client.get('/api/ai/sales-trends/', {'weeks': 'many'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_PARAMS')
