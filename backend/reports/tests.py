"""
Tests for loss, margin, markup, low stock and shelf price reports and the dashboard
"""
from datetime import datetime, timedelta
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.cache_utils import invalidate_dashboard_cache
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.catalog.models import Item
from backend.diary.models import DiaryEntry
from backend.purchasing.models import PurchaseOrder
from backend.roster.costing import calculate_roster_costs, week_start_for
from backend.wastage.models import WastageRecord, DiscountRecord
from backend.reports.views import stock_priority, suggested_order_quantity


def _at(year, month, day):
    return timezone.make_aware(datetime(year, month, day, 12, 0))


class ReportsTestCase(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)


class WastageDiscountReportTests(ReportsTestCase):

    def setUp(self):
        super().setUp()
        self.sourdough = TestDataFactory.create_item(name='Sourdough', category='Fresh Bread')
        WastageRecord.objects.create(item=self.sourdough, item_name='Sourdough', quantity=Decimal('12'),
                                     total_cost=Decimal('60.00'), adjustment_type='Expired',
                                     recorded_at=_at(2024, 3, 15))
        WastageRecord.objects.create(item_name='Bananas', quantity=Decimal('1'), total_cost=Decimal('2.10'),
                                     adjustment_type='Damaged', recorded_at=_at(2024, 3, 16))
        WastageRecord.objects.create(item_name='Bananas', quantity=Decimal('5'), total_cost=Decimal('9.00'),
                                     adjustment_type='Damaged', recorded_at=_at(2024, 4, 2))
        DiscountRecord.objects.create(item=self.sourdough, item_name='Sourdough', quantity=Decimal('9'),
                                      discount_amount=Decimal('45.00'), discount_type='50% Discount',
                                      recorded_at=_at(2024, 3, 15))
        DiscountRecord.objects.create(item_name='Kombucha', quantity=Decimal('11'), discount_amount=Decimal('5.00'),
                                      recorded_at=_at(2024, 3, 20))

    def _get(self, **params):
        params = {'start_date': '2024-03-01', 'end_date': '2024-03-31', **params}
        return self.client.get('/api/reports/wastage-discounts/', params)

    def test_requires_dates(self):
        response = self.client.get('/api/reports/wastage-discounts/', {'start_date': '2024-03-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_PARAMS')

    def test_losses_per_item(self):
        data = self._get().data['data']
        items = {row['item_name']: row for row in data['items']}

        self.assertEqual(data['items'][0]['item_name'], 'Sourdough')
        self.assertEqual(items['Sourdough']['total_loss'], Decimal('105.00'))
        self.assertEqual(items['Sourdough']['category'], 'Fresh Bread')
        self.assertTrue(items['Sourdough']['recommendation'].startswith('CRITICAL'))

        self.assertIsNone(items['Bananas']['item_id'])
        self.assertEqual(items['Bananas']['wastage_cost'], Decimal('2.10'))
        self.assertIsNone(items['Bananas']['recommendation'])
        self.assertTrue(items['Kombucha']['recommendation'].startswith('MODERATE'))

        self.assertEqual(data['summary']['total_wastage_cost'], Decimal('62.10'))
        self.assertEqual(data['summary']['total_discount_amount'], Decimal('50.00'))
        self.assertEqual(data['summary']['item_count'], 3)

    def test_discount_type_breakdown(self):
        breakdown = self._get().data['data']['discount_type_breakdown']
        self.assertEqual([row['type'] for row in breakdown], ['50% Discount', 'Uncategorized'])
        self.assertEqual(breakdown[0]['count'], 1)


class MarginReportTests(ReportsTestCase):

    def test_margins(self):
        vendor = TestDataFactory.create_vendor('Good Foods')
        TestDataFactory.create_item(name='Oats', vendor=vendor, markup='1.65')
        TestDataFactory.create_item(name='Honey', vendor=vendor, markup='2.00')
        TestDataFactory.create_item(name='Rice', category='Bulk', markup='1.20', has_gst=False)
        TestDataFactory.create_item(name='Unpriced', price=False)

        data = self.client.get('/api/reports/margins/').data['data']
        self.assertEqual(data['summary']['item_count'], 3)
        self.assertEqual(data['lowest_margins'][0]['name'], 'Rice')
        self.assertEqual(data['lowest_margins'][0]['margin_percent'], Decimal('16.67'))
        self.assertEqual(data['highest_margins'][0]['margin_percent'], Decimal('50.00'))
        self.assertEqual(data['summary']['min_margin'], Decimal('16.67'))

        by_vendor = {group['vendor']: group for group in data['by_vendor']}
        self.assertEqual(by_vendor['Good Foods']['item_count'], 2)
        self.assertEqual(by_vendor['No vendor']['item_count'], 1)

    def test_category_filter(self):
        TestDataFactory.create_item(name='Oats')
        TestDataFactory.create_item(name='Rice', category='Bulk')
        data = self.client.get('/api/reports/margins/', {'category': 'Bulk'}).data['data']
        self.assertEqual([row['name'] for row in data['items']], ['Rice'])


class MarkupCheckerTests(ReportsTestCase):

    def test_statuses(self):
        TestDataFactory.create_item(name='On target', markup='1.65')
        TestDataFactory.create_item(name='Too high', markup='2.00')
        TestDataFactory.create_item(name='Too low', markup='1.20', has_gst=False)
        TestDataFactory.create_item(name='Bulk under', category='Bulk', markup='1.65')

        data = self.client.get('/api/reports/markup-checker/').data['data']
        self.assertEqual([row['name'] for row in data['items']], ['Too low', 'Bulk under', 'Too high', 'On target'])
        self.assertEqual(data['summary'], {'total': 4, 'under': 2, 'over': 1, 'on_target': 1})

        rows = {row['name']: row for row in data['items']}
        self.assertEqual(rows['Bulk under']['target_markup'], Decimal('1.75'))
        self.assertEqual(rows['Too high']['actual_markup'], Decimal('2.0000'))
        self.assertTrue(rows['On target']['has_gst'])
        self.assertFalse(rows['Too low']['has_gst'])

    def test_wider_tolerance(self):
        TestDataFactory.create_item(name='Bulk under', category='Bulk', markup='1.65')
        data = self.client.get('/api/reports/markup-checker/', {'tolerance': '0.2'}).data['data']
        self.assertEqual(data['items'][0]['status'], 'on-target')

    def test_invalid_tolerance(self):
        response = self.client.get('/api/reports/markup-checker/', {'tolerance': 'abc'})
        self.assertEqual(response.data['error']['code'], 'INVALID_PARAMS')


class LowStockTests(ReportsTestCase):

    def test_stock_priority(self):
        self.assertEqual(stock_priority(Decimal('0'), Decimal('0'), None, 14), ('critical', 'OUT OF STOCK'))
        self.assertEqual(stock_priority(Decimal('3'), Decimal('5'), None, 14)[0], 'critical')
        self.assertEqual(stock_priority(Decimal('9'), Decimal('0'), Decimal('2.9'), 14)[0], 'critical')
        self.assertEqual(stock_priority(Decimal('9'), Decimal('0'), Decimal('6.9'), 14)[0], 'warning')
        self.assertEqual(stock_priority(Decimal('9'), Decimal('0'), Decimal('10'), 14)[0], 'watch')
        self.assertEqual(stock_priority(Decimal('9'), Decimal('0'), Decimal('20'), 14), ('ok', None))
        self.assertEqual(stock_priority(Decimal('9'), Decimal('0'), None, 14), ('ok', None))

    def test_suggested_order_quantity(self):
        self.assertEqual(suggested_order_quantity(Decimal('2.0'), Decimal('2.00'), 12), 60)
        self.assertEqual(suggested_order_quantity(Decimal('10.0'), Decimal('1.00')), 20)
        self.assertEqual(suggested_order_quantity(None, Decimal('0')), 0)
        self.assertEqual(suggested_order_quantity(Decimal('45'), Decimal('1.00')), 0)

    def _stock(self, name, stock, weekly_units=None, reorder_point=0, pack_size=1):
        item = TestDataFactory.create_item(name=name)
        TestDataFactory.create_inventory(item, current_stock=stock, reorder_point=reorder_point, pack_size=pack_size)
        if weekly_units:
            TestDataFactory.create_sales_aggregate(name.lower(), date=timezone.localdate() - timedelta(days=1),
                                                   quantity=weekly_units)
        return item

    def test_report(self):
        self._stock('Kombucha', 4, weekly_units=14, pack_size=12)
        self._stock('Almonds', 10, weekly_units=7)
        self._stock('Rice', 5, weekly_units=7)
        self._stock('Oats', 100, weekly_units=7)
        self._stock('Tea', 2, reorder_point=5)
        self._stock('Ghost', 0)
        # Outside the seven day window
        TestDataFactory.create_sales_aggregate('Oats', date=timezone.localdate() - timedelta(days=7), quantity=700)

        data = self.client.get('/api/reports/low-stock/').data['data']
        self.assertEqual([row['name'] for row in data['items']], ['Tea', 'Kombucha', 'Rice', 'Almonds'])
        self.assertEqual(data['summary'], {'total': 4, 'critical': 2, 'warning': 1, 'watch': 1})

        rows = {row['name']: row for row in data['items']}
        self.assertEqual(rows['Kombucha']['avg_daily_sales'], Decimal('2.00'))
        self.assertEqual(rows['Kombucha']['days_of_stock'], Decimal('2.0'))
        self.assertEqual(rows['Kombucha']['suggested_order_qty'], 60)
        self.assertEqual(rows['Almonds']['suggested_order_qty'], 20)
        self.assertEqual(rows['Tea']['reason'], 'At or below reorder point')
        self.assertIsNone(rows['Tea']['days_of_stock'])

    def test_slow_seller_is_still_counted_as_selling(self):
        self._stock('Saffron 1g', Decimal('0.05'), weekly_units=Decimal('0.03'))
        data = self.client.get('/api/reports/low-stock/').data['data']

        row = data['items'][0]
        self.assertEqual(row['name'], 'Saffron 1g')
        self.assertEqual(row['priority'], 'watch')
        self.assertEqual(row['days_of_stock'], Decimal('11.7'))
        self.assertEqual(row['avg_daily_sales'], Decimal('0.00'))
        self.assertEqual(row['suggested_order_qty'], 1)

    def test_include_no_stock(self):
        self._stock('Ghost', 0)
        data = self.client.get('/api/reports/low-stock/').data['data']
        self.assertEqual(data['items'], [])

        data = self.client.get('/api/reports/low-stock/', {'include_no_stock': 'true'}).data['data']
        self.assertEqual(data['items'][0]['name'], 'Ghost')
        self.assertEqual(data['items'][0]['reason'], 'OUT OF STOCK')
        self.assertEqual(data['items'][0]['suggested_order_qty'], 0)

    def test_invalid_days(self):
        response = self.client.get('/api/reports/low-stock/', {'days_ahead': 'soon'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ShelfPriceCheckerTests(ReportsTestCase):

    def test_mismatches(self):
        TestDataFactory.create_item(name='Oats')
        off = TestDataFactory.create_item(name='Honey')
        close = TestDataFactory.create_item(name='Rice', category='Bulk')
        Item.objects.filter(pk=off.pk).update(current_sell_inc_gst=Decimal('19.00'))
        Item.objects.filter(pk=close.pk).update(current_sell_inc_gst=close.current_sell_inc_gst + Decimal('0.05'))

        data = self.client.get('/api/reports/shelf-price-checker/').data['data']
        self.assertEqual([shelf['category'] for shelf in data['shelves']], ['Bulk', 'Groceries'])
        self.assertEqual(data['summary'], {'shelf_count': 2, 'item_count': 3, 'price_mismatches': 1})

        groceries = {row['name']: row for row in data['shelves'][1]['items']}
        self.assertTrue(groceries['Honey']['price_mismatch'])
        self.assertEqual(groceries['Honey']['expected_sell_inc_gst'], Decimal('18.15'))
        self.assertFalse(groceries['Oats']['price_mismatch'])
        self.assertFalse(data['shelves'][0]['items'][0]['price_mismatch'])


class DashboardTests(ReportsTestCase):

    def setUp(self):
        super().setUp()
        cache.clear()

    def test_dashboard(self):
        today = timezone.localdate()
        TestDataFactory.create_sales_aggregate('Oats', date=today, revenue='10.00')
        TestDataFactory.create_sales_aggregate('Oats', date=today - timedelta(days=3), revenue='20.00')
        TestDataFactory.create_sales_aggregate('Oats', date=today - timedelta(days=20), revenue='30.00')
        TestDataFactory.create_sales_aggregate('Oats', date=today - timedelta(days=40), revenue='100.00')

        item = TestDataFactory.create_item()
        TestDataFactory.create_inventory(item, current_stock=1, reorder_point=2)
        TestDataFactory.create_item(is_active=False)
        TestDataFactory.create_purchase_order(self.user)
        TestDataFactory.create_purchase_order(self.user, status=PurchaseOrder.RECEIVED)
        roster = TestDataFactory.create_roster(week_start_for(today))
        TestDataFactory.create_shift(roster, TestDataFactory.create_staff())
        TestDataFactory.create_diary_entry()

        response = self.client.get('/api/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['date'], today.isoformat())
        self.assertEqual(data['revenue'], {
            'today': Decimal('10.00'), 'last_7_days': Decimal('30.00'), 'last_30_days': Decimal('60.00'),
        })
        self.assertEqual(data['item_count'], 1)
        self.assertEqual(data['low_stock_count'], 1)
        self.assertEqual(data['open_purchase_orders'], 1)
        self.assertEqual(data['current_roster']['roster_id'], roster.id)
        self.assertEqual(data['current_roster']['total_cost'],
                         calculate_roster_costs(roster)['totals']['total_cost'])
        self.assertEqual(data['open_diary_entries'], 1)

    def test_dashboard_is_cached_until_invalidated(self):
        TestDataFactory.create_diary_entry()
        self.assertEqual(self.client.get('/api/dashboard/').data['data']['open_diary_entries'], 1)

        # Queryset updates send no signals
        DiaryEntry.objects.update(is_completed=True)
        self.assertEqual(self.client.get('/api/dashboard/').data['data']['open_diary_entries'], 1)

        invalidate_dashboard_cache()
        data = self.client.get('/api/dashboard/').data['data']
        self.assertEqual(data['open_diary_entries'], 0)
        self.assertIsNone(data['current_roster']['roster_id'])

    def test_saving_dashboard_data_invalidates(self):
        self.assertEqual(self.client.get('/api/dashboard/').data['data']['open_diary_entries'], 0)
        TestDataFactory.create_diary_entry()
        self.assertEqual(self.client.get('/api/dashboard/').data['data']['open_diary_entries'], 1)
