"""
Tests for wastage and discount imports
"""
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from decimal import Decimal
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.wastage.models import WastageRecord, DiscountRecord
from backend.wastage.importers import (
    parse_adjustment_datetime, parse_quantity, find_matching_item, categorize_discount, is_reward_total,
    import_wastage, import_discounts,
)

WASTAGE_CSV = """Date & time,Item name,Variation name,GTIN,SKU,Vendor,Adjustment Quantity,Total Cost,Adjustment type,Location
15/03/24 10:30,Sourdough,Regular,,SD-1,Bakery Co,2,$9.00,Damaged,Main St
15/03/24 11:00,Bananas,,,,Farm Fresh,0.855 kg,($2.10),Expired,Main St
,Missing Date,,,,,1,$1.00,Lost,Main St
"""

DISCOUNT_CSV = """Date,Item Name,Product Sales,Discounts,Net Sales,Qty,Transaction ID
2024-03-15,Kombucha,$5.00,-$0.50,$4.50,1,T1
2024-03-15,Sourdough,$10.00,-$5.00,$5.00,1,T2
2024-03-16,Almonds,$12.00,-$12.00,$0.00,1,T3
2024-03-16,,$1.00,-$0.10,$0.90,1,T4
"""

REWARDS_CSV = """Date,Item Name,Product Sales,Discounts,Net Sales,Qty,Transaction ID
2024-03-15,Kombucha,$6.00,-$3.00,$3.00,1,T1
2024-03-15,Almonds,$12.00,-$2.00,$10.00,1,T1
2024-03-15,Sourdough,$10.00,-$1.50,$8.50,1,T2
"""


class ParsingTests(TestCase):

    def test_parse_adjustment_datetime(self):
        parsed = parse_adjustment_datetime('15/03/24 10:30')
        self.assertEqual((parsed.year, parsed.month, parsed.day, parsed.hour), (2024, 3, 15, 10))
        self.assertTrue(timezone.is_aware(parsed))
        self.assertIsNotNone(parse_adjustment_datetime('2024-03-15T10:30:00'))
        self.assertIsNone(parse_adjustment_datetime('yesterday'))

    def test_parse_quantity(self):
        self.assertEqual(parse_quantity('0.855 kg'), (Decimal('0.855'), 'kg'))
        self.assertEqual(parse_quantity('-2'), (Decimal('2'), ''))
        self.assertEqual(parse_quantity('lots'), (None, ''))

    def test_find_matching_item(self):
        plain = TestDataFactory.create_item(name='Kombucha')
        ginger = TestDataFactory.create_item(name='Kombucha Ginger')
        self.assertEqual(find_matching_item('Kombucha', 'Ginger'), ginger)
        self.assertEqual(find_matching_item('kombucha', 'Regular'), plain)
        self.assertEqual(find_matching_item('Komb'), plain)
        self.assertIsNone(find_matching_item('Tempeh'))

    def test_categorize_discount(self):
        self.assertEqual(categorize_discount(Decimal('100')), '100% - Full Comp')
        self.assertEqual(categorize_discount(Decimal('96')), '100% - Full Comp')
        self.assertEqual(categorize_discount(Decimal('50')), '50% Discount')
        self.assertEqual(categorize_discount(Decimal('25')), '25% Discount')
        self.assertEqual(categorize_discount(Decimal('14.6')), '15% - Staff Discount')
        self.assertEqual(categorize_discount(Decimal('10')), '10% - Customer Discount')
        self.assertEqual(categorize_discount(Decimal('70')), '70% - High Discount')
        self.assertEqual(categorize_discount(Decimal('33')), '33% - Moderate Discount')
        self.assertEqual(categorize_discount(Decimal('5')), '5% - Small Discount')
        self.assertEqual(categorize_discount(Decimal('0')), 'Other')

    def test_is_reward_total(self):
        self.assertTrue(is_reward_total(Decimal('5.00')))
        self.assertTrue(is_reward_total(Decimal('9.95')))
        self.assertTrue(is_reward_total(Decimal('10.05')))
        self.assertFalse(is_reward_total(Decimal('1.50')))


class WastageImportTests(TestCase):

    def test_import(self):
        sourdough = TestDataFactory.create_item(name='Sourdough')
        result = import_wastage(TestDataFactory.csv_file(WASTAGE_CSV))

        self.assertEqual(result['total'], 3)
        self.assertEqual(result['imported'], 2)
        self.assertEqual(result['skipped'], 1)

        bread = WastageRecord.objects.get(item_name='Sourdough')
        self.assertEqual(bread.item, sourdough)
        self.assertEqual(bread.total_cost, Decimal('9.00'))

        bananas = WastageRecord.objects.get(item_name='Bananas')
        self.assertIsNone(bananas.item)
        self.assertEqual(bananas.quantity, Decimal('0.855'))
        self.assertEqual(bananas.unit, 'kg')
        self.assertEqual(bananas.total_cost, Decimal('2.10'))


class DiscountImportTests(TestCase):

    def test_regular_import_categorises_by_percent(self):
        result = import_discounts(TestDataFactory.csv_file(DISCOUNT_CSV))
        self.assertEqual(result['imported'], 3)
        self.assertEqual(result['skipped'], 1)

        types = dict(DiscountRecord.objects.values_list('item_name', 'discount_type'))
        self.assertEqual(types['Kombucha'], '10% - Customer Discount')
        self.assertEqual(types['Sourdough'], '50% Discount')
        self.assertEqual(types['Almonds'], '100% - Full Comp')

        kombucha = DiscountRecord.objects.get(item_name='Kombucha')
        self.assertEqual(kombucha.discount_amount, Decimal('0.50'))
        self.assertEqual(kombucha.original_price, Decimal('5.00'))
        self.assertEqual(kombucha.discount_source, DiscountRecord.REGULAR)

    def test_rewards_import(self):
        import_discounts(TestDataFactory.csv_file(REWARDS_CSV), source=DiscountRecord.REWARDS)
        types = dict(DiscountRecord.objects.values_list('item_name', 'discount_type'))
        # T1 totals $5.00
        self.assertEqual(types['Kombucha'], 'Rewards Program')
        self.assertEqual(types['Almonds'], 'Rewards Program')
        self.assertEqual(types['Sourdough'], '15% - Staff Discount')


class WastageAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_import_and_list(self):
        response = self.client.post('/api/wastage/import/', {'file': TestDataFactory.csv_file(WASTAGE_CSV)},
                                    format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['imported'], 2)

        response = self.client.get('/api/wastage/', {'search': 'banana'})
        self.assertEqual(response.data['pagination']['total'], 1)

        response = self.client.get('/api/wastage/', {'start_date': '2024-03-16'})
        self.assertEqual(response.data['pagination']['total'], 0)

    def test_discount_import_rejects_unknown_source(self):
        response = self.client.post('/api/discounts/import/', {
            'file': TestDataFactory.csv_file(DISCOUNT_CSV), 'source': 'loyalty',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_import_without_file(self):
        response = self.client.post('/api/discounts/import/', {}, format='multipart')
        self.assertEqual(response.data['error']['code'], 'NO_FILE')

    def test_clear(self):
        import_wastage(TestDataFactory.csv_file(WASTAGE_CSV))
        import_discounts(TestDataFactory.csv_file(DISCOUNT_CSV))

        response = self.client.delete('/api/wastage/clear/')
        self.assertEqual(response.data['data']['deleted_count'], 2)
        response = self.client.delete('/api/discounts/clear/')
        self.assertEqual(response.data['data']['deleted_count'], 3)
        self.assertFalse(WastageRecord.objects.exists())
