"""
Tests for the markup calculator, pack-size detection and category markups
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import set_setting
from backend.pricing.calculator import (
    calculate_shelf_price, calculate_pricing, round_to_nearest_5c, detect_pack_size,
    get_category_markup, validate_pricing, to_decimal,
)


class CalculatorTests(TestCase):

    def test_shelf_price_with_gst(self):
        result = calculate_shelf_price(Decimal('10.00'), Decimal('1.65'), has_gst=True)
        self.assertEqual(result['sell_ex_gst'], Decimal('16.50'))
        self.assertEqual(result['sell_inc_gst'], Decimal('18.15'))
        self.assertEqual(result['gst_amount'], Decimal('1.65'))
        self.assertEqual(result['margin_percent'], Decimal('65.00'))

    def test_shelf_price_without_gst(self):
        result = calculate_shelf_price(Decimal('4.00'), Decimal('1.75'), has_gst=False)
        self.assertEqual(result['sell_ex_gst'], Decimal('7.00'))
        self.assertEqual(result['sell_inc_gst'], Decimal('7.00'))
        self.assertEqual(result['gst_amount'], Decimal('0.00'))

    def test_round_to_nearest_5c(self):
        self.assertEqual(round_to_nearest_5c(Decimal('18.125')), Decimal('18.15'))
        self.assertEqual(round_to_nearest_5c(Decimal('18.12')), Decimal('18.10'))
        self.assertEqual(round_to_nearest_5c(Decimal('3.99')), Decimal('4.00'))

    def test_pack_pricing(self):
        result = calculate_pricing(Decimal('24.00'), Decimal('1.5'), pack_size=12)
        self.assertEqual(result['effective_cost_ex_gst'], Decimal('2.00'))
        self.assertEqual(result['sell_ex_gst'], Decimal('3.00'))
        self.assertEqual(result['sell_inc_gst'], Decimal('3.30'))

    def test_single_unit_has_no_effective_cost(self):
        result = calculate_pricing(Decimal('5.00'), Decimal('1.5'))
        self.assertNotIn('effective_cost_ex_gst', result)
        self.assertEqual(result['pack_size'], 1)

    def test_detect_pack_size(self):
        self.assertEqual(detect_pack_size('Kombucha 12pk'), 12)
        self.assertEqual(detect_pack_size('Eggs', '2 doz'), 24)
        self.assertEqual(detect_pack_size('Rolled Oats 5000g'), 5)
        self.assertEqual(detect_pack_size('Almonds 500g'), 1)
        self.assertEqual(detect_pack_size('Coconut Water'), 1)

    def test_validate_pricing(self):
        self.assertEqual(validate_pricing('10', '1.65', '16.50', '18.15', '1.65'), [])
        errors = validate_pricing('10', '0.9', '9.00', '9.90', '0.90')
        self.assertIn('Sell price ex GST must be greater than cost', errors)

    def test_to_decimal(self):
        self.assertEqual(to_decimal('$1,234.50'), Decimal('1234.50'))
        self.assertIsNone(to_decimal('abc'))
        self.assertEqual(to_decimal('', Decimal('1')), Decimal('1'))

    def test_category_markup_override(self):
        self.assertEqual(get_category_markup('Bulk'), Decimal('1.75'))
        self.assertEqual(get_category_markup('Fruit and Veg'), Decimal('1.75'))
        self.assertEqual(get_category_markup('Unknown'), Decimal('1.65'))

        set_setting('markup_bulk', '1.9')
        self.assertEqual(get_category_markup('Bulk'), Decimal('1.9'))


class PricingAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_calculate_with_explicit_markup(self):
        response = self.client.post('/api/pricing/calculate/', {'cost': '10.00', 'markup': '1.65'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(Decimal(str(data['sell_inc_gst'])), Decimal('18.15'))
        self.assertEqual(data['warnings'], [])

    def test_calculate_uses_category_markup(self):
        response = self.client.post('/api/pricing/calculate/', {'cost': '4.00', 'category': 'Bulk', 'has_gst': False},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(Decimal(str(data['markup'])), Decimal('1.75'))
        self.assertEqual(Decimal(str(data['sell_inc_gst'])), Decimal('7.00'))

    def test_calculate_rejects_zero_cost(self):
        response = self.client.post('/api/pricing/calculate/', {'cost': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_pack_size_detect(self):
        response = self.client.post('/api/pricing/pack-size/', {'name': 'Sparkling Water 24 pack'}, format='json')
        self.assertEqual(response.data['data']['pack_size'], 24)

    def test_update_category_markups(self):
        response = self.client.put('/api/pricing/markups/', {'Bulk': '1.8'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        bulk = next(m for m in response.data['data'] if m['category'] == 'Bulk')
        self.assertEqual(bulk['markup'], Decimal('1.8'))
        self.assertTrue(bulk['is_overridden'])

    def test_update_unknown_category(self):
        response = self.client.put('/api/pricing/markups/', {'Lollies': '2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Lollies', response.data['error']['details'])
