"""
Tests for stock levels and stock movements
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import AuditLog
from backend.inventory.models import InventoryItem, StockMovement, InsufficientStock


class StockMovementModelTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.inventory = TestDataFactory.create_inventory(TestDataFactory.create_item(), current_stock=10)

    def test_stock_in(self):
        movement = self.inventory.move_stock(StockMovement.IN, 5, user=self.user)
        self.assertEqual(self.inventory.current_stock, Decimal('15'))
        self.assertEqual(movement.previous_stock, Decimal('10'))
        self.assertEqual(movement.new_stock, Decimal('15'))
        self.assertEqual(movement.created_by, self.user)

    def test_stock_out_below_zero(self):
        with self.assertRaises(InsufficientStock):
            self.inventory.move_stock(StockMovement.OUT, 11)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.current_stock, Decimal('10'))
        self.assertFalse(StockMovement.objects.exists())

    def test_stock_take_sets_level(self):
        movement = self.inventory.move_stock(StockMovement.ADJUSTMENT, 4, reason='Stock take')
        self.assertEqual(self.inventory.current_stock, Decimal('4'))
        self.assertEqual(movement.quantity, Decimal('6'))
        self.assertIsNotNone(self.inventory.last_stock_take)

    def test_is_low_stock(self):
        self.inventory.reorder_point = Decimal('10')
        self.assertTrue(self.inventory.is_low_stock)
        self.inventory.reorder_point = Decimal('2')
        self.assertFalse(self.inventory.is_low_stock)


class InventoryAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.item = TestDataFactory.create_item(name='Spelt Flour')

    def test_create_inventory(self):
        response = self.client.post('/api/inventory/', {
            'item': self.item.id, 'current_stock': '12', 'reorder_point': '4', 'pack_size': 6,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['item_name'], 'Spelt Flour')

        response = self.client.post('/api/inventory/', {'item': self.item.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'DUPLICATE_INVENTORY')

    def test_low_stock_filter(self):
        TestDataFactory.create_inventory(self.item, current_stock=2, reorder_point=5)
        TestDataFactory.create_inventory(TestDataFactory.create_item(), current_stock=20, reorder_point=5)

        response = self.client.get('/api/inventory/', {'low_stock': 'true'})
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['data'][0]['item_name'], 'Spelt Flour')

    def test_patch_cannot_change_stock(self):
        inventory = TestDataFactory.create_inventory(self.item, current_stock=3)
        response = self.client.patch(f'/api/inventory/{inventory.id}/', {
            'current_stock': '100', 'reorder_point': '5',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        inventory.refresh_from_db()
        self.assertEqual(inventory.current_stock, Decimal('3'))
        self.assertEqual(inventory.reorder_point, Decimal('5'))

    def test_adjust_stock(self):
        inventory = TestDataFactory.create_inventory(self.item, current_stock=3)
        response = self.client.post(f'/api/inventory/{inventory.id}/adjust-stock/', {
            'type': 'IN', 'quantity': '7', 'reason': 'Delivery',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['data']['inventory']['current_stock']), Decimal('10'))
        self.assertEqual(Decimal(response.data['data']['movement']['previous_stock']), Decimal('3'))
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust', object_id=str(inventory.id)).exists())

    def test_adjust_stock_insufficient(self):
        inventory = TestDataFactory.create_inventory(self.item, current_stock=1)
        response = self.client.post(f'/api/inventory/{inventory.id}/adjust-stock/', {
            'type': 'OUT', 'quantity': '2',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INSUFFICIENT_STOCK')

    def test_zero_quantity_only_for_stock_take(self):
        inventory = TestDataFactory.create_inventory(self.item, current_stock=5)
        response = self.client.post(f'/api/inventory/{inventory.id}/adjust-stock/', {
            'type': 'OUT', 'quantity': '0',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/inventory/{inventory.id}/adjust-stock/', {
            'type': 'ADJUSTMENT', 'quantity': '0',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_movement_history(self):
        inventory = TestDataFactory.create_inventory(self.item, current_stock=5)
        inventory.move_stock(StockMovement.IN, 5)
        inventory.move_stock(StockMovement.OUT, 2)
        response = self.client.get(f'/api/inventory/{inventory.id}/movements/')
        self.assertEqual(response.data['pagination']['total'], 2)
        self.assertEqual(response.data['data'][0]['movement_type'], 'OUT')
