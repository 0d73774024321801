from datetime import date
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.diary.models import DiaryEntry


class DiaryAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_create(self):
        response = self.client.post('/api/shop-diary/', {
            'title': '  Clean the fridge  ', 'urgency': 'high', 'assigned_to': 'Sam',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['title'], 'Clean the fridge')
        self.assertEqual(response.data['data']['created_by_name'], self.user.username)
        self.assertIsNone(response.data['data']['completed_at'])

    def test_create_requires_title(self):
        response = self.client.post('/api/shop-diary/', {'title': '', 'urgency': 'low'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_list_ordering(self):
        low = TestDataFactory.create_diary_entry('Order bags', urgency='low')
        undated = TestDataFactory.create_diary_entry('Fix door', urgency='urgent')
        dated = TestDataFactory.create_diary_entry('Pay rent', urgency='urgent', due_date=date(2024, 4, 1))
        medium = TestDataFactory.create_diary_entry('Price check', urgency='medium')

        response = self.client.get('/api/shop-diary/')
        ids = [entry['id'] for entry in response.data['data']]
        self.assertEqual(ids, [dated.id, undated.id, medium.id, low.id])

    def test_completed_hidden_by_default(self):
        TestDataFactory.create_diary_entry('Done already', is_completed=True)
        open_entry = TestDataFactory.create_diary_entry('Still open')

        response = self.client.get('/api/shop-diary/')
        self.assertEqual([entry['id'] for entry in response.data['data']], [open_entry.id])

        response = self.client.get('/api/shop-diary/', {'show_completed': 'true'})
        self.assertEqual(len(response.data['data']), 2)
        self.assertEqual(response.data['data'][0]['id'], open_entry.id)

    def test_complete_and_reopen(self):
        entry = TestDataFactory.create_diary_entry('Restock honey')

        response = self.client.patch(f'/api/shop-diary/{entry.id}/', {'is_completed': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry.refresh_from_db()
        self.assertTrue(entry.is_completed)
        self.assertIsNotNone(entry.completed_at)

        response = self.client.patch(f'/api/shop-diary/{entry.id}/', {'is_completed': False}, format='json')
        entry.refresh_from_db()
        self.assertFalse(entry.is_completed)
        self.assertIsNone(entry.completed_at)

    def test_delete(self):
        entry = TestDataFactory.create_diary_entry()
        response = self.client.delete(f'/api/shop-diary/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(DiaryEntry.objects.filter(pk=entry.id).exists())

        response = self.client.get(f'/api/shop-diary/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
