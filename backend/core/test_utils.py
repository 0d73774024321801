"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.catalog.models import Vendor, VendorOrderSettings, Item
from backend.inventory.models import InventoryItem
from backend.purchasing.models import PurchaseOrder, PurchaseOrderLine
from backend.roster.models import Staff, Roster, Shift
from backend.sales.models import SalesReport, SalesAggregate
from backend.diary.models import DiaryEntry
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_vendor(name=None, **order_settings):
        """Create a vendor, with order settings when any are given"""
        if not name:
            name = f'Vendor_{TestDataFactory.random_string(6)}'
        vendor = Vendor.objects.create(name=name)
        if order_settings:
            VendorOrderSettings.objects.create(vendor=vendor, **order_settings)
        return vendor

    @staticmethod
    def create_item(name=None, vendor=None, category='Groceries', cost=Decimal('10.00'), markup=Decimal('1.65'),
                    has_gst=True, sku=None, barcode=None, price=True, **fields):
        """Create an item; sell prices are calculated unless price=False"""
        if not name:
            name = f'Item_{TestDataFactory.random_string(6)}'
        item = Item(
            name=name,
            vendor=vendor,
            category=category,
            sku=sku,
            barcode=barcode,
            current_cost_ex_gst=Decimal(str(cost)),
            current_markup=Decimal(str(markup)),
            has_gst=has_gst,
            **fields
        )
        if price:
            item.apply_pricing()
        item.save()
        return item

    @staticmethod
    def create_inventory(item, current_stock=Decimal('10'), reorder_point=Decimal('0'), pack_size=1, **fields):
        return InventoryItem.objects.create(
            item=item,
            current_stock=Decimal(str(current_stock)),
            reorder_point=Decimal(str(reorder_point)),
            pack_size=pack_size,
            **fields
        )

    @staticmethod
    def create_purchase_order(user, vendor=None, status=PurchaseOrder.DRAFT, lines=None):
        """Create a purchase order; lines are (item, quantity, unit_cost) tuples"""
        if vendor is None:
            vendor = TestDataFactory.create_vendor()
        order = PurchaseOrder.objects.create(
            order_number=PurchaseOrder.next_order_number(),
            vendor=vendor,
            status=status,
            order_date=timezone.localdate(),
            created_by=user,
        )
        for item, quantity, unit_cost in lines or []:
            PurchaseOrderLine.objects.create(
                order=order,
                item=item,
                item_name=item.name,
                quantity=Decimal(str(quantity)),
                unit_cost_ex_gst=Decimal(str(unit_cost)),
            )
        order.recalculate_totals()
        return order

    @staticmethod
    def create_staff(name=None, base_rate=Decimal('30.00'), **fields):
        if not name:
            name = f'Staff_{TestDataFactory.random_string(6)}'
        fields.setdefault('role', 'Shop Assistant')
        return Staff.objects.create(name=name, base_hourly_rate=Decimal(str(base_rate)), **fields)

    @staticmethod
    def create_roster(week_start_date, user=None, status=Roster.DRAFT):
        return Roster.objects.create(week_start_date=week_start_date, status=status, created_by=user)

    @staticmethod
    def create_shift(roster, staff, day_of_week=1, start_time='09:00', end_time='17:00', break_minutes=0, **fields):
        return Shift.objects.create(
            roster=roster,
            staff=staff,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            **fields
        )

    @staticmethod
    def create_sales_aggregate(item_name, date=None, quantity=Decimal('1'), revenue=Decimal('10.00'),
                               category='Groceries', report=None):
        """Create a daily sales row, with a report to hang it on if none is given"""
        if report is None:
            report = SalesReport.objects.create(
                filename=f'sales_{TestDataFactory.random_string(6)}.csv',
                file_hash=TestDataFactory.random_string(32),
            )
        return SalesAggregate.objects.create(
            report=report,
            date=date or timezone.localdate(),
            category=category,
            item_name=item_name,
            quantity=Decimal(str(quantity)),
            revenue=Decimal(str(revenue)),
        )

    @staticmethod
    def create_diary_entry(title=None, urgency='medium', **fields):
        if not title:
            title = f'Task {TestDataFactory.random_string(6)}'
        return DiaryEntry.objects.create(title=title, urgency=urgency, **fields)

    @staticmethod
    def csv_file(content, name='upload.csv'):
        """An uploaded CSV file from text"""
        return SimpleUploadedFile(name, content.encode('utf-8'), content_type='text/csv')


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
