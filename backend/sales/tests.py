"""
Tests for sales report import, summaries, timeseries and export
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from datetime import date
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.csv_utils import CsvFormatError
from backend.sales.models import SalesReport, SalesAggregate
from backend.sales.importer import parse_sales_rows, aggregate_rows, import_sales_report, DuplicateReport

SALES_CSV = """Date,Item,Category,Qty,Net Sales,Gross Sales,Discounts,Tax
03/11/2024,Kombucha,Drinks Fridge,2,$9.00,$9.00,$0.00,$0.82
03/11/2024,Kombucha,Drinks Fridge,1,$4.50,$4.50,$0.00,$0.41
03/11/2024,Almonds,Bulk,1,$12.00,$12.00,$0.00,$0.00
03/12/2024,Sourdough,Fresh Bread,3,$21.00,$21.00,$0.00,$0.00
,Missing date,Bulk,1,$1.00,,,
"""


class SalesImportTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_parse_rows_skips_rows_without_date(self):
        rows = parse_sales_rows(SALES_CSV.encode())
        self.assertEqual(len(rows), 4)
        self.assertEqual(rows[0]['date'], date(2024, 3, 11))
        self.assertEqual(rows[0]['net_sales'], Decimal('9.00'))

    def test_missing_columns(self):
        with self.assertRaises(CsvFormatError):
            parse_sales_rows(b'Date,Item\n03/11/2024,Kombucha\n')

    def test_aggregate_rows(self):
        totals = aggregate_rows(parse_sales_rows(SALES_CSV.encode()))
        kombucha = totals[(date(2024, 3, 11), 'Drinks Fridge', 'Kombucha')]
        self.assertEqual(kombucha['quantity'], Decimal('3'))
        self.assertEqual(kombucha['revenue'], Decimal('13.50'))

    def test_import_creates_report_and_aggregates(self):
        result = import_sales_report(TestDataFactory.csv_file(SALES_CSV, 'march.csv'), user=self.user)
        self.assertEqual(result['rows_processed'], 4)
        self.assertEqual(result['aggregates_created'], 3)
        self.assertEqual(result['summary']['total_revenue'], Decimal('46.50'))

        report = SalesReport.objects.get(pk=result['report_id'])
        self.assertEqual(report.start_date, date(2024, 3, 11))
        self.assertEqual(report.end_date, date(2024, 3, 12))
        self.assertEqual(report.uploaded_by, self.user)

    def test_same_file_twice(self):
        import_sales_report(TestDataFactory.csv_file(SALES_CSV))
        with self.assertRaises(DuplicateReport):
            import_sales_report(TestDataFactory.csv_file(SALES_CSV))

    def test_overlapping_report_skips_existing_days(self):
        import_sales_report(TestDataFactory.csv_file(SALES_CSV))
        overlapping = SALES_CSV + '03/13/2024,Almonds,Bulk,2,$24.00,,,\n'
        result = import_sales_report(TestDataFactory.csv_file(overlapping))
        self.assertEqual(result['aggregates_created'], 1)
        self.assertEqual(SalesAggregate.objects.filter(item_name='Almonds').count(), 2)


class SalesAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def _upload(self, content=SALES_CSV):
        return self.client.post('/api/sales/upload/', {'file': TestDataFactory.csv_file(content, 'sales.csv')},
                                format='multipart')

    def test_upload(self):
        response = self._upload()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['aggregates_created'], 3)

    def test_upload_duplicate(self):
        self._upload()
        response = self._upload()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'DUPLICATE_REPORT')

    def test_upload_invalid_csv(self):
        response = self._upload('Something,Else\n1,2\n')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_CSV')

    def test_upload_without_file(self):
        response = self.client.post('/api/sales/upload/', {}, format='multipart')
        self.assertEqual(response.data['error']['code'], 'NO_FILE')

    def test_summary(self):
        self._upload()
        response = self.client.get('/api/sales/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['overview']['total_revenue'], Decimal('46.50'))
        self.assertEqual(data['top_categories'][0]['category'], 'Fresh Bread')
        self.assertEqual(data['top_items'][0]['item_name'], 'Sourdough')

    def test_summary_date_filter(self):
        self._upload()
        response = self.client.get('/api/sales/summary/', {'start_date': '2024-03-12'})
        self.assertEqual(response.data['data']['overview']['total_revenue'], Decimal('21.00'))

    def test_summary_bad_date(self):
        response = self.client.get('/api/sales/summary/', {'start_date': '12/03/2024'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_PARAMS')

    def test_timeseries(self):
        self._upload()
        response = self.client.get('/api/sales/timeseries/')
        series = response.data['data']
        self.assertEqual(len(series), 2)
        self.assertEqual(series[0]['revenue'], Decimal('25.50'))
        self.assertEqual(series[0]['categories'][0]['category'], 'Drinks Fridge')

    def test_export(self):
        self._upload()
        response = self.client.get('/api/sales/export/', {'category': 'Bulk'})
        self.assertEqual(response['Content-Type'], 'text/csv')
        lines = response.content.decode().strip().splitlines()
        self.assertEqual(lines[0], 'Date,Category,Item,Quantity,Revenue')
        self.assertEqual(len(lines), 2)

    def test_delete_report_removes_aggregates(self):
        report_id = self._upload().data['data']['report_id']
        response = self.client.delete(f'/api/sales/reports/{report_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['deleted_aggregates'], 3)
        self.assertFalse(SalesAggregate.objects.exists())
