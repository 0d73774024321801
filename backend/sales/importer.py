"""
POS item-sales CSV import.

Rows are rolled up to one aggregate per (date, category, item). A file is
identified by the sha256 of its bytes so the same export cannot be loaded twice.
"""
import hashlib
import io
import logging
from collections import OrderedDict
from decimal import Decimal
from django.db import transaction

from backend.core.csv_utils import read_csv_upload, parse_money, parse_decimal, parse_date, CsvFormatError
from backend.core.cache_signals import suspend_cache_signals
from backend.core.cache_utils import invalidate_dashboard_cache
from .models import SalesReport, SalesAggregate

logger = logging.getLogger(__name__)

REQUIRED_HEADERS = ['Date', 'Item', 'Category', 'Qty', 'Net Sales']
OPTIONAL_HEADERS = ['Gross Sales', 'Discounts', 'Tax']


class DuplicateReport(Exception):
    pass


def file_hash(content):
    return hashlib.sha256(content).hexdigest()


def parse_sales_rows(content):
    """
    Parse CSV bytes into a list of row dicts with typed values.
    Raises CsvFormatError when required headers are missing.
    """
    headers, rows = read_csv_upload(io.BytesIO(content))
    missing = [h for h in REQUIRED_HEADERS if h not in headers]
    if missing:
        raise CsvFormatError(f"Missing required columns: {', '.join(missing)}")

    parsed = []
    for row in rows:
        day = parse_date(row.get('Date'))
        item = row.get('Item')
        if day is None or not item:
            continue
        parsed.append({
            'date': day,
            'item_name': item,
            'category': row.get('Category') or '',
            'quantity': parse_decimal(row.get('Qty')),
            'net_sales': parse_money(row.get('Net Sales')),
            'gross_sales': parse_money(row.get('Gross Sales')),
            'discounts': parse_money(row.get('Discounts')),
            'tax': parse_money(row.get('Tax')),
        })
    return parsed


def aggregate_rows(rows):
    """(date, category, item) -> {'revenue', 'quantity'}"""
    totals = OrderedDict()
    for row in rows:
        key = (row['date'], row['category'], row['item_name'])
        entry = totals.setdefault(key, {'revenue': Decimal('0'), 'quantity': Decimal('0')})
        entry['revenue'] += row['net_sales']
        entry['quantity'] += row['quantity']
    return totals


def summarize(rows):
    dates = [row['date'] for row in rows]
    return {
        'total_revenue': sum((row['net_sales'] for row in rows), Decimal('0')),
        'total_quantity': sum((row['quantity'] for row in rows), Decimal('0')),
        'date_range': {
            'start': min(dates).isoformat() if dates else None,
            'end': max(dates).isoformat() if dates else None,
        },
        'unique_items': len({row['item_name'] for row in rows}),
        'unique_categories': len({row['category'] for row in rows if row['category']}),
    }


def import_sales_report(uploaded_file, user=None):
    """
    Store an uploaded sales export and its daily aggregates.
    Raises DuplicateReport if the file was already uploaded.
    """
    content = uploaded_file.read()
    digest = file_hash(content)
    if SalesReport.objects.filter(file_hash=digest).exists():
        raise DuplicateReport('This sales report has already been uploaded')

    rows = parse_sales_rows(content)
    if not rows:
        raise CsvFormatError('CSV file contains no sales rows')

    summary = summarize(rows)
    totals = aggregate_rows(rows)
    start = min(row['date'] for row in rows)
    end = max(row['date'] for row in rows)

    with suspend_cache_signals(), transaction.atomic():
        report = SalesReport.objects.create(
            filename=getattr(uploaded_file, 'name', '') or 'sales.csv',
            file_hash=digest,
            uploaded_by=user if user is not None and user.is_authenticated else None,
            row_count=len(rows),
            start_date=start,
            end_date=end,
            total_revenue=summary['total_revenue'],
        )

        existing = set(
            SalesAggregate.objects.filter(date__gte=start, date__lte=end).values_list('date', 'item_name')
        )
        new_aggregates = [
            SalesAggregate(
                report=report,
                date=day,
                category=category,
                item_name=item_name,
                revenue=values['revenue'],
                quantity=values['quantity'],
            )
            for (day, category, item_name), values in totals.items()
            if (day, item_name) not in existing
        ]
        SalesAggregate.objects.bulk_create(new_aggregates, batch_size=500)

    invalidate_dashboard_cache()
    skipped = len(totals) - len(new_aggregates)
    logger.info(f"Imported {report.filename}: {len(rows)} rows, {len(new_aggregates)} aggregates, {skipped} skipped")

    return {
        'report_id': report.id,
        'rows_processed': len(rows),
        'aggregates_created': len(new_aggregates),
        'summary': summary,
    }
