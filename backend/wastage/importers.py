"""
Wastage and discount imports from POS CSV exports.
"""
import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from django.db import transaction
from django.utils import timezone

from backend.catalog.models import Item
from backend.core.csv_utils import read_csv_upload, first_value, parse_money
from .models import WastageRecord, DiscountRecord

logger = logging.getLogger(__name__)

REWARD_INCREMENT = Decimal('5')
REWARD_TOLERANCE = Decimal('0.10')


def parse_adjustment_datetime(value):
    """
    'dd/mm/yy HH:MM' (two-digit years are 20yy) or ISO.
    Returns an aware datetime or None.
    """
    if not value:
        return None
    text = value.strip()
    parsed = None
    for fmt in ('%d/%m/%y %H:%M', '%d/%m/%Y %H:%M', '%d/%m/%y', '%d/%m/%Y'):
        try:
            parsed = datetime.strptime(text, fmt)
            break
        except ValueError:
            continue
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def parse_quantity(value):
    """'0.855 kg' -> (Decimal('0.855'), 'kg'); '2' -> (Decimal('2'), '')"""
    if not value:
        return None, ''
    match = re.match(r'^\s*(-?[\d.,]+)\s*([a-zA-Z]*)\s*$', value)
    if not match:
        return None, ''
    try:
        quantity = Decimal(match.group(1).replace(',', ''))
    except InvalidOperation:
        return None, ''
    return abs(quantity), match.group(2)


def find_matching_item(item_name, variation_name=None):
    """
    Exact case-insensitive match on "name variation", then on the name alone,
    then the first item whose name contains the name.
    """
    if variation_name and variation_name.strip() and variation_name != 'Regular':
        item = Item.objects.filter(name__iexact=f"{item_name} {variation_name}").first()
        if item:
            return item
    item = Item.objects.filter(name__iexact=item_name).first()
    if item:
        return item
    return Item.objects.filter(name__icontains=item_name).order_by('id').first()


def import_wastage(uploaded_file):
    """Returns {"total", "imported", "skipped", "errors", "details"}"""
    _headers, rows = read_csv_upload(uploaded_file)
    details = {'imported': [], 'skipped': [], 'errors': []}

    with transaction.atomic():
        for row in rows:
            item_name = row.get('Item name')
            recorded_at = parse_adjustment_datetime(row.get('Date & time'))
            quantity, unit = parse_quantity(row.get('Adjustment Quantity'))

            if recorded_at is None or not item_name or quantity is None:
                details['skipped'].append({'item_name': item_name or 'Unknown', 'reason': 'Missing required fields'})
                continue

            variation = row.get('Variation name') or ''
            try:
                item = find_matching_item(item_name, variation)
                record = WastageRecord.objects.create(
                    item=item,
                    item_name=item_name,
                    variation_name=variation,
                    gtin=row.get('GTIN') or '',
                    sku=row.get('SKU') or '',
                    vendor_name=row.get('Vendor') or '',
                    quantity=quantity,
                    unit=unit,
                    total_cost=abs(parse_money(row.get('Total Cost'))),
                    adjustment_type=row.get('Adjustment type') or 'Other',
                    location=row.get('Location') or '',
                    recorded_at=recorded_at,
                )
            except (ValueError, InvalidOperation) as e:
                details['errors'].append({'item_name': item_name, 'error': str(e)})
                continue

            details['imported'].append({
                'id': record.id,
                'item_name': item_name,
                'variation': variation,
                'type': record.adjustment_type,
                'quantity': str(quantity),
                'cost': str(record.total_cost),
                'matched': item is not None,
            })

    logger.info(f"Wastage import: {len(details['imported'])} imported, {len(details['skipped'])} skipped, "
                f"{len(details['errors'])} errors")
    return {
        'total': len(rows),
        'imported': len(details['imported']),
        'skipped': len(details['skipped']),
        'errors': len(details['errors']),
        'details': details,
    }


def categorize_discount(percent):
    """Label a discount by its percentage"""
    rounded = int(Decimal(percent).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    if rounded >= 95:
        return '100% - Full Comp'
    if rounded == 50:
        return '50% Discount'
    if rounded == 25:
        return '25% Discount'
    if 13 <= rounded <= 17:
        return '15% - Staff Discount'
    if 8 <= rounded <= 12:
        return '10% - Customer Discount'
    if rounded > 55:
        return f'{rounded}% - High Discount'
    if rounded > 30:
        return f'{rounded}% - Moderate Discount'
    if rounded > 0:
        return f'{rounded}% - Small Discount'
    return 'Other'


def is_reward_total(total):
    """Reward redemptions come in $5 steps"""
    remainder = Decimal(total) % REWARD_INCREMENT
    return remainder < REWARD_TOLERANCE or remainder > REWARD_INCREMENT - REWARD_TOLERANCE


def parse_discount_row(row):
    """
    Read one discount row in either the detail format (Product Sales, Discounts,
    Net Sales, Qty) or the legacy one (Discount Amount, Original Price, ...).
    Returns a dict, or a skip reason string.
    """
    date_text = first_value(row, 'Date', 'Sale Date', 'Date & time', 'Transaction Date')
    item_name = first_value(row, 'Item name', 'Item Name', 'Item')
    if not date_text or not item_name:
        return 'Missing required fields (date or item name)'

    recorded_at = parse_adjustment_datetime(date_text)
    if recorded_at is None:
        return f'Unrecognised date {date_text}'

    quantity = parse_money(first_value(row, 'Qty', 'Quantity', 'Units Sold'), default=None) or Decimal('1')
    product_sales = row.get('Product Sales')
    discounts = row.get('Discounts')
    discount_amount_text = first_value(row, 'Discount Amount', 'Amount')

    if product_sales and discounts:
        original = parse_money(product_sales)
        discount = abs(parse_money(discounts))
        final = parse_money(row.get('Net Sales'), default=None)
    elif discount_amount_text:
        discount = abs(parse_money(discount_amount_text))
        original = parse_money(first_value(row, 'Original Price', 'Price', 'Gross Sales'), default=None)
        final = parse_money(first_value(row, 'Final Price', 'Net Price'), default=None)
    else:
        return 'No discount amount found'

    percent_text = first_value(row, 'Discount Percent', 'Discount %', 'Percentage')
    if percent_text:
        percent = parse_money(percent_text.replace('%', ''), default=None)
    elif original:
        percent = (discount / original * 100).quantize(Decimal('0.01'))
    else:
        percent = None

    return {
        'item_name': item_name,
        'variation_name': first_value(row, 'Variation name', 'Variation Name', 'Price Point Name'),
        'sku': first_value(row, 'SKU', 'sku'),
        'transaction_id': row.get('Transaction ID') or '',
        'discount_type': first_value(row, 'Discount Type', 'Type') or None,
        'discount_percent': percent,
        'discount_amount': discount,
        'original_price': original,
        'final_price': final,
        'quantity': quantity,
        'recorded_at': recorded_at,
    }


def import_discounts(uploaded_file, source=DiscountRecord.REGULAR):
    """
    Import discount lines. In rewards mode discounts are summed per transaction
    and whole $5 totals are labelled as reward redemptions.
    """
    _headers, rows = read_csv_upload(uploaded_file)
    details = {'imported': [], 'skipped': [], 'errors': []}

    parsed = []
    transaction_totals = {}
    for row in rows:
        result = parse_discount_row(row)
        if isinstance(result, str):
            details['skipped'].append({'item_name': first_value(row, 'Item name', 'Item Name') or 'Unknown',
                                       'reason': result})
            continue
        parsed.append(result)
        if source == DiscountRecord.REWARDS and result['transaction_id']:
            transaction_totals[result['transaction_id']] = (
                transaction_totals.get(result['transaction_id'], Decimal('0')) + result['discount_amount']
            )

    with transaction.atomic():
        for record in parsed:
            category = record['discount_type']
            if source == DiscountRecord.REWARDS and record['transaction_id']:
                if is_reward_total(transaction_totals[record['transaction_id']]):
                    category = 'Rewards Program'
                else:
                    category = categorize_discount(record['discount_percent']) if record['discount_percent'] else 'Other'
            elif not category and record['discount_percent'] is not None:
                category = categorize_discount(record['discount_percent'])

            try:
                item = find_matching_item(record['item_name'], record['variation_name'])
                saved = DiscountRecord.objects.create(
                    item=item,
                    item_name=record['item_name'],
                    variation_name=record['variation_name'],
                    sku=record['sku'],
                    quantity=record['quantity'],
                    original_price=record['original_price'],
                    discount_amount=record['discount_amount'],
                    final_price=record['final_price'],
                    discount_percent=record['discount_percent'],
                    discount_type=category,
                    discount_source=source,
                    transaction_id=record['transaction_id'],
                    recorded_at=record['recorded_at'],
                )
            except (ValueError, InvalidOperation) as e:
                details['errors'].append({'item_name': record['item_name'], 'error': str(e)})
                continue

            details['imported'].append({
                'id': saved.id,
                'item_name': saved.item_name,
                'discount_amount': str(saved.discount_amount),
                'categorized_as': category,
                'matched': item is not None,
            })

    logger.info(f"Discount import ({source}): {len(details['imported'])} imported, "
                f"{len(details['skipped'])} skipped")
    return {
        'total': len(rows),
        'imported': len(details['imported']),
        'skipped': len(details['skipped']),
        'errors': len(details['errors']),
        'details': details,
    }
