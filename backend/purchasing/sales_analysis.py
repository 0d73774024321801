"""
Order suggestions from weekly POS item-sales exports.

Each uploaded file is one week of sales. Units are summed per item across the
weeks, averaged over the number of weeks analysed and turned into a suggested
order quantity for the chosen order frequency, net of stock on hand.
"""
import logging
import math
from datetime import timedelta
from decimal import Decimal
from django.db.models import Sum
from django.utils import timezone

from backend.catalog.models import Item
from backend.core.csv_utils import read_csv_upload, first_value, parse_money, parse_decimal

logger = logging.getLogger(__name__)

VENDOR_COLUMNS = ('Vendor Name', 'Supplier Name')
VARIATION_COLUMNS = ('Item Variation', 'Price Point Name', 'Variation Name', 'Variation')
SKU_COLUMNS = ('SKU', 'Sku', 'sku')


def load_catalogue_costs(catalogue_file):
    """Item name (lowercase) -> default unit cost from a catalogue export"""
    costs = {}
    if catalogue_file is None:
        return costs
    _headers, rows = read_csv_upload(catalogue_file)
    for row in rows:
        name = row.get('Item Name')
        cost = parse_money(row.get('Default Unit Cost'))
        if name and cost > 0:
            costs[name.lower()] = cost
    logger.info(f"Loaded {len(costs)} catalogue costs")
    return costs


def item_key(sku, vendor_name, item_name, variation_name):
    """Group by SKU when the row has no real variation, else by vendor/name/variation"""
    variation = variation_name if variation_name and variation_name != 'Regular' else ''
    if sku and not variation:
        return f"sku:{sku}"
    return f"name:{vendor_name}|{item_name}|{variation}"


def collect_weekly_sales(files, vendor_name=None):
    """Sum units sold per item across the weekly files"""
    sales = {}
    week_count = len(files)

    for week_index, uploaded in enumerate(files):
        _headers, rows = read_csv_upload(uploaded)
        for row in rows:
            row_vendor = first_value(row, *VENDOR_COLUMNS)
            name = row.get('Item Name')
            variation = first_value(row, *VARIATION_COLUMNS)
            category = row.get('Category')
            sku = first_value(row, *SKU_COLUMNS)

            if not name or not category:
                continue
            if vendor_name and row_vendor != vendor_name:
                continue

            units = parse_decimal(row.get('Units Sold'))
            gross = parse_money(row.get('Gross Sales'))

            key = item_key(sku, row_vendor, name, variation)
            entry = sales.get(key)
            if entry is None:
                entry = {
                    'item_id': None,
                    'item_name': name,
                    'variation_name': variation or None,
                    'vendor_name': row_vendor,
                    'category': category,
                    'subcategory': None,
                    'sku': sku or None,
                    'weeks': [0.0] * week_count,
                    'total_units': Decimal('0'),
                    'sell_price': 0.0,
                }
                sales[key] = entry

            entry['weeks'][week_index] += float(units)
            entry['total_units'] += units
            if gross > 0 and units > 0:
                entry['sell_price'] = float(gross / units)

    return sales


def _loss_totals(since):
    """Wastage and discount totals keyed by item id, or 'name:<item name>'"""
    from backend.wastage.models import WastageRecord, DiscountRecord

    wastage = {}
    for row in (WastageRecord.objects.filter(recorded_at__gte=since)
                .values('item_id', 'item_name')
                .annotate(qty=Sum('quantity'), cost=Sum('total_cost'))):
        key = row['item_id'] or f"name:{row['item_name']}"
        current = wastage.setdefault(key, [Decimal('0'), Decimal('0')])
        current[0] += row['qty'] or 0
        current[1] += row['cost'] or 0

    discounts = {}
    for row in (DiscountRecord.objects.filter(recorded_at__gte=since)
                .values('item_id', 'item_name')
                .annotate(qty=Sum('quantity'), amount=Sum('discount_amount'))):
        key = row['item_id'] or f"name:{row['item_name']}"
        current = discounts.setdefault(key, [Decimal('0'), Decimal('0')])
        current[0] += row['qty'] or 0
        current[1] += row['amount'] or 0

    return wastage, discounts


def analyze_sales(files, catalogue_file=None, vendor_name=None, order_frequency=1, actual_weeks=None):
    """
    Build order suggestions from weekly sales files.
    Returns {"items": [...], "summary": {...}}.
    """
    if actual_weeks is None:
        actual_weeks = len(files)

    catalogue_costs = load_catalogue_costs(catalogue_file)
    sales = collect_weekly_sales(files, vendor_name=vendor_name)

    db_items = list(Item.objects.select_related('inventory'))
    by_sku = {item.sku.strip().lower(): item for item in db_items if item.sku}
    by_name = {item.name.strip().lower(): item for item in db_items}

    results = []
    for entry in sales.values():
        total_units = entry['total_units']
        avg_weekly = total_units / Decimal(actual_weeks)

        if entry['sku']:
            db_item = by_sku.get(entry['sku'].strip().lower())
        else:
            db_item = by_name.get(entry['item_name'].strip().lower())
        if db_item is None and total_units > 10:
            logger.debug(f"No catalogue match for {entry['item_name']} (sku={entry['sku']}, sold {total_units})")

        inventory = getattr(db_item, 'inventory', None) if db_item else None
        current_stock = inventory.current_stock if inventory else Decimal('0')
        suggested = max(0, math.ceil(avg_weekly * order_frequency) - current_stock)

        cost = catalogue_costs.get(entry['item_name'].lower())
        if cost is None and db_item is not None:
            cost = db_item.current_cost_ex_gst

        margin = margin_percent = None
        if db_item is not None:
            sell_ex = db_item.current_sell_ex_gst
            if cost and sell_ex:
                margin = sell_ex - cost
                margin_percent = round(float(margin / sell_ex * 100), 1)
            entry['item_id'] = db_item.id
            entry['subcategory'] = db_item.subcategory or None
            entry['sell_price'] = float(db_item.current_sell_inc_gst)
            entry['sku'] = db_item.sku or entry['sku']

        entry.update({
            'total_units': float(total_units),
            'avg_weekly': round(float(avg_weekly), 1),
            'current_stock': float(current_stock),
            'suggested_quantity': int(suggested),
            'cost_price': float(cost) if cost is not None else None,
            'margin': round(float(margin), 2) if margin is not None else None,
            'margin_percent': margin_percent,
            'wastage_qty': None,
            'wastage_cost': None,
            'discount_qty': None,
            'discount_amount': None,
        })
        results.append(entry)

    since = timezone.now() - timedelta(days=actual_weeks * 7)
    wastage, discounts = _loss_totals(since)
    for entry in results:
        if not entry['item_id']:
            continue
        if entry['item_id'] in wastage:
            qty, cost = wastage[entry['item_id']]
            entry['wastage_qty'] = round(float(qty), 2)
            entry['wastage_cost'] = round(float(cost), 2)
        if entry['item_id'] in discounts:
            qty, amount = discounts[entry['item_id']]
            entry['discount_qty'] = round(float(qty), 2)
            entry['discount_amount'] = round(float(amount), 2)

    results.sort(key=lambda e: (e['category'].lower(), -e['avg_weekly']))

    return {
        'items': results,
        'summary': {
            'total_items': len(results),
            'weeks_analyzed': actual_weeks,
            'files_uploaded': len(files),
            'order_frequency': order_frequency,
            'total_suggested_units': sum(e['suggested_quantity'] for e in results),
        },
    }
