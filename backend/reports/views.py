import logging
import math
from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from django.db.models import Sum, Count, F
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from backend.catalog.models import Item
from backend.core.api_utils import success_response, error_response, parse_int_param
from backend.core.cache_utils import cached_query, DASHBOARD_CACHE_TTL
from backend.core.csv_utils import parse_iso_date
from backend.diary.models import DiaryEntry
from backend.inventory.models import InventoryItem
from backend.pricing.calculator import calculate_shelf_price, get_category_markup, canonical_category, round_money
from backend.purchasing.models import PurchaseOrder
from backend.roster.costing import calculate_roster_costs, week_start_for
from backend.roster.models import Roster
from backend.sales.models import SalesAggregate
from backend.wastage.models import WastageRecord, DiscountRecord

logger = logging.getLogger('backend.reports')

ZERO = Decimal('0')
PRICE_MISMATCH_TOLERANCE = Decimal('0.05')
ORDER_COVER_DAYS = 30

PRIORITY_ORDER = {'critical': 0, 'warning': 1, 'watch': 2, 'ok': 3}
MARKUP_STATUS_ORDER = {'under': 0, 'over': 1, 'on-target': 2}


def _truthy(value):
    return str(value or '').lower() in ('true', '1', 'yes')


def _item_queryset(request):
    """Active items, optionally narrowed by ?category= and ?vendor_id="""
    queryset = Item.objects.filter(is_active=True).select_related('vendor')
    category = request.query_params.get('category')
    if category:
        queryset = queryset.filter(category=canonical_category(category))
    vendor_id = request.query_params.get('vendor_id')
    if vendor_id:
        queryset = queryset.filter(vendor_id=vendor_id)
    return queryset


def loss_recommendation(total_loss, wastage_qty, discount_qty):
    if total_loss > 100:
        return 'CRITICAL - Stop ordering or significantly reduce'
    if total_loss > 50:
        return 'HIGH - Order less'
    if wastage_qty > 10 or discount_qty > 10:
        return 'MODERATE - Review ordering frequency'
    return None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wastage_discount_report(request):
    """Stock lost to wastage and discounting, per item, for a date range"""
    start = parse_iso_date(request.query_params.get('start_date') or '')
    end = parse_iso_date(request.query_params.get('end_date') or '')
    if start is None or end is None:
        return error_response('INVALID_PARAMS', 'start_date and end_date (YYYY-MM-DD) are required')

    wastage = WastageRecord.objects.filter(recorded_at__date__gte=start, recorded_at__date__lte=end)
    discounts = DiscountRecord.objects.filter(recorded_at__date__gte=start, recorded_at__date__lte=end)

    items = OrderedDict()

    def entry_for(record):
        key = record.item_id if record.item_id else f'name:{record.item_name}'
        return items.setdefault(key, {
            'item_id': record.item_id,
            'item_name': record.item.name if record.item_id else record.item_name,
            'category': record.item.category if record.item_id else None,
            'wastage_qty': ZERO,
            'wastage_cost': ZERO,
            'discount_qty': ZERO,
            'discount_amount': ZERO,
        })

    for record in wastage.select_related('item'):
        entry = entry_for(record)
        entry['wastage_qty'] += record.quantity
        entry['wastage_cost'] += record.total_cost

    for record in discounts.select_related('item'):
        entry = entry_for(record)
        entry['discount_qty'] += record.quantity
        entry['discount_amount'] += record.discount_amount

    rows = []
    for entry in items.values():
        entry['total_loss'] = entry['wastage_cost'] + entry['discount_amount']
        entry['recommendation'] = loss_recommendation(
            entry['total_loss'], entry['wastage_qty'], entry['discount_qty']
        )
        rows.append(entry)
    rows.sort(key=lambda r: r['total_loss'], reverse=True)

    breakdown = [
        {
            'type': row['discount_type'] or 'Uncategorized',
            'count': row['count'],
            'amount': row['amount'] or ZERO,
        }
        for row in discounts.values('discount_type').annotate(count=Count('id'), amount=Sum('discount_amount'))
    ]
    breakdown.sort(key=lambda r: r['amount'], reverse=True)

    total_wastage = sum((r['wastage_cost'] for r in rows), ZERO)
    total_discount = sum((r['discount_amount'] for r in rows), ZERO)
    return success_response({
        'period': {'start_date': start.isoformat(), 'end_date': end.isoformat()},
        'items': rows,
        'summary': {
            'total_wastage_cost': total_wastage,
            'total_discount_amount': total_discount,
            'total_loss': total_wastage + total_discount,
            'item_count': len(rows),
        },
        'discount_type_breakdown': breakdown,
    })


def _group_margins(rows, key, label):
    groups = OrderedDict()
    for row in rows:
        group = groups.setdefault(row[key], {label: row[key], 'total_margin': ZERO, 'item_count': 0})
        group['total_margin'] += row['margin_percent']
        group['item_count'] += 1
    result = []
    for group in groups.values():
        total = group.pop('total_margin')
        group['avg_margin'] = round_money(total / group['item_count'])
        result.append(group)
    result.sort(key=lambda g: g['avg_margin'])
    return result


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def margin_report(request):
    """Gross margin on sell ex GST for every priced item"""
    rows = []
    for item in _item_queryset(request).filter(current_sell_ex_gst__gt=0):
        sell_ex = item.current_sell_ex_gst
        margin = (sell_ex - item.current_cost_ex_gst) / sell_ex * 100
        rows.append({
            'item_id': item.id,
            'name': item.name,
            'category': item.category,
            'vendor': item.vendor.name if item.vendor else 'No vendor',
            'cost_ex_gst': item.current_cost_ex_gst,
            'sell_ex_gst': sell_ex,
            'margin_percent': round_money(margin),
        })

    by_margin = sorted(rows, key=lambda r: r['margin_percent'])
    margins = [r['margin_percent'] for r in rows]
    return success_response({
        'items': rows,
        'by_category': _group_margins(rows, 'category', 'category'),
        'by_vendor': _group_margins(rows, 'vendor', 'vendor'),
        'lowest_margins': by_margin[:20],
        'highest_margins': list(reversed(by_margin))[:20],
        'summary': {
            'item_count': len(rows),
            'avg_margin': round_money(sum(margins, ZERO) / len(margins)) if margins else ZERO,
            'min_margin': min(margins) if margins else ZERO,
            'max_margin': max(margins) if margins else ZERO,
        },
    })


def markup_status(actual, target, tolerance):
    if actual < target - tolerance:
        return 'under'
    if actual > target + tolerance:
        return 'over'
    return 'on-target'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def markup_checker(request):
    """Compare each item's actual markup with its category target"""
    try:
        tolerance = Decimal(request.query_params.get('tolerance') or '0.05')
    except InvalidOperation:
        return error_response('INVALID_PARAMS', 'tolerance must be a number')

    targets = {}
    rows = []
    queryset = _item_queryset(request).filter(current_cost_ex_gst__gt=0, current_sell_ex_gst__gt=0)
    for item in queryset:
        if item.category not in targets:
            targets[item.category] = get_category_markup(item.category)
        target = targets[item.category]
        sell_ex = item.current_sell_ex_gst
        actual = (sell_ex / item.current_cost_ex_gst).quantize(Decimal('0.0001'))
        ratio = item.current_sell_inc_gst / sell_ex
        rows.append({
            'item_id': item.id,
            'name': item.name,
            'category': item.category,
            'cost_ex_gst': item.current_cost_ex_gst,
            'sell_ex_gst': sell_ex,
            'sell_inc_gst': item.current_sell_inc_gst,
            'has_gst': Decimal('1.08') <= ratio <= Decimal('1.12'),
            'actual_markup': actual,
            'target_markup': target,
            'difference': actual - target,
            'status': markup_status(actual, target, tolerance),
        })

    rows.sort(key=lambda r: (MARKUP_STATUS_ORDER[r['status']], -abs(r['difference'])))
    return success_response({
        'items': rows,
        'tolerance': tolerance,
        'summary': {
            'total': len(rows),
            'under': sum(1 for r in rows if r['status'] == 'under'),
            'over': sum(1 for r in rows if r['status'] == 'over'),
            'on_target': sum(1 for r in rows if r['status'] == 'on-target'),
        },
    })


def stock_priority(stock, reorder_point, days_of_stock, urgency_days):
    """Returns (priority, reason)"""
    if stock <= 0:
        return 'critical', 'OUT OF STOCK'
    if stock <= reorder_point:
        return 'critical', 'At or below reorder point'
    if days_of_stock is not None:
        if days_of_stock < 3:
            return 'critical', 'Less than 3 days of stock'
        if days_of_stock < 7:
            return 'warning', 'Less than a week of stock'
        if days_of_stock < urgency_days:
            return 'watch', f'Less than {urgency_days} days of stock'
    return 'ok', None


def suggested_order_quantity(days_of_stock, avg_daily_sales, pack_size=1):
    """Enough to cover a month of sales, rounded up to whole packs"""
    if avg_daily_sales <= 0:
        return 0
    days = Decimal(days_of_stock or 0)
    quantity = max(0, math.ceil((ORDER_COVER_DAYS - days) * avg_daily_sales))
    pack_size = max(int(pack_size or 1), 1)
    if quantity and pack_size > 1:
        quantity = math.ceil(quantity / pack_size) * pack_size
    return quantity


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def low_stock_report(request):
    """Items running out, based on recent daily sales"""
    days_ahead = parse_int_param(request, 'days_ahead', 7, minimum=1, maximum=365)
    urgency_days = parse_int_param(request, 'urgency_days', 14, minimum=1, maximum=365)
    include_no_stock = _truthy(request.query_params.get('include_no_stock'))

    since = timezone.localdate() - timedelta(days=days_ahead)
    units_sold = {}
    recent = (
        SalesAggregate.objects.filter(date__gt=since)
        .values('item_name')
        .annotate(units=Sum('quantity'))
        .values_list('item_name', 'units')
    )
    for name, units in recent:
        units_sold[name.lower()] = units_sold.get(name.lower(), ZERO) + (units or ZERO)

    inventory = InventoryItem.objects.select_related('item', 'item__vendor').filter(item__is_active=True)
    category = request.query_params.get('category')
    if category:
        inventory = inventory.filter(item__category=canonical_category(category))
    vendor_id = request.query_params.get('vendor_id')
    if vendor_id:
        inventory = inventory.filter(item__vendor_id=vendor_id)

    rows = []
    for record in inventory:
        item = record.item
        stock = record.current_stock
        avg_daily = Decimal(units_sold.get(item.name.lower()) or 0) / days_ahead
        days_of_stock = (stock / avg_daily).quantize(Decimal('0.1')) if avg_daily > 0 else None

        if stock <= 0 and avg_daily <= 0 and not include_no_stock:
            continue
        priority, reason = stock_priority(stock, record.reorder_point, days_of_stock, urgency_days)
        if priority == 'ok':
            continue

        rows.append({
            'item_id': item.id,
            'name': item.name,
            'category': item.category,
            'vendor': item.vendor.name if item.vendor else None,
            'current_stock': stock,
            'reorder_point': record.reorder_point,
            'avg_daily_sales': avg_daily.quantize(Decimal('0.01')),
            'days_of_stock': days_of_stock,
            'priority': priority,
            'reason': reason,
            'pack_size': record.pack_size,
            'suggested_order_qty': suggested_order_quantity(days_of_stock, avg_daily, record.pack_size),
        })

    rows.sort(key=lambda r: (
        PRIORITY_ORDER[r['priority']],
        r['days_of_stock'] if r['days_of_stock'] is not None else Decimal('-1'),
    ))
    return success_response({
        'items': rows,
        'parameters': {'days_ahead': days_ahead, 'urgency_days': urgency_days, 'include_no_stock': include_no_stock},
        'summary': {
            'total': len(rows),
            'critical': sum(1 for r in rows if r['priority'] == 'critical'),
            'warning': sum(1 for r in rows if r['priority'] == 'warning'),
            'watch': sum(1 for r in rows if r['priority'] == 'watch'),
        },
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def shelf_price_checker(request):
    """Active items by shelf with the price the calculator says should be on the label"""
    shelves = OrderedDict()
    mismatches = 0
    for item in _item_queryset(request).order_by('category', 'display_order', 'name'):
        expected = calculate_shelf_price(item.current_cost_ex_gst, item.current_markup, has_gst=item.has_gst)
        mismatch = abs(expected['sell_inc_gst'] - item.current_sell_inc_gst) > PRICE_MISMATCH_TOLERANCE
        mismatches += mismatch
        shelves.setdefault(item.category, []).append({
            'item_id': item.id,
            'name': item.name,
            'sku': item.sku,
            'barcode': item.barcode,
            'cost_ex_gst': item.current_cost_ex_gst,
            'markup': item.current_markup,
            'current_sell_inc_gst': item.current_sell_inc_gst,
            'expected_sell_inc_gst': expected['sell_inc_gst'],
            'price_mismatch': mismatch,
        })

    return success_response({
        'shelves': [{'category': name, 'items': items} for name, items in shelves.items()],
        'summary': {
            'shelf_count': len(shelves),
            'item_count': sum(len(items) for items in shelves.values()),
            'price_mismatches': mismatches,
        },
    })


def _revenue_since(day):
    return SalesAggregate.objects.filter(date__gte=day).aggregate(total=Sum('revenue'))['total'] or ZERO


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix='dashboard')
def build_dashboard(today):
    roster = Roster.objects.filter(week_start_date=week_start_for(today)).first()
    roster_cost = calculate_roster_costs(roster)['totals']['total_cost'] if roster else None

    return {
        'date': today.isoformat(),
        'revenue': {
            'today': _revenue_since(today),
            'last_7_days': _revenue_since(today - timedelta(days=6)),
            'last_30_days': _revenue_since(today - timedelta(days=29)),
        },
        'item_count': Item.objects.filter(is_active=True).count(),
        'low_stock_count': InventoryItem.objects.filter(
            item__is_active=True, current_stock__lte=F('reorder_point')
        ).count(),
        'open_purchase_orders': PurchaseOrder.objects.filter(status__in=PurchaseOrder.OPEN_STATUSES).count(),
        'current_roster': {
            'roster_id': roster.id if roster else None,
            'status': roster.status if roster else None,
            'total_cost': roster_cost,
        },
        'open_diary_entries': DiaryEntry.objects.filter(is_completed=False).count(),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    return success_response(build_dashboard(timezone.localdate()))
