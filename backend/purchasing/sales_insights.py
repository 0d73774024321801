"""
Sales alerts and trends worked out from the daily sales aggregates.

Items are keyed by lowercased name so POS rows and catalogue names line up.
"""
import logging
from datetime import timedelta
from decimal import Decimal
from django.db.models import Sum, Max
from django.db.models.functions import Lower
from django.utils import timezone

from backend.catalog.models import Item
from backend.sales.models import SalesAggregate
from .ai_suggestions import week_key

logger = logging.getLogger(__name__)

ALERT_WINDOW_DAYS = 28
STALE_SALE_DAYS = 14
MAX_ALERTS = 50
MAX_ITEM_TRENDS = 100
MAX_MOVERS = 10

# Percent change thresholds
ALERT_CHANGE = 25
CRITICAL_DECLINE = 50
TREND_CHANGE = 10
# Wastage as a percent of (sold + wasted)
WASTAGE_WARNING = 10
WASTAGE_CRITICAL = 25

SEVERITY_ORDER = {'critical': 0, 'warning': 1, 'info': 2}
ALERT_TYPES = ['declining_sales', 'increasing_sales', 'high_wastage', 'dead_stock']


def percent_change(current, previous):
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def trend_direction(change):
    if change > TREND_CHANGE:
        return 'up'
    if change < -TREND_CHANGE:
        return 'down'
    return 'flat'


def _sales_by_item(queryset):
    """{lowercased name: {'name', 'qty', 'revenue', 'last_sale'}}"""
    rows = (queryset
            .annotate(name_key=Lower('item_name'))
            .order_by()
            .values('name_key')
            .annotate(name=Max('item_name'), qty=Sum('quantity'), revenue=Sum('revenue'), last_sale=Max('date')))
    return {
        row['name_key']: {
            'name': row['name'],
            'qty': float(row['qty'] or 0),
            'revenue': float(row['revenue'] or 0),
            'last_sale': row['last_sale'],
        }
        for row in rows
    }


def _wastage_by_item(since):
    from backend.wastage.models import WastageRecord

    wastage = {}
    rows = (WastageRecord.objects
            .filter(recorded_at__date__gte=since)
            .values('item__name', 'item_name')
            .annotate(qty=Sum('quantity'), cost=Sum('total_cost')))
    for row in rows:
        name = row['item__name'] or row['item_name']
        entry = wastage.setdefault(name.lower(), {'name': name, 'qty': 0.0, 'cost': 0.0})
        entry['qty'] += float(row['qty'] or 0)
        entry['cost'] += float(row['cost'] or 0)
    return wastage


def _alert(alert_type, severity, item_name, message, metric, action_suggestion):
    return {
        'type': alert_type,
        'severity': severity,
        'item_name': item_name,
        'message': message,
        'metric': metric,
        'action_suggestion': action_suggestion,
    }


def smart_alerts(today=None):
    """
    Compare the last four weeks of sales against the four before and flag
    falling or rising sellers, heavy wastage and items that stopped selling.
    """
    today = today or timezone.localdate()
    window_start = today - timedelta(days=ALERT_WINDOW_DAYS)
    previous_start = window_start - timedelta(days=ALERT_WINDOW_DAYS)
    stale_before = today - timedelta(days=STALE_SALE_DAYS)

    recent = _sales_by_item(SalesAggregate.objects.filter(date__gte=window_start, date__lte=today))
    previous = _sales_by_item(SalesAggregate.objects.filter(date__gte=previous_start, date__lt=window_start))
    wastage = _wastage_by_item(window_start)

    alerts = []
    for key, current in recent.items():
        prev = previous.get(key)
        if not prev or prev['qty'] <= 2:
            continue
        change = percent_change(current['qty'], prev['qty'])
        if change < -ALERT_CHANGE:
            alerts.append(_alert(
                'declining_sales', 'critical' if change < -CRITICAL_DECLINE else 'warning', current['name'],
                f"Sales dropped {abs(change):.0f}% vs previous 4 weeks",
                f"{current['qty']:.1f} units, was {prev['qty']:.1f}",
                'Consider reducing next order quantity',
            ))
        elif change > ALERT_CHANGE:
            alerts.append(_alert(
                'increasing_sales', 'info', current['name'],
                f"Sales up {change:.0f}% vs previous 4 weeks",
                f"{current['qty']:.1f} units, was {prev['qty']:.1f}",
                'Consider ordering extra to meet demand',
            ))

    for key, wasted in wastage.items():
        sold = recent[key]['qty'] if key in recent else 0.0
        if sold > 0:
            total = sold + wasted['qty']
            ratio = wasted['qty'] / total * 100
            if ratio > WASTAGE_WARNING:
                alerts.append(_alert(
                    'high_wastage', 'critical' if ratio > WASTAGE_CRITICAL else 'warning', wasted['name'],
                    f"{ratio:.0f}% wastage ratio ({wasted['qty']:.1f} wasted of {total:.1f} total)",
                    f"Cost: ${wasted['cost']:.2f} lost",
                    'Reduce order quantity or check storage/handling',
                ))
        elif wasted['qty'] > 0:
            alerts.append(_alert(
                'high_wastage', 'critical', wasted['name'],
                f"{wasted['qty']:.1f} units wasted with no sales recorded",
                f"Cost: ${wasted['cost']:.2f} lost",
                'Stop ordering this item or investigate',
            ))

    for key, prev in previous.items():
        if prev['qty'] < 2:
            continue
        current = recent.get(key)
        if current and current['qty'] > 0 and current['last_sale'] >= stale_before:
            continue
        if current and current['qty'] > 0:
            message = f"No sales in 2+ weeks (last sale: {current['last_sale'].strftime('%d/%m/%Y')})"
        else:
            message = 'No sales in the last 4 weeks (previously sold)'
        alerts.append(_alert(
            'dead_stock', 'warning', prev['name'], message,
            f"Was selling {prev['qty'] / 4:.1f}/week",
            'Consider discontinuing or running a promotion',
        ))

    alerts.sort(key=lambda a: SEVERITY_ORDER[a['severity']])
    summary = {
        'total': len(alerts),
        'critical': sum(1 for a in alerts if a['severity'] == 'critical'),
        'warning': sum(1 for a in alerts if a['severity'] == 'warning'),
        'info': sum(1 for a in alerts if a['severity'] == 'info'),
        'by_type': {t: sum(1 for a in alerts if a['type'] == t) for t in ALERT_TYPES},
    }
    logger.info(f"Smart alerts: {summary['total']} ({summary['critical']} critical)")
    return {
        'alerts': alerts[:MAX_ALERTS],
        'summary': summary,
        'generated_at': timezone.now().isoformat(),
    }


def sales_trends(weeks=6, vendor=None, today=None):
    """Item and category movement over the last `weeks` weeks against the same span before it"""
    today = today or timezone.localdate()
    start = today - timedelta(days=weeks * 7)
    previous_start = start - timedelta(days=weeks * 7)
    period = {
        'current': {'start': start.isoformat(), 'end': today.isoformat()},
        'previous': {'start': previous_start.isoformat(), 'end': start.isoformat()},
        'weeks': weeks,
    }

    vendors_by_name = {
        name.lower(): vendor_name
        for name, vendor_name in Item.objects.filter(vendor__isnull=False).values_list('name', 'vendor__name')
    }
    queryset = (SalesAggregate.objects
                .annotate(name_key=Lower('item_name'))
                .filter(date__gte=previous_start, date__lte=today)
                .order_by('date'))
    if vendor:
        vendor = vendor.lower()
        names = [name for name, vendor_name in vendors_by_name.items() if vendor in vendor_name.lower()]
        queryset = queryset.filter(name_key__in=names)

    items = {}
    for row in queryset:
        entry = items.setdefault(row.name_key, {
            'name': row.item_name,
            'category': row.category or 'Uncategorized',
            'vendor': vendors_by_name.get(row.name_key, 'Unknown'),
            'current_qty': Decimal('0'), 'previous_qty': Decimal('0'),
            'current_revenue': Decimal('0'),
            'weekly': {},
        })
        if row.date >= start:
            entry['current_qty'] += row.quantity
            entry['current_revenue'] += row.revenue
        else:
            entry['previous_qty'] += row.quantity
        key = week_key(row.date)
        entry['weekly'][key] = entry['weekly'].get(key, Decimal('0')) + row.quantity

    item_trends = []
    for entry in items.values():
        current, prev = float(entry['current_qty']), float(entry['previous_qty'])
        if current <= 0 and prev <= 0:
            continue
        change = percent_change(current, prev)
        item_trends.append({
            'name': entry['name'],
            'category': entry['category'],
            'vendor': entry['vendor'],
            'current_qty': round(current, 1),
            'previous_qty': round(prev, 1),
            'change': round(change, 1),
            'trend': trend_direction(change),
            'current_revenue': round(float(entry['current_revenue']), 2),
            'avg_weekly': round(current / weeks, 1),
            'weekly_data': [{'week': week, 'qty': round(float(qty), 1)}
                            for week, qty in sorted(entry['weekly'].items())],
        })
    item_trends.sort(key=lambda t: abs(t['change']), reverse=True)

    categories = {}
    for trend in item_trends:
        totals = categories.setdefault(trend['category'], {'current': 0.0, 'previous': 0.0, 'revenue': 0.0})
        totals['current'] += trend['current_qty']
        totals['previous'] += trend['previous_qty']
        totals['revenue'] += trend['current_revenue']
    category_trends = []
    for category, totals in categories.items():
        change = percent_change(totals['current'], totals['previous'])
        category_trends.append({
            'category': category,
            'current_qty': round(totals['current'], 1),
            'previous_qty': round(totals['previous'], 1),
            'change': round(change, 1),
            'trend': trend_direction(change),
            'revenue': round(totals['revenue'], 2),
        })
    category_trends.sort(key=lambda c: c['revenue'], reverse=True)

    rising = sorted((t for t in item_trends if t['trend'] == 'up' and t['current_qty'] >= 1),
                    key=lambda t: t['change'], reverse=True)
    falling = sorted((t for t in item_trends if t['trend'] == 'down' and t['previous_qty'] >= 1),
                     key=lambda t: t['change'])

    week_totals = {}
    for entry in items.values():
        for week, qty in entry['weekly'].items():
            week_totals[week] = week_totals.get(week, Decimal('0')) + qty

    return {
        'item_trends': item_trends[:MAX_ITEM_TRENDS],
        'category_trends': category_trends,
        'top_movers': {'increasing': rising[:MAX_MOVERS], 'decreasing': falling[:MAX_MOVERS]},
        'week_over_week': [{'week': week, 'total_qty': round(float(qty), 1)}
                           for week, qty in sorted(week_totals.items())],
        'period': period,
    }
