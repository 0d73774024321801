"""
Ordering suggestions from the Anthropic Messages API.

Sales for a vendor's items are summarised per week (keyed by the Monday),
trend and wastage are worked out locally, and the summary is sent to the model
which replies with a JSON array of per-item suggestions.
"""
import json
import logging
import re
from datetime import timedelta
from decimal import Decimal
import anthropic
from django.conf import settings
from django.db.models import Sum
from django.db.models.functions import Lower
from django.utils import timezone

from backend.catalog.models import Item
from backend.sales.models import SalesAggregate

logger = logging.getLogger(__name__)

MAX_TOKENS = 4096
REQUEST_TIMEOUT = 120


class SuggestionError(Exception):
    pass


def week_key(day):
    """ISO date of the Monday starting the week containing day"""
    return (day - timedelta(days=day.weekday())).isoformat()


def sales_trend(weekly_quantities):
    """Compare the second half of the weeks against the first"""
    if len(weekly_quantities) < 2:
        return 'stable'
    middle = len(weekly_quantities) // 2
    first, second = weekly_quantities[:middle], weekly_quantities[middle:]
    first_avg = sum(first) / len(first)
    second_avg = sum(second) / len(second)
    if second_avg > first_avg * 1.1:
        return 'increasing'
    if second_avg < first_avg * 0.9:
        return 'decreasing'
    return 'stable'


def build_sales_summary(vendor_name, weeks):
    """Per-item sales, trend and wastage for items from vendors matching vendor_name"""
    from backend.wastage.models import WastageRecord

    today = timezone.localdate()
    start = today - timedelta(days=weeks * 7)

    vendor_items = Item.objects.filter(vendor__name__icontains=vendor_name)
    # POS exports and the catalogue disagree on case, so match names case-insensitively
    names_by_key = {name.lower(): name for name in vendor_items.values_list('name', flat=True)}

    items = {}
    aggregates = (SalesAggregate.objects
                  .annotate(name_key=Lower('item_name'))
                  .filter(name_key__in=list(names_by_key), date__gte=start, date__lte=today)
                  .order_by('date'))
    for row in aggregates:
        name = names_by_key[row.name_key]
        entry = items.setdefault(name, {'weekly': {}, 'total_sold': Decimal('0'), 'revenue': Decimal('0')})
        entry['total_sold'] += row.quantity
        entry['revenue'] += row.revenue
        key = week_key(row.date)
        entry['weekly'][key] = entry['weekly'].get(key, Decimal('0')) + row.quantity

    wastage = {}
    wastage_rows = (WastageRecord.objects
                    .filter(item__in=vendor_items, recorded_at__date__gte=start)
                    .values('item__name')
                    .annotate(qty=Sum('quantity'), cost=Sum('total_cost')))
    for row in wastage_rows:
        wastage[row['item__name']] = (row['qty'] or Decimal('0'), row['cost'] or Decimal('0'))

    summary = []
    for name, entry in items.items():
        weekly = sorted(entry['weekly'].items())
        quantities = [float(qty) for _week, qty in weekly]
        total_sold = float(entry['total_sold'])
        wasted_qty, wasted_cost = wastage.get(name, (Decimal('0'), Decimal('0')))
        summary.append({
            'name': name,
            'avg_weekly': round(total_sold / weeks, 1),
            'total_sold': round(total_sold, 1),
            'total_revenue': round(float(entry['revenue']), 2),
            'trend': sales_trend(quantities),
            'weekly_breakdown': ', '.join(f"{week}: {float(qty):.1f}" for week, qty in weekly),
            'wastage_qty': round(float(wasted_qty), 1),
            'wastage_cost': round(float(wasted_cost), 2),
            'wastage_ratio': round(float(wasted_qty) / total_sold * 100, 1) if total_sold > 0 else 0,
        })

    summary.sort(key=lambda s: s['total_sold'], reverse=True)
    return summary


def build_prompt(vendor_name, weeks, summary):
    return (
        f"You are an ordering assistant for an Australian health food shop.\n"
        f"Analyze the following {weeks}-week sales data for vendor \"{vendor_name}\" "
        f"and provide smart ordering suggestions.\n\n"
        f"SALES DATA:\n{json.dumps(summary, indent=2)}\n\n"
        "Based on this data, provide ordering suggestions for each item. Consider:\n"
        "1. Sales trends (increasing/decreasing/stable)\n"
        "2. Wastage ratios (if high, suggest reducing orders)\n"
        "3. Average weekly sales (for baseline quantities)\n"
        "4. Seasonal patterns if visible\n\n"
        "Return a JSON array of suggestions with this structure:\n"
        "[\n"
        "  {\n"
        "    \"itemName\": \"Item Name\",\n"
        "    \"action\": \"increase\" | \"decrease\" | \"maintain\" | \"stop\" | \"review\",\n"
        "    \"suggestedWeeklyQty\": number,\n"
        "    \"confidence\": \"high\" | \"medium\" | \"low\",\n"
        "    \"reasoning\": \"Brief explanation\",\n"
        "    \"alertLevel\": \"info\" | \"warning\" | \"critical\"\n"
        "  }\n"
        "]\n\n"
        "Be concise but specific. Focus on actionable insights. Return ONLY the JSON array, no other text."
    )


def call_anthropic(prompt):
    """Send a single user message and return the text of the reply"""
    client = anthropic.Anthropic(api_key=settings.ANTHROPIC_API_KEY, timeout=REQUEST_TIMEOUT)
    message = client.messages.create(
        model=settings.ANTHROPIC_MODEL,
        max_tokens=MAX_TOKENS,
        messages=[{'role': 'user', 'content': prompt}],
    )
    return ''.join(block.text for block in message.content if block.type == 'text')


def parse_suggestions(text):
    """Pull the first JSON array out of the reply"""
    match = re.search(r'\[[\s\S]*\]', text)
    if not match:
        return []
    try:
        return json.loads(match.group(0))
    except ValueError:
        return [{
            'itemName': 'Parse Error',
            'action': 'review',
            'reasoning': text,
            'confidence': 'low',
            'alertLevel': 'info',
            'suggestedWeeklyQty': 0,
        }]


def generate_order_suggestions(vendor_name, weeks=6):
    summary = build_sales_summary(vendor_name, weeks)
    logger.info(f"Requesting AI order suggestions for {vendor_name}: {len(summary)} items over {weeks} weeks")

    try:
        text = call_anthropic(build_prompt(vendor_name, weeks, summary))
    except anthropic.APIError as e:
        raise SuggestionError(str(e)) from e

    return {
        'vendor_name': vendor_name,
        'weeks_analyzed': weeks,
        'total_items': len(summary),
        'suggestions': parse_suggestions(text),
        'sales_summary': summary,
        'generated_at': timezone.now().isoformat(),
    }
