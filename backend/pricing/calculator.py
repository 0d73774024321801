"""
Pricing arithmetic: markup, GST, shelf-price rounding and pack-size detection.

All money is handled as Decimal. Sell ex GST = cost x markup; GST is a flat 10%
on top; shelf prices (inc GST) are rounded to the nearest 5 cents.
"""
import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

GST_RATE = Decimal('0.10')
DEFAULT_MARKUP = Decimal('1.65')
CENT = Decimal('0.01')
FIVE_CENTS = Decimal('0.05')

CATEGORY_MARKUPS = {
    'House': Decimal('1.65'),
    'Bulk': Decimal('1.75'),
    'Fruit & Veg': Decimal('1.75'),
    'Fridge & Freezer': Decimal('1.5'),
    'Naturo': Decimal('1.65'),
    'Groceries': Decimal('1.65'),
    'Drinks Fridge': Decimal('1.65'),
    'Supplements': Decimal('1.65'),
    'Personal Care': Decimal('1.65'),
    'Fresh Bread': Decimal('1.5'),
}

# Setting key for each category markup override
CATEGORY_SETTING_KEYS = {
    'House': 'markup_house',
    'Bulk': 'markup_bulk',
    'Fruit & Veg': 'markup_fruit_veg',
    'Fridge & Freezer': 'markup_fridge_freezer',
    'Naturo': 'markup_naturo',
    'Groceries': 'markup_groceries',
    'Drinks Fridge': 'markup_drinks_fridge',
    'Supplements': 'markup_supplements',
    'Personal Care': 'markup_personal_care',
    'Fresh Bread': 'markup_fresh_bread',
}

CATEGORY_ALIASES = {
    'Fruit and Veg': 'Fruit & Veg',
    'Fridge and Freezer': 'Fridge & Freezer',
}


def to_decimal(value, default=None):
    """Coerce numbers and numeric strings (including '$1,234.50') to Decimal"""
    if value is None or value == '':
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str):
        value = value.replace('$', '').replace(',', '').strip()
        if not value:
            return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def round_money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_to_nearest_5c(value):
    """Round to the nearest 5 cents, halves rounding up (18.125 -> 18.15)"""
    twentieths = (Decimal(value) * 20).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return (twentieths / 20).quantize(CENT)


def canonical_category(category):
    if not category:
        return category
    category = category.strip()
    return CATEGORY_ALIASES.get(category, category)


def calculate_pricing(unit_cost_ex_gst, markup, pack_size=1, gst_rate=GST_RATE):
    """
    Full pricing breakdown for an item bought in packs.

    The per-unit cost is cost / pack_size; effective_cost_ex_gst is only
    reported when the item actually comes in a pack.
    """
    cost = Decimal(unit_cost_ex_gst)
    markup = Decimal(markup)
    gst_rate = Decimal(gst_rate)
    pack_size = int(pack_size) if pack_size and int(pack_size) > 0 else 1

    effective_cost = cost / pack_size
    sell_ex = effective_cost * markup
    gst_amount = sell_ex * gst_rate
    sell_inc = sell_ex + gst_amount

    result = {
        'cost_ex_gst': round_money(cost),
        'markup': markup,
        'sell_ex_gst': round_money(sell_ex),
        'gst_amount': round_money(gst_amount),
        'sell_inc_gst': round_money(sell_inc),
        'pack_size': pack_size,
    }
    if pack_size > 1:
        result['effective_cost_ex_gst'] = round_money(effective_cost)
    return result


def calculate_shelf_price(cost, markup, has_gst=True):
    """
    Markup calculator used for shelf prices.

    sell_ex_gst is cost x markup to the cent; sell_inc_gst adds GST when the item
    attracts it and is rounded to the nearest 5c.
    """
    cost = Decimal(cost)
    markup = Decimal(markup)
    sell_ex = round_money(cost * markup)
    multiplier = (1 + GST_RATE) if has_gst else Decimal('1')
    sell_inc = round_to_nearest_5c(sell_ex * multiplier)
    gst_amount = (sell_inc - sell_ex) if has_gst else Decimal('0.00')
    margin_percent = ((sell_ex - cost) / cost * 100) if cost > 0 else Decimal('0')

    return {
        'cost_ex_gst': round_money(cost),
        'markup': markup,
        'has_gst': has_gst,
        'sell_ex_gst': sell_ex,
        'gst_amount': round_money(gst_amount),
        'sell_inc_gst': sell_inc,
        'margin_percent': margin_percent.quantize(CENT, rounding=ROUND_HALF_UP),
    }


_PACK_PATTERNS = [
    (re.compile(r'(\d+)\s*pk\b|(\d+)\s*pack\b|pack\s*of\s*(\d+)|\bx\s*(\d+)(?!\d)|(\d+)\s*x\b'), 1),
    (re.compile(r'(\d+)\s*doz'), 12),
    (re.compile(r'\bdozen\b'), 12),
    (re.compile(r'/(\d+)'), 1),
    (re.compile(r'(\d+)\s*kg\b'), 1),
    (re.compile(r'(\d+)\s*g\b'), 1000),
    (re.compile(r'(\d+)\s*l\b'), 1),
    (re.compile(r'(\d+)\s*ml\b'), 1000),
]


def detect_pack_size(item_name, unit_description=''):
    """
    Guess how many units a supplier line contains from its description.

    Grams and millilitres only count in whole kilos/litres (5000g -> 5).
    Anything outside 2..100 is treated as a single unit.
    """
    text = f"{item_name or ''} {unit_description or ''}".lower()

    for regex, multiplier in _PACK_PATTERNS:
        match = regex.search(text)
        if not match:
            continue
        groups = [g for g in match.groups() if g]
        number = int(groups[0]) if groups else 1

        if multiplier == 1000:
            if number >= 1000:
                return number // 1000
            continue
        if multiplier == 12:
            number = number * 12
        if 1 < number <= 100:
            return number

    return 1


def validate_pricing(cost, markup, sell_ex, sell_inc, gst_amount):
    """Return a list of human-readable problems with a price calculation"""
    errors = []
    cost, markup = Decimal(cost), Decimal(markup)
    sell_ex, sell_inc, gst_amount = Decimal(sell_ex), Decimal(sell_inc), Decimal(gst_amount)

    if cost <= 0:
        errors.append('Cost ex GST must be positive')
    if markup <= 0:
        errors.append('Markup must be positive')
    if sell_ex <= cost:
        errors.append('Sell price ex GST must be greater than cost')
    if abs(sell_inc - (sell_ex + gst_amount)) > CENT:
        errors.append('GST calculation is inconsistent')
    return errors


def get_category_markup(category):
    """Markup for a category: stored setting, then built-in default, then 1.65"""
    from backend.core.utils import get_setting

    category = canonical_category(category)
    key = CATEGORY_SETTING_KEYS.get(category)
    if key:
        stored = to_decimal(get_setting(key))
        if stored is not None and stored > 0:
            return stored
    return CATEGORY_MARKUPS.get(category, DEFAULT_MARKUP)


def get_all_category_markups():
    from backend.core.models import Setting

    stored = dict(Setting.objects.filter(
        key__in=CATEGORY_SETTING_KEYS.values()
    ).values_list('key', 'value'))

    markups = []
    for category, default in CATEGORY_MARKUPS.items():
        key = CATEGORY_SETTING_KEYS[category]
        value = to_decimal(stored.get(key))
        markups.append({
            'category': category,
            'setting_key': key,
            'default_markup': default,
            'markup': value if value is not None and value > 0 else default,
            'is_overridden': value is not None and value > 0,
        })
    return markups
