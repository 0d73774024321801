"""
Shelf checker state: which items have been checked on the shelf and which
need a new label. Stored as JSON in the settings table with rolling backups.
"""
import logging
from django.db import transaction
from django.utils import timezone
from backend.core.models import Setting
from backend.core.utils import get_json_setting, set_json_setting

logger = logging.getLogger(__name__)

STATE_KEY = 'shelf_checker_state'
BACKUP_PREFIX = 'shelf_checker_backup_'
MAX_BACKUPS = 10
LABEL_NEEDS = ('missing', 'update')


def empty_state():
    return {'checked_items': {}, 'label_needs': {}, 'last_updated': None}


def load_state():
    state = get_json_setting(STATE_KEY)
    if not isinstance(state, dict):
        return empty_state()
    return {
        'checked_items': state.get('checked_items') or {},
        'label_needs': state.get('label_needs') or {},
        'last_updated': state.get('last_updated'),
    }


def validate_state(checked_items, label_needs):
    """Return a dict of field errors (empty when valid)"""
    errors = {}
    if not isinstance(checked_items, dict):
        errors['checked_items'] = 'Must be an object of item id to boolean'
    if not isinstance(label_needs, dict):
        errors['label_needs'] = 'Must be an object of item id to label need'
    else:
        bad = [key for key, need in label_needs.items() if need not in LABEL_NEEDS]
        if bad:
            errors['label_needs'] = f"Values must be one of {', '.join(LABEL_NEEDS)} (invalid: {', '.join(bad[:5])})"
    return errors


def compute_stats(checked_items, label_needs):
    needs = list(label_needs.values())
    return {
        'checked_count': sum(1 for checked in checked_items.values() if checked),
        'missing_labels': needs.count('missing'),
        'needs_update': needs.count('update'),
    }


def _prune_backups():
    backup_keys = list(
        Setting.objects.filter(key__startswith=BACKUP_PREFIX).order_by('-key').values_list('key', flat=True)
    )
    stale = backup_keys[MAX_BACKUPS:]
    if stale:
        Setting.objects.filter(key__in=stale).delete()


@transaction.atomic
def save_state(checked_items, label_needs):
    now = timezone.now()
    state = {
        'checked_items': checked_items,
        'label_needs': label_needs,
        'last_updated': now.isoformat(),
    }
    set_json_setting(STATE_KEY, state, description='Shelf price checker progress')
    # Timestamp keys sort chronologically
    set_json_setting(f"{BACKUP_PREFIX}{now.strftime('%Y%m%d%H%M%S%f')}", state,
                     description='Shelf price checker backup')
    _prune_backups()

    stats = compute_stats(checked_items, label_needs)
    logger.info(f"Shelf checker saved: {stats}")
    return state, stats


def reset_state():
    Setting.objects.filter(key=STATE_KEY).delete()
    return empty_state()
