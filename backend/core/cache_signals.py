"""
Cache invalidation signals
Invalidate the dashboard cache when the data behind it changes
"""
from django.db.models.signals import post_save, post_delete
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

# (app_label, model_name) pairs whose writes affect dashboard figures
DASHBOARD_MODELS = [
    ('catalog', 'Item'),
    ('inventory', 'InventoryItem'),
    ('purchasing', 'PurchaseOrder'),
    ('sales', 'SalesAggregate'),
    ('roster', 'Shift'),
    ('diary', 'DiaryEntry'),
]


@contextmanager
def suspend_cache_signals():
    """
    Temporarily suspend cache invalidation signals during bulk imports.
    Invalidate manually after the block.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def _invalidate_dashboard(sender, **kwargs):
    if is_suspended():
        return
    invalidate_dashboard_cache()


def connect_cache_signals():
    """Called from CoreConfig.ready once all models are loaded"""
    from django.apps import apps

    for app_label, model_name in DASHBOARD_MODELS:
        try:
            model = apps.get_model(app_label, model_name)
        except LookupError:
            logger.warning(f"Cache signals: model {app_label}.{model_name} not installed")
            continue
        uid = f"dashboard_cache_{app_label}_{model_name}"
        post_save.connect(_invalidate_dashboard, sender=model, dispatch_uid=f"{uid}_save")
        post_delete.connect(_invalidate_dashboard, sender=model, dispatch_uid=f"{uid}_delete")
