"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache, invalidate_category_cache, invalidate_products_cache
from .events import product_updated, order_created, inquiry_received

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

# Models whose rows feed the dashboard statistics
DASHBOARD_MODELS = {
    'User', 'Product', 'Order', 'Category', 'Collection',
    'Sale', 'Offer', 'ContactInquiry',
}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations (seeding) to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def invalidate_all_caches():
    invalidate_dashboard_cache()
    invalidate_category_cache()
    invalidate_products_cache()


@receiver([post_save, post_delete])
def invalidate_dashboard_stats(sender, instance, **kwargs):
    """Invalidate dashboard stats when counted models change"""
    if is_suspended():
        return
    if sender.__name__ in DASHBOARD_MODELS:
        try:
            invalidate_dashboard_cache()
        except Exception as e:
            logger.warning(f"Error in invalidate_dashboard_stats signal: {e}")


@receiver([post_save, post_delete])
def invalidate_catalog_cache(sender, instance, **kwargs):
    """Invalidate category and product highlight caches when the catalogue changes"""
    if is_suspended():
        return
    model_name = sender.__name__
    try:
        if model_name == 'Category':
            invalidate_category_cache()
        elif model_name == 'Product':
            invalidate_products_cache()
    except Exception as e:
        logger.warning(f"Error in invalidate_catalog_cache signal: {e}")


@receiver(product_updated)
def product_updated_cache(sender, **kwargs):
    if not is_suspended():
        invalidate_products_cache()


@receiver([order_created, inquiry_received])
def activity_cache(sender, **kwargs):
    if not is_suspended():
        invalidate_dashboard_cache()
