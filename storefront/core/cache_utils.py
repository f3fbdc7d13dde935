"""
Caching utilities for expensive storefront queries
Uses the default Django cache (Redis via django-redis in production)
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
DASHBOARD_STATS_CACHE_TTL = 300  # 5 minutes
CATEGORY_LIST_CACHE_TTL = 300  # 5 minutes
PRODUCT_HIGHLIGHTS_CACHE_TTL = 300  # 5 minutes

DASHBOARD_STATS_PREFIX = "dashboard_stats"
CATEGORY_LIST_PREFIX = "categories_list"
PRODUCT_HIGHLIGHT_PREFIXES = ("products_under_50", "products_sale", "products_new_arrivals")


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    # Convert args and kwargs to a stable string representation
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix="categories_list")
        def get_expensive_data():
            # expensive query here
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_cached_query(key_prefix, *args, **kwargs):
    """Drop the entry stored by a `cached_query` function for the given arguments"""
    cache_key = make_cache_key(key_prefix, *args, **kwargs)
    cache.delete(cache_key)
    logger.debug(f"Invalidated cache key: {cache_key}")


def get_cached_dashboard_stats():
    """Get cached dashboard statistics; returns (data, cache_key)"""
    cache_key = make_cache_key(DASHBOARD_STATS_PREFIX)
    return cache.get(cache_key), cache_key


def cache_dashboard_stats(cache_key, data, ttl=DASHBOARD_STATS_CACHE_TTL):
    """Cache dashboard statistics"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard stats: {cache_key}")


def invalidate_dashboard_cache():
    """Invalidate dashboard statistics cache"""
    invalidate_cached_query(DASHBOARD_STATS_PREFIX)
    logger.info("Invalidated dashboard cache")


def invalidate_category_cache():
    """Invalidate the public category list"""
    invalidate_cached_query(CATEGORY_LIST_PREFIX)
    logger.info("Invalidated category cache")


def invalidate_products_cache():
    """Invalidate the cached product highlight lists (under 50, sale, new arrivals)"""
    for prefix in PRODUCT_HIGHLIGHT_PREFIXES:
        invalidate_cached_query(prefix)
    logger.info("Invalidated products cache")
