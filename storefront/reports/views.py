import logging
from decimal import Decimal

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.db.models import Sum
from django.utils import timezone

from storefront.catalog.models import Category, Collection, Product
from storefront.content.models import ContactInquiry
from storefront.core.cache_utils import get_cached_dashboard_stats, cache_dashboard_stats, DASHBOARD_STATS_CACHE_TTL
from storefront.core.models import User
from storefront.core.permissions import IsStoreAdmin
from storefront.orders.models import Order
from storefront.pricing.models import Offer, Sale

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 5


def compute_dashboard_stats():
    """Store-wide counters shown on the admin dashboard"""
    now = timezone.now()
    revenue = Order.objects.filter(status=Order.STATUS_DELIVERED).aggregate(total=Sum('total_amount'))['total']
    return {
        'total_users': User.objects.count(),
        'total_products': Product.objects.filter(is_active=True).count(),
        'total_orders': Order.objects.count(),
        'total_revenue': str((revenue or Decimal('0')).quantize(Decimal('0.01'))),
        'active_sales': Sale.objects.filter(Sale.active_filter(now)).count(),
        'active_offers': Offer.objects.filter(Offer.active_filter(now)).count(),
        'total_categories': Category.objects.count(),
        'total_collections': Collection.objects.count(),
        'total_promoters': User.objects.filter(role=User.ROLE_PROMOTER).count(),
        'total_inquiries': ContactInquiry.objects.count(),
        'unread_inquiries': ContactInquiry.objects.filter(is_read=False).count(),
        'pending_orders': Order.objects.filter(status=Order.STATUS_PENDING).count(),
        'completed_orders': Order.objects.filter(status=Order.STATUS_DELIVERED).count(),
        'low_stock_products': Product.objects.filter(is_active=True, stock__lte=LOW_STOCK_THRESHOLD).count(),
    }


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def dashboard_stats(request):
    """Dashboard statistics, cached until a counted model changes"""
    # Try cache first (skip if the cache backend is unavailable)
    cache_key = None
    try:
        cached_data, cache_key = get_cached_dashboard_stats()
        if cached_data:
            logger.info(f"Dashboard stats cache HIT (user: {request.user.email})")
            response = Response(cached_data)
            response['X-Cache'] = 'HIT'
            return response
    except Exception as e:
        logger.warning(f"Cache unavailable, proceeding without cache: {e}")

    data = compute_dashboard_stats()

    if cache_key:
        try:
            cache_dashboard_stats(cache_key, data, DASHBOARD_STATS_CACHE_TTL)
        except Exception as e:
            logger.warning(f"Unable to cache dashboard stats: {e}")

    response = Response(data)
    response['X-Cache'] = 'MISS'
    response['Cache-Control'] = 'private, max-age=60'
    return response
