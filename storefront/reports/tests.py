"""
Test suite for Reports module
Tests: dashboard statistics and their caching
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.content.models import ContactInquiry
from storefront.orders.models import Order
from storefront.reports.views import compute_dashboard_stats


class DashboardStatsTests(TestCase):
    """Test the admin dashboard counters"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_stats_keys(self):
        response = self.client.get('/api/admin/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(set(response.data), {
            'total_users', 'total_products', 'total_orders', 'total_revenue', 'active_sales', 'active_offers',
            'total_categories', 'total_collections', 'total_promoters', 'total_inquiries', 'unread_inquiries',
            'pending_orders', 'completed_orders', 'low_stock_products',
        })

    def test_counters(self):
        customer = TestDataFactory.create_user()
        TestDataFactory.create_promoter()
        low = TestDataFactory.create_product(price=Decimal('40.00'), stock=5)
        TestDataFactory.create_product(stock=6)
        TestDataFactory.create_product(stock=0, is_active=False)
        TestDataFactory.create_order(user=customer, product=low, status=Order.STATUS_DELIVERED)
        TestDataFactory.create_order(user=customer, product=low, quantity=2, status=Order.STATUS_DELIVERED)
        TestDataFactory.create_order(user=customer, product=low)
        TestDataFactory.create_sale()
        TestDataFactory.create_sale(running=False)
        TestDataFactory.create_offer()
        ContactInquiry.objects.create(full_name='A', email='a@example.com', phone='12345678', message='Hi',
                                      is_read=True)
        ContactInquiry.objects.create(full_name='B', email='b@example.com', phone='12345678', message='Hi')

        stats = compute_dashboard_stats()
        self.assertEqual(stats['total_users'], 3)
        self.assertEqual(stats['total_promoters'], 1)
        self.assertEqual(stats['total_products'], 2)
        self.assertEqual(stats['low_stock_products'], 1)
        self.assertEqual(stats['total_orders'], 3)
        self.assertEqual(stats['pending_orders'], 1)
        self.assertEqual(stats['completed_orders'], 2)
        self.assertEqual(stats['total_revenue'], '120.00')
        self.assertEqual(stats['active_sales'], 1)
        self.assertEqual(stats['active_offers'], 1)
        self.assertEqual(stats['total_categories'], 3)
        self.assertEqual(stats['total_inquiries'], 2)
        self.assertEqual(stats['unread_inquiries'], 1)

    def test_revenue_without_delivered_orders(self):
        TestDataFactory.create_order()
        self.assertEqual(compute_dashboard_stats()['total_revenue'], '0.00')

    def test_cache_hit_and_invalidation(self):
        """Test a second read is served from cache until a counted model changes"""
        response = self.client.get('/api/admin/stats/')
        self.assertEqual(response['X-Cache'], 'MISS')
        self.assertEqual(response.data['total_products'], 0)

        response = self.client.get('/api/stats/')
        self.assertEqual(response['X-Cache'], 'HIT')

        TestDataFactory.create_product()
        response = self.client.get('/api/admin/stats/')
        self.assertEqual(response['X-Cache'], 'MISS')
        self.assertEqual(response.data['total_products'], 1)

    def test_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/admin/stats/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.logout()
        response = self.client.get('/api/stats/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
