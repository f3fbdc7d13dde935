"""
Test suite for Orders module
Tests: checkout for users and guests, stock handling, status transitions, cancellation
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase, RequestFactory
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.models import AuditLog
from storefront.catalog.models import Product
from storefront.orders.models import Order
from storefront.orders.views import change_order_status
from storefront.pricing.models import PromoCodeUsage
from storefront.shopping.models import CartItem

ADDRESS = {'street': '221 Linking Road', 'city': 'Mumbai', 'zip': '400050'}


class OrderModelTests(TestCase):
    """Test Order transition rules"""

    def test_transitions(self):
        order = TestDataFactory.create_order()
        self.assertTrue(order.can_transition_to(Order.STATUS_CONFIRMED))
        self.assertFalse(order.can_transition_to(Order.STATUS_DELIVERED))
        self.assertTrue(order.is_cancellable)

    def test_shipped_order_not_cancellable(self):
        order = TestDataFactory.create_order(status=Order.STATUS_SHIPPED)
        self.assertFalse(order.is_cancellable)

    def test_restore_stock(self):
        product = TestDataFactory.create_product(stock=4)
        order = TestDataFactory.create_order(product=product, quantity=3)
        order.restore_stock()
        product.refresh_from_db()
        self.assertEqual(product.stock, 7)


class CheckoutTests(TestCase):
    """Test order creation"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(name='Anarkali Suit', price=Decimal('80.00'), stock=5,
                                                      sizes=['S', 'M'])

    def _order_data(self, **overrides):
        data = {
            'products': [{'product_id': self.product.id, 'quantity': 2, 'size': 'M'}],
            'shipping_address': ADDRESS,
            'billing_address': ADDRESS,
            'payment_method': 'card',
        }
        data.update(overrides)
        return data

    def test_create_order(self):
        """Test checkout prices lines, takes stock and clears the cart"""
        self.client.authenticate_user(self.user)
        CartItem.objects.create(user=self.user, product=self.product, quantity=2)

        response = self.client.post('/api/orders/', self._order_data(discount_amount='10.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Order created successfully')
        order = response.data['order']
        self.assertEqual(order['total_amount'], '150.00')
        self.assertEqual(order['status'], Order.STATUS_PENDING)
        self.assertEqual(order['items'][0]['price'], '80.00')
        self.assertEqual(order['items'][0]['size'], 'M')

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)
        self.assertFalse(CartItem.objects.filter(user=self.user).exists())

    def test_create_order_camel_case(self):
        """Test camelCase bodies are accepted and addresses are stored as sent"""
        address = {'line1': '221 Linking Road', 'zipCode': '400050'}
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/orders/', {
            'products': [{'productId': self.product.id, 'quantity': 1, 'size': 'S'}],
            'shippingAddress': address,
            'paymentMethod': 'card',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get(pk=response.data['order']['id'])
        self.assertEqual(order.shipping_address, address)
        self.assertEqual(order.billing_address, address)

    def test_discount_never_makes_total_negative(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/orders/', self._order_data(discount_amount='500'), format='json')
        self.assertEqual(response.data['order']['total_amount'], '0.00')

    def test_create_order_without_products(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/orders/', self._order_data(products=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Order must contain at least one product')

    def test_create_order_missing_addresses(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/orders/', self._order_data(shipping_address=None), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'],
                         'Shipping address, billing address, and payment method are required')

    def test_create_order_unknown_product(self):
        self.client.authenticate_user(self.user)
        data = self._order_data(products=[{'product_id': 99999, 'quantity': 1}])
        response = self.client.post('/api/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Product 99999 not found')

    def test_create_order_insufficient_stock(self):
        """Test split lines of one product are checked against its stock together"""
        self.client.authenticate_user(self.user)
        data = self._order_data(products=[
            {'product_id': self.product.id, 'quantity': 3, 'size': 'S'},
            {'product_id': self.product.id, 'quantity': 3, 'size': 'M'},
        ])
        response = self.client.post('/api/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Insufficient stock for Anarkali Suit')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertEqual(Order.objects.count(), 0)

    def test_create_order_unavailable_size(self):
        self.client.authenticate_user(self.user)
        data = self._order_data(products=[{'product_id': self.product.id, 'quantity': 1, 'size': 'XL'}])
        response = self.client.post('/api/orders/', data, format='json')
        self.assertEqual(response.data['error'], 'Size XL is not available for Anarkali Suit')

    def test_guest_checkout(self):
        guest_info = {'first_name': 'Meera', 'last_name': 'Nair', 'email': 'meera@example.com'}
        response = self.client.post('/api/orders/', self._order_data(guest_info=guest_info), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['order']['user'])
        self.assertEqual(response.data['order']['customer_name'], 'Meera Nair')
        self.assertIsNotNone(response.data['order']['tracking_token'])

    def test_guest_checkout_requires_info(self):
        response = self.client.post('/api/orders/', self._order_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Guest information is required for guest checkout')

    def test_guest_checkout_clears_session_cart(self):
        self.client.post('/api/cart/add/', {'product_id': self.product.id, 'quantity': 1}, format='json')
        self.assertEqual(CartItem.objects.count(), 1)
        guest_info = {'first_name': 'Meera', 'last_name': 'Nair', 'email': 'meera@example.com'}
        self.client.post('/api/orders/', self._order_data(guest_info=guest_info), format='json')
        self.assertEqual(CartItem.objects.count(), 0)

    def test_promo_code_recorded(self):
        promoter = TestDataFactory.create_promoter(promo_code='NEHA21')
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/orders/', self._order_data(promo_code='neha21'), format='json')
        self.assertEqual(response.data['order']['promo_code'], 'NEHA21')
        usage = PromoCodeUsage.objects.get(promoter=promoter, user=self.user)
        self.assertEqual(usage.order_id, response.data['order']['id'])

    def test_simplified_guest_order(self):
        data = {
            'guest_name': 'Kavya Rao',
            'guest_email': 'kavya@example.com',
            'guest_address': '9 Brigade Road, Bengaluru',
            'items': [{'product_id': self.product.id, 'quantity': 1}],
        }
        response = self.client.post('/api/orders/guest/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        token = response.data['tracking_token']

        response = self.client.get(f'/api/orders/guest/{token}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['guest_email'], 'kavya@example.com')
        self.assertEqual(response.data['order']['payment_method'], 'cash_on_delivery')

    def test_simplified_guest_order_empty(self):
        data = {'guest_name': 'Kavya', 'guest_email': 'kavya@example.com', 'guest_address': 'Bengaluru'}
        response = self.client.post('/api/orders/guest/', data, format='json')
        self.assertEqual(response.data['error'], 'Cart is empty')

    def test_track_unknown_token(self):
        response = self.client.get('/api/orders/guest/3f1c6b9e-2a4d-4c8e-9f0a-1b2c3d4e5f60/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class OrderAccessTests(TestCase):
    """Test who can see which orders"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.order = TestDataFactory.create_order(user=self.user)

    def test_admin_list_requires_admin(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Admin access required')

    def test_admin_list_with_status_filter(self):
        TestDataFactory.create_order(user=self.other, status=Order.STATUS_SHIPPED)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/orders/?status=shipped')
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['orders'][0]['status'], Order.STATUS_SHIPPED)

    def test_user_orders(self):
        self.client.authenticate_user(self.user)
        response = self.client.get(f'/api/orders/user/{self.user.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['orders']), 1)

        response = self.client.get(f'/api/orders/user/{self.other.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_order_detail(self):
        self.client.authenticate_user(self.other)
        response = self.client.get(f'/api/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.get(f'/api/orders/{self.order.id}/')
        self.assertEqual(response.data['order']['id'], self.order.id)

    def test_dashboard_list_limit(self):
        TestDataFactory.create_order(user=self.other)
        TestDataFactory.create_order(user=self.other)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/admin/orders/?limit=2')
        self.assertEqual(len(response.data['orders']), 2)


class OrderStatusTests(TestCase):
    """Test admin order updates and cancellation"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(stock=2)
        self.order = TestDataFactory.create_order(user=self.user, product=self.product, quantity=3)

    def test_status_update(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/orders/{self.order.id}/status/', {'status': 'confirmed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['status'], Order.STATUS_CONFIRMED)
        log = AuditLog.objects.get(action='status_change')
        self.assertEqual(log.changes, {'old_status': 'PENDING', 'new_status': 'CONFIRMED'})

    def test_invalid_status(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/orders/{self.order.id}/status/', {'status': 'LOST'}, format='json')
        self.assertEqual(response.data['error'], 'Invalid order status')

    def test_disallowed_transition(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/orders/{self.order.id}/status/', {'status': 'DELIVERED'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot change order status from PENDING to DELIVERED')

    def test_admin_cancel_restores_stock(self):
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/admin/orders/{self.order.id}/status/', {'status': 'CANCELLED'},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertTrue(AuditLog.objects.filter(action='stock_restore').exists())

    def test_status_update_requires_admin(self):
        self.client.authenticate_user(self.user)
        response = self.client.patch(f'/api/orders/{self.order.id}/status/', {'status': 'CONFIRMED'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_payment_and_tracking(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/orders/{self.order.id}/payment/', {'payment_status': 'paid'},
                                     format='json')
        self.assertEqual(response.data['order']['payment_status'], Order.PAYMENT_PAID)
        response = self.client.patch(f'/api/orders/{self.order.id}/payment/', {'payment_status': 'maybe'},
                                     format='json')
        self.assertEqual(response.data['error'], 'Invalid payment status')

        response = self.client.patch(f'/api/orders/{self.order.id}/tracking/', {'tracking_number': 'DL123IN'},
                                     format='json')
        self.assertEqual(response.data['message'], 'Tracking number added successfully')
        self.assertEqual(response.data['order']['tracking_number'], 'DL123IN')

    def test_customer_cancel(self):
        self.client.authenticate_user(self.user)
        response = self.client.patch(f'/api/orders/{self.order.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['status'], Order.STATUS_CANCELLED)
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock, 5)

    def test_cancel_someone_elses_order(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.patch(f'/api/orders/{self.order.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Not authorized to cancel this order')

    def test_cancel_shipped_order(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_SHIPPED)
        self.client.authenticate_user(self.user)
        response = self.client.patch(f'/api/orders/{self.order.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Order cannot be cancelled at this stage')
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock, 2)

    def test_stale_copies_cancel_only_once(self):
        """Two requests holding the same PENDING order restore its stock a single time"""
        request = RequestFactory().patch(f'/api/orders/{self.order.id}/cancel/')
        request.user = self.admin
        first = Order.objects.get(pk=self.order.pk)
        second = Order.objects.get(pk=self.order.pk)

        self.assertIsNone(change_order_status(request, first, Order.STATUS_CANCELLED))
        response = change_order_status(request, second, Order.STATUS_CANCELLED)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot change order status from CANCELLED to CANCELLED')
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock, 5)
        self.assertEqual(AuditLog.objects.filter(action='stock_restore').count(), 1)

    def test_cancel_after_concurrent_cancel(self):
        """Customer cancel loses to an admin cancel that landed first"""
        request = RequestFactory().put(f'/api/admin/orders/{self.order.id}/status/')
        request.user = self.admin
        change_order_status(request, Order.objects.get(pk=self.order.pk), Order.STATUS_CANCELLED)

        self.client.authenticate_user(self.user)
        response = self.client.patch(f'/api/orders/{self.order.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock, 5)


class HighlightStockCacheTests(TestCase):
    """Test cached product lists follow stock changes made by orders"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(name='Cotton Dupatta', price=Decimal('30.00'), stock=5)

    def _listed_stock(self):
        response = self.client.get('/api/products/under-50/')
        return next(p['stock'] for p in response.data['products'] if p['id'] == self.product.id)

    def test_checkout_refreshes_cached_stock(self):
        self.assertEqual(self._listed_stock(), 5)
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/orders/', {
            'products': [{'product_id': self.product.id, 'quantity': 2}],
            'shipping_address': ADDRESS,
            'payment_method': 'card',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self._listed_stock(), 3)

    def test_cancel_refreshes_cached_stock(self):
        order = TestDataFactory.create_order(user=self.user, product=self.product, quantity=2)
        self.assertEqual(self._listed_stock(), 5)
        self.client.authenticate_user(self.user)
        self.client.patch(f'/api/orders/{order.id}/cancel/')
        self.assertEqual(self._listed_stock(), 7)
