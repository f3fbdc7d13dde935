"""
Test suite for Shopping module
Tests: carts, wishlists and stock notifications for signed-in users and guest sessions
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from django.contrib.sessions.models import Session
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.shopping.models import CartItem, WishlistItem, StockNotification


class CartTests(TestCase):
    """Test cart endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(price=Decimal('45.50'), stock=5, sizes=['S', 'M'])

    def _add(self, **data):
        data.setdefault('product_id', self.product.id)
        return self.client.post('/api/cart/add/', data, format='json')

    def test_empty_cart(self):
        response = self.client.get('/api/cart/')
        self.assertEqual(response.data, {'cart_items': [], 'subtotal': '0.00', 'total_items': 0})

    def test_add_to_cart(self):
        response = self._add(quantity=2, size='M', color='Red')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Product added to cart')

        response = self.client.get('/api/cart/')
        self.assertEqual(response.data['subtotal'], '91.00')
        self.assertEqual(response.data['total_items'], 2)
        self.assertEqual(response.data['cart_items'][0]['line_total'], '91.00')

    def test_add_merges_matching_line(self):
        """Test the same product, size and colour merge into one line"""
        self._add(quantity=1, size='M')
        self._add(quantity=2, size='M')
        self._add(quantity=1, size='S')
        lines = CartItem.objects.filter(user=self.user).order_by('size')
        self.assertEqual([(line.size, line.quantity) for line in lines], [('M', 3), ('S', 1)])

        response = self.client.get('/api/cart/count/')
        self.assertEqual(response.data['count'], 2)

    def test_add_beyond_stock(self):
        self._add(quantity=4)
        response = self._add(quantity=2)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Insufficient stock')
        self.assertEqual(CartItem.objects.get(user=self.user).quantity, 4)

    def test_add_invalid_input(self):
        self.assertEqual(self._add(quantity=0).data['error'], 'Valid quantity is required')
        self.assertEqual(self._add(product_id=99999).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self._add(size='XXL').status_code, status.HTTP_400_BAD_REQUEST)

    def test_add_non_numeric_product(self):
        response = self._add(product_id='abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Product ID must be a number')
        self.assertFalse(CartItem.objects.exists())

    def test_cart_uses_current_price(self):
        self._add(quantity=1)
        self.product.price = Decimal('50.00')
        self.product.save()
        response = self.client.get('/api/cart/')
        self.assertEqual(response.data['subtotal'], '50.00')

    def test_update_quantity(self):
        item_id = self._add(quantity=1).data['cart_item']['id']
        response = self.client.put(f'/api/cart/update/{item_id}/', {'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cart_item']['quantity'], 3)

        response = self.client.put(f'/api/cart/update/{item_id}/', {'quantity': 9}, format='json')
        self.assertEqual(response.data['error'], 'Insufficient stock')

    def test_cannot_touch_another_users_line(self):
        other_line = CartItem.objects.create(user=TestDataFactory.create_user(), product=self.product)
        response = self.client.put(f'/api/cart/update/{other_line.id}/', {'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(f'/api/cart/remove/{other_line.id}/')
        self.assertEqual(response.data['error'], 'Cart item not found')

    def test_remove_and_clear(self):
        item_id = self._add(quantity=1, size='S').data['cart_item']['id']
        self._add(quantity=1, size='M')
        response = self.client.delete(f'/api/cart/remove/{item_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(CartItem.objects.filter(user=self.user).count(), 1)

        response = self.client.delete('/api/cart/clear/')
        self.assertEqual(response.data['message'], 'Cart cleared successfully')
        self.assertFalse(CartItem.objects.filter(user=self.user).exists())

    def test_guest_cart_lives_in_session(self):
        """Test an anonymous visitor keeps a cart across requests"""
        guest = AuthenticatedAPIClient()
        self.assertEqual(guest.get('/api/cart/count/').data['count'], 0)
        guest.post('/api/cart/add/', {'product_id': self.product.id, 'quantity': 1}, format='json')
        self.assertEqual(guest.get('/api/cart/count/').data['count'], 1)

        line = CartItem.objects.get()
        self.assertIsNone(line.user)
        self.assertIsNotNone(line.session_key)
        # The signed-in user's cart is separate
        self.assertEqual(self.client.get('/api/cart/count/').data['count'], 0)


class WishlistTests(TestCase):
    """Test wishlist endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product()

    def test_add_and_check(self):
        response = self.client.post(f'/api/wishlist/add/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/wishlist/check/{self.product.id}/')
        self.assertTrue(response.data['in_wishlist'])

    def test_add_twice(self):
        self.client.post(f'/api/wishlist/add/{self.product.id}/')
        response = self.client.post(f'/api/wishlist/add/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Product already in wishlist')

    def test_list_hides_inactive_products(self):
        hidden = TestDataFactory.create_product(is_active=False)
        WishlistItem.objects.create(user=self.user, product=self.product)
        WishlistItem.objects.create(user=self.user, product=hidden)
        response = self.client.get('/api/wishlist/')
        self.assertEqual([item['product']['id'] for item in response.data['wishlist_items']], [self.product.id])

    def test_remove_and_clear(self):
        WishlistItem.objects.create(user=self.user, product=self.product)
        response = self.client.delete(f'/api/wishlist/remove/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.delete(f'/api/wishlist/remove/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        WishlistItem.objects.create(user=self.user, product=self.product)
        self.client.delete('/api/wishlist/clear/')
        self.assertFalse(WishlistItem.objects.filter(user=self.user).exists())

    def test_guest_check_without_session(self):
        response = AuthenticatedAPIClient().get(f'/api/wishlist/check/{self.product.id}/')
        self.assertFalse(response.data['in_wishlist'])


class StockNotificationTests(TestCase):
    """Test back-in-stock subscriptions"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.sold_out = TestDataFactory.create_product(name='Phulkari Dupatta', stock=0)

    def _subscribe(self, product=None, email='asha@example.com'):
        product = product or self.sold_out
        return self.client.post(f'/api/stock-notifications/add/{product.id}/', {'email': email}, format='json')

    def test_guest_subscribe(self):
        response = self._subscribe()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get(f'/api/stock-notifications/check/{self.sold_out.id}/')
        self.assertTrue(response.data['is_subscribed'])

    def test_subscribe_twice(self):
        self._subscribe()
        response = self._subscribe()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Already subscribed to stock notifications for this product')

    def test_subscribe_requires_email(self):
        response = self.client.post(f'/api/stock-notifications/add/{self.sold_out.id}/', {}, format='json')
        self.assertEqual(response.data['error'], 'Email is required')

    def test_signed_in_user_email_used(self):
        user = TestDataFactory.create_user(email='ritu@example.com')
        self.client.authenticate_user(user)
        response = self.client.post(f'/api/stock-notifications/add/{self.sold_out.id}/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['notification']['email'], 'ritu@example.com')

    def test_subscribe_in_stock_product(self):
        response = self._subscribe(product=TestDataFactory.create_product(stock=3))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Product is currently in stock')

    def test_remove(self):
        self._subscribe()
        response = self.client.delete(f'/api/stock-notifications/remove/{self.sold_out.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(StockNotification.objects.exists())

    def test_notify_subscribers(self):
        self._subscribe()
        StockNotification.objects.create(product=self.sold_out, email='second@example.com', session_key='abc')
        admin = TestDataFactory.create_admin()
        admin_client = AuthenticatedAPIClient().authenticate_user(admin)

        response = admin_client.post(f'/api/stock-notifications/notify/{self.sold_out.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Product is still out of stock')

        self.sold_out.stock = 4
        self.sold_out.save()
        response = admin_client.post(f'/api/stock-notifications/notify/{self.sold_out.id}/')
        self.assertEqual(response.data['notified_count'], 2)
        self.assertFalse(StockNotification.objects.filter(is_notified=False).exists())

        # A notified subscription no longer counts as pending
        response = self.client.get(f'/api/stock-notifications/check/{self.sold_out.id}/')
        self.assertFalse(response.data['is_subscribed'])

    def test_admin_sees_all_subscriptions(self):
        StockNotification.objects.create(product=self.sold_out, email='one@example.com', session_key='abc')
        StockNotification.objects.create(product=self.sold_out, email='two@example.com', session_key='def')
        self.assertEqual(len(self.client.get('/api/stock-notifications/').data['notifications']), 0)

        admin_client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_admin())
        response = admin_client.get(f'/api/stock-notifications/?product_id={self.sold_out.id}')
        self.assertEqual(len(response.data['notifications']), 2)


class PurgeGuestDataCommandTests(TestCase):
    """Test the purge_guest_data command"""

    def setUp(self):
        now = timezone.now()
        self.product = TestDataFactory.create_product(stock=0)
        Session.objects.create(session_key='live-session', session_data='', expire_date=now + timedelta(hours=2))
        Session.objects.create(session_key='expired-session', session_data='', expire_date=now - timedelta(hours=2))
        self.user = TestDataFactory.create_user()

        for key in ('live-session', 'expired-session', 'vanished-session'):
            CartItem.objects.create(session_key=key, product=self.product)
            WishlistItem.objects.create(session_key=key, product=self.product)
        CartItem.objects.create(user=self.user, product=self.product)
        self.pending = StockNotification.objects.create(session_key='expired-session', product=self.product,
                                                        email='asha@example.com')
        StockNotification.objects.create(session_key='expired-session', product=self.product,
                                         email='ritu@example.com', is_notified=True)

    def call(self, *args):
        out = StringIO()
        call_command('purge_guest_data', *args, stdout=out)
        return out.getvalue()

    def test_purges_rows_of_dead_sessions(self):
        output = self.call()
        self.assertEqual(set(CartItem.objects.filter(user__isnull=True).values_list('session_key', flat=True)),
                         {'live-session'})
        self.assertEqual(list(WishlistItem.objects.values_list('session_key', flat=True)), ['live-session'])
        self.assertTrue(CartItem.objects.filter(user=self.user).exists())
        self.assertEqual(list(StockNotification.objects.all()), [self.pending])
        self.assertIn('Deleted 5 guest row(s)', output)

    def test_dry_run_keeps_rows(self):
        output = self.call('--dry-run')
        self.assertIn('DRY RUN MODE', output)
        self.assertIn('Would delete 5 guest row(s)', output)
        self.assertEqual(CartItem.objects.count(), 4)
        self.assertEqual(WishlistItem.objects.count(), 3)
        self.assertEqual(StockNotification.objects.count(), 2)
