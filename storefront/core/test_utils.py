"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from storefront.catalog.models import Category, Product, Collection, ProductCollection
from storefront.orders.models import Order, OrderItem
from storefront.pricing.models import Sale, SaleItem, Offer
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', role=User.ROLE_CUSTOMER, **extra):
        """Create a test customer"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6)}@test.com'
        extra.setdefault('first_name', 'Test')
        extra.setdefault('last_name', 'User')
        return User.objects.create_user(email=email, password=password, role=role, **extra)

    @staticmethod
    def create_admin(email=None, password='adminpass123'):
        """Create a store administrator"""
        if not email:
            email = f'admin_{TestDataFactory.random_string(6)}@test.com'
        return TestDataFactory.create_user(email=email, password=password, role=User.ROLE_ADMIN,
                                           is_staff=True, first_name='Store', last_name='Admin')

    @staticmethod
    def create_promoter(promo_code=None, email=None, commission=Decimal('10.00'), is_active=True):
        """Create a promoter with a promo code"""
        if not promo_code:
            promo_code = f'PRO{random.randint(10, 99)}{TestDataFactory.random_string(3).upper()}'
        return TestDataFactory.create_user(email=email, role=User.ROLE_PROMOTER, promo_code=promo_code,
                                           commission=commission, is_active=is_active,
                                           first_name='Priya', last_name='Promoter')

    @staticmethod
    def create_category(name=None, slug=None, parent_category='women'):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'category-{TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            slug=slug,
            parent_category=parent_category,
            description=f'Test category {name}'
        )

    @staticmethod
    def create_product(name=None, price=None, stock=10, category=None, **extra):
        """Create a test product"""
        if not name:
            name = f'Saree {TestDataFactory.random_string(6)}'
        if price is None:
            price = Decimal('100.00')
        if not category:
            category = TestDataFactory.create_category()
        return Product.objects.create(
            name=name,
            price=price,
            stock=stock,
            category=category,
            description=f'Test product {name}',
            **extra
        )

    @staticmethod
    def create_collection(name=None, products=None, **extra):
        """Create a collection, optionally holding `products`"""
        if not name:
            name = f'Collection {TestDataFactory.random_string(6)}'
        collection = Collection.objects.create(name=name, **extra)
        for product in products or []:
            ProductCollection.objects.create(collection=collection, product=product)
        return collection

    @staticmethod
    def create_sale(name=None, discount_percent=Decimal('20.00'), products=None, running=True, **extra):
        """Create a sale whose window covers now (or lies in the past when `running` is False)"""
        now = timezone.now()
        if running:
            start, end = now - timedelta(days=1), now + timedelta(days=7)
        else:
            start, end = now - timedelta(days=10), now - timedelta(days=3)
        sale = Sale.objects.create(
            name=name or f'Sale {TestDataFactory.random_string(6)}',
            description='Test sale',
            start_date=start,
            end_date=end,
            discount_percent=discount_percent,
            **extra
        )
        for product in products or []:
            SaleItem.objects.create(sale=sale, product=product)
        return sale

    @staticmethod
    def create_offer(title=None, discount=Decimal('10.00'), **extra):
        """Create an always-on offer"""
        return Offer.objects.create(
            title=title or f'Offer {TestDataFactory.random_string(6)}',
            description='Test offer',
            discount=discount,
            **extra
        )

    @staticmethod
    def create_order(user=None, product=None, quantity=1, status=Order.STATUS_PENDING, **extra):
        """Create an order with a single line; stock is left untouched"""
        if not product:
            product = TestDataFactory.create_product()
        order = Order.objects.create(
            user=user,
            status=status,
            total_amount=product.price * quantity,
            shipping_address={'street': '12 MG Road', 'city': 'Pune'},
            billing_address={'street': '12 MG Road', 'city': 'Pune'},
            payment_method='card',
            **extra
        )
        OrderItem.objects.create(order=order, product=product, quantity=quantity, price=product.price)
        return order


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
