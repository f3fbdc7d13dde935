from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from storefront.catalog.models import Product, Collection

TWO_PLACES = Decimal('0.01')


class Sale(models.Model):
    """Time-boxed percentage discount, optionally tied to a collection"""
    name = models.CharField(max_length=200)
    description = models.TextField()
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2,
                                           validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))])
    is_active = models.BooleanField(default=True)
    collection = models.ForeignKey(Collection, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    products = models.ManyToManyField(Product, through='SaleItem', related_name='sales', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def active_filter(cls, now=None):
        now = now or timezone.now()
        return Q(is_active=True, start_date__lte=now, end_date__gte=now)

    def is_running(self, now=None):
        now = now or timezone.now()
        return self.is_active and self.start_date <= now <= self.end_date

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'sales'
        ordering = ['-created_at']


class SaleItem(models.Model):
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='sale_items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='sale_items')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sale_items'
        unique_together = [['sale', 'product']]


class Offer(models.Model):
    """Promotional offer shown on the storefront and applicable at checkout"""
    TYPE_ALL = 'ALL'
    TYPE_NEW_USER = 'NEW_USER'
    TYPE_PRODUCT = 'PRODUCT'
    TYPE_COLLECTION = 'COLLECTION'
    TYPE_CART = 'CART'
    TYPE_CHOICES = [
        (TYPE_ALL, 'All'),
        (TYPE_NEW_USER, 'New User'),
        (TYPE_PRODUCT, 'Product'),
        (TYPE_COLLECTION, 'Collection'),
        (TYPE_CART, 'Cart'),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField()
    image_url = models.CharField(max_length=500, blank=True, null=True)
    link = models.CharField(max_length=500, blank=True, null=True)
    start_date = models.DateTimeField(blank=True, null=True)
    end_date = models.DateTimeField(blank=True, null=True)
    discount = models.DecimalField(max_digits=5, decimal_places=2, blank=True, null=True,
                                   validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
                                   help_text="Discount in percent")
    # Legacy column from older offers, copied into `discount` by migrate_offer_discounts
    discount_value = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    minimum_order_amount = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_ALL)
    target_product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='offers')
    target_collection = models.ForeignKey(Collection, on_delete=models.SET_NULL, null=True, blank=True, related_name='offers')
    is_for_new_user = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    variant = models.PositiveSmallIntegerField(default=0, help_text="Banner design variant")
    target_page = models.CharField(max_length=100, blank=True, null=True)
    target_section = models.CharField(max_length=100, blank=True, null=True)
    display_location = models.CharField(max_length=100, blank=True, null=True)
    usage_limit = models.PositiveIntegerField(blank=True, null=True)
    used_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def active_filter(cls, now=None):
        """Active with an open or current date window"""
        now = now or timezone.now()
        return (
            Q(is_active=True)
            & (Q(start_date__isnull=True) | Q(start_date__lte=now))
            & (Q(end_date__isnull=True) | Q(end_date__gte=now))
        )

    def is_within_window(self, now=None):
        now = now or timezone.now()
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True

    @property
    def usage_exhausted(self):
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    @property
    def new_customers_only(self):
        return self.is_for_new_user or self.type == self.TYPE_NEW_USER

    def discount_for(self, order_total):
        """Percentage discount on `order_total`, rounded to cents and capped at the total"""
        order_total = Decimal(order_total)
        if not self.discount or order_total <= 0:
            return Decimal('0.00')
        amount = (order_total * self.discount / Decimal('100')).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        return min(amount, order_total.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'offers'
        ordering = ['-created_at']


class PromoCodeUsage(models.Model):
    """A customer's redemption of a promoter's code"""
    promoter = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='promo_redemptions')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='promo_code_usages')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='promo_code_usages')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'promo_code_usages'
        ordering = ['-created_at']
        unique_together = [['promoter', 'user']]
