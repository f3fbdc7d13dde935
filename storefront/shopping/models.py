from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from storefront.catalog.models import Product


class ShopperOwned(models.Model):
    """Row owned by a signed-in user or by an anonymous session"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, null=True, blank=True,
                             related_name='+')
    session_key = models.CharField(max_length=40, blank=True, null=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True


class CartItem(ShopperOwned):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    size = models.CharField(max_length=20, blank=True, null=True)
    color = models.CharField(max_length=50, blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def line_total(self):
        return self.product.price * self.quantity

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at']


class WishlistItem(ShopperOwned):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='wishlist_items')

    class Meta:
        db_table = 'wishlist_items'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'product'], condition=Q(user__isnull=False),
                                    name='unique_user_wishlist_product'),
            models.UniqueConstraint(fields=['session_key', 'product'], condition=Q(session_key__isnull=False),
                                    name='unique_session_wishlist_product'),
        ]


class StockNotification(ShopperOwned):
    """Request to be told when an out-of-stock product is back"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='stock_notifications')
    email = models.EmailField()
    is_notified = models.BooleanField(default=False)
    notified_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'stock_notifications'
        ordering = ['-created_at']
