from rest_framework import serializers

from storefront.catalog.serializers import ProductSerializer
from .models import CartItem, WishlistItem, StockNotification


class CartItemSerializer(serializers.ModelSerializer):
    product = ProductSerializer(read_only=True)
    price = serializers.DecimalField(source='product.price', max_digits=10, decimal_places=2, read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'product', 'quantity', 'size', 'color', 'price', 'line_total', 'created_at', 'updated_at']


class WishlistItemSerializer(serializers.ModelSerializer):
    product = ProductSerializer(read_only=True)

    class Meta:
        model = WishlistItem
        fields = ['id', 'product', 'created_at']


class StockNotificationSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = StockNotification
        fields = ['id', 'product', 'product_name', 'email', 'is_notified', 'notified_at', 'created_at']
        read_only_fields = ['product', 'is_notified', 'notified_at', 'created_at']
