from rest_framework import serializers

from storefront.catalog.models import Product
from .models import Order, OrderItem


class OrderProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'name', 'price', 'image_url', 'category_name']


class OrderItemSerializer(serializers.ModelSerializer):
    product = OrderProductSerializer(read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'quantity', 'price', 'size', 'color', 'line_total']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(read_only=True)
    customer_email = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'user', 'status', 'payment_status', 'total_amount', 'shipping_address',
                  'billing_address', 'payment_method', 'tracking_number', 'notes', 'promo_code',
                  'guest_name', 'guest_email', 'guest_phone', 'guest_address', 'tracking_token',
                  'customer_name', 'customer_email', 'items', 'created_at', 'updated_at']
        read_only_fields = fields


class OrderLineSerializer(serializers.Serializer):
    """One requested line of a new order"""
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    size = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    color = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)


class GuestInfoSerializer(serializers.Serializer):
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    email = serializers.EmailField()
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)
