import logging
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from storefront.catalog.models import Product
from storefront.core.permissions import IsStoreAdmin
from storefront.core.utils import create_audit_log, parse_id
from .models import CartItem, WishlistItem, StockNotification
from .serializers import CartItemSerializer, WishlistItemSerializer, StockNotificationSerializer
from .utils import shopper_lookup

logger = logging.getLogger(__name__)


def _positive_quantity(value, default=None):
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return default
    return quantity if quantity >= 1 else None


# Cart views
@api_view(['GET'])
@permission_classes([AllowAny])
def cart_detail(request):
    """Cart lines priced at the current product price"""
    lookup = shopper_lookup(request)
    items = CartItem.objects.filter(**lookup).select_related('product') if lookup else CartItem.objects.none()
    subtotal = sum((item.line_total for item in items), Decimal('0')).quantize(Decimal('0.01'))
    return Response({
        'cart_items': CartItemSerializer(items, many=True).data,
        'subtotal': str(subtotal),
        'total_items': sum(item.quantity for item in items),
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def cart_add(request):
    """Add a product, merging with an existing line of the same size and colour"""
    if not request.data.get('product_id'):
        return Response({'error': 'Product ID is required'}, status=status.HTTP_400_BAD_REQUEST)
    product_id = parse_id(request.data['product_id'])
    if product_id is None:
        return Response({'error': 'Product ID must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    quantity = _positive_quantity(request.data.get('quantity', 1))
    if quantity is None:
        return Response({'error': 'Valid quantity is required'}, status=status.HTTP_400_BAD_REQUEST)

    product = Product.objects.filter(pk=product_id, is_active=True).first()
    if product is None:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)

    size = request.data.get('size') or None
    color = request.data.get('color') or None
    if not product.offers_size(size):
        return Response({'error': f'Size {size} is not available for {product.name}'},
                        status=status.HTTP_400_BAD_REQUEST)

    lookup = shopper_lookup(request, create_session=True)
    with transaction.atomic():
        item = CartItem.objects.filter(product=product, size=size, color=color, **lookup).first()
        new_quantity = quantity + (item.quantity if item else 0)
        if product.stock < new_quantity:
            return Response({'error': 'Insufficient stock'}, status=status.HTTP_400_BAD_REQUEST)
        if item:
            item.quantity = new_quantity
            item.save(update_fields=['quantity', 'updated_at'])
        else:
            item = CartItem.objects.create(product=product, quantity=quantity, size=size, color=color, **lookup)

    return Response({'message': 'Product added to cart', 'cart_item': CartItemSerializer(item).data})


@api_view(['PUT', 'PATCH'])
@permission_classes([AllowAny])
def cart_update(request, item_id):
    quantity = _positive_quantity(request.data.get('quantity'))
    if quantity is None:
        return Response({'error': 'Valid quantity is required'}, status=status.HTTP_400_BAD_REQUEST)
    lookup = shopper_lookup(request)
    item = CartItem.objects.filter(pk=item_id, **lookup).select_related('product').first() if lookup else None
    if item is None:
        return Response({'error': 'Cart item not found'}, status=status.HTTP_404_NOT_FOUND)
    if item.product.stock < quantity:
        return Response({'error': 'Insufficient stock'}, status=status.HTTP_400_BAD_REQUEST)

    item.quantity = quantity
    item.save(update_fields=['quantity', 'updated_at'])
    return Response({'message': 'Cart item updated', 'cart_item': CartItemSerializer(item).data})


@api_view(['DELETE'])
@permission_classes([AllowAny])
def cart_remove(request, item_id):
    lookup = shopper_lookup(request)
    deleted = CartItem.objects.filter(pk=item_id, **lookup).delete()[0] if lookup else 0
    if not deleted:
        return Response({'error': 'Cart item not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'message': 'Item removed from cart'})


@api_view(['GET'])
@permission_classes([AllowAny])
def cart_count(request):
    lookup = shopper_lookup(request)
    count = CartItem.objects.filter(**lookup).count() if lookup else 0
    return Response({'count': count})


@api_view(['DELETE'])
@permission_classes([AllowAny])
def cart_clear(request):
    lookup = shopper_lookup(request)
    if lookup:
        CartItem.objects.filter(**lookup).delete()
    return Response({'message': 'Cart cleared successfully'})


# Wishlist views
@api_view(['GET'])
@permission_classes([AllowAny])
def wishlist_detail(request):
    """Wishlist items whose products are still listed"""
    lookup = shopper_lookup(request)
    items = (WishlistItem.objects.filter(product__is_active=True, **lookup).select_related('product')
             if lookup else WishlistItem.objects.none())
    return Response({'wishlist_items': WishlistItemSerializer(items, many=True).data})


@api_view(['POST'])
@permission_classes([AllowAny])
def wishlist_add(request, product_id):
    product = Product.objects.filter(pk=product_id, is_active=True).first()
    if product is None:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    lookup = shopper_lookup(request, create_session=True)
    item, created = WishlistItem.objects.get_or_create(product=product, **lookup)
    if not created:
        return Response({'error': 'Product already in wishlist'}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'message': 'Product added to wishlist', 'wishlist_item': WishlistItemSerializer(item).data})


@api_view(['DELETE'])
@permission_classes([AllowAny])
def wishlist_remove(request, product_id):
    lookup = shopper_lookup(request)
    deleted = WishlistItem.objects.filter(product_id=product_id, **lookup).delete()[0] if lookup else 0
    if not deleted:
        return Response({'error': 'Item not found in wishlist'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'message': 'Product removed from wishlist'})


@api_view(['GET'])
@permission_classes([AllowAny])
def wishlist_check(request, product_id):
    lookup = shopper_lookup(request)
    in_wishlist = bool(lookup) and WishlistItem.objects.filter(product_id=product_id, **lookup).exists()
    return Response({'in_wishlist': in_wishlist})


@api_view(['DELETE'])
@permission_classes([AllowAny])
def wishlist_clear(request):
    lookup = shopper_lookup(request)
    if lookup:
        WishlistItem.objects.filter(**lookup).delete()
    return Response({'message': 'Wishlist cleared'})


# Stock notification views
@api_view(['GET'])
@permission_classes([AllowAny])
def stock_notification_list(request):
    """The shopper's subscriptions; admins see every subscription"""
    if request.user.is_authenticated and request.user.is_store_admin:
        subscriptions = StockNotification.objects.select_related('product')
        if request.query_params.get('product_id'):
            product_id = parse_id(request.query_params['product_id'])
            if product_id is None:
                return Response({'error': 'product_id must be a number'}, status=status.HTTP_400_BAD_REQUEST)
            subscriptions = subscriptions.filter(product_id=product_id)
    else:
        lookup = shopper_lookup(request)
        subscriptions = (StockNotification.objects.filter(**lookup).select_related('product')
                         if lookup else StockNotification.objects.none())
    return Response({'notifications': StockNotificationSerializer(subscriptions, many=True).data})


@api_view(['POST'])
@permission_classes([AllowAny])
def stock_notification_add(request, product_id):
    email = request.data.get('email') or (request.user.email if request.user.is_authenticated else None)
    if not email:
        return Response({'error': 'Email is required'}, status=status.HTTP_400_BAD_REQUEST)
    product = get_object_or_404(Product, pk=product_id)
    if product.stock > 0:
        return Response({'error': 'Product is currently in stock'}, status=status.HTTP_400_BAD_REQUEST)

    lookup = shopper_lookup(request, create_session=True)
    if StockNotification.objects.filter(product=product, is_notified=False, **lookup).exists():
        return Response({'error': 'Already subscribed to stock notifications for this product'},
                        status=status.HTTP_400_BAD_REQUEST)
    subscription = StockNotification.objects.create(product=product, email=email, **lookup)
    return Response({'message': 'Stock notification added successfully',
                     'notification': StockNotificationSerializer(subscription).data},
                    status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([AllowAny])
def stock_notification_remove(request, product_id):
    lookup = shopper_lookup(request)
    deleted = StockNotification.objects.filter(product_id=product_id, **lookup).delete()[0] if lookup else 0
    if not deleted:
        return Response({'error': 'Stock notification not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'message': 'Stock notification removed successfully'})


@api_view(['GET'])
@permission_classes([AllowAny])
def stock_notification_check(request, product_id):
    lookup = shopper_lookup(request)
    subscribed = bool(lookup) and StockNotification.objects.filter(
        product_id=product_id, is_notified=False, **lookup
    ).exists()
    return Response({'is_subscribed': subscribed})


@api_view(['POST'])
@permission_classes([IsStoreAdmin])
def stock_notification_notify(request, product_id):
    """Mark pending subscriptions of a restocked product as notified"""
    product = get_object_or_404(Product, pk=product_id)
    if product.stock <= 0:
        return Response({'error': 'Product is still out of stock'}, status=status.HTTP_400_BAD_REQUEST)

    pending = StockNotification.objects.filter(product=product, is_notified=False)
    emails = list(pending.values_list('email', flat=True))
    notified_count = pending.update(is_notified=True, notified_at=timezone.now())
    for email in emails:
        logger.info(f"Back-in-stock notice for {product.name} queued to {email}")
    create_audit_log(request=request, action='update', model_name='StockNotification', object_id=product.pk,
                     object_name=product.name, changes={'notified_count': notified_count})
    return Response({'message': f'Notified {notified_count} subscribers', 'notified_count': notified_count})
