import logging
import uuid
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db import transaction, IntegrityError
from django.db.models import F
from django.shortcuts import get_object_or_404

from storefront.catalog.models import Product
from storefront.core.cache_utils import invalidate_products_cache
from storefront.core.events import order_created
from storefront.core.models import User
from storefront.core.pagination import paginate, parse_limit
from storefront.core.permissions import IsStoreAdmin, is_owner_or_admin
from storefront.core.utils import create_audit_log
from storefront.pricing.models import PromoCodeUsage
from storefront.shopping.utils import clear_cart
from .models import Order, OrderItem
from .serializers import OrderSerializer, OrderLineSerializer, GuestInfoSerializer

logger = logging.getLogger(__name__)


class OrderRejected(Exception):
    """Order input that cannot be fulfilled; carries the HTTP status to answer with"""

    def __init__(self, message, status_code=status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _order_queryset():
    return Order.objects.select_related('user').prefetch_related('items__product')


def _parse_lines(raw_lines):
    if not isinstance(raw_lines, list) or not raw_lines:
        raise OrderRejected('Order must contain at least one product')
    serializer = OrderLineSerializer(data=raw_lines, many=True)
    if not serializer.is_valid():
        raise OrderRejected('Each product needs a product_id and a positive quantity')
    return serializer.validated_data


def _parse_discount(value):
    if value in (None, ''):
        return Decimal('0')
    try:
        discount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise OrderRejected('discount_amount must be a number')
    return max(discount, Decimal('0'))


def _place_order(lines, discount=Decimal('0'), **order_fields):
    """
    Create an order and its items, taking stock off each product.

    Must run inside a transaction; products are locked so concurrent checkouts
    cannot oversell.
    """
    product_ids = [line['product_id'] for line in lines]
    products = Product.objects.select_for_update().in_bulk(product_ids)

    # Quantity per product across lines, so split lines are checked together
    requested = {}
    for line in lines:
        product = products.get(line['product_id'])
        if product is None or not product.is_active:
            raise OrderRejected(f"Product {line['product_id']} not found", status.HTTP_404_NOT_FOUND)
        if not product.offers_size(line.get('size')):
            raise OrderRejected(f"Size {line.get('size')} is not available for {product.name}")
        requested[product.pk] = requested.get(product.pk, 0) + line['quantity']
        if product.stock < requested[product.pk]:
            raise OrderRejected(f"Insufficient stock for {product.name}")

    subtotal = sum((products[line['product_id']].price * line['quantity'] for line in lines), Decimal('0'))
    total = max(subtotal - discount, Decimal('0'))

    order = Order.objects.create(total_amount=total, **order_fields)
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=products[line['product_id']],
            quantity=line['quantity'],
            price=products[line['product_id']].price,
            size=line.get('size') or None,
            color=line.get('color') or None,
        )
        for line in lines
    ])
    for product_id, quantity in requested.items():
        # Use F() so the decrement happens in the database
        Product.objects.filter(pk=product_id).update(stock=F('stock') - quantity)
    return order


def _record_promo_usage(order, promo_code):
    """Link a signed-in customer's first order to the promoter whose code they used"""
    if not promo_code or not order.user_id:
        return
    promoter = User.objects.filter(promo_code=promo_code.strip().upper(), role=User.ROLE_PROMOTER,
                                   is_active=True).first()
    if promoter is None:
        return
    try:
        with transaction.atomic():
            PromoCodeUsage.objects.create(promoter=promoter, user_id=order.user_id, order=order)
    except IntegrityError:
        logger.info(f"Promo code {promo_code} already redeemed by user {order.user_id}")


# Order views
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def order_list_create(request):
    """Admin order listing (GET) or checkout for users and guests (POST)"""
    if request.method == 'GET':
        if not (request.user.is_authenticated and request.user.is_store_admin):
            return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)
        orders = _order_queryset()
        status_filter = request.query_params.get('status')
        if status_filter:
            orders = orders.filter(status=status_filter.upper())
        page_items, pagination = paginate(orders, request, default_limit=10)
        return Response({'orders': OrderSerializer(page_items, many=True).data, 'pagination': pagination})

    return _create_order(request)


def _create_order(request):
    data = request.data
    try:
        lines = _parse_lines(data.get('products'))
        discount = _parse_discount(data.get('discount_amount'))
    except OrderRejected as e:
        return Response({'error': e.message}, status=e.status_code)

    shipping_address = data.get('shipping_address')
    billing_address = data.get('billing_address') or shipping_address
    payment_method = data.get('payment_method')
    if not shipping_address or not payment_method:
        return Response({'error': 'Shipping address, billing address, and payment method are required'},
                        status=status.HTTP_400_BAD_REQUEST)

    order_fields = {
        'shipping_address': shipping_address,
        'billing_address': billing_address,
        'payment_method': payment_method,
        'notes': data.get('notes') or None,
        'promo_code': (data.get('promo_code') or '').strip().upper() or None,
    }
    if request.user.is_authenticated:
        order_fields['user'] = request.user
    else:
        guest = GuestInfoSerializer(data=data.get('guest_info') or {})
        if not guest.is_valid():
            return Response({'error': 'Guest information is required for guest checkout'},
                            status=status.HTTP_400_BAD_REQUEST)
        info = guest.validated_data
        order_fields.update({
            'guest_name': f"{info['first_name']} {info['last_name']}",
            'guest_email': info['email'],
            'guest_phone': info.get('phone') or None,
            'tracking_token': uuid.uuid4(),
        })

    try:
        with transaction.atomic():
            order = _place_order(lines, discount=discount, **order_fields)
            _record_promo_usage(order, order.promo_code)
    except OrderRejected as e:
        return Response({'error': e.message}, status=e.status_code)

    invalidate_products_cache()
    clear_cart(request)
    order = _order_queryset().get(pk=order.pk)
    order_created.send(sender=_create_order, order=order)
    return Response({'message': 'Order created successfully', 'order': OrderSerializer(order).data},
                    status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def guest_order_create(request):
    """Simplified guest checkout returning a tracking token"""
    data = request.data
    guest_name = data.get('guest_name')
    guest_email = data.get('guest_email')
    guest_address = data.get('guest_address')
    if not guest_name or not guest_email or not guest_address:
        return Response({'error': 'Guest information is required'}, status=status.HTTP_400_BAD_REQUEST)
    if not data.get('items'):
        return Response({'error': 'Cart is empty'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        lines = _parse_lines(data.get('items'))
        with transaction.atomic():
            order = _place_order(
                lines,
                guest_name=guest_name,
                guest_email=guest_email,
                guest_phone=data.get('guest_phone') or None,
                guest_address=guest_address,
                shipping_address=data.get('shipping_address') or {'address': guest_address},
                billing_address=data.get('billing_address') or data.get('shipping_address') or {'address': guest_address},
                payment_method=data.get('payment_method') or 'cash_on_delivery',
                tracking_token=uuid.uuid4(),
            )
    except OrderRejected as e:
        return Response({'error': e.message}, status=e.status_code)

    invalidate_products_cache()
    clear_cart(request)
    order = _order_queryset().get(pk=order.pk)
    order_created.send(sender=guest_order_create, order=order)
    return Response({'tracking_token': str(order.tracking_token), 'order': OrderSerializer(order).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def guest_order_track(request, token):
    order = _order_queryset().filter(tracking_token=token).first()
    if order is None:
        return Response({'error': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'order': OrderSerializer(order).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_orders(request, user_id):
    """A customer's own orders, newest first"""
    if not is_owner_or_admin(request.user, user_id):
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)
    orders = _order_queryset().filter(user_id=user_id)
    page_items, pagination = paginate(orders, request, default_limit=10)
    return Response({'orders': OrderSerializer(page_items, many=True).data, 'pagination': pagination})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)
    if not is_owner_or_admin(request.user, order.user_id):
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)
    return Response({'order': OrderSerializer(order).data})


def change_order_status(request, order, new_status):
    """
    Apply a status transition, restoring stock when an order is cancelled.

    The order row is locked and its status re-read inside the transaction, so
    two concurrent cancellations restore stock only once. `order` is updated
    in place on success.
    """
    new_status = (new_status or '').upper()
    if new_status not in dict(Order.STATUS_CHOICES):
        return Response({'error': 'Invalid order status'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        locked = Order.objects.select_for_update().get(pk=order.pk)
        old_status = locked.status
        if not locked.can_transition_to(new_status):
            return Response({'error': f'Cannot change order status from {old_status} to {new_status}'},
                            status=status.HTTP_400_BAD_REQUEST)
        if new_status == Order.STATUS_CANCELLED:
            locked.restore_stock()
        locked.status = new_status
        locked.save(update_fields=['status', 'updated_at'])
    order.status = new_status

    if new_status == Order.STATUS_CANCELLED:
        # Stock moved through update(), which sends no post_save
        invalidate_products_cache()
    create_audit_log(request=request, action='status_change', model_name='Order', object_id=order.pk,
                     object_name=f"Order {order.pk}", changes={'old_status': old_status, 'new_status': new_status})
    if new_status == Order.STATUS_CANCELLED:
        create_audit_log(request=request, action='stock_restore', model_name='Order', object_id=order.pk,
                         object_name=f"Order {order.pk}")
    logger.info(f"Order {order.pk} moved from {old_status} to {new_status}")
    return None


@api_view(['PATCH'])
@permission_classes([IsStoreAdmin])
def order_status_update(request, pk):
    order = get_object_or_404(Order, pk=pk)
    if not request.data.get('status'):
        return Response({'error': 'Status is required'}, status=status.HTTP_400_BAD_REQUEST)
    error_response = change_order_status(request, order, request.data.get('status'))
    if error_response:
        return error_response
    return Response({'message': 'Order status updated successfully',
                     'order': OrderSerializer(_order_queryset().get(pk=pk)).data})


@api_view(['PATCH'])
@permission_classes([IsStoreAdmin])
def order_payment_update(request, pk):
    order = get_object_or_404(Order, pk=pk)
    payment_status = (request.data.get('payment_status') or '').upper()
    if not payment_status:
        return Response({'error': 'Payment status is required'}, status=status.HTTP_400_BAD_REQUEST)
    if payment_status not in dict(Order.PAYMENT_STATUS_CHOICES):
        return Response({'error': 'Invalid payment status'}, status=status.HTTP_400_BAD_REQUEST)
    old_payment_status = order.payment_status
    order.payment_status = payment_status
    order.save(update_fields=['payment_status', 'updated_at'])
    create_audit_log(request=request, action='update', model_name='Order', object_id=order.pk,
                     object_name=f"Order {order.pk}",
                     changes={'old_payment_status': old_payment_status, 'new_payment_status': payment_status})
    return Response({'message': 'Payment status updated successfully',
                     'order': OrderSerializer(_order_queryset().get(pk=pk)).data})


@api_view(['PATCH'])
@permission_classes([IsStoreAdmin])
def order_tracking_update(request, pk):
    order = get_object_or_404(Order, pk=pk)
    tracking_number = request.data.get('tracking_number')
    if not tracking_number:
        return Response({'error': 'Tracking number is required'}, status=status.HTTP_400_BAD_REQUEST)
    order.tracking_number = tracking_number
    order.save(update_fields=['tracking_number', 'updated_at'])
    create_audit_log(request=request, action='update', model_name='Order', object_id=order.pk,
                     object_name=f"Order {order.pk}", changes={'tracking_number': tracking_number})
    return Response({'message': 'Tracking number added successfully',
                     'order': OrderSerializer(_order_queryset().get(pk=pk)).data})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def order_cancel(request, pk):
    """Cancel an order (owner or admin) while it has not shipped"""
    order = get_object_or_404(Order, pk=pk)
    if not is_owner_or_admin(request.user, order.user_id):
        return Response({'error': 'Not authorized to cancel this order'}, status=status.HTTP_403_FORBIDDEN)
    if not order.is_cancellable:
        return Response({'error': 'Order cannot be cancelled at this stage'}, status=status.HTTP_400_BAD_REQUEST)
    if change_order_status(request, order, Order.STATUS_CANCELLED):
        # Another request moved the order on since it was loaded
        return Response({'error': 'Order cannot be cancelled at this stage'}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'message': 'Order cancelled successfully',
                     'order': OrderSerializer(_order_queryset().get(pk=pk)).data})


# Admin dashboard endpoints
@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def admin_order_list(request):
    """Most recent orders for the dashboard"""
    orders = _order_queryset()
    limit = parse_limit(request)
    if limit:
        orders = orders[:limit]
    return Response({'orders': OrderSerializer(orders, many=True).data})


@api_view(['PUT', 'PATCH'])
@permission_classes([IsStoreAdmin])
def admin_order_status(request, pk):
    order = get_object_or_404(Order, pk=pk)
    if not request.data.get('status'):
        return Response({'error': 'Status is required'}, status=status.HTTP_400_BAD_REQUEST)
    error_response = change_order_status(request, order, request.data.get('status'))
    if error_response:
        return error_response
    return Response({'message': 'Order status updated successfully',
                     'order': OrderSerializer(_order_queryset().get(pk=pk)).data})
