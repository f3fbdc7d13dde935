import logging
import random
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.db import transaction
from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone

from storefront.catalog.models import Product
from storefront.core.cache_utils import invalidate_products_cache
from storefront.core.models import User
from storefront.core.permissions import IsStoreAdmin, IsStoreAdminOrReadOnly
from storefront.core.serializers import RegisterSerializer
from storefront.core.utils import create_audit_log, parse_id, parse_id_list
from storefront.core.views import build_auth_payload
from .models import Sale, SaleItem, Offer, PromoCodeUsage
from .serializers import SaleSerializer, OfferSerializer, PromoterSerializer

logger = logging.getLogger(__name__)

PROMO_CODE_ATTEMPTS = 10


# Sale helpers
def _sale_queryset():
    return Sale.objects.select_related('collection').prefetch_related('sale_items__product')


def _attach_sale_products(sale, product_ids=None):
    """Rebuild the sale's items from its collection and any explicit product ids"""
    products = set()
    if sale.collection_id:
        products.update(sale.collection.products.values_list('pk', flat=True))
    if product_ids:
        products.update(Product.objects.filter(pk__in=product_ids).values_list('pk', flat=True))

    SaleItem.objects.filter(sale=sale).exclude(product_id__in=products).delete()
    existing = set(SaleItem.objects.filter(sale=sale).values_list('product_id', flat=True))
    SaleItem.objects.bulk_create([SaleItem(sale=sale, product_id=pk) for pk in products - existing])
    if products:
        Product.objects.filter(pk__in=products).update(is_on_sale=True)
    return products


def _clear_sale_flags(product_ids, excluding_sale):
    """Unflag products that no other sale still covers"""
    still_covered = SaleItem.objects.filter(product_id__in=product_ids).exclude(sale=excluding_sale)
    orphaned = set(product_ids) - set(still_covered.values_list('product_id', flat=True))
    if orphaned:
        Product.objects.filter(pk__in=orphaned).update(is_on_sale=False)
    return orphaned


# Sale views
@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def sale_list_create(request):
    """List all sales or create a new one"""
    if request.method == 'GET':
        return Response(SaleSerializer(_sale_queryset(), many=True).data)

    required = ('name', 'description', 'start_date', 'end_date', 'discount_percent')
    if any(request.data.get(field) in (None, '') for field in required):
        return Response({'error': 'All fields are required'}, status=status.HTTP_400_BAD_REQUEST)
    product_ids = parse_id_list(request.data.get('product_ids') or [])
    if product_ids is None:
        return Response({'error': 'product_ids must be an array of ids'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = SaleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        sale = serializer.save()
        _attach_sale_products(sale, product_ids)
    invalidate_products_cache()
    create_audit_log(request=request, action='create', model_name='Sale', object_id=sale.pk, object_name=sale.name)
    return Response(SaleSerializer(_sale_queryset().get(pk=sale.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def active_sales(request):
    """Sales that are enabled and running right now"""
    sales = _sale_queryset().filter(Sale.active_filter())
    return Response(SaleSerializer(sales, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreAdminOrReadOnly])
def sale_detail(request, pk):
    """Retrieve, update or delete a sale"""
    sale = get_object_or_404(_sale_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(SaleSerializer(sale).data)
    elif request.method in ('PUT', 'PATCH'):
        product_ids = parse_id_list(request.data.get('product_ids') or [])
        if product_ids is None:
            return Response({'error': 'product_ids must be an array of ids'}, status=status.HTTP_400_BAD_REQUEST)
        previous_products = set(sale.sale_items.values_list('product_id', flat=True))
        serializer = SaleSerializer(sale, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            sale = serializer.save()
            if 'collection_id' in request.data or 'product_ids' in request.data:
                current = _attach_sale_products(sale, product_ids)
                _clear_sale_flags(previous_products - current, excluding_sale=sale)
        invalidate_products_cache()
        create_audit_log(request=request, action='update', model_name='Sale', object_id=sale.pk,
                         object_name=sale.name, changes={key: str(value) for key, value in serializer.validated_data.items()})
        return Response(SaleSerializer(_sale_queryset().get(pk=sale.pk)).data)
    else:  # DELETE
        name = sale.name
        product_ids = set(sale.sale_items.values_list('product_id', flat=True))
        with transaction.atomic():
            _clear_sale_flags(product_ids, excluding_sale=sale)
            create_audit_log(request=request, action='delete', model_name='Sale', object_id=sale.pk, object_name=name)
            sale.delete()
        invalidate_products_cache()
        return Response({'message': f"Sale '{name}' deleted successfully"})


# Offer views
@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def offer_list_create(request):
    """List all offers or create a new one"""
    if request.method == 'GET':
        offers = Offer.objects.select_related('target_product', 'target_collection')
        return Response(OfferSerializer(offers, many=True).data)

    if not request.data.get('title') or not request.data.get('description') or \
            request.data.get('discount') in (None, ''):
        return Response({'error': 'Required fields are missing'}, status=status.HTTP_400_BAD_REQUEST)
    serializer = OfferSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    offer = serializer.save()
    create_audit_log(request=request, action='create', model_name='Offer', object_id=offer.pk, object_name=offer.title)
    return Response(OfferSerializer(offer).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def active_offers(request):
    """Offers that are enabled, within their window and not used up"""
    offers = Offer.objects.filter(Offer.active_filter())
    offers = [offer for offer in offers if not offer.usage_exhausted]
    return Response(OfferSerializer(offers, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreAdminOrReadOnly])
def offer_detail(request, pk):
    """Retrieve, update or delete an offer"""
    offer = get_object_or_404(Offer, pk=pk)

    if request.method == 'GET':
        return Response(OfferSerializer(offer).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = OfferSerializer(offer, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        offer = serializer.save()
        create_audit_log(request=request, action='update', model_name='Offer', object_id=offer.pk,
                         object_name=offer.title)
        return Response(OfferSerializer(offer).data)
    else:  # DELETE
        title = offer.title
        create_audit_log(request=request, action='delete', model_name='Offer', object_id=offer.pk, object_name=title)
        offer.delete()
        return Response({'message': f"Offer '{title}' deleted successfully"})


@api_view(['POST'])
@permission_classes([AllowAny])
def apply_offer(request):
    """
    Validate an offer against an order total and record one use of it.

    Returns the discount amount and the total after the discount.
    """
    try:
        offer_id = int(request.data.get('offer_id'))
        order_total = Decimal(str(request.data.get('order_total')))
    except (InvalidOperation, TypeError, ValueError):
        return Response({'error': 'offer_id and a numeric order_total are required'},
                        status=status.HTTP_400_BAD_REQUEST)
    if not offer_id or order_total < 0:
        return Response({'error': 'offer_id and a numeric order_total are required'},
                        status=status.HTTP_400_BAD_REQUEST)

    offer = Offer.objects.filter(pk=offer_id).first()
    if offer is None:
        return Response({'error': 'Offer not found'}, status=status.HTTP_404_NOT_FOUND)
    if not offer.is_active:
        return Response({'error': 'Offer is not active'}, status=status.HTTP_400_BAD_REQUEST)
    if not offer.is_within_window(timezone.now()):
        return Response({'error': 'Offer has expired or is not yet valid'}, status=status.HTTP_400_BAD_REQUEST)
    if offer.usage_exhausted:
        return Response({'error': 'Offer usage limit reached'}, status=status.HTTP_400_BAD_REQUEST)
    if offer.minimum_order_amount is not None and order_total < offer.minimum_order_amount:
        return Response({'error': f'Minimum order amount of ${offer.minimum_order_amount} required'},
                        status=status.HTTP_400_BAD_REQUEST)
    if offer.new_customers_only and request.user.is_authenticated and request.user.orders.exists():
        return Response({'error': 'This offer is only for new customers'}, status=status.HTTP_400_BAD_REQUEST)

    discount_amount = offer.discount_for(order_total)
    # Conditional increment, so concurrent applies cannot pass the usage limit
    claimed = Offer.objects.filter(pk=offer.pk).filter(
        Q(usage_limit__isnull=True) | Q(used_count__lt=F('usage_limit'))
    ).update(used_count=F('used_count') + 1)
    if not claimed:
        return Response({'error': 'Offer usage limit reached'}, status=status.HTTP_400_BAD_REQUEST)
    offer.refresh_from_db()
    return Response({
        'offer': OfferSerializer(offer).data,
        'discount_amount': str(discount_amount),
        'final_total': str((order_total - discount_amount).quantize(Decimal('0.01'))),
    })


# Promoter views
def generate_promo_code(first_name):
    """First four letters of the first name upper-cased, plus two digits"""
    return f"{first_name[:4].upper()}{random.randint(10, 99)}"


@api_view(['POST'])
@permission_classes([AllowAny])
def promoter_register(request):
    """Register a promoter account with its own promo code"""
    serializer = RegisterSerializer(data=request.data, context={'role': User.ROLE_PROMOTER})
    serializer.is_valid(raise_exception=True)

    first_name = serializer.validated_data['first_name']
    for _ in range(PROMO_CODE_ATTEMPTS):
        promo_code = generate_promo_code(first_name)
        if not User.objects.filter(promo_code=promo_code).exists():
            break
    else:
        logger.error(f"Could not generate a unique promo code for {first_name}")
        return Response({'error': 'Unable to generate unique promo code'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    user = serializer.save()
    user.promo_code = promo_code
    user.save(update_fields=['promo_code'])
    logger.info(f"New promoter registered: {user.email} ({promo_code})")

    payload = build_auth_payload(user, 'Promoter registered successfully')
    payload['promoter'] = {'id': user.pk, 'promo_code': user.promo_code, 'commission': str(user.commission)}
    return Response(payload, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def promoter_list(request):
    promoters = User.objects.filter(role=User.ROLE_PROMOTER).order_by('-created_at')
    return Response(PromoterSerializer(promoters, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreAdmin])
def promoter_detail(request, pk):
    """Retrieve, update or delete a promoter"""
    promoter = get_object_or_404(User, pk=pk, role=User.ROLE_PROMOTER)

    if request.method == 'GET':
        data = PromoterSerializer(promoter).data
        data['redemptions'] = [
            {
                'user_id': usage.user_id,
                'email': usage.user.email,
                'name': usage.user.full_name,
                'order_id': usage.order_id,
                'created_at': usage.created_at,
            }
            for usage in promoter.promo_redemptions.select_related('user')
        ]
        return Response(data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PromoterSerializer(promoter, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        promoter = serializer.save()
        create_audit_log(request=request, action='update', model_name='Promoter', object_id=promoter.pk,
                         object_name=promoter.full_name,
                         changes={key: str(value) for key, value in serializer.validated_data.items()})
        return Response(PromoterSerializer(promoter).data)
    else:  # DELETE
        name = promoter.full_name
        create_audit_log(request=request, action='delete', model_name='Promoter', object_id=promoter.pk,
                         object_name=name)
        promoter.delete()
        return Response({'message': 'Promoter deleted successfully'})


@api_view(['POST'])
@permission_classes([AllowAny])
def validate_promo(request):
    """Check a promo code for a (new) customer"""
    promo_code = (request.data.get('promo_code') or '').strip().upper()
    if not promo_code:
        return Response({'error': 'Promo code is required'}, status=status.HTTP_400_BAD_REQUEST)

    promoter = User.objects.filter(promo_code=promo_code, role=User.ROLE_PROMOTER).first()
    if promoter is None:
        return Response({'error': 'Invalid promo code'}, status=status.HTTP_404_NOT_FOUND)
    if not promoter.is_active:
        return Response({'error': 'Promo code is inactive'}, status=status.HTTP_400_BAD_REQUEST)

    user_id = request.data.get('user_id')
    if user_id not in (None, ''):
        user_id = parse_id(user_id)
        if user_id is None:
            return Response({'error': 'user_id must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    elif request.user.is_authenticated:
        user_id = request.user.pk
    else:
        user_id = None
    if user_id:
        if PromoCodeUsage.objects.filter(promoter=promoter, user_id=user_id).exists():
            return Response({'error': 'You have already used this promo code'}, status=status.HTTP_400_BAD_REQUEST)
        if User.objects.filter(pk=user_id, orders__isnull=False).exists():
            return Response({'error': 'This promo code is only valid for new customers'},
                            status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'valid': True,
        'promoter': {
            'first_name': promoter.first_name,
            'last_name': promoter.last_name,
            'commission': str(promoter.commission),
        },
    })
