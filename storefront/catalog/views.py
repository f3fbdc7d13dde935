import logging
from datetime import timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db import transaction
from django.db.models import Q, F, Count, Avg
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.cache import patch_cache_control

from storefront.core.cache_utils import cached_query, CATEGORY_LIST_CACHE_TTL, PRODUCT_HIGHLIGHTS_CACHE_TTL
from storefront.core.events import product_updated
from storefront.core.pagination import paginate
from storefront.core.permissions import IsStoreAdmin, IsStoreAdminOrReadOnly, is_owner_or_admin
from storefront.core.uploads import save_image, delete_image, ImageUploadError
from storefront.core.utils import create_audit_log, parse_id, parse_id_list
from .filters import ProductFilter
from .models import Category, Product, ColorVariant, Collection, ProductCollection, Review
from .serializers import (
    CategorySerializer, ProductSerializer, ProductDetailSerializer, ColorVariantSerializer,
    CollectionSerializer, CollectionDetailSerializer, ReviewSerializer
)

logger = logging.getLogger(__name__)

HIGHLIGHT_LIMIT = 20
NEW_ARRIVAL_DAYS = 30

PRODUCT_SORTS = {
    'price-low': ['price', '-created_at'],
    'price-high': ['-price', '-created_at'],
    'oldest': ['created_at'],
    'newest': ['-created_at'],
}


# Cached product highlight lists
@cached_query(cache_ttl=PRODUCT_HIGHLIGHTS_CACHE_TTL, key_prefix="products_under_50")
def get_under_50_products():
    products = Product.objects.filter(is_active=True, price__lt=50).order_by('price')[:HIGHLIGHT_LIMIT]
    return list(ProductSerializer(products, many=True).data)


@cached_query(cache_ttl=PRODUCT_HIGHLIGHTS_CACHE_TTL, key_prefix="products_sale")
def get_sale_products():
    now = timezone.now()
    products = Product.objects.filter(
        Q(is_on_sale=True)
        | Q(original_price__gt=F('price'))
        | Q(sale_items__sale__is_active=True, sale_items__sale__start_date__lte=now,
            sale_items__sale__end_date__gte=now),
        is_active=True,
    ).distinct().order_by('-created_at')[:HIGHLIGHT_LIMIT]
    return list(ProductSerializer(products, many=True).data)


@cached_query(cache_ttl=PRODUCT_HIGHLIGHTS_CACHE_TTL, key_prefix="products_new_arrivals")
def get_new_arrival_products():
    since = timezone.now() - timedelta(days=NEW_ARRIVAL_DAYS)
    products = Product.objects.filter(
        Q(is_new_arrival=True) | Q(created_at__gte=since), is_active=True
    ).order_by('-created_at')[:HIGHLIGHT_LIMIT]
    return list(ProductSerializer(products, many=True).data)


@cached_query(cache_ttl=CATEGORY_LIST_CACHE_TTL, key_prefix="categories_list")
def get_category_list():
    categories = Category.objects.annotate(
        active_product_count=Count('products', filter=Q(products__is_active=True))
    ).order_by('name')
    return list(CategorySerializer(categories, many=True).data)


def _public_cached(data):
    response = Response({'products': data})
    patch_cache_control(response, public=True, max_age=300)
    return response


# Product views
@api_view(['GET'])
@permission_classes([AllowAny])
def product_list_all(request):
    """All active products, newest first"""
    products = Product.objects.filter(is_active=True).order_by('-created_at')
    return Response({'products': ProductSerializer(products, many=True).data})


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def product_list_create(request):
    """Paginated, filtered product listing or product creation"""
    if request.method == 'GET':
        queryset = Product.objects.filter(is_active=True).select_related('category')
        queryset = ProductFilter(request.query_params, queryset=queryset).qs
        sort = request.query_params.get('sort', 'newest')
        queryset = queryset.order_by(*PRODUCT_SORTS.get(sort, PRODUCT_SORTS['newest']))

        products, pagination = paginate(queryset, request, default_limit=12)
        return Response({
            'products': ProductSerializer(products, many=True).data,
            'pagination': pagination,
        })

    return _create_product(request)


def _create_product(request):
    if not request.data.get('name') or request.data.get('price') in (None, '') or not request.data.get('category_id'):
        return Response({'error': 'Name, price, and category_id are required'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ProductSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    product = serializer.save()
    create_audit_log(request=request, action='create', model_name='Product', object_id=product.pk,
                     object_name=product.name)
    product_updated.send(sender=_create_product, product=product, action='created')
    return Response({'message': 'Product created successfully', 'product': ProductSerializer(product).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def products_under_50(request):
    return _public_cached(get_under_50_products())


@api_view(['GET'])
@permission_classes([AllowAny])
def products_on_sale(request):
    return _public_cached(get_sale_products())


@api_view(['GET'])
@permission_classes([AllowAny])
def products_new_arrivals(request):
    return _public_cached(get_new_arrival_products())


@api_view(['GET'])
@permission_classes([AllowAny])
def product_category_names(request):
    """Distinct category names of active products"""
    names = (Product.objects.filter(is_active=True).exclude(category_name='')
             .order_by('category_name').values_list('category_name', flat=True).distinct())
    return Response({'categories': list(names)})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreAdminOrReadOnly])
def product_detail(request, pk):
    """Retrieve, update or soft-delete a product"""
    product = get_object_or_404(Product.objects.prefetch_related('reviews__user'), pk=pk)

    if request.method == 'GET':
        if not product.is_active and not (request.user.is_authenticated and request.user.is_store_admin):
            return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response({'product': ProductDetailSerializer(product).data})
    elif request.method in ('PUT', 'PATCH'):
        return _update_product(request, product)
    else:  # DELETE
        product.is_active = False
        product.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request=request, action='delete', model_name='Product', object_id=product.pk,
                         object_name=product.name, changes={'soft_delete': True})
        product_updated.send(sender=product_detail, product=product, action='deleted')
        return Response({
            'message': f"Product '{product.name}' deleted successfully",
            'product': ProductSerializer(product).data,
        })


def _update_product(request, product):
    serializer = ProductSerializer(product, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    old_price = product.price
    product = serializer.save()
    changes = {key: str(value) for key, value in serializer.validated_data.items()}
    if old_price != product.price:
        changes['old_price'] = str(old_price)
    create_audit_log(request=request, action='update', model_name='Product', object_id=product.pk,
                     object_name=product.name, changes=changes)
    product_updated.send(sender=_update_product, product=product, action='updated')
    return Response({'message': 'Product updated successfully', 'product': ProductSerializer(product).data})


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdmin])
def admin_product_list_create(request):
    """All products including inactive ones, or create one"""
    if request.method == 'GET':
        products = Product.objects.select_related('category').order_by('-created_at')
        return Response(ProductSerializer(products, many=True).data)
    return _create_product(request)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreAdmin])
def admin_product_detail(request, pk):
    """Retrieve, update or permanently delete a product"""
    product = get_object_or_404(Product, pk=pk)
    if request.method == 'GET':
        return Response(ProductDetailSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        return _update_product(request, product)

    name = product.name
    if product.order_items.exists():
        return Response({'error': 'Product has orders; deactivate it instead'}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='delete', model_name='Product', object_id=product.pk, object_name=name)
    product.delete()
    return Response({'message': f"Product '{name}' deleted successfully"})


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def admin_color_variants(request):
    variants = ColorVariant.objects.select_related('product').order_by('-created_at')
    return Response(ColorVariantSerializer(variants, many=True).data)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        return Response({'categories': get_category_list()})

    if not request.data.get('name') or not request.data.get('slug'):
        return Response({'error': 'Name and slug are required'}, status=status.HTTP_400_BAD_REQUEST)
    if Category.objects.filter(slug=request.data.get('slug')).exists():
        return Response({'error': 'Category with this slug already exists'}, status=status.HTTP_400_BAD_REQUEST)
    serializer = CategorySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    category = serializer.save()
    return Response({'message': 'Category created successfully', 'category': CategorySerializer(category).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreAdminOrReadOnly])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response({'category': CategorySerializer(category).data})
    elif request.method in ('PUT', 'PATCH'):
        slug = request.data.get('slug')
        if slug and Category.objects.filter(slug=slug).exclude(pk=category.pk).exists():
            return Response({'error': 'Category with this slug already exists'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = CategorySerializer(category, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            category = serializer.save()
            # Keep the denormalised name on products in step
            category.products.update(category_name=category.name)
        return Response({'message': 'Category updated successfully', 'category': CategorySerializer(category).data})
    else:  # DELETE
        if category.products.exists():
            return Response({'error': 'Cannot delete category with existing products'},
                            status=status.HTTP_400_BAD_REQUEST)
        category.delete()
        return Response({'message': 'Category deleted successfully'})


@api_view(['GET'])
@permission_classes([AllowAny])
def category_by_slug(request, slug):
    """Category with its active products"""
    category = get_object_or_404(Category, slug=slug)
    products = category.products.filter(is_active=True).order_by('-created_at')
    data = CategorySerializer(category).data
    data['products'] = ProductSerializer(products, many=True).data
    return Response({'category': data})


@api_view(['GET'])
@permission_classes([AllowAny])
def categories_by_parent(request, parent_category):
    categories = Category.objects.filter(parent_category=parent_category.lower()).order_by('name')
    return Response({'categories': CategorySerializer(categories, many=True).data})


@api_view(['GET'])
@permission_classes([AllowAny])
def parent_category_products(request, parent_category):
    """Active products of every category under a parent department"""
    products = Product.objects.filter(
        is_active=True, category__parent_category=parent_category.lower()
    ).order_by('-created_at')
    data = ProductSerializer(products, many=True).data
    return Response({'success': True, 'products': data, 'count': len(data)})


# Collection views
def _collection_payload(request):
    """Plain dict of collection fields from JSON or multipart input"""
    data = {}
    for field in ('name', 'description', 'discount_percent', 'is_active', 'image_url'):
        if field in request.data:
            value = request.data.get(field)
            data[field] = None if value == '' and field != 'name' else value
    return data


def _truthy(value):
    return str(value).lower() in ('1', 'true', 'yes', 'on')


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def collection_list_create(request):
    """List active collections or create one (multipart `image` optional)"""
    if request.method == 'GET':
        collections = Collection.objects.annotate(annotated_product_count=Count('product_collections'))
        if not (request.user.is_authenticated and request.user.is_store_admin and
                _truthy(request.query_params.get('include_inactive'))):
            collections = collections.filter(is_active=True)
        return Response(CollectionSerializer(collections.order_by('-created_at'), many=True).data)

    if not request.data.get('name'):
        return Response({'error': 'Collection name is required'}, status=status.HTTP_400_BAD_REQUEST)
    serializer = CollectionSerializer(data=_collection_payload(request))
    serializer.is_valid(raise_exception=True)
    image = request.FILES.get('image')
    image_url = None
    if image:
        try:
            image_url, _ = save_image(image, prefix='collection')
        except ImageUploadError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    collection = serializer.save(**({'image_url': image_url} if image_url else {}))
    create_audit_log(request=request, action='create', model_name='Collection', object_id=collection.pk,
                     object_name=collection.name)
    return Response(CollectionSerializer(collection).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def collections_homepage(request):
    """Compact collection cards for the homepage"""
    collections = (Collection.objects.filter(is_active=True)
                   .annotate(annotated_product_count=Count('product_collections'))
                   .order_by('-created_at'))
    data = [
        {
            'id': c.id,
            'name': c.name,
            'slug': c.slug,
            'description': c.description,
            'image_url': CollectionSerializer(c).data['image_url'],
            'count': c.annotated_product_count,
        }
        for c in collections
    ]
    return Response(data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreAdminOrReadOnly])
def collection_detail(request, pk):
    """Retrieve, update or delete a collection"""
    collection = get_object_or_404(Collection, pk=pk)

    if request.method == 'GET':
        return Response(CollectionDetailSerializer(collection).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CollectionSerializer(collection, data=_collection_payload(request), partial=True)
        serializer.is_valid(raise_exception=True)
        extra = {}
        image = request.FILES.get('image')
        if image:
            try:
                extra['image_url'], _ = save_image(image, prefix='collection')
            except ImageUploadError as e:
                return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
            delete_image(collection.image_url)
        elif _truthy(request.data.get('remove_image')):
            delete_image(collection.image_url)
            extra['image_url'] = None
        collection = serializer.save(**extra)
        create_audit_log(request=request, action='update', model_name='Collection', object_id=collection.pk,
                         object_name=collection.name)
        return Response(CollectionSerializer(collection).data)
    else:  # DELETE
        name = collection.name
        delete_image(collection.image_url)
        create_audit_log(request=request, action='delete', model_name='Collection', object_id=collection.pk,
                         object_name=name)
        collection.delete()
        return Response({'message': f"Collection '{name}' deleted successfully"})


@api_view(['GET'])
@permission_classes([AllowAny])
def collection_by_slug(request, slug):
    """Collection with products, looked up by slug (or id)"""
    lookup = Q(slug=slug)
    if slug.isdigit():
        lookup |= Q(pk=int(slug))
    collection = Collection.objects.filter(lookup).first()
    if not collection:
        return Response({'error': 'Collection not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(CollectionDetailSerializer(collection).data)


@api_view(['POST', 'PUT'])
@permission_classes([IsStoreAdmin])
def collection_products(request, pk):
    """Add one product (POST) or replace the product set (PUT)"""
    collection = get_object_or_404(Collection, pk=pk)

    if request.method == 'POST':
        product_id = parse_id(request.data.get('product_id'))
        if product_id is None:
            return Response({'error': 'product_id is required'}, status=status.HTTP_400_BAD_REQUEST)
        product = get_object_or_404(Product, pk=product_id)
        if ProductCollection.objects.filter(collection=collection, product=product).exists():
            return Response({'error': 'Product already in collection'}, status=status.HTTP_400_BAD_REQUEST)
        ProductCollection.objects.create(collection=collection, product=product)
        return Response({'message': 'Product added to collection'}, status=status.HTTP_201_CREATED)

    product_ids = parse_id_list(request.data.get('product_ids'))
    if product_ids is None:
        return Response({'error': 'product_ids must be an array'}, status=status.HTTP_400_BAD_REQUEST)
    products = list(Product.objects.filter(pk__in=product_ids))
    if len(products) != len(set(product_ids)):
        return Response({'error': 'One or more products not found'}, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        ProductCollection.objects.filter(collection=collection).delete()
        ProductCollection.objects.bulk_create(
            [ProductCollection(collection=collection, product=product) for product in products]
        )
    return Response({
        'message': 'Collection products updated',
        'collection': CollectionDetailSerializer(collection).data,
    })


@api_view(['DELETE'])
@permission_classes([IsStoreAdmin])
def collection_product_remove(request, pk, product_id):
    deleted, _ = ProductCollection.objects.filter(collection_id=pk, product_id=product_id).delete()
    if not deleted:
        return Response({'error': 'Product not in collection'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'message': 'Product removed from collection'})


# Review views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def review_list_create(request):
    """Admin review listing, or create a review for the current user"""
    if request.method == 'GET':
        if not request.user.is_store_admin:
            return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)
        reviews = Review.objects.select_related('user', 'product').order_by('-created_at')
        for param in ('product_id', 'rating'):
            raw = request.query_params.get(param)
            if not raw:
                continue
            value = parse_id(raw)
            if value is None:
                return Response({'error': f'{param} must be a number'}, status=status.HTTP_400_BAD_REQUEST)
            reviews = reviews.filter(**{param: value})
        page_items, pagination = paginate(reviews, request, default_limit=20)
        return Response({'reviews': ReviewSerializer(page_items, many=True).data, 'pagination': pagination})

    product_id = parse_id(request.data.get('product_id'))
    rating = request.data.get('rating')
    comment = request.data.get('comment')
    if product_id is None or rating in (None, '') or not comment:
        return Response({'error': 'product_id, rating and comment are required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        rating = 0
    if rating < 1 or rating > 5:
        return Response({'error': 'Rating must be between 1 and 5'}, status=status.HTTP_400_BAD_REQUEST)

    product = get_object_or_404(Product, pk=product_id)
    if Review.objects.filter(user=request.user, product=product).exists():
        return Response({'error': 'You have already reviewed this product'}, status=status.HTTP_400_BAD_REQUEST)
    review = Review.objects.create(
        user=request.user, product=product, rating=rating, comment=comment,
        image_url=request.data.get('image_url') or None,
    )
    return Response({'message': 'Review created successfully', 'review': ReviewSerializer(review).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_reviews(request, product_id):
    """Paginated reviews of a product with its average rating"""
    product = get_object_or_404(Product, pk=product_id)
    reviews = product.reviews.select_related('user').order_by('-created_at')
    average = reviews.aggregate(avg=Avg('rating'))['avg']
    if request.query_params.get('rating'):
        rating = parse_id(request.query_params['rating'])
        if rating is None:
            return Response({'error': 'rating must be a number'}, status=status.HTTP_400_BAD_REQUEST)
        reviews = reviews.filter(rating=rating)
    page_items, pagination = paginate(reviews, request, default_limit=10)
    return Response({
        'reviews': ReviewSerializer(page_items, many=True).data,
        'average_rating': round(average, 1) if average is not None else 0,
        'pagination': pagination,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_reviews(request, user_id):
    if not is_owner_or_admin(request.user, user_id):
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)
    reviews = Review.objects.filter(user_id=user_id).select_related('user', 'product').order_by('-created_at')
    return Response({'reviews': ReviewSerializer(reviews, many=True).data})


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def review_detail(request, pk):
    """Update or delete a review (author or admin)"""
    review = get_object_or_404(Review, pk=pk)
    if not is_owner_or_admin(request.user, review.user_id):
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        review.delete()
        return Response({'message': 'Review deleted successfully'})

    serializer = ReviewSerializer(review, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    review = serializer.save()
    return Response({'message': 'Review updated successfully', 'review': ReviewSerializer(review).data})
