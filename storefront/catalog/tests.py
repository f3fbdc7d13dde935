"""
Test suite for Catalog module
Tests: product listing and filters, admin product writes, categories, collections, reviews
"""
from decimal import Decimal
from datetime import timedelta
from io import StringIO
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.models import AuditLog
from storefront.catalog.models import Category, Product, Collection, ProductCollection, Review
from storefront.catalog.utils import default_collection_image, parse_tags


class ProductModelTests(TestCase):
    """Test Product model helpers"""

    def test_category_name_is_denormalised(self):
        category = TestDataFactory.create_category(name='Sarees')
        product = TestDataFactory.create_product(category=category)
        self.assertEqual(product.category_name, 'Sarees')

    def test_discount_percent(self):
        product = TestDataFactory.create_product(price=Decimal('75.00'), original_price=Decimal('100.00'))
        self.assertEqual(product.discount_percent, 25)
        product.original_price = None
        self.assertEqual(product.discount_percent, 0)

    def test_offers_size(self):
        """Test size matching is case-insensitive and open when no sizes are listed"""
        product = TestDataFactory.create_product(sizes=['S', 'M', 'L'])
        self.assertTrue(product.offers_size('m'))
        self.assertTrue(product.offers_size(None))
        self.assertFalse(product.offers_size('XXL'))
        product.sizes = []
        self.assertTrue(product.offers_size('XXL'))


class CatalogUtilsTests(TestCase):
    """Test catalogue helper functions"""

    def test_default_collection_image(self):
        """Test the placeholder is an encoded SVG coloured from the first letter"""
        url = default_collection_image('Wedding')
        self.assertTrue(url.startswith('data:image/svg+xml;charset=utf-8,'))
        self.assertIn('%2366e7e7', url)
        self.assertIn('%3EW%3C', url)
        self.assertNotIn(' ', url)

    def test_parse_tags(self):
        self.assertEqual(parse_tags('silk, festive ,, bridal'), ['silk', 'festive', 'bridal'])
        self.assertEqual(parse_tags(['silk', ' ']), ['silk'])
        self.assertEqual(parse_tags(None), [])


class ProductListTests(TestCase):
    """Test public product listing endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.sarees = TestDataFactory.create_category(name='Sarees', slug='sarees')
        self.kurtas = TestDataFactory.create_category(name='Kurtas', slug='kurtas', parent_category='men')
        self.silk = TestDataFactory.create_product(name='Banarasi Silk Saree', price=Decimal('120.00'),
                                                   category=self.sarees, sizes=['Free'], colors=['Red'])
        self.cotton = TestDataFactory.create_product(name='Cotton Kurta', price=Decimal('35.00'),
                                                     category=self.kurtas, sizes=['M', 'L'], colors=['White'])
        self.hidden = TestDataFactory.create_product(name='Old Stock', price=Decimal('10.00'),
                                                     category=self.kurtas, is_active=False)

    def test_list_products_paginated(self):
        response = self.client.get('/api/products/?limit=1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['products']), 1)
        self.assertEqual(response.data['pagination'], {'page': 1, 'limit': 1, 'total': 2, 'pages': 2})

    def test_list_excludes_inactive(self):
        response = self.client.get('/api/products/all/')
        names = [p['name'] for p in response.data['products']]
        self.assertNotIn('Old Stock', names)

    def test_search_filter(self):
        response = self.client.get('/api/products/?search=silk')
        self.assertEqual([p['id'] for p in response.data['products']], [self.silk.id])

    def test_category_filter_by_slug_or_name(self):
        response = self.client.get('/api/products/?category=kurtas')
        self.assertEqual([p['id'] for p in response.data['products']], [self.cotton.id])
        response = self.client.get('/api/products/?category=Sarees')
        self.assertEqual([p['id'] for p in response.data['products']], [self.silk.id])

    def test_price_range_and_sort(self):
        response = self.client.get('/api/products/?min_price=30&max_price=200&sort=price-low')
        self.assertEqual([p['id'] for p in response.data['products']], [self.cotton.id, self.silk.id])
        response = self.client.get('/api/products/?sort=price-high')
        self.assertEqual(response.data['products'][0]['id'], self.silk.id)

    def test_size_and_color_filter(self):
        response = self.client.get('/api/products/?size=M')
        self.assertEqual([p['id'] for p in response.data['products']], [self.cotton.id])
        response = self.client.get('/api/products/?color=Red')
        self.assertEqual([p['id'] for p in response.data['products']], [self.silk.id])

    def test_under_50(self):
        """Test cheap products are listed with a public cache header"""
        response = self.client.get('/api/products/under-50/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data['products']], [self.cotton.id])
        self.assertIn('max-age=300', response['Cache-Control'])

    def test_sale_products(self):
        discounted = TestDataFactory.create_product(price=Decimal('80.00'), original_price=Decimal('100.00'))
        response = self.client.get('/api/products/sale/')
        self.assertEqual([p['id'] for p in response.data['products']], [discounted.id])

    def test_new_arrivals(self):
        Product.objects.filter(pk=self.silk.pk).update(created_at=timezone.now() - timedelta(days=60))
        response = self.client.get('/api/products/new-arrivals/')
        ids = [p['id'] for p in response.data['products']]
        self.assertIn(self.cotton.id, ids)
        self.assertNotIn(self.silk.id, ids)

    def test_category_names(self):
        response = self.client.get('/api/products/categories/list/')
        self.assertEqual(response.data['categories'], ['Kurtas', 'Sarees'])

    def test_product_detail(self):
        response = self.client.get(f'/api/products/{self.silk.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['product']['name'], 'Banarasi Silk Saree')
        self.assertIn('reviews', response.data['product'])
        self.assertEqual(response.data['product']['average_rating'], 0)

    def test_inactive_product_detail_hidden(self):
        response = self.client.get(f'/api/products/{self.hidden.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Product not found')


class ProductAdminTests(TestCase):
    """Test product writes"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.category = TestDataFactory.create_category(name='Lehengas')

    def test_create_product(self):
        data = {
            'name': 'Bridal Lehenga',
            'price': '499.00',
            'category_id': self.category.id,
            'sizes': 'S,M,L',
            'tags': 'bridal, festive',
            'description': '',
        }
        response = self.client.post('/api/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = response.data['product']
        self.assertEqual(product['category_name'], 'Lehengas')
        self.assertEqual(product['sizes'], ['S', 'M', 'L'])
        self.assertEqual(product['stock'], 0)
        self.assertIsNone(product['description'])
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Product').exists())

    def test_create_product_missing_fields(self):
        response = self.client.post('/api/products/', {'name': 'No price'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Name, price, and category_id are required')

    def test_create_product_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        data = {'name': 'X', 'price': '10.00', 'category_id': self.category.id}
        response = self.client.post('/api/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.logout()
        response = self.client.post('/api/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_product(self):
        product = TestDataFactory.create_product(category=self.category, price=Decimal('50.00'))
        response = self.client.put(f'/api/products/{product.id}/', {'price': '45.00', 'material': ''},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.price, Decimal('45.00'))
        self.assertIsNone(product.material)
        log = AuditLog.objects.get(action='update', model_name='Product')
        self.assertEqual(log.changes['old_price'], '50.00')

    def test_soft_delete_product(self):
        product = TestDataFactory.create_product(name='Kurta', category=self.category)
        response = self.client.delete(f'/api/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], "Product 'Kurta' deleted successfully")
        product.refresh_from_db()
        self.assertFalse(product.is_active)

    def test_admin_list_includes_inactive(self):
        TestDataFactory.create_product(category=self.category, is_active=False)
        response = self.client.get('/api/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_admin_hard_delete(self):
        product = TestDataFactory.create_product(category=self.category)
        response = self.client.delete(f'/api/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_admin_hard_delete_with_orders(self):
        product = TestDataFactory.create_product(category=self.category)
        TestDataFactory.create_order(product=product)
        response = self.client.delete(f'/api/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CategoryTests(TestCase):
    """Test category endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()

    def test_list_categories_refreshes_after_create(self):
        """Test the cached list is invalidated when a category is added"""
        TestDataFactory.create_category(name='Sarees', slug='sarees')
        response = self.client.get('/api/categories/')
        self.assertEqual(len(response.data['categories']), 1)

        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/categories/', {'name': 'Dupattas', 'slug': 'dupattas'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/categories/')
        self.assertEqual([c['name'] for c in response.data['categories']], ['Dupattas', 'Sarees'])

    def test_create_duplicate_slug(self):
        TestDataFactory.create_category(slug='sarees')
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/categories/', {'name': 'Sarees', 'slug': 'sarees'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_category_renames_products(self):
        category = TestDataFactory.create_category(name='Sarees')
        product = TestDataFactory.create_product(category=category)
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/categories/{category.id}/', {'name': 'Silk Sarees'}, format='json')
        self.assertEqual(response.data['message'], 'Category updated successfully')
        product.refresh_from_db()
        self.assertEqual(product.category_name, 'Silk Sarees')

    def test_delete_category_with_products(self):
        category = TestDataFactory.create_category()
        TestDataFactory.create_product(category=category)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete category with existing products')

    def test_category_by_slug_and_parent(self):
        category = TestDataFactory.create_category(slug='kurtas', parent_category='men')
        TestDataFactory.create_product(category=category)
        response = self.client.get('/api/categories/kurtas/')
        self.assertEqual(len(response.data['category']['products']), 1)
        response = self.client.get('/api/categories/parent/men/')
        self.assertEqual(len(response.data['categories']), 1)
        response = self.client.get('/api/categories/men/products/')
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['count'], 1)


class CollectionTests(TestCase):
    """Test collection endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product()

    def test_list_collections_with_placeholder(self):
        TestDataFactory.create_collection(name='Wedding', products=[self.product])
        TestDataFactory.create_collection(name='Archive', is_active=False)
        response = self.client.get('/api/collections/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['product_count'], 1)
        self.assertTrue(response.data[0]['image_url'].startswith('data:image/svg+xml'))

    def test_homepage_collections(self):
        TestDataFactory.create_collection(name='Festival', products=[self.product])
        response = self.client.get('/api/collections/homepage/')
        self.assertEqual(response.data[0]['count'], 1)
        self.assertEqual(response.data[0]['slug'], 'festival')

    def test_create_collection_generates_slug(self):
        self.client.authenticate_user(self.admin)
        TestDataFactory.create_collection(name='Wedding Edit')
        response = self.client.post('/api/collections/', {'name': 'Wedding Edit'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'wedding-edit-2')

    def test_collection_by_slug_or_id(self):
        collection = TestDataFactory.create_collection(name='Festival', products=[self.product])
        response = self.client.get('/api/collections/slug/festival/')
        self.assertEqual(len(response.data['products']), 1)
        response = self.client.get(f'/api/collections/slug/{collection.id}/')
        self.assertEqual(response.data['id'], collection.id)
        response = self.client.get('/api/collections/slug/missing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_and_remove_product(self):
        collection = TestDataFactory.create_collection()
        self.client.authenticate_user(self.admin)
        url = f'/api/collections/{collection.id}/products/'
        response = self.client.post(url, {'product_id': self.product.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(url, {'product_id': self.product.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'{url}{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ProductCollection.objects.exists())

    def test_replace_products(self):
        other = TestDataFactory.create_product()
        collection = TestDataFactory.create_collection(products=[self.product])
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/collections/{collection.id}/products/', {'product_ids': [other.id]},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(collection.products.values_list('id', flat=True)), [other.id])

    def test_delete_collection(self):
        collection = TestDataFactory.create_collection(name='Summer')
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/collections/{collection.id}/')
        self.assertEqual(response.data['message'], "Collection 'Summer' deleted successfully")


class ReviewTests(TestCase):
    """Test review endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product()

    def test_create_review(self):
        data = {'product_id': self.product.id, 'rating': 5, 'comment': 'Beautiful drape'}
        response = self.client.post('/api/reviews/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/reviews/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'You have already reviewed this product')

    def test_invalid_rating(self):
        data = {'product_id': self.product.id, 'rating': 6, 'comment': 'Too good'}
        response = self.client.post('/api/reviews/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Rating must be between 1 and 5')

    def test_product_reviews_average(self):
        Review.objects.create(user=self.user, product=self.product, rating=4, comment='Good')
        Review.objects.create(user=TestDataFactory.create_user(), product=self.product, rating=5, comment='Great')
        response = self.client.get(f'/api/reviews/product/{self.product.id}/')
        self.assertEqual(response.data['average_rating'], 4.5)
        self.assertEqual(response.data['pagination']['total'], 2)
        response = self.client.get(f'/api/reviews/product/{self.product.id}/?rating=5')
        self.assertEqual(len(response.data['reviews']), 1)

    def test_only_author_can_edit(self):
        review = Review.objects.create(user=TestDataFactory.create_user(), product=self.product, rating=3,
                                       comment='Ok')
        response = self.client.put(f'/api/reviews/{review.id}/', {'rating': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_review_list(self):
        response = self.client.get('/api/reviews/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/reviews/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_non_numeric_rating_filter(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/reviews/?rating=five')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'rating must be a number')
        response = self.client.get('/api/reviews/?product_id=abc')
        self.assertEqual(response.data['error'], 'product_id must be a number')
        response = self.client.get(f'/api/reviews/product/{self.product.id}/?rating=high')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'rating must be a number')

    def test_create_review_non_numeric_product(self):
        data = {'product_id': 'abc', 'rating': 4, 'comment': 'Lovely'}
        response = self.client.post('/api/reviews/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CollectionImageCommandTests(TestCase):
    """Test the update_collection_images command"""

    def call(self, **kwargs):
        out = StringIO()
        call_command('update_collection_images', stdout=out, **kwargs)
        return out.getvalue()

    def test_fills_missing_images_only(self):
        bare = TestDataFactory.create_collection(name='Wedding')
        styled = TestDataFactory.create_collection(name='Festival', image_url='https://cdn.example.com/f.jpg')

        self.call()

        bare.refresh_from_db()
        styled.refresh_from_db()
        self.assertEqual(bare.image_url, default_collection_image('Wedding'))
        self.assertEqual(styled.image_url, 'https://cdn.example.com/f.jpg')

    def test_force_replaces_existing_images(self):
        styled = TestDataFactory.create_collection(name='Festival', image_url='https://cdn.example.com/f.jpg')
        self.call(force=True)
        styled.refresh_from_db()
        self.assertEqual(styled.image_url, default_collection_image('Festival'))

    def test_clear(self):
        TestDataFactory.create_collection(image_url='https://cdn.example.com/a.jpg')
        TestDataFactory.create_collection(image_url='https://cdn.example.com/b.jpg')
        output = self.call(clear=True)
        self.assertFalse(Collection.objects.filter(image_url__isnull=False).exists())
        self.assertIn('Cleared images of 2 collections', output)

    def test_dry_run(self):
        bare = TestDataFactory.create_collection()
        self.call(dry_run=True)
        bare.refresh_from_db()
        self.assertIsNone(bare.image_url)
