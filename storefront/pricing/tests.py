"""
Test suite for Pricing module
Tests: sales and their product flags, offers and discount application, promoters and promo codes
"""
from decimal import Decimal
from datetime import timedelta
from io import StringIO
from unittest import mock
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.models import User
from storefront.catalog.models import Product
from storefront.pricing.models import Sale, SaleItem, Offer, PromoCodeUsage


class OfferModelTests(TestCase):
    """Test Offer discount arithmetic and windows"""

    def test_discount_rounds_half_up(self):
        offer = TestDataFactory.create_offer(discount=Decimal('10.00'))
        self.assertEqual(offer.discount_for(Decimal('199.95')), Decimal('20.00'))
        self.assertEqual(offer.discount_for(Decimal('0')), Decimal('0.00'))

    def test_discount_capped_at_total(self):
        offer = TestDataFactory.create_offer(discount=Decimal('100.00'))
        self.assertEqual(offer.discount_for(Decimal('49.99')), Decimal('49.99'))

    def test_window(self):
        now = timezone.now()
        offer = TestDataFactory.create_offer(start_date=now + timedelta(days=1))
        self.assertFalse(offer.is_within_window(now))
        offer.start_date = None
        offer.end_date = now - timedelta(seconds=1)
        self.assertFalse(offer.is_within_window(now))
        offer.end_date = None
        self.assertTrue(offer.is_within_window(now))

    def test_usage_exhausted(self):
        offer = TestDataFactory.create_offer(usage_limit=2, used_count=2)
        self.assertTrue(offer.usage_exhausted)
        offer.usage_limit = None
        self.assertFalse(offer.usage_exhausted)


class SaleAPITests(TestCase):
    """Test sale endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.product_a = TestDataFactory.create_product()
        self.product_b = TestDataFactory.create_product()
        self.collection = TestDataFactory.create_collection(products=[self.product_a, self.product_b])

    def _sale_data(self, **overrides):
        now = timezone.now()
        data = {
            'name': 'Diwali Sale',
            'description': 'Festive discounts',
            'start_date': (now - timedelta(days=1)).isoformat(),
            'end_date': (now + timedelta(days=5)).isoformat(),
            'discount_percent': '25.00',
        }
        data.update(overrides)
        return data

    def test_create_sale_from_collection(self):
        """Test the collection's products become sale items flagged on sale"""
        response = self.client.post('/api/sales/', self._sale_data(collection_id=self.collection.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['sale_items']), 2)
        self.assertTrue(response.data['is_running'])
        self.assertEqual(Product.objects.filter(is_on_sale=True).count(), 2)

    def test_create_sale_with_explicit_products(self):
        response = self.client.post('/api/sales/', self._sale_data(product_ids=[self.product_a.id]), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(SaleItem.objects.count(), 1)

    def test_create_sale_non_numeric_products(self):
        response = self.client.post('/api/sales/', self._sale_data(product_ids=['abc']), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'product_ids must be an array of ids')
        self.assertFalse(Sale.objects.exists())

    def test_create_sale_missing_fields(self):
        response = self.client.post('/api/sales/', {'name': 'Half'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'All fields are required')

    def test_create_sale_end_before_start(self):
        now = timezone.now()
        data = self._sale_data(start_date=now.isoformat(), end_date=(now - timedelta(days=1)).isoformat())
        response = self.client.post('/api/sales/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'End date must be after start date')

    def test_create_sale_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/sales/', self._sale_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_active_sales(self):
        running = TestDataFactory.create_sale(name='Running')
        TestDataFactory.create_sale(name='Finished', running=False)
        TestDataFactory.create_sale(name='Disabled', is_active=False)
        self.client.logout()
        response = self.client.get('/api/sales/active/')
        self.assertEqual([s['id'] for s in response.data], [running.id])

    def test_delete_sale_clears_flags(self):
        """Test products keep the flag only while another sale covers them"""
        sale = TestDataFactory.create_sale(name='Monsoon', products=[self.product_a, self.product_b])
        TestDataFactory.create_sale(products=[self.product_b])
        Product.objects.update(is_on_sale=True)

        response = self.client.delete(f'/api/sales/{sale.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], "Sale 'Monsoon' deleted successfully")
        self.product_a.refresh_from_db()
        self.product_b.refresh_from_db()
        self.assertFalse(self.product_a.is_on_sale)
        self.assertTrue(self.product_b.is_on_sale)

    def test_update_sale_products(self):
        sale = TestDataFactory.create_sale(products=[self.product_a])
        Product.objects.filter(pk=self.product_a.pk).update(is_on_sale=True)
        response = self.client.put(f'/api/sales/{sale.id}/', {'product_ids': [self.product_b.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product_a.refresh_from_db()
        self.product_b.refresh_from_db()
        self.assertFalse(self.product_a.is_on_sale)
        self.assertTrue(self.product_b.is_on_sale)

    def test_admin_mirror(self):
        TestDataFactory.create_sale()
        response = self.client.get('/api/admin/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)


class OfferAPITests(TestCase):
    """Test offer endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()

    def test_create_offer(self):
        self.client.authenticate_user(self.admin)
        data = {'title': 'Flat 15', 'description': 'On everything', 'discount': '15.00', 'display_location': 'home'}
        response = self.client.post('/api/offers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['type'], Offer.TYPE_ALL)

    def test_create_offer_missing_fields(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/offers/', {'title': 'Nothing else'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Required fields are missing')

    def test_product_offer_needs_target(self):
        self.client.authenticate_user(self.admin)
        data = {'title': 'Kurta deal', 'description': 'x', 'discount': '5', 'type': Offer.TYPE_PRODUCT}
        response = self.client.post('/api/offers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_active_offers(self):
        now = timezone.now()
        live = TestDataFactory.create_offer(title='Live')
        TestDataFactory.create_offer(title='Future', start_date=now + timedelta(days=2))
        TestDataFactory.create_offer(title='Used up', usage_limit=1, used_count=1)
        TestDataFactory.create_offer(title='Off', is_active=False)
        response = self.client.get('/api/offers/active/')
        self.assertEqual([o['id'] for o in response.data], [live.id])

    def test_delete_offer(self):
        offer = TestDataFactory.create_offer(title='Teej')
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/offers/{offer.id}/')
        self.assertEqual(response.data['message'], "Offer 'Teej' deleted successfully")


class ApplyOfferTests(TestCase):
    """Test applying an offer to an order total"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def _apply(self, offer_id, order_total):
        return self.client.post('/api/offers/apply/', {'offer_id': offer_id, 'order_total': order_total},
                                format='json')

    def test_apply_offer(self):
        offer = TestDataFactory.create_offer(discount=Decimal('10.00'))
        response = self._apply(offer.id, '199.99')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['discount_amount'], '20.00')
        self.assertEqual(response.data['final_total'], '179.99')
        offer.refresh_from_db()
        self.assertEqual(offer.used_count, 1)

    def test_apply_offer_camel_case(self):
        offer = TestDataFactory.create_offer(discount=Decimal('10.00'))
        response = self.client.post('/api/offers/apply/', {'offerId': offer.id, 'orderTotal': 100}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['discount_amount'], '10.00')

    def test_apply_unknown_offer(self):
        response = self._apply(9999, '100')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Offer not found')

    def test_apply_invalid_total(self):
        offer = TestDataFactory.create_offer()
        response = self._apply(offer.id, 'lots')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_apply_inactive(self):
        offer = TestDataFactory.create_offer(is_active=False)
        response = self._apply(offer.id, '100')
        self.assertEqual(response.data['error'], 'Offer is not active')

    def test_apply_expired(self):
        offer = TestDataFactory.create_offer(end_date=timezone.now() - timedelta(days=1))
        response = self._apply(offer.id, '100')
        self.assertEqual(response.data['error'], 'Offer has expired or is not yet valid')

    def test_apply_last_use_claimed_concurrently(self):
        """A request that read the offer before another took its last use is rejected"""
        offer = TestDataFactory.create_offer(usage_limit=1, used_count=1)
        with mock.patch.object(Offer, 'usage_exhausted', new_callable=mock.PropertyMock, return_value=False):
            response = self._apply(offer.id, '100')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Offer usage limit reached')
        offer.refresh_from_db()
        self.assertEqual(offer.used_count, 1)

    def test_apply_until_limit(self):
        offer = TestDataFactory.create_offer(usage_limit=2)
        self.assertEqual(self._apply(offer.id, '100').status_code, status.HTTP_200_OK)
        self.assertEqual(self._apply(offer.id, '100').status_code, status.HTTP_200_OK)
        self.assertEqual(self._apply(offer.id, '100').status_code, status.HTTP_400_BAD_REQUEST)
        offer.refresh_from_db()
        self.assertEqual(offer.used_count, 2)

    def test_apply_non_numeric_offer_id(self):
        response = self._apply('summer', '100')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_apply_usage_limit(self):
        offer = TestDataFactory.create_offer(usage_limit=3, used_count=3)
        response = self._apply(offer.id, '100')
        self.assertEqual(response.data['error'], 'Offer usage limit reached')

    def test_apply_minimum_order(self):
        offer = TestDataFactory.create_offer(minimum_order_amount=Decimal('150.00'))
        response = self._apply(offer.id, '100')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Minimum order amount of $150.00 required')

    def test_apply_new_customer_offer(self):
        """Test returning customers cannot use new-customer offers"""
        offer = TestDataFactory.create_offer(type=Offer.TYPE_NEW_USER)
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        self.assertEqual(self._apply(offer.id, '100').status_code, status.HTTP_200_OK)

        TestDataFactory.create_order(user=user)
        response = self._apply(offer.id, '100')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'This offer is only for new customers')


class PromoterTests(TestCase):
    """Test promoter registration, management and promo code validation"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def test_register_promoter(self):
        data = {'email': 'priya@example.com', 'password': 'secret123', 'first_name': 'Priyanka', 'last_name': 'S'}
        response = self.client.post('/api/promoters/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        promo_code = response.data['promoter']['promo_code']
        self.assertTrue(promo_code.startswith('PRIY'))
        self.assertEqual(len(promo_code), 6)
        self.assertTrue(10 <= int(promo_code[4:]) <= 99)
        self.assertEqual(User.objects.get(email='priya@example.com').role, User.ROLE_PROMOTER)

    @mock.patch('storefront.pricing.views.random.randint', return_value=42)
    def test_register_promoter_code_exhausted(self, _randint):
        """Test registration fails after repeated promo code collisions"""
        TestDataFactory.create_promoter(promo_code='ASHA42')
        data = {'email': 'asha@example.com', 'password': 'secret123', 'first_name': 'Asha', 'last_name': 'K'}
        response = self.client.post('/api/promoters/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Unable to generate unique promo code')
        self.assertFalse(User.objects.filter(email='asha@example.com').exists())

    def test_promoter_list_requires_admin(self):
        response = self.client.get('/api/promoters/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.client.authenticate_user(self.admin)
        TestDataFactory.create_promoter()
        response = self.client.get('/api/admin/promoters/')
        self.assertEqual(len(response.data), 1)

    def test_update_promoter(self):
        promoter = TestDataFactory.create_promoter()
        TestDataFactory.create_promoter(promo_code='TAKEN11')
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/promoters/{promoter.id}/', {'commission': '12.50'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['commission'], '12.50')
        response = self.client.put(f'/api/promoters/{promoter.id}/', {'promo_code': 'taken11'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Promo code already in use')

    def test_promoter_detail_lists_redemptions(self):
        promoter = TestDataFactory.create_promoter()
        customer = TestDataFactory.create_user()
        PromoCodeUsage.objects.create(promoter=promoter, user=customer)
        self.client.authenticate_user(self.admin)
        response = self.client.get(f'/api/promoters/{promoter.id}/')
        self.assertEqual(response.data['redemption_count'], 1)
        self.assertEqual(response.data['redemptions'][0]['email'], customer.email)

    def test_validate_promo(self):
        TestDataFactory.create_promoter(promo_code='RIYA55')
        response = self.client.post('/api/promoters/validate-promo/', {'promo_code': 'riya55'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['valid'])

    def test_validate_promo_errors(self):
        promoter = TestDataFactory.create_promoter(promo_code='RIYA55')
        url = '/api/promoters/validate-promo/'

        response = self.client.post(url, {}, format='json')
        self.assertEqual(response.data['error'], 'Promo code is required')

        response = self.client.post(url, {'promo_code': 'NOPE00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Invalid promo code')

        used_by = TestDataFactory.create_user()
        PromoCodeUsage.objects.create(promoter=promoter, user=used_by)
        response = self.client.post(url, {'promo_code': 'RIYA55', 'user_id': used_by.id}, format='json')
        self.assertEqual(response.data['error'], 'You have already used this promo code')

        returning = TestDataFactory.create_user()
        TestDataFactory.create_order(user=returning)
        response = self.client.post(url, {'promo_code': 'RIYA55', 'user_id': returning.id}, format='json')
        self.assertEqual(response.data['error'], 'This promo code is only valid for new customers')

        promoter.is_active = False
        promoter.save()
        response = self.client.post(url, {'promo_code': 'RIYA55'}, format='json')
        self.assertEqual(response.data['error'], 'Promo code is inactive')

    def test_validate_promo_non_numeric_user(self):
        TestDataFactory.create_promoter(promo_code='RIYA55')
        response = self.client.post('/api/promoters/validate-promo/', {'promo_code': 'RIYA55', 'user_id': 'abc'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'user_id must be a number')


class OfferCommandTests(TestCase):
    """Test the offer maintenance commands"""

    def call(self, *args, **kwargs):
        out = StringIO()
        call_command(*args, stdout=out, **kwargs)
        return out.getvalue()

    def test_migrate_offer_discounts(self):
        legacy = TestDataFactory.create_offer(title='Legacy', discount=None, discount_value=Decimal('15.00'))
        modern = TestDataFactory.create_offer(title='Modern', discount=Decimal('5.00'),
                                              discount_value=Decimal('40.00'))
        too_large = TestDataFactory.create_offer(title='Flat', discount=None, discount_value=Decimal('250.00'))

        output = self.call('migrate_offer_discounts')

        legacy.refresh_from_db()
        modern.refresh_from_db()
        too_large.refresh_from_db()
        self.assertEqual(legacy.discount, Decimal('15.00'))
        self.assertIsNone(legacy.discount_value)
        self.assertEqual(modern.discount, Decimal('5.00'))
        self.assertEqual(modern.discount_value, Decimal('40.00'))
        self.assertIsNone(too_large.discount)
        self.assertIn('Migrated: 1', output)

    def test_migrate_offer_discounts_dry_run(self):
        legacy = TestDataFactory.create_offer(discount=None, discount_value=Decimal('15.00'))
        self.call('migrate_offer_discounts', dry_run=True)
        legacy.refresh_from_db()
        self.assertIsNone(legacy.discount)

    def test_populate_offers_randomises_within_ranges(self):
        offers = [TestDataFactory.create_offer() for _ in range(5)]

        self.call('populate_offers', seed=7)

        for offer in offers:
            offer.refresh_from_db()
            self.assertTrue(Decimal('5') <= offer.discount <= Decimal('25'))
            self.assertTrue(0 <= offer.variant < 8)
            # Nothing to target, so targeted types fall back to ALL
            self.assertNotIn(offer.type, [Offer.TYPE_PRODUCT, Offer.TYPE_COLLECTION])
            if offer.start_date and offer.end_date:
                self.assertLessEqual(offer.start_date, offer.end_date)

    def test_populate_offers_targets_existing_product(self):
        product = TestDataFactory.create_product()
        offers = [TestDataFactory.create_offer() for _ in range(20)]

        self.call('populate_offers', seed=3)

        for offer in offers:
            offer.refresh_from_db()
            if offer.type == Offer.TYPE_PRODUCT:
                self.assertEqual(offer.target_product, product)
            else:
                self.assertIsNone(offer.target_product)

    def test_populate_offers_only_missing(self):
        complete = TestDataFactory.create_offer(
            discount=Decimal('12.00'), minimum_order_amount=Decimal('30.00'),
            start_date=timezone.now(), end_date=timezone.now() + timedelta(days=3),
        )
        partial = TestDataFactory.create_offer(discount=None)

        output = self.call('populate_offers', only_missing=True)

        complete.refresh_from_db()
        partial.refresh_from_db()
        self.assertEqual(complete.discount, Decimal('12.00'))
        self.assertIn('already complete', output)
        self.assertIsNotNone(partial.discount)
        self.assertIsNotNone(partial.start_date)
        self.assertEqual(partial.end_date - partial.start_date, timedelta(days=7))
        self.assertTrue(Decimal('10') <= partial.minimum_order_amount <= Decimal('109'))

    def test_populate_offers_dry_run(self):
        offer = TestDataFactory.create_offer(discount=Decimal('50.00'))
        self.call('populate_offers', dry_run=True)
        offer.refresh_from_db()
        self.assertEqual(offer.discount, Decimal('50.00'))
