"""
Test suite for Core module
Tests: registration, login, password flows, admin users, access keys, audit logs and error payloads
"""
from io import StringIO
from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.models import User, SiteSetting, AccessKey, AuditLog
from storefront.catalog.models import Category, Product, Collection, Review
from storefront.content.models import HeroBackground
from storefront.pricing.models import Sale, Offer
from storefront.core.utils import (
    hash_access_key, verify_access_key, is_strong_access_key, get_json_setting, set_json_setting,
    parse_id, parse_id_list,
)


class RootEndpointTests(TestCase):
    """Test root, health and unknown routes"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_api_root(self):
        """Test API information endpoint"""
        response = self.client.get('/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['version'], '2.0.0')
        self.assertIn('products', response.data['endpoints'])

    def test_health_check(self):
        """Test health endpoint"""
        response = self.client.get('/health')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'OK')
        self.assertIn('timestamp', response.data)

    def test_unknown_api_route(self):
        """Test unknown API routes return a JSON 404"""
        response = self.client.get('/api/does-not-exist/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Route not found')


class RegistrationAndLoginTests(TestCase):
    """Test customer registration and login"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def test_register_customer(self):
        """Test registering a new customer returns tokens"""
        data = {
            'email': 'Asha@Example.com',
            'password': 'secret123',
            'first_name': 'Asha',
            'last_name': 'Rao',
        }
        response = self.client.post('/api/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'User created successfully')
        self.assertIn('token', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], User.ROLE_CUSTOMER)
        self.assertTrue(User.objects.filter(email='asha@example.com').exists())

    def test_register_customer_camel_case(self):
        """Test the frontend's camelCase field names are accepted"""
        data = {'email': 'asha@example.com', 'password': 'secret123', 'firstName': 'Asha', 'lastName': 'Rai'}
        response = self.client.post('/api/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='asha@example.com')
        self.assertEqual((user.first_name, user.last_name), ('Asha', 'Rai'))

    def test_register_duplicate_email(self):
        """Test registering an existing email fails"""
        TestDataFactory.create_user(email='taken@example.com')
        data = {'email': 'taken@example.com', 'password': 'secret123', 'first_name': 'A', 'last_name': 'B'}
        response = self.client.post('/api/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'User already exists')

    def test_register_short_password(self):
        """Test passwords shorter than 6 characters are rejected"""
        data = {'email': 'short@example.com', 'password': 'abc', 'first_name': 'A', 'last_name': 'B'}
        response = self.client.post('/api/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_register_missing_names(self):
        """Test first and last name are required"""
        data = {'email': 'noname@example.com', 'password': 'secret123'}
        response = self.client.post('/api/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login(self):
        """Test login returns user and tokens"""
        user = TestDataFactory.create_user(email='login@example.com', password='secret123')
        response = self.client.post('/api/auth/login/', {'email': 'login@example.com', 'password': 'secret123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Login successful')
        self.assertEqual(response.data['user']['id'], user.id)
        self.assertIn('token', response.data)

    def test_login_wrong_password(self):
        """Test login with invalid credentials"""
        TestDataFactory.create_user(email='login@example.com', password='secret123')
        response = self.client.post('/api/auth/login/', {'email': 'login@example.com', 'password': 'wrong'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid credentials')

    def test_login_deactivated_account(self):
        """Test deactivated accounts get a specific message"""
        TestDataFactory.create_user(email='inactive@example.com', password='secret123', is_active=False)
        response = self.client.post('/api/auth/login/', {'email': 'inactive@example.com', 'password': 'secret123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Account is deactivated')

    def test_login_missing_fields(self):
        """Test login without a password"""
        response = self.client.post('/api/auth/login/', {'email': 'login@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh_token(self):
        """Test refreshing an access token"""
        TestDataFactory.create_user(email='login@example.com', password='secret123')
        login = self.client.post('/api/auth/login/', {'email': 'login@example.com', 'password': 'secret123'},
                                 format='json')
        response = self.client.post('/api/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)


class ProfileTests(TestCase):
    """Test profile and self-service account endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(password='secret123')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_me_requires_authentication(self):
        """Test anonymous requests are rejected"""
        self.client.logout()
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        """Test current user endpoint"""
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['email'], self.user.email)

    def test_update_profile(self):
        """Test updating the profile ignores the role"""
        response = self.client.put('/api/auth/profile/', {'first_name': 'Meera', 'role': 'ADMIN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, 'Meera')
        self.assertEqual(self.user.role, User.ROLE_CUSTOMER)

    def test_change_password(self):
        """Test changing the password"""
        data = {'current_password': 'secret123', 'new_password': 'newsecret456'}
        response = self.client.put('/api/auth/change-password/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('newsecret456'))

    def test_change_password_wrong_current(self):
        """Test changing the password with a wrong current password"""
        data = {'current_password': 'nope', 'new_password': 'newsecret456'}
        response = self.client.put('/api/auth/change-password/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Current password is incorrect')

    def test_update_other_account_forbidden(self):
        """Test users can only modify their own account"""
        other = TestDataFactory.create_user()
        response = self.client.put(f'/api/auth/users/{other.id}/', {'first_name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_own_account(self):
        """Test deleting your own account writes an audit entry"""
        response = self.client.delete(f'/api/auth/users/{self.user.id}/', {'reason': 'Moving abroad'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())
        log = AuditLog.objects.get(action='account_delete')
        self.assertEqual(log.changes['reason'], 'Moving abroad')


class PasswordResetTests(TestCase):
    """Test forgot/reset password flows"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(email='reset@example.com', password='secret123')

    def test_forgot_password_unknown_email(self):
        """Test unknown emails get the same answer"""
        response = self.client.post('/api/auth/forgot-password/', {'email': 'nobody@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('reset_token', response.data)

    def test_forgot_password_requires_email(self):
        response = self.client.post('/api/auth/forgot-password/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(EXPOSE_RESET_TOKEN=True)
    def test_reset_password_with_token(self):
        """Test the reset token can be used once"""
        response = self.client.post('/api/auth/forgot-password/', {'email': 'reset@example.com'}, format='json')
        token = response.data['reset_token']

        response = self.client.post('/api/auth/reset-password/', {'token': token, 'new_password': 'fresh123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('fresh123'))

        # The token is bound to the old password hash
        response = self.client.post('/api/auth/reset-password/', {'token': token, 'new_password': 'again123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid reset token')

    def test_reset_password_invalid_token(self):
        response = self.client.post('/api/auth/reset-password/', {'token': 'garbage', 'new_password': 'fresh123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid reset token')

    def test_reset_password_simple(self):
        data = {'email': 'reset@example.com', 'new_password': 'fresh123', 'confirm_password': 'fresh123'}
        response = self.client.post('/api/auth/reset-password-simple/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('fresh123'))

    def test_reset_password_simple_mismatch(self):
        data = {'email': 'reset@example.com', 'new_password': 'fresh123', 'confirm_password': 'other123'}
        response = self.client.post('/api/auth/reset-password-simple/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Passwords do not match')

    def test_reset_password_simple_unknown_email(self):
        data = {'email': 'ghost@example.com', 'new_password': 'fresh123', 'confirm_password': 'fresh123'}
        response = self.client.post('/api/auth/reset-password-simple/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AdminRegistrationTests(TestCase):
    """Test access-key gated admin registration"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.data = {
            'email': 'boss@example.com',
            'password': 'secret123',
            'first_name': 'Shop',
            'last_name': 'Owner',
            'access_key': 'Secret@123',
        }

    def test_admin_register_without_configured_key(self):
        """Test admin registration is closed until a key exists"""
        response = self.client.post('/api/auth/admin-register/', self.data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Admin access key not configured')

    def test_admin_register_invalid_key(self):
        SiteSetting.objects.create(key=SiteSetting.ADMIN_ACCESS_KEY, value=hash_access_key('Other@999'))
        response = self.client.post('/api/auth/admin-register/', self.data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Invalid access key')

    def test_admin_register(self):
        """Test admin registration with the hashed site key"""
        SiteSetting.objects.create(key=SiteSetting.ADMIN_ACCESS_KEY, value=hash_access_key('Secret@123'))
        response = self.client.post('/api/auth/admin-register/', self.data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='boss@example.com')
        self.assertEqual(user.role, User.ROLE_ADMIN)
        self.assertTrue(user.is_staff)

    def test_admin_register_camel_case(self):
        SiteSetting.objects.create(key=SiteSetting.ADMIN_ACCESS_KEY, value=hash_access_key('Secret@123'))
        data = {'email': 'boss@example.com', 'password': 'secret123', 'firstName': 'Shop', 'lastName': 'Owner',
                'accessKey': 'Secret@123'}
        response = self.client.post('/api/auth/admin-register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(email='boss@example.com').role, User.ROLE_ADMIN)

    def test_admin_register_with_access_key_row(self):
        AccessKey.objects.create(key='Secret@123')
        response = self.client.post('/api/auth/admin-register/', self.data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_verify_access_key(self):
        SiteSetting.objects.create(key=SiteSetting.ADMIN_ACCESS_KEY, value=hash_access_key('Secret@123'))
        response = self.client.post('/api/auth/verify-access-key/', {'access_key': 'Secret@123'}, format='json')
        self.assertTrue(response.data['valid'])
        response = self.client.post('/api/auth/verify-access-key/', {'access_key': 'wrong'}, format='json')
        self.assertFalse(response.data['valid'])


class AdminUserTests(TestCase):
    """Test admin user management"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(password='adminpass123')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_non_admin_forbidden(self):
        """Test customers cannot reach admin endpoints"""
        customer = TestDataFactory.create_user()
        self.client.authenticate_user(customer)
        response = self.client.get('/api/admin/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Admin access required')

    def test_list_users(self):
        TestDataFactory.create_user()
        response = self.client.get('/api/admin/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertGreaterEqual(len(response.data), 2)

    def test_create_invited_user_without_password(self):
        """Test invited users get an unusable password"""
        data = {'email': 'invited@example.com', 'first_name': 'New', 'last_name': 'Hire', 'invite': True}
        response = self.client.post('/api/admin/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(User.objects.get(email='invited@example.com').has_usable_password())

    def test_create_user_duplicate_email(self):
        TestDataFactory.create_user(email='dupe@example.com')
        data = {'email': 'dupe@example.com', 'first_name': 'A', 'last_name': 'B', 'password': 'secret123'}
        response = self.client.post('/api/admin/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Email already exists.')

    def test_delete_user(self):
        user = TestDataFactory.create_user(first_name='Kavya', last_name='Iyer')
        response = self.client.delete(f'/api/admin/users/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], "User 'Kavya Iyer' deleted successfully")
        self.assertTrue(AuditLog.objects.filter(action='delete', model_name='User').exists())

    def test_update_access_key(self):
        """Test the access key is stored hashed"""
        data = {'current_password': 'adminpass123', 'new_access_key': 'NewKey#2025'}
        response = self.client.put('/api/admin/access-key/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stored = SiteSetting.objects.get(key=SiteSetting.ADMIN_ACCESS_KEY).value
        self.assertNotEqual(stored, 'NewKey#2025')
        self.assertTrue(verify_access_key('NewKey#2025'))

    def test_update_access_key_weak(self):
        data = {'current_password': 'adminpass123', 'new_access_key': 'weak'}
        response = self.client.put('/api/admin/access-key/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_access_key_duplicate(self):
        AccessKey.objects.create(key='Shop#Key1')
        response = self.client.post('/api/admin/access-keys/', {'key': 'Shop#Key1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Access key already exists')

    def test_color_palette(self):
        response = self.client.get('/api/admin/colors/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('name', response.data['colors'][0])

    def test_audit_log_filter(self):
        user = TestDataFactory.create_user()
        self.client.delete(f'/api/admin/users/{user.id}/')
        response = self.client.get('/api/admin/audit-logs/?action=delete&model=User')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)


class CoreUtilsTests(TestCase):
    """Test access key and site setting helpers"""

    def test_strong_access_key(self):
        self.assertTrue(is_strong_access_key('Abcdef1!'))
        self.assertFalse(is_strong_access_key('abcdef1!'))
        self.assertFalse(is_strong_access_key('Abc1!'))
        self.assertFalse(is_strong_access_key(None))

    def test_plaintext_site_key_is_not_accepted(self):
        """Test an unhashed admin_access_key row never matches"""
        SiteSetting.objects.create(key=SiteSetting.ADMIN_ACCESS_KEY, value='Secret@123')
        self.assertFalse(verify_access_key('Secret@123'))

    def test_json_setting_round_trip_and_bad_data(self):
        set_json_setting('homepage_offers', [1, 2])
        self.assertEqual(get_json_setting('homepage_offers'), [1, 2])
        SiteSetting.objects.create(key='broken', value='{not json')
        self.assertEqual(get_json_setting('broken', []), [])

    def test_parse_ids(self):
        self.assertEqual(parse_id('12'), 12)
        self.assertEqual(parse_id(7), 7)
        self.assertIsNone(parse_id('abc'))
        self.assertIsNone(parse_id(None))
        self.assertIsNone(parse_id(True))
        self.assertEqual(parse_id_list(['1', 2]), [1, 2])
        self.assertIsNone(parse_id_list([1, 'x']))
        self.assertIsNone(parse_id_list('1,2'))


class ManagementCommandTests(TestCase):
    """Test the site setting and account maintenance commands"""

    def call(self, *args, **kwargs):
        out = StringIO()
        call_command(*args, stdout=out, **kwargs)
        return out.getvalue()

    def test_cleanup_site_settings_keeps_only_access_key(self):
        set_json_setting(SiteSetting.HOMEPAGE_OFFERS, [1])
        SiteSetting.objects.create(key='legacy_banner', value='x')

        output = self.call('cleanup_site_settings')

        self.assertEqual(list(SiteSetting.objects.values_list('key', flat=True)), [SiteSetting.ADMIN_ACCESS_KEY])
        self.assertTrue(verify_access_key('Storefront@2024'))
        self.assertIn('Deleted 2 setting(s)', output)

    def test_cleanup_site_settings_dry_run(self):
        SiteSetting.objects.create(key='legacy_banner', value='x')
        self.call('cleanup_site_settings', dry_run=True)
        self.assertTrue(SiteSetting.objects.filter(key='legacy_banner').exists())
        self.assertFalse(SiteSetting.objects.filter(key=SiteSetting.ADMIN_ACCESS_KEY).exists())

    def test_hash_access_key_hashes_plain_text(self):
        SiteSetting.objects.create(key=SiteSetting.ADMIN_ACCESS_KEY, value='Secret@123')
        self.call('hash_access_key')
        self.assertTrue(verify_access_key('Secret@123'))

        output = self.call('hash_access_key')
        self.assertIn('already hashed', output)

    def test_hash_access_key_new_key(self):
        self.call('hash_access_key', new_key='Newkey#2024')
        self.assertTrue(verify_access_key('Newkey#2024'))

        with self.assertRaises(CommandError):
            self.call('hash_access_key', new_key='weak')

    def test_hash_access_key_without_key(self):
        with self.assertRaises(CommandError):
            self.call('hash_access_key')

    def test_check_access_key(self):
        SiteSetting.objects.create(key=SiteSetting.ADMIN_ACCESS_KEY, value=hash_access_key('Secret@123'))
        self.assertIn('Key match: YES', self.call('check_access_key', candidate='Secret@123'))
        self.assertIn('Key match: NO', self.call('check_access_key', candidate='Wrong@123'))

    def test_setup_default_settings(self):
        factory = TestDataFactory()
        offers = [factory.create_offer(title=f'Offer {i}') for i in range(4)]
        sale = factory.create_sale()

        self.call('setup_default_settings')

        self.assertEqual(get_json_setting(SiteSetting.HOMEPAGE_OFFERS), [o.pk for o in offers[:3]])
        self.assertEqual(get_json_setting(SiteSetting.HOMEPAGE_SALES), [sale.pk])
        self.assertTrue(verify_access_key('Storefront@2024'))

    def test_delete_admins(self):
        factory = TestDataFactory()
        factory.create_admin(email='boss@example.com')
        factory.create_user(email='tester@example.com')
        keeper = factory.create_user(email='shopper@example.com')

        self.call('delete_admins', confirm=True)

        self.assertEqual(list(User.objects.values_list('pk', flat=True)), [keeper.pk])

    def test_delete_admins_dry_run(self):
        TestDataFactory().create_admin(email='boss@example.com')
        self.call('delete_admins', dry_run=True)
        self.assertTrue(User.objects.filter(email='boss@example.com').exists())

    def test_seed_store(self):
        self.call('seed_store')

        self.assertEqual(User.objects.get(email='admin@storefront.local').role, User.ROLE_ADMIN)
        self.assertEqual(User.objects.get(email='promoter@example.com').promo_code, 'SARA42')
        self.assertEqual(Category.objects.count(), 13)
        self.assertTrue(Product.objects.filter(name='Wedding Gunyu Cholo', is_on_sale=True).exists())
        wedding = Collection.objects.get(name='Wedding Collection')
        self.assertEqual(wedding.slug, 'wedding-collection')
        self.assertIn('Wedding Gunyu Cholo', wedding.products.values_list('name', flat=True))
        self.assertEqual(Sale.objects.count(), 3)
        self.assertTrue(Offer.objects.filter(title='New Customer Discount', is_for_new_user=True).exists())
        self.assertEqual(Review.objects.count(), 3)
        self.assertTrue(HeroBackground.current().is_default)
        self.assertTrue(verify_access_key('Storefront@2024'))

        # Running again creates nothing new
        self.call('seed_store')
        self.assertEqual(Product.objects.count(), 15)
        self.assertEqual(Review.objects.count(), 3)

    def test_seed_store_dry_run(self):
        self.call('seed_store', dry_run=True)
        self.assertEqual(Product.objects.count(), 0)
        self.assertFalse(User.objects.exists())
