"""
Test suite for Content module
Tests: contact enquiries, hero background, homepage sections and content, curated site settings
"""
import io
import shutil
import tempfile
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from PIL import Image
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.models import AuditLog, SiteSetting
from storefront.core.utils import get_json_setting, set_json_setting
from storefront.content.models import ContactInquiry, HeroBackground, HomepageSection, HomepageContent
from storefront.content.utils import inquiry_subject, section_slug


def make_png(name='hero.png'):
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4), color=(200, 30, 90)).save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


class ContentUtilsTests(TestCase):

    def test_inquiry_subject(self):
        self.assertEqual(inquiry_subject('Short question'), 'Short question')
        long_message = 'x' * 51
        self.assertEqual(inquiry_subject(long_message), 'x' * 50 + '...')
        self.assertEqual(inquiry_subject('y' * 50), 'y' * 50)

    def test_section_slug(self):
        self.assertEqual(section_slug('  Festive   Picks! '), 'festive-picks')
        self.assertEqual(section_slug('New & Noteworthy'), 'new--noteworthy')


class ContactTests(TestCase):
    """Test the contact form and enquiry management"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def _submit(self, **overrides):
        data = {
            'full_name': 'Sunita Verma',
            'phone': '+91 98765 43210',
            'email': 'sunita@example.com',
            'message': 'Do you stitch blouses to measure for the silk sarees in your festive collection?',
        }
        data.update(overrides)
        return self.client.post('/api/contact/submit/', data, format='json')

    def test_submit(self):
        response = self._submit()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        inquiry = response.data['inquiry']
        self.assertEqual(inquiry['status'], 'UNREAD')
        self.assertEqual(inquiry['subject'], 'Do you stitch blouses to measure for the silk sare...')

    def test_submit_camel_case_form(self):
        """Test a multipart form post with camelCase names"""
        response = self.client.post('/api/contact/submit/', {
            'fullName': 'Sunita Verma',
            'phone': '+91 98765 43210',
            'email': 'sunita@example.com',
            'message': 'Is the Banarasi saree available in green?',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(ContactInquiry.objects.get().full_name, 'Sunita Verma')

    def test_submit_validation(self):
        self.assertEqual(self._submit(message='  ').data['error'], 'All fields are required')
        self.assertEqual(self._submit(email='sunita@example').data['error'], 'Please enter a valid email address')
        self.assertEqual(self._submit(phone='12ab').data['error'], 'Please enter a valid phone number')
        self.assertEqual(ContactInquiry.objects.count(), 0)

    def test_inquiry_management(self):
        first = ContactInquiry.objects.create(full_name='A', email='a@example.com', phone='12345678', message='Hi')
        ContactInquiry.objects.create(full_name='B', email='b@example.com', phone='12345678', message='Hello')
        self.client.authenticate_user(self.admin)

        response = self.client.patch(f'/api/contact/inquiries/{first.id}/read/')
        self.assertTrue(response.data['is_read'])

        response = self.client.get('/api/contact/inquiries/?status=unread')
        self.assertEqual([i['full_name'] for i in response.data], ['B'])
        response = self.client.get('/api/contact/inquiries/unread/count/')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/admin/inquiries/?limit=1')
        self.assertEqual(len(response.data['inquiries']), 1)
        self.assertEqual(response.data['unread_count'], 1)

        response = self.client.delete(f'/api/contact/inquiries/{first.id}/')
        self.assertEqual(response.data['message'], 'Inquiry deleted successfully')
        self.assertEqual(ContactInquiry.objects.count(), 1)

    def test_inquiries_require_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/contact/inquiries/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class HeroBackgroundTests(TestCase):
    """Test the homepage hero background"""

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def tearDown(self):
        shutil.rmtree(self.media_root, ignore_errors=True)

    def test_default_background(self):
        response = AuthenticatedAPIClient().get('/api/hero-background/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        background = response.data['hero_background']
        self.assertIsNone(background['image_url'])
        self.assertTrue(background['is_default'])
        self.assertEqual(background['overlay_opacity'], '0.20')

    def test_upload_background(self):
        """Test an uploaded image becomes the only active background"""
        HeroBackground.activate(image_url=None, is_default=True)
        with override_settings(MEDIA_ROOT=self.media_root):
            response = self.client.post('/api/admin/hero-background/',
                                        {'image': make_png(), 'overlay_opacity': '0.45'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        background = response.data['hero_background']
        self.assertTrue(background['image_url'].startswith('/media/uploads/hero-bg-'))
        self.assertFalse(background['is_default'])
        self.assertEqual(background['overlay_opacity'], '0.45')
        self.assertEqual(HeroBackground.objects.filter(is_active=True).count(), 1)

        public = AuthenticatedAPIClient().get('/api/hero-background/')
        self.assertEqual(public.data['hero_background']['id'], background['id'])

    def test_rejects_non_image(self):
        fake = SimpleUploadedFile('notes.png', b'not really a png', content_type='image/png')
        with override_settings(MEDIA_ROOT=self.media_root):
            response = self.client.post('/api/admin/hero-background/', {'image': fake}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Only image files are allowed!')

    def test_opacity_range(self):
        response = self.client.post('/api/admin/hero-background/', {'overlay_opacity': '1.5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'overlay_opacity must be between 0 and 1')

    def test_reset(self):
        HeroBackground.activate(image_url='/media/uploads/old.png', is_default=False)
        response = self.client.post('/api/admin/hero-background/reset/')
        self.assertEqual(response.data['message'], 'Hero background reset to default')
        current = HeroBackground.current()
        self.assertTrue(current.is_default)
        self.assertIsNone(current.image_url)

    def test_upload_without_file(self):
        response = self.client.post('/api/upload/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No image file provided')

    def test_generic_upload(self):
        with override_settings(MEDIA_ROOT=self.media_root):
            response = self.client.post('/api/upload/', {'image': make_png('look.png')}, format='multipart')
        self.assertTrue(response.data['success'])
        self.assertTrue(response.data['filename'].startswith('image-'))
        self.assertTrue(response.data['filename'].endswith('.png'))


class HomepageEditorTests(TestCase):
    """Test homepage sections and their content"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_create_section(self):
        response = self.client.post('/api/admin/homepage/sections/', {'name': 'Festive Picks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['section']['slug'], 'festive-picks')
        self.assertEqual(response.data['section']['display_order'], 1)

        response = self.client.post('/api/admin/homepage/sections/', {'name': 'Festive  Picks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A section with this slug already exists')

    def test_public_sees_active_sections(self):
        HomepageSection.objects.create(name='Live', slug='live', display_order=2)
        HomepageSection.objects.create(name='Draft', slug='draft', is_active=False, display_order=1)
        response = AuthenticatedAPIClient().get('/api/homepage/sections/')
        self.assertEqual([s['slug'] for s in response.data['sections']], ['live'])
        response = self.client.get('/api/admin/homepage/sections/')
        self.assertEqual([s['slug'] for s in response.data['sections']], ['draft', 'live'])

    def test_reorder_sections(self):
        first = HomepageSection.objects.create(name='One', slug='one', display_order=1)
        second = HomepageSection.objects.create(name='Two', slug='two', display_order=2)
        data = {'sections': [{'id': first.id, 'display_order': 2}, {'id': second.id, 'display_order': 1}]}
        response = self.client.post('/api/admin/homepage/sections/reorder/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(HomepageSection.objects.values_list('slug', flat=True)), ['two', 'one'])

    def test_update_and_delete_section(self):
        section = HomepageSection.objects.create(name='One', slug='one')
        response = self.client.patch(f'/api/admin/homepage/sections/{section.id}/', {'is_active': False},
                                     format='json')
        self.assertFalse(response.data['section']['is_active'])
        response = self.client.delete(f'/api/admin/homepage/sections/{section.id}/')
        self.assertEqual(response.data['message'], 'Section deleted successfully')

    def test_replace_section_content(self):
        """Test posting content replaces the section's items in the given order"""
        section = HomepageSection.objects.create(name='Picks', slug='picks')
        HomepageContent.objects.create(section=section, content_id=99, order=1)
        data = {'section_id': section.id, 'content': [7, 3, 5], 'content_type': 'collection'}
        response = self.client.post('/api/admin/homepage/content/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = AuthenticatedAPIClient().get(f'/api/homepage/content/{section.id}/')
        self.assertEqual([(c['content_id'], c['order']) for c in response.data['content']], [(7, 1), (3, 2), (5, 3)])
        self.assertTrue(all(c['content_type'] == 'collection' for c in response.data['content']))

    def test_replace_content_invalid_type(self):
        section = HomepageSection.objects.create(name='Picks', slug='picks')
        data = {'section_id': section.id, 'content': [1], 'content_type': 'banner'}
        response = self.client.post('/api/admin/homepage/content/', data, format='json')
        self.assertEqual(response.data['error'], 'Invalid content type')

    def test_reorder_content(self):
        section = HomepageSection.objects.create(name='Picks', slug='picks')
        HomepageContent.objects.create(section=section, content_id=7, order=1)
        HomepageContent.objects.create(section=section, content_id=3, order=2)
        data = {'section_id': section.id, 'content': [{'id': 7, 'order': 2}, {'id': 3, 'order': 1}]}
        self.client.post('/api/admin/homepage/content/reorder/', data, format='json')
        response = self.client.get(f'/api/admin/homepage/content/{section.id}/')
        self.assertEqual([c['content_id'] for c in response.data['content']], [3, 7])

    def test_pages_and_offers_by_location(self):
        TestDataFactory.create_offer(title='Home banner', display_location='home')
        TestDataFactory.create_offer(title='Sale banner', display_location='sale')
        response = self.client.get('/api/admin/homepage/pages/')
        self.assertIn('home', [page['id'] for page in response.data['pages']])
        response = AuthenticatedAPIClient().get('/api/homepage/offers/home/')
        self.assertEqual([o['title'] for o in response.data['offers']], ['Home banner'])

    def test_preview(self):
        TestDataFactory.create_product()
        TestDataFactory.create_sale()
        response = self.client.get('/api/admin/homepage/preview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['products']), 1)
        self.assertEqual(len(response.data['sales']), 1)


class SiteSettingsTests(TestCase):
    """Test curated homepage offers and sales, consent and reset"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def test_homepage_offers(self):
        offer = TestDataFactory.create_offer()
        self.assertEqual(self.client.get('/api/settings/homepage-offers/').data, {'selected_offers': []})

        response = self.client.post('/api/settings/homepage-offers/', {'selected_offers': [offer.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/settings/homepage-offers/', {'selected_offers': [offer.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(get_json_setting(SiteSetting.HOMEPAGE_OFFERS), [offer.id])

    def test_homepage_offers_unknown_id(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/admin/settings/homepage-offers/', {'selected_offers': [424242]},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Some selected offers do not exist')

    def test_homepage_offers_non_numeric_id(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/admin/settings/homepage-offers/', {'selected_offers': ['x']},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'selected_offers must only contain ids')
        self.assertEqual(get_json_setting(SiteSetting.HOMEPAGE_OFFERS, []), [])

    def test_homepage_sales(self):
        sale = TestDataFactory.create_sale()
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/settings/homepage-sales/', {'selected_sales': [sale.id]}, format='json')
        self.assertEqual(response.data['selected_sales'], [sale.id])

    def test_consent(self):
        self.client.authenticate_user(self.admin)
        self.assertFalse(self.client.get('/api/admin/settings/consent/').data['consent_given'])

        response = self.client.post('/api/admin/settings/consent/', {'consent_given': False}, format='json')
        self.assertEqual(response.data['error'], 'Consent must be given')

        self.client.post('/api/admin/settings/consent/', {'consent_given': True, 'message': 'Agreed'},
                         format='json')
        response = self.client.get('/api/admin/settings/consent/')
        self.assertTrue(response.data['consent_given'])
        self.assertEqual(response.data['message'], 'Agreed')

    def test_reset(self):
        set_json_setting(SiteSetting.HOMEPAGE_OFFERS, [1, 2])
        set_json_setting(SiteSetting.ADMIN_CONSENT, {'consent_given': True})
        HeroBackground.activate(image_url='/media/uploads/hero.png', is_default=False)
        self.client.authenticate_user(self.admin)

        response = self.client.post('/api/admin/settings/reset/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(SiteSetting.objects.filter(key=SiteSetting.HOMEPAGE_OFFERS).exists())
        self.assertTrue(HeroBackground.current().is_default)
        self.assertTrue(AuditLog.objects.filter(action='settings_reset').exists())


class HomepageSectionCommandTests(TestCase):
    """Test the homepage section setup and repair commands"""

    def call(self, *args, **kwargs):
        out = io.StringIO()
        call_command(*args, stdout=out, **kwargs)
        return out.getvalue()

    def test_setup_creates_default_sections(self):
        self.call('setup_homepage_sections')
        self.assertEqual(
            list(HomepageSection.objects.values_list('slug', 'display_order')),
            [('featured-products', 1), ('new-arrivals', 2), ('special-offers', 3),
             ('collections', 4), ('sale-items', 5)],
        )

    def test_setup_skips_when_sections_exist(self):
        HomepageSection.objects.create(name='Custom', slug='custom')
        output = self.call('setup_homepage_sections')
        self.assertIn('already exist', output)
        self.assertEqual(HomepageSection.objects.count(), 1)

    def test_setup_dry_run(self):
        self.call('setup_homepage_sections', dry_run=True)
        self.assertFalse(HomepageSection.objects.exists())

    def test_fix_regenerates_slugs(self):
        broken = HomepageSection.objects.create(name='Festive Picks', slug='section-1', display_order=1)
        fine = HomepageSection.objects.create(name='New Arrivals', slug='new-arrivals', display_order=2)

        output = self.call('fix_homepage_sections')

        broken.refresh_from_db()
        fine.refresh_from_db()
        self.assertEqual(broken.slug, 'festive-picks')
        self.assertEqual(fine.slug, 'new-arrivals')
        self.assertIn('Fixed 1 of 2 sections', output)

    def test_fix_skips_slug_collisions(self):
        HomepageSection.objects.create(name='Sale', slug='sale', display_order=1)
        duplicate = HomepageSection.objects.create(name='Sale', slug='sale-2', display_order=2)

        output = self.call('fix_homepage_sections')

        duplicate.refresh_from_db()
        self.assertEqual(duplicate.slug, 'sale-2')
        self.assertIn('already used by another section', output)
