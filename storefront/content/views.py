import logging
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from storefront.catalog.models import Collection, Product
from storefront.catalog.serializers import CollectionSerializer, ProductSerializer
from storefront.core.events import inquiry_received
from storefront.core.models import SiteSetting
from storefront.core.pagination import parse_limit
from storefront.core.permissions import IsStoreAdmin, IsStoreAdminOrReadOnly
from storefront.core.uploads import save_image, ImageUploadError
from storefront.core.utils import create_audit_log, get_json_setting, parse_id, parse_id_list, set_json_setting
from storefront.pricing.models import Offer, Sale
from storefront.pricing.serializers import OfferSerializer, SaleSerializer
from .models import ContactInquiry, HeroBackground, HomepageSection, HomepageContent
from .serializers import (
    ContactInquirySerializer, HeroBackgroundSerializer, HomepageSectionSerializer, HomepageContentSerializer
)
from .utils import CONTACT_EMAIL_PATTERN, CONTACT_PHONE_PATTERN, inquiry_subject, section_slug, is_truthy

logger = logging.getLogger(__name__)

# Pages and sections an offer banner can target
SITE_PAGES = [
    {'id': 'home', 'name': 'Homepage', 'path': '/', 'sections': ['hero', 'offers', 'collections', 'products']},
    {'id': 'products', 'name': 'Products', 'path': '/products', 'sections': ['filters', 'grid', 'pagination']},
    {'id': 'categories', 'name': 'Categories', 'path': '/categories', 'sections': ['list', 'grid']},
    {'id': 'collections', 'name': 'Collections', 'path': '/collections', 'sections': ['featured', 'all']},
    {'id': 'sale', 'name': 'Sale', 'path': '/sale', 'sections': ['banner', 'products']},
    {'id': 'about', 'name': 'About', 'path': '/about', 'sections': ['content', 'team']},
    {'id': 'contact', 'name': 'Contact', 'path': '/contact', 'sections': ['form', 'info']},
    {'id': 'new-arrivals', 'name': 'New Arrivals', 'path': '/new-arrivals', 'sections': ['products']},
    {'id': 'under-50', 'name': 'Under $50', 'path': '/under-50', 'sections': ['products']},
]


# Contact views
@api_view(['POST'])
@permission_classes([AllowAny])
def contact_submit(request):
    """Store a contact form enquiry"""
    full_name = (request.data.get('full_name') or '').strip()
    phone = (request.data.get('phone') or '').strip()
    email = (request.data.get('email') or '').strip()
    message = (request.data.get('message') or '').strip()

    if not full_name or not phone or not email or not message:
        return Response({'error': 'All fields are required'}, status=status.HTTP_400_BAD_REQUEST)
    if not CONTACT_EMAIL_PATTERN.match(email):
        return Response({'error': 'Please enter a valid email address'}, status=status.HTTP_400_BAD_REQUEST)
    if not CONTACT_PHONE_PATTERN.match(phone):
        return Response({'error': 'Please enter a valid phone number'}, status=status.HTTP_400_BAD_REQUEST)

    inquiry = ContactInquiry.objects.create(
        full_name=full_name, phone=phone, email=email, message=message, subject=inquiry_subject(message)
    )
    inquiry_received.send(sender=contact_submit, inquiry=inquiry)
    return Response({
        'success': True,
        'message': 'Thank you for your enquiry! We will get back to you soon!',
        'inquiry': ContactInquirySerializer(inquiry).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def inquiry_list(request):
    inquiries = ContactInquiry.objects.all()
    inquiry_status = (request.query_params.get('status') or '').upper()
    if inquiry_status in ('READ', 'UNREAD'):
        inquiries = inquiries.filter(is_read=inquiry_status == 'READ')
    return Response(ContactInquirySerializer(inquiries, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsStoreAdmin])
def inquiry_mark_read(request, pk):
    inquiry = get_object_or_404(ContactInquiry, pk=pk)
    inquiry.is_read = True
    inquiry.save(update_fields=['is_read', 'updated_at'])
    return Response(ContactInquirySerializer(inquiry).data)


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def inquiry_unread_count(request):
    return Response({'count': ContactInquiry.objects.filter(is_read=False).count()})


@api_view(['DELETE'])
@permission_classes([IsStoreAdmin])
def inquiry_delete(request, pk):
    inquiry = get_object_or_404(ContactInquiry, pk=pk)
    create_audit_log(request=request, action='delete', model_name='ContactInquiry', object_id=inquiry.pk,
                     object_name=inquiry.full_name)
    inquiry.delete()
    return Response({'message': 'Inquiry deleted successfully'})


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def admin_inquiries(request):
    """Recent enquiries for the dashboard with the unread total"""
    inquiries = ContactInquiry.objects.all()
    limit = parse_limit(request)
    if limit:
        inquiries = inquiries[:limit]
    return Response({
        'inquiries': ContactInquirySerializer(inquiries, many=True).data,
        'unread_count': ContactInquiry.objects.filter(is_read=False).count(),
    })


# Upload
@api_view(['POST'])
@permission_classes([IsStoreAdmin])
def upload_image(request):
    image = request.FILES.get('image')
    if not image:
        return Response({'error': 'No image file provided'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        image_url, filename = save_image(image, prefix='image')
    except ImageUploadError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'success': True, 'image_url': image_url, 'filename': filename})


# Hero background views
def _hero_payload(background):
    return HeroBackgroundSerializer(background).data if background else None


@api_view(['GET'])
@permission_classes([AllowAny])
def hero_background(request):
    """The active hero background, or the default look when none is set"""
    background = HeroBackground.current()
    if background is None:
        return Response({'hero_background': {
            'image_url': None,
            'is_default': True,
            'overlay_opacity': str(HeroBackground.DEFAULT_OVERLAY_OPACITY),
            'is_active': True,
        }})
    return Response({'hero_background': _hero_payload(background)})


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdmin])
def admin_hero_background(request):
    """Current hero background, or replace it with an uploaded image or the default"""
    if request.method == 'GET':
        return Response({'hero_background': _hero_payload(HeroBackground.current())})

    raw_opacity = request.data.get('overlay_opacity')
    try:
        opacity = Decimal(str(raw_opacity)) if raw_opacity not in (None, '') else HeroBackground.DEFAULT_OVERLAY_OPACITY
    except (InvalidOperation, ValueError):
        return Response({'error': 'overlay_opacity must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    if opacity < 0 or opacity > 1:
        return Response({'error': 'overlay_opacity must be between 0 and 1'}, status=status.HTTP_400_BAD_REQUEST)

    image = request.FILES.get('image')
    image_url = None
    if image:
        try:
            image_url, _ = save_image(image, prefix='hero-bg')
        except ImageUploadError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        is_default = False
    else:
        is_default = is_truthy(request.data.get('is_default', True))

    with transaction.atomic():
        background = HeroBackground.activate(image_url=image_url, is_default=is_default, overlay_opacity=opacity)
    create_audit_log(request=request, action='update', model_name='HeroBackground', object_id=background.pk,
                     object_name='Hero background', changes={'image_url': image_url, 'is_default': is_default})
    return Response({'hero_background': _hero_payload(background), 'message': 'Hero background updated successfully'})


@api_view(['POST'])
@permission_classes([IsStoreAdmin])
def admin_hero_background_reset(request):
    with transaction.atomic():
        background = HeroBackground.activate(image_url=None, is_default=True,
                                             overlay_opacity=HeroBackground.DEFAULT_OVERLAY_OPACITY)
    return Response({'hero_background': _hero_payload(background), 'message': 'Hero background reset to default'})


# Homepage section views
@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def section_list_create(request):
    """Homepage sections in display order; the public sees active ones only"""
    if request.method == 'GET':
        sections = HomepageSection.objects.prefetch_related('contents')
        if not (request.user.is_authenticated and request.user.is_store_admin):
            sections = sections.filter(is_active=True)
        return Response({'sections': HomepageSectionSerializer(sections, many=True).data})

    name = (request.data.get('name') or '').strip()
    if not name:
        return Response({'error': 'Section name is required'}, status=status.HTTP_400_BAD_REQUEST)
    slug = request.data.get('slug') or section_slug(name)
    if HomepageSection.objects.filter(slug=slug).exists():
        return Response({'error': 'A section with this slug already exists'}, status=status.HTTP_400_BAD_REQUEST)
    data = request.data.copy()
    data['slug'] = slug
    if 'display_order' not in data:
        data['display_order'] = HomepageSection.objects.count() + 1
    serializer = HomepageSectionSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    section = serializer.save()
    return Response({'section': HomepageSectionSerializer(section).data}, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'PUT', 'DELETE'])
@permission_classes([IsStoreAdmin])
def section_detail(request, pk):
    section = get_object_or_404(HomepageSection, pk=pk)
    if request.method == 'DELETE':
        section.delete()
        return Response({'message': 'Section deleted successfully'})

    serializer = HomepageSectionSerializer(section, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    section = serializer.save()
    return Response({'section': HomepageSectionSerializer(section).data})


@api_view(['POST'])
@permission_classes([IsStoreAdmin])
def section_reorder(request):
    """Set display_order from a list of {id, display_order}"""
    sections = request.data.get('sections')
    if not isinstance(sections, list):
        return Response({'error': 'sections must be an array'}, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        for entry in sections:
            HomepageSection.objects.filter(pk=entry.get('id')).update(display_order=entry.get('display_order', 0))
    return Response({'message': 'Sections reordered successfully'})


# Homepage content views
@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def content_list_replace(request):
    """All homepage content, or replace one section's content (POST)"""
    if request.method == 'GET':
        contents = HomepageContent.objects.order_by('section_id', 'order')
        return Response({'content': HomepageContentSerializer(contents, many=True).data})

    section_id = parse_id(request.data.get('section_id'))
    if section_id is None:
        return Response({'error': 'section_id must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    section = get_object_or_404(HomepageSection, pk=section_id)
    content_ids = parse_id_list(request.data.get('content') or [])
    if content_ids is None:
        return Response({'error': 'content must be an array of ids'}, status=status.HTTP_400_BAD_REQUEST)
    content_type = request.data.get('content_type') or 'product'
    if content_type not in dict(HomepageContent.CONTENT_TYPE_CHOICES):
        return Response({'error': 'Invalid content type'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        section.contents.all().delete()
        HomepageContent.objects.bulk_create([
            HomepageContent(section=section, content_type=content_type, content_id=content_id, order=index + 1)
            for index, content_id in enumerate(content_ids)
        ])
    return Response({'message': 'Section content updated successfully'})


@api_view(['GET'])
@permission_classes([AllowAny])
def section_content(request, section_id):
    contents = HomepageContent.objects.filter(section_id=section_id).order_by('order')
    return Response({'content': HomepageContentSerializer(contents, many=True).data})


@api_view(['POST'])
@permission_classes([IsStoreAdmin])
def content_reorder(request):
    """Set the order of content items inside a section from [{id, order}]"""
    section_id = parse_id(request.data.get('section_id'))
    entries = request.data.get('content')
    if section_id is None or not isinstance(entries, list):
        return Response({'error': 'section_id and a content array are required'}, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        for entry in entries:
            HomepageContent.objects.filter(section_id=section_id, content_id=entry.get('id')).update(
                order=entry.get('order', 0)
            )
    return Response({'message': 'Content reordered successfully'})


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def homepage_pages(request):
    return Response({'pages': SITE_PAGES})


@api_view(['GET'])
@permission_classes([AllowAny])
def offers_by_location(request, location):
    offers = Offer.objects.filter(is_active=True, display_location=location).order_by('-created_at')
    return Response({'offers': OfferSerializer(offers, many=True).data})


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def homepage_preview(request):
    """Everything the homepage editor can place"""
    return Response({
        'sections': HomepageSectionSerializer(HomepageSection.objects.prefetch_related('contents'), many=True).data,
        'offers': OfferSerializer(Offer.objects.order_by('-created_at'), many=True).data,
        'sales': SaleSerializer(Sale.objects.select_related('collection').order_by('-created_at'), many=True).data,
        'collections': CollectionSerializer(Collection.objects.order_by('-created_at'), many=True).data,
        'products': ProductSerializer(Product.objects.filter(is_active=True).order_by('-created_at'), many=True).data,
    })


# Site settings views
def _curated_ids_setting(request, key, model, field, label):
    """GET or replace a JSON list of ids stored under a site setting"""
    if request.method == 'GET':
        return Response({field: get_json_setting(key, [])})

    selected = request.data.get(field)
    if not isinstance(selected, list):
        return Response({'error': f'{field} must be an array'}, status=status.HTTP_400_BAD_REQUEST)
    selected = parse_id_list(selected)
    if selected is None:
        return Response({'error': f'{field} must only contain ids'}, status=status.HTTP_400_BAD_REQUEST)
    if selected and model.objects.filter(pk__in=selected).count() != len(set(selected)):
        return Response({'error': f'Some selected {label} do not exist'}, status=status.HTTP_400_BAD_REQUEST)
    set_json_setting(key, selected, description=f'Homepage {label}')
    create_audit_log(request=request, action='update', model_name='SiteSetting', object_id=key,
                     object_name=key, changes={field: selected})
    return Response({'message': f'Homepage {label} updated successfully', field: selected})


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def homepage_offers_setting(request):
    return _curated_ids_setting(request, SiteSetting.HOMEPAGE_OFFERS, Offer, 'selected_offers', 'offers')


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdminOrReadOnly])
def homepage_sales_setting(request):
    return _curated_ids_setting(request, SiteSetting.HOMEPAGE_SALES, Sale, 'selected_sales', 'sales')


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdmin])
def consent_setting(request):
    """Administrator consent record"""
    if request.method == 'GET':
        consent = get_json_setting(SiteSetting.ADMIN_CONSENT)
        if not consent:
            return Response({'consent_given': False, 'message': '', 'timestamp': None})
        return Response({
            'consent_given': True,
            'message': consent.get('message', ''),
            'timestamp': consent.get('timestamp'),
        })

    if not is_truthy(request.data.get('consent_given')):
        return Response({'error': 'Consent must be given'}, status=status.HTTP_400_BAD_REQUEST)
    consent = {
        'consent_given': True,
        'message': request.data.get('message') or '',
        'timestamp': timezone.now().isoformat(),
        'admin_id': request.user.pk,
    }
    set_json_setting(SiteSetting.ADMIN_CONSENT, consent, description='Administrator consent')
    return Response({'message': 'Consent recorded successfully', 'consent_data': consent})


@api_view(['POST'])
@permission_classes([IsStoreAdmin])
def settings_reset(request):
    """Default hero background and no curated offers, sales or consent"""
    with transaction.atomic():
        HeroBackground.objects.filter(is_active=True).update(
            image_url=None, is_default=True, overlay_opacity=HeroBackground.DEFAULT_OVERLAY_OPACITY
        )
        keys = [SiteSetting.HOMEPAGE_OFFERS, SiteSetting.HOMEPAGE_SALES, SiteSetting.ADMIN_CONSENT]
        SiteSetting.objects.filter(key__in=keys).delete()
    create_audit_log(request=request, action='settings_reset', model_name='SiteSetting', object_id='all',
                     object_name='Site settings', changes={'deleted_keys': keys})
    logger.info(f"Site settings reset by {request.user.email}")
    return Response({'message': 'All settings have been reset to default values successfully'})
