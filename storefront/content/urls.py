from django.urls import path
from .views import (
    contact_submit, inquiry_list, inquiry_mark_read, inquiry_unread_count, inquiry_delete, admin_inquiries,
    upload_image, hero_background, admin_hero_background, admin_hero_background_reset,
    section_list_create, section_detail, section_reorder,
    content_list_replace, section_content, content_reorder,
    homepage_pages, offers_by_location, homepage_preview,
    homepage_offers_setting, homepage_sales_setting, consent_setting, settings_reset
)

urlpatterns = [
    # Contact endpoints
    path('contact/submit/', contact_submit, name='contact-submit'),
    path('contact/inquiries/', inquiry_list, name='inquiry-list'),
    path('contact/inquiries/unread/count/', inquiry_unread_count, name='inquiry-unread-count'),
    path('contact/inquiries/<int:pk>/read/', inquiry_mark_read, name='inquiry-mark-read'),
    path('contact/inquiries/<int:pk>/', inquiry_delete, name='inquiry-delete'),
    path('admin/inquiries/', admin_inquiries, name='admin-inquiries'),

    # Upload endpoint
    path('upload/', upload_image, name='upload-image'),

    # Hero background endpoints
    path('hero-background/', hero_background, name='hero-background'),
    path('admin/hero-background/', admin_hero_background, name='admin-hero-background'),
    path('admin/hero-background/reset/', admin_hero_background_reset, name='admin-hero-background-reset'),

    # Homepage editor endpoints
    path('admin/homepage/sections/', section_list_create, name='admin-homepage-sections'),
    path('admin/homepage/sections/reorder/', section_reorder, name='admin-homepage-sections-reorder'),
    path('admin/homepage/sections/<int:pk>/', section_detail, name='admin-homepage-section-detail'),
    path('admin/homepage/content/', content_list_replace, name='admin-homepage-content'),
    path('admin/homepage/content/reorder/', content_reorder, name='admin-homepage-content-reorder'),
    path('admin/homepage/content/<int:section_id>/', section_content, name='admin-homepage-section-content'),
    path('admin/homepage/pages/', homepage_pages, name='admin-homepage-pages'),
    path('admin/homepage/offers/<str:location>/', offers_by_location, name='admin-homepage-offers'),
    path('admin/homepage/preview/', homepage_preview, name='admin-homepage-preview'),

    # Public homepage endpoints
    path('homepage/sections/', section_list_create, name='homepage-sections'),
    path('homepage/content/', content_list_replace, name='homepage-content'),
    path('homepage/content/<int:section_id>/', section_content, name='homepage-section-content'),
    path('homepage/offers/<str:location>/', offers_by_location, name='homepage-offers'),

    # Site settings endpoints
    path('settings/homepage-offers/', homepage_offers_setting, name='settings-homepage-offers'),
    path('settings/homepage-sales/', homepage_sales_setting, name='settings-homepage-sales'),
    path('admin/settings/homepage-offers/', homepage_offers_setting, name='admin-settings-homepage-offers'),
    path('admin/settings/homepage-sales/', homepage_sales_setting, name='admin-settings-homepage-sales'),
    path('admin/settings/consent/', consent_setting, name='admin-settings-consent'),
    path('admin/settings/reset/', settings_reset, name='admin-settings-reset'),
]
