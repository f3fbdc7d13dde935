"""
URL configuration for the storefront project.

Every app mounts its routes under `api/`; the root and health endpoints
live in `storefront.core.views`.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

from storefront.core.views import api_root, health_check, route_not_found

admin.site.site_header = "Storefront Admin Panel"
admin.site.site_title = "Storefront Admin Portal"
admin.site.index_title = "Welcome to the Storefront Admin Portal"

urlpatterns = [
    path('', api_root, name='api-root'),
    path('health', health_check, name='health-check'),
    path('admin/', admin.site.urls),
    path('api/', include('storefront.core.urls')),
    path('api/', include('storefront.catalog.urls')),
    path('api/', include('storefront.pricing.urls')),
    path('api/', include('storefront.orders.urls')),
    path('api/', include('storefront.shopping.urls')),
    path('api/', include('storefront.content.urls')),
    path('api/', include('storefront.reports.urls')),
    re_path(r'^api/.*$', route_not_found, name='route-not-found'),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
