from django.urls import path
from .views import (
    sale_list_create, active_sales, sale_detail,
    offer_list_create, active_offers, offer_detail, apply_offer,
    promoter_register, promoter_list, promoter_detail, validate_promo
)

urlpatterns = [
    # Sale endpoints
    path('sales/', sale_list_create, name='sale-list-create'),
    path('sales/active/', active_sales, name='sale-active'),
    path('sales/<int:pk>/', sale_detail, name='sale-detail'),
    path('admin/sales/', sale_list_create, name='admin-sale-list-create'),
    path('admin/sales/<int:pk>/', sale_detail, name='admin-sale-detail'),

    # Offer endpoints
    path('offers/', offer_list_create, name='offer-list-create'),
    path('offers/active/', active_offers, name='offer-active'),
    path('offers/apply/', apply_offer, name='offer-apply'),
    path('offers/<int:pk>/', offer_detail, name='offer-detail'),
    path('admin/offers/', offer_list_create, name='admin-offer-list-create'),
    path('admin/offers/<int:pk>/', offer_detail, name='admin-offer-detail'),

    # Promoter endpoints
    path('promoters/register/', promoter_register, name='promoter-register'),
    path('promoters/validate-promo/', validate_promo, name='promoter-validate-promo'),
    path('promoters/', promoter_list, name='promoter-list'),
    path('promoters/<int:pk>/', promoter_detail, name='promoter-detail'),
    path('admin/promoters/', promoter_list, name='admin-promoter-list'),
    path('admin/promoters/<int:pk>/', promoter_detail, name='admin-promoter-detail'),
]
