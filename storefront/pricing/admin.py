from django.contrib import admin
from .models import Sale, SaleItem, Offer, PromoCodeUsage


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    raw_id_fields = ['product']


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['name', 'discount_percent', 'start_date', 'end_date', 'is_active', 'collection']
    list_filter = ['is_active', 'start_date', 'end_date']
    search_fields = ['name', 'description']
    ordering = ['-created_at']
    inlines = [SaleItemInline]


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'discount', 'minimum_order_amount', 'used_count', 'usage_limit', 'is_active']
    list_filter = ['type', 'is_active', 'is_for_new_user']
    search_fields = ['title', 'description']
    readonly_fields = ['used_count', 'created_at', 'updated_at']


@admin.register(PromoCodeUsage)
class PromoCodeUsageAdmin(admin.ModelAdmin):
    list_display = ['promoter', 'user', 'order', 'created_at']
    search_fields = ['promoter__promo_code', 'user__email']
    raw_id_fields = ['promoter', 'user', 'order']
