from django.contrib import admin
from .models import CartItem, WishlistItem, StockNotification


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ['product', 'user', 'session_key', 'quantity', 'size', 'color', 'updated_at']
    search_fields = ['product__name', 'user__email']
    raw_id_fields = ['product', 'user']


@admin.register(WishlistItem)
class WishlistItemAdmin(admin.ModelAdmin):
    list_display = ['product', 'user', 'session_key', 'created_at']
    search_fields = ['product__name', 'user__email']
    raw_id_fields = ['product', 'user']


@admin.register(StockNotification)
class StockNotificationAdmin(admin.ModelAdmin):
    list_display = ['product', 'email', 'is_notified', 'notified_at', 'created_at']
    list_filter = ['is_notified']
    search_fields = ['product__name', 'email']
    raw_id_fields = ['product', 'user']
