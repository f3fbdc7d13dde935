from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ['product']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer_email', 'status', 'payment_status', 'total_amount', 'created_at']
    list_filter = ['status', 'payment_status', 'created_at']
    search_fields = ['user__email', 'guest_email', 'guest_name', 'tracking_number']
    readonly_fields = ['tracking_token', 'created_at', 'updated_at']
    ordering = ['-created_at']
    inlines = [OrderItemInline]
