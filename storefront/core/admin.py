from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, SiteSetting, AccessKey, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'first_name', 'last_name', 'role', 'promo_code', 'is_active', 'created_at']
    list_filter = ['role', 'is_active', 'is_staff', 'created_at']
    search_fields = ['email', 'username', 'first_name', 'last_name', 'promo_code']
    ordering = ['-created_at']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Store Profile', {'fields': ('phone', 'date_of_birth', 'role', 'promo_code', 'commission')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Store Profile', {'fields': ('email', 'role', 'phone')}),
    )


@admin.register(SiteSetting)
class SiteSettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(AccessKey)
class AccessKeyAdmin(admin.ModelAdmin):
    list_display = ['id', 'is_active', 'created_at']
    list_filter = ['is_active']
    ordering = ['-created_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__email', 'model_name', 'object_id', 'object_name']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_name', 'changes', 'ip_address', 'created_at']
