from django.contrib import admin
from .models import ContactInquiry, HeroBackground, HomepageSection, HomepageContent


@admin.register(ContactInquiry)
class ContactInquiryAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'email', 'phone', 'subject', 'is_read', 'created_at']
    list_filter = ['is_read', 'created_at']
    search_fields = ['full_name', 'email', 'message']
    ordering = ['-created_at']


@admin.register(HeroBackground)
class HeroBackgroundAdmin(admin.ModelAdmin):
    list_display = ['id', 'image_url', 'is_default', 'overlay_opacity', 'is_active', 'created_at']
    list_filter = ['is_active', 'is_default']


class HomepageContentInline(admin.TabularInline):
    model = HomepageContent
    extra = 0


@admin.register(HomepageSection)
class HomepageSectionAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'display_order', 'is_active']
    list_filter = ['is_active']
    prepopulated_fields = {'slug': ('name',)}
    inlines = [HomepageContentInline]
