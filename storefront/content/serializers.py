from rest_framework import serializers

from .models import ContactInquiry, HeroBackground, HomepageSection, HomepageContent


class ContactInquirySerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)

    class Meta:
        model = ContactInquiry
        fields = ['id', 'full_name', 'email', 'phone', 'subject', 'message', 'is_read', 'status', 'created_at']
        read_only_fields = ['subject', 'is_read', 'created_at']


class HeroBackgroundSerializer(serializers.ModelSerializer):
    class Meta:
        model = HeroBackground
        fields = ['id', 'image_url', 'is_default', 'overlay_opacity', 'is_active', 'created_at', 'updated_at']


class HomepageContentSerializer(serializers.ModelSerializer):
    section_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = HomepageContent
        fields = ['id', 'section_id', 'content_type', 'content_id', 'order', 'created_at']


class HomepageSectionSerializer(serializers.ModelSerializer):
    contents = HomepageContentSerializer(many=True, read_only=True)

    class Meta:
        model = HomepageSection
        fields = ['id', 'name', 'slug', 'description', 'is_active', 'display_order', 'contents',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
