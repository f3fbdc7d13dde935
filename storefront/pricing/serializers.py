from rest_framework import serializers

from storefront.catalog.models import Collection, Product
from storefront.catalog.serializers import ProductSerializer
from storefront.core.models import User
from .models import Sale, SaleItem, Offer


class SaleCollectionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Collection
        fields = ['id', 'name', 'slug', 'discount_percent']


class SaleItemSerializer(serializers.ModelSerializer):
    product = ProductSerializer(read_only=True)

    class Meta:
        model = SaleItem
        fields = ['id', 'product', 'created_at']


class SaleSerializer(serializers.ModelSerializer):
    collection_id = serializers.PrimaryKeyRelatedField(
        source='collection', queryset=Collection.objects.all(), required=False, allow_null=True
    )
    collection = SaleCollectionSerializer(read_only=True)
    sale_items = SaleItemSerializer(many=True, read_only=True)
    is_running = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = ['id', 'name', 'description', 'start_date', 'end_date', 'discount_percent', 'is_active',
                  'collection_id', 'collection', 'sale_items', 'is_running', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_is_running(self, obj):
        return obj.is_running()

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end <= start:
            raise serializers.ValidationError({'end_date': 'End date must be after start date'})
        return attrs


class OfferSerializer(serializers.ModelSerializer):
    target_product_id = serializers.PrimaryKeyRelatedField(
        source='target_product', queryset=Product.objects.all(), required=False, allow_null=True
    )
    target_collection_id = serializers.PrimaryKeyRelatedField(
        source='target_collection', queryset=Collection.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Offer
        fields = ['id', 'title', 'description', 'image_url', 'link', 'start_date', 'end_date', 'discount',
                  'minimum_order_amount', 'type', 'target_product_id', 'target_collection_id',
                  'is_for_new_user', 'is_active', 'variant', 'target_page', 'target_section',
                  'display_location', 'usage_limit', 'used_count', 'created_at', 'updated_at']
        read_only_fields = ['used_count', 'created_at', 'updated_at']
        extra_kwargs = {
            'discount': {'required': True, 'allow_null': False},
        }

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end <= start:
            raise serializers.ValidationError({'end_date': 'End date must be after start date'})
        offer_type = attrs.get('type', getattr(self.instance, 'type', Offer.TYPE_ALL))
        if offer_type == Offer.TYPE_PRODUCT and not attrs.get('target_product', getattr(self.instance, 'target_product', None)):
            raise serializers.ValidationError({'target_product_id': 'Product offers need a target product'})
        if offer_type == Offer.TYPE_COLLECTION and not attrs.get('target_collection', getattr(self.instance, 'target_collection', None)):
            raise serializers.ValidationError({'target_collection_id': 'Collection offers need a target collection'})
        return attrs


class PromoterSerializer(serializers.ModelSerializer):
    redemption_count = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'phone', 'promo_code', 'commission',
                  'is_active', 'redemption_count', 'created_at', 'updated_at']
        read_only_fields = ['email', 'created_at', 'updated_at']

    def get_redemption_count(self, obj):
        return obj.promo_redemptions.count()

    def validate_promo_code(self, value):
        if value is None:
            return value
        value = value.strip().upper()
        if User.objects.filter(promo_code=value).exclude(pk=getattr(self.instance, 'pk', None)).exists():
            raise serializers.ValidationError('Promo code already in use')
        return value
