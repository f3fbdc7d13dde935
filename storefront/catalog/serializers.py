from rest_framework import serializers
from .models import Category, Product, ColorVariant, Collection, Review
from .utils import default_collection_image, parse_tags


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'parent_category', 'image_url',
                  'product_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_product_count(self, obj):
        annotated = getattr(obj, 'active_product_count', None)
        if annotated is not None:
            return annotated
        return obj.products.filter(is_active=True).count()


class TagListField(serializers.Field):
    """List of strings, also accepting a comma separated string"""

    def to_internal_value(self, data):
        if not isinstance(data, (str, list, tuple)):
            raise serializers.ValidationError('Expected a list or a comma separated string.')
        return parse_tags(data)

    def to_representation(self, value):
        return list(value or [])


class ReviewUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()


class ReviewSerializer(serializers.ModelSerializer):
    user = ReviewUserSerializer(read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'user', 'product', 'product_name', 'rating', 'comment', 'image_url',
                  'created_at', 'updated_at']
        read_only_fields = ['product', 'created_at', 'updated_at']


class ProductSerializer(serializers.ModelSerializer):
    """Product for listings and writes"""
    category_id = serializers.PrimaryKeyRelatedField(
        source='category', queryset=Category.objects.all(), required=False, allow_null=True
    )
    sizes = TagListField(required=False)
    colors = TagListField(required=False)
    tags = TagListField(required=False)
    in_stock = serializers.BooleanField(read_only=True)
    discount_percent = serializers.IntegerField(read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'price', 'original_price', 'category_id', 'category_name',
                  'image_url', 'model_3d_url', 'sizes', 'colors', 'tags', 'stock', 'in_stock',
                  'is_on_sale', 'is_new_arrival', 'is_featured', 'discount_percent', 'weight',
                  'dimensions', 'material', 'care_instructions', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['category_name', 'created_at', 'updated_at']

    # Blank optional strings are stored as null
    def to_internal_value(self, data):
        if hasattr(data, 'copy'):
            data = data.copy()
        for field in ('description', 'original_price', 'image_url', 'model_3d_url', 'weight',
                      'dimensions', 'material', 'care_instructions'):
            if field in data and data[field] == '':
                data[field] = None
        return super().to_internal_value(data)


class ProductDetailSerializer(ProductSerializer):
    reviews = ReviewSerializer(many=True, read_only=True)
    average_rating = serializers.SerializerMethodField()
    review_count = serializers.SerializerMethodField()
    collections = serializers.SerializerMethodField()

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ['reviews', 'average_rating', 'review_count', 'collections']

    def get_average_rating(self, obj):
        return obj.average_rating()

    def get_review_count(self, obj):
        return obj.reviews.count()

    def get_collections(self, obj):
        return [{'id': c.id, 'name': c.name, 'slug': c.slug} for c in obj.collections.all()]


class ColorVariantSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = ColorVariant
        fields = ['id', 'product', 'product_name', 'name', 'color', 'image_url', 'stock', 'created_at']


class CollectionSerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Collection
        fields = ['id', 'name', 'slug', 'description', 'discount_percent', 'image_url', 'is_active',
                  'product_count', 'created_at', 'updated_at']
        read_only_fields = ['slug', 'created_at', 'updated_at']

    def get_product_count(self, obj):
        annotated = getattr(obj, 'annotated_product_count', None)
        if annotated is not None:
            return annotated
        return obj.product_collections.count()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not data.get('image_url'):
            data['image_url'] = default_collection_image(instance.name)
        return data


class CollectionDetailSerializer(CollectionSerializer):
    products = serializers.SerializerMethodField()

    class Meta(CollectionSerializer.Meta):
        fields = CollectionSerializer.Meta.fields + ['products']

    def get_products(self, obj):
        products = obj.products.filter(is_active=True).order_by('-created_at')
        return ProductSerializer(products, many=True).data
