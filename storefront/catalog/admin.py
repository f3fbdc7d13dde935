from django.contrib import admin
from .models import Category, Product, ColorVariant, Collection, ProductCollection, Review


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'parent_category', 'created_at']
    list_filter = ['parent_category', 'created_at']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    ordering = ['name']


class ColorVariantInline(admin.TabularInline):
    model = ColorVariant
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category_name', 'price', 'original_price', 'stock', 'is_on_sale', 'is_active', 'created_at']
    list_filter = ['is_active', 'is_on_sale', 'is_new_arrival', 'is_featured', 'category']
    search_fields = ['name', 'description', 'category_name']
    ordering = ['-created_at']
    readonly_fields = ['category_name', 'created_at', 'updated_at']
    inlines = [ColorVariantInline]


class ProductCollectionInline(admin.TabularInline):
    model = ProductCollection
    extra = 0
    raw_id_fields = ['product']


@admin.register(Collection)
class CollectionAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'discount_percent', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ProductCollectionInline]


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['product', 'user', 'rating', 'created_at']
    list_filter = ['rating', 'created_at']
    search_fields = ['product__name', 'user__email', 'comment']
    ordering = ['-created_at']
