from django.urls import path
from .views import (
    product_list_all, product_list_create, products_under_50, products_on_sale, products_new_arrivals,
    product_category_names, product_detail, admin_product_list_create, admin_product_detail,
    admin_color_variants,
    category_list_create, category_detail, category_by_slug, categories_by_parent, parent_category_products,
    collection_list_create, collections_homepage, collection_detail, collection_by_slug,
    collection_products, collection_product_remove,
    review_list_create, product_reviews, user_reviews, review_detail
)

urlpatterns = [
    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/all/', product_list_all, name='product-list-all'),
    path('products/under-50/', products_under_50, name='products-under-50'),
    path('products/sale/', products_on_sale, name='products-sale'),
    path('products/new-arrivals/', products_new_arrivals, name='products-new-arrivals'),
    path('products/categories/list/', product_category_names, name='product-category-names'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('admin/products/', admin_product_list_create, name='admin-product-list-create'),
    path('admin/products/<int:pk>/', admin_product_detail, name='admin-product-detail'),
    path('admin/color-variants/', admin_color_variants, name='admin-color-variants'),

    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('categories/parent/<slug:parent_category>/', categories_by_parent, name='categories-by-parent'),
    path('categories/<slug:parent_category>/products/', parent_category_products, name='parent-category-products'),
    path('categories/<slug:slug>/', category_by_slug, name='category-by-slug'),

    # Collection endpoints
    path('collections/', collection_list_create, name='collection-list-create'),
    path('collections/homepage/', collections_homepage, name='collections-homepage'),
    path('collections/<int:pk>/', collection_detail, name='collection-detail'),
    path('collections/id/<int:pk>/', collection_detail, name='collection-by-id'),
    path('collections/slug/<str:slug>/', collection_by_slug, name='collection-by-slug'),
    path('collections/<int:pk>/products/', collection_products, name='collection-products'),
    path('collections/<int:pk>/products/<int:product_id>/', collection_product_remove, name='collection-product-remove'),

    # Review endpoints
    path('reviews/', review_list_create, name='review-list-create'),
    path('reviews/product/<int:product_id>/', product_reviews, name='product-reviews'),
    path('reviews/user/<int:user_id>/', user_reviews, name='user-reviews'),
    path('reviews/<int:pk>/', review_detail, name='review-detail'),
]
