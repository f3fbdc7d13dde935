import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Storefront catalogue filters: search, category, price range, size and colour"""
    search = django_filters.CharFilter(method='filter_search')
    category = django_filters.CharFilter(method='filter_category')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    size = django_filters.CharFilter(method='filter_json_list', field_name='sizes')
    color = django_filters.CharFilter(method='filter_json_list', field_name='colors')
    tag = django_filters.CharFilter(method='filter_json_list', field_name='tags')
    is_on_sale = django_filters.BooleanFilter(field_name='is_on_sale')
    is_new_arrival = django_filters.BooleanFilter(field_name='is_new_arrival')
    is_featured = django_filters.BooleanFilter(field_name='is_featured')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'min_price', 'max_price', 'size', 'color', 'tag',
                  'is_on_sale', 'is_new_arrival', 'is_featured', 'in_stock']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on name and description"""
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(description__icontains=value))

    def filter_category(self, queryset, name, value):
        """Match the category by name or slug"""
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(category_name__iexact=value) | Q(category__slug__iexact=value) | Q(category__name__iexact=value)
        )

    def filter_json_list(self, queryset, name, value):
        # JSON lists are matched on their quoted text so this works on SQLite and PostgreSQL alike
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(**{f'{name}__icontains': f'"{value}"'})

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(stock__gt=0) if value else queryset.filter(stock=0)
