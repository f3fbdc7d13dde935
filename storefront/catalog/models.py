from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Avg
from django.utils.text import slugify


class Category(models.Model):
    """Product categories grouped under a parent department"""
    PARENT_CATEGORY_CHOICES = [
        ('women', 'Women'),
        ('men', 'Men'),
        ('kids', 'Kids'),
        ('accessories', 'Accessories'),
    ]

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True, null=True)
    parent_category = models.CharField(max_length=20, choices=PARENT_CATEGORY_CHOICES, blank=True, null=True)
    image_url = models.CharField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'Categories'
        ordering = ['name']


class Product(models.Model):
    """Sellable garment"""
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    original_price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products', null=True, blank=True)
    # Denormalised category name, kept in sync on save
    category_name = models.CharField(max_length=200, blank=True, default='')
    image_url = models.CharField(max_length=500, blank=True, null=True)
    model_3d_url = models.CharField(max_length=500, blank=True, null=True)
    sizes = models.JSONField(default=list, blank=True)
    colors = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    stock = models.PositiveIntegerField(default=0)
    is_on_sale = models.BooleanField(default=False)
    is_new_arrival = models.BooleanField(default=False)
    is_featured = models.BooleanField(default=False)
    weight = models.DecimalField(max_digits=8, decimal_places=2, blank=True, null=True)
    dimensions = models.CharField(max_length=100, blank=True, null=True)
    material = models.CharField(max_length=200, blank=True, null=True)
    care_instructions = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if self.category_id:
            self.category_name = self.category.name
        super().save(*args, **kwargs)

    @property
    def in_stock(self):
        return self.stock > 0

    @property
    def discount_percent(self):
        """Percentage saved against the original price, 0 when not discounted"""
        if self.original_price and self.original_price > self.price:
            return int(round((self.original_price - self.price) / self.original_price * 100))
        return 0

    def offers_size(self, size):
        """Products without a size list accept any size"""
        if not size or not self.sizes:
            return True
        wanted = str(size).strip().lower()
        return any(str(s).strip().lower() == wanted for s in self.sizes)

    def average_rating(self):
        value = self.reviews.aggregate(avg=Avg('rating'))['avg']
        return round(value, 1) if value is not None else 0

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_active', '-created_at'], name='products_active_created_idx'),
            models.Index(fields=['price'], name='products_price_idx'),
            models.Index(fields=['category_name'], name='products_category_name_idx'),
        ]


class ColorVariant(models.Model):
    """Colour option of a product with its own image and stock"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='color_variants')
    name = models.CharField(max_length=100)
    color = models.CharField(max_length=100, help_text="Hex code or CSS gradient")
    image_url = models.CharField(max_length=500, blank=True, null=True)
    stock = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    class Meta:
        db_table = 'color_variants'
        ordering = ['-created_at']


class Collection(models.Model):
    """Merchandising group of products (e.g. Wedding, Festival)"""
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True, blank=True)
    description = models.TextField(blank=True, null=True)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, blank=True, null=True,
                                           validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))])
    image_url = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    products = models.ManyToManyField(Product, through='ProductCollection', related_name='collections', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = self._unique_slug()
        super().save(*args, **kwargs)

    def _unique_slug(self):
        base = slugify(self.name) or 'collection'
        slug = base
        counter = 2
        while Collection.objects.filter(slug=slug).exclude(pk=self.pk).exists():
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'collections'
        ordering = ['-created_at']


class ProductCollection(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='product_collections')
    collection = models.ForeignKey(Collection, on_delete=models.CASCADE, related_name='product_collections')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'product_collections'
        unique_together = [['product', 'collection']]


class Review(models.Model):
    """Customer rating of a product, one per customer and product"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField()
    image_url = models.CharField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.rating}/5"

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']
        unique_together = [['user', 'product']]
