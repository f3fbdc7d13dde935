from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class ContactInquiry(models.Model):
    """Message sent through the contact form"""
    full_name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=30)
    subject = models.CharField(max_length=60, blank=True)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def status(self):
        return 'READ' if self.is_read else 'UNREAD'

    def __str__(self):
        return f"{self.full_name}: {self.subject}"

    class Meta:
        db_table = 'contact_inquiries'
        ordering = ['-created_at']
        verbose_name_plural = 'Contact inquiries'


class HeroBackground(models.Model):
    """Homepage hero image; the newest active row is shown"""
    DEFAULT_OVERLAY_OPACITY = Decimal('0.20')

    image_url = models.CharField(max_length=500, blank=True, null=True)
    is_default = models.BooleanField(default=True)
    overlay_opacity = models.DecimalField(max_digits=3, decimal_places=2, default=DEFAULT_OVERLAY_OPACITY,
                                          validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('1'))])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def current(cls):
        return cls.objects.filter(is_active=True).order_by('-created_at', '-pk').first()

    @classmethod
    def activate(cls, **fields):
        """Deactivate every background and create the new active one"""
        cls.objects.filter(is_active=True).update(is_active=False)
        return cls.objects.create(is_active=True, **fields)

    class Meta:
        db_table = 'hero_backgrounds'
        ordering = ['-created_at']


class HomepageSection(models.Model):
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    display_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'homepage_sections'
        ordering = ['display_order', 'id']


class HomepageContent(models.Model):
    """Product, collection, offer or sale placed in a homepage section"""
    CONTENT_TYPE_CHOICES = [
        ('product', 'Product'),
        ('collection', 'Collection'),
        ('offer', 'Offer'),
        ('sale', 'Sale'),
    ]

    section = models.ForeignKey(HomepageSection, on_delete=models.CASCADE, related_name='contents')
    content_type = models.CharField(max_length=20, choices=CONTENT_TYPE_CHOICES, default='product')
    content_id = models.PositiveIntegerField()
    order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'homepage_contents'
        ordering = ['section', 'order']
