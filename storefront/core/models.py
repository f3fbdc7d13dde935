from decimal import Decimal

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class StoreUserManager(UserManager):
    """User manager that keys accounts by email"""

    def create_user(self, username=None, email=None, password=None, **extra_fields):
        email = self.normalize_email(email)
        if not username:
            username = email
        return super().create_user(username, email, password, **extra_fields)

    def create_superuser(self, username=None, email=None, password=None, **extra_fields):
        email = self.normalize_email(email)
        if not username:
            username = email
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """Shop account: customers, administrators and promoters"""
    ROLE_CUSTOMER = 'CUSTOMER'
    ROLE_ADMIN = 'ADMIN'
    ROLE_PROMOTER = 'PROMOTER'
    ROLE_CHOICES = [
        (ROLE_CUSTOMER, 'Customer'),
        (ROLE_ADMIN, 'Admin'),
        (ROLE_PROMOTER, 'Promoter'),
    ]

    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    date_of_birth = models.DateField(blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)
    promo_code = models.CharField(max_length=20, unique=True, blank=True, null=True)
    commission = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'),
                                     help_text="Promoter commission in percent")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    objects = StoreUserManager()

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_store_admin(self):
        return self.role == self.ROLE_ADMIN or self.is_staff or self.is_superuser

    def __str__(self):
        return self.email

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']


class SiteSetting(models.Model):
    """Key/value configuration rows (homepage curation lists, admin access key)"""
    ADMIN_ACCESS_KEY = 'admin_access_key'
    HOMEPAGE_OFFERS = 'homepage_offers'
    HOMEPAGE_SALES = 'homepage_sales'
    ADMIN_CONSENT = 'admin_consent'

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'site_settings'


class AccessKey(models.Model):
    """Additional keys accepted by admin registration"""
    key = models.CharField(max_length=255, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"AccessKey #{self.pk}"

    class Meta:
        db_table = 'access_keys'
        ordering = ['-created_at']


class AuditLog(models.Model):
    """Audit log for administrative operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('status_change', 'Status Change'),
        ('stock_restore', 'Stock Restored'),
        ('account_delete', 'Account Deleted'),
        ('access_key_change', 'Access Key Changed'),
        ('settings_reset', 'Settings Reset'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True)
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_idx'),
            models.Index(fields=['action'], name='audit_logs_action_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.model_name}#{self.object_id}"
