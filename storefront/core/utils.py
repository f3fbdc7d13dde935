"""Utility functions for audit logging, site settings and access keys"""
import json
import logging
import re

from django.contrib.auth.hashers import check_password, identify_hasher, make_password

from .models import AuditLog, SiteSetting, AccessKey

logger = logging.getLogger(__name__)

ACCESS_KEY_PATTERN = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{8,}$')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, status_change, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., product name, order number)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated and audit_user.pk else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def get_setting(key, default=None):
    """Return the raw value of a site setting"""
    setting = SiteSetting.objects.filter(key=key).first()
    return setting.value if setting else default


def get_json_setting(key, default=None):
    """Return a site setting decoded from JSON, falling back to `default` on bad data"""
    raw = get_setting(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Site setting {key} does not contain valid JSON")
        return default


def set_json_setting(key, value, description=''):
    setting, _ = SiteSetting.objects.update_or_create(
        key=key,
        defaults={'value': json.dumps(value), 'description': description}
    )
    return setting


def is_hashed(value):
    """True when `value` is a Django password hash"""
    try:
        identify_hasher(value)
    except ValueError:
        return False
    return True


def hash_access_key(raw_key):
    return make_password(raw_key)


def is_strong_access_key(raw_key):
    """At least 8 characters with upper, lower, digit and special character"""
    return bool(raw_key and ACCESS_KEY_PATTERN.match(raw_key))


def access_key_configured():
    return (
        SiteSetting.objects.filter(key=SiteSetting.ADMIN_ACCESS_KEY).exists()
        or AccessKey.objects.filter(is_active=True).exists()
    )


def verify_access_key(raw_key):
    """Check a key against the hashed admin access key and the active access keys"""
    if not raw_key:
        return False
    stored = get_setting(SiteSetting.ADMIN_ACCESS_KEY)
    if stored and is_hashed(stored) and check_password(raw_key, stored):
        return True
    return AccessKey.objects.filter(key=raw_key, is_active=True).exists()


def parse_id(value):
    """Whole-number id from request data, or None when missing or not a number"""
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_id_list(values):
    """Ids from a request array; None when it is not a list or holds a non-number"""
    if not isinstance(values, list):
        return None
    ids = [parse_id(value) for value in values]
    return None if None in ids else ids
