import re

CONTACT_EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
CONTACT_PHONE_PATTERN = re.compile(r'^[+]?[0-9\s\-()]{8,}$')
SUBJECT_LENGTH = 50


def inquiry_subject(message):
    """First characters of the message, with an ellipsis when cut"""
    if len(message) > SUBJECT_LENGTH:
        return message[:SUBJECT_LENGTH] + '...'
    return message


def section_slug(name):
    """Lower-case name, whitespace runs to hyphens, anything but [a-z0-9-] dropped"""
    slug = re.sub(r'\s+', '-', (name or '').strip().lower())
    return re.sub(r'[^a-z0-9-]', '', slug)


def is_truthy(value):
    return str(value).lower() in ('1', 'true', 'yes', 'on')
