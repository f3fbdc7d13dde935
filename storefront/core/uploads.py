"""Validation and storage of uploaded images"""
import logging
import os
import random
import time

from django.conf import settings
from django.core.files.storage import default_storage
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

UPLOAD_DIR = 'uploads'


class ImageUploadError(Exception):
    pass


def validate_image(upload):
    """Reject non-images and files over the configured size limit"""
    max_size = settings.MAX_UPLOAD_SIZE
    if upload.size > max_size:
        raise ImageUploadError(f'File too large. Maximum size is {max_size // (1024 * 1024)}MB.')

    content_type = getattr(upload, 'content_type', '') or ''
    if not content_type.startswith('image/'):
        raise ImageUploadError('Only image files are allowed!')

    # SVG is an image MIME type Pillow cannot parse
    if content_type == 'image/svg+xml':
        return
    try:
        image = Image.open(upload)
        image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f"Rejected upload {upload.name}: {e}")
        raise ImageUploadError('Only image files are allowed!')
    finally:
        upload.seek(0)


def save_image(upload, prefix='image'):
    """Validate and store an uploaded image; returns (url, filename)"""
    validate_image(upload)
    extension = os.path.splitext(upload.name)[1].lower() or '.jpg'
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}"
    filename = f"{prefix}-{unique_suffix}{extension}"
    stored_name = default_storage.save(f"{UPLOAD_DIR}/{filename}", upload)
    logger.info(f"Stored upload {stored_name}")
    return default_storage.url(stored_name), os.path.basename(stored_name)


def delete_image(url):
    """Remove a previously stored upload given its public URL"""
    if not url or not url.startswith(settings.MEDIA_URL):
        return
    name = url[len(settings.MEDIA_URL):]
    try:
        if default_storage.exists(name):
            default_storage.delete(name)
    except OSError as e:
        logger.warning(f"Could not delete stored image {name}: {e}")
