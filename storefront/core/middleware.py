import logging
import time

logger = logging.getLogger('storefront.requests')


class RequestLoggingMiddleware:
    """Log method, path, status and duration of every request"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = (time.monotonic() - started) * 1000
        logger.info(f"{request.method} {request.path} {response.status_code} - {duration_ms:.0f}ms")
        return response
