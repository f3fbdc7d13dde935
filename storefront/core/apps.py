from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'storefront.core'

    def ready(self):
        """Import signals when app is ready"""
        import storefront.core.events  # noqa: F401
        import storefront.core.cache_signals  # noqa: F401  # Cache invalidation signals
