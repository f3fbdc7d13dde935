#!/usr/bin/env python
"""
Test runner script for the storefront apps, with optional coverage
Usage: python run_tests.py [--coverage] [app ...]
"""
import os
import sys

APPS = [
    'storefront.core',
    'storefront.catalog',
    'storefront.shopping',
    'storefront.pricing',
    'storefront.orders',
    'storefront.content',
    'storefront.reports',
]


def main(argv):
    with_coverage = '--coverage' in argv
    labels = [arg for arg in argv if not arg.startswith('--')] or APPS

    cov = None
    if with_coverage:
        import coverage
        cov = coverage.Coverage()
        cov.start()

    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'storefront.config.settings')
    import django
    from django.conf import settings
    from django.test.utils import get_runner

    django.setup()
    TestRunner = get_runner(settings)
    failures = TestRunner().run_tests(labels)

    if cov is not None:
        cov.stop()
        cov.save()
        cov.report()
    return failures


if __name__ == "__main__":
    sys.exit(bool(main(sys.argv[1:])))
