"""
Management command to delete guest carts, wishlists and sent stock notifications left by dead sessions
Usage: python manage.py purge_guest_data [--dry-run]
"""
from django.contrib.sessions.models import Session
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from storefront.shopping.models import CartItem, WishlistItem, StockNotification


class Command(BaseCommand):
    help = 'Delete guest rows whose session has expired or no longer exists'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        live_sessions = Session.objects.filter(expire_date__gt=timezone.now()).values('session_key')
        # Pending guest notifications still owe an email, so only sent ones go
        targets = [
            ('cart items', CartItem.objects.all()),
            ('wishlist items', WishlistItem.objects.all()),
            ('stock notifications', StockNotification.objects.filter(is_notified=True)),
        ]

        total = 0
        with transaction.atomic():
            for label, queryset in targets:
                stale = queryset.filter(user__isnull=True).exclude(session_key__in=live_sessions)
                count = stale.count()
                total += count
                self.stdout.write(f'  {label}: {count}')
                if count and not dry_run:
                    stale.delete()

        verb = 'Would delete' if dry_run else 'Deleted'
        self.stdout.write(self.style.SUCCESS(f'{verb} {total} guest row(s)'))
