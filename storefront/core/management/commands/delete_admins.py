"""
Management command to delete administrator and test accounts
Usage: python manage.py delete_admins [--confirm] [--dry-run]
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Q
from storefront.core.models import User


class Command(BaseCommand):
    help = 'Delete every ADMIN account and every account whose email contains "test"'

    def add_arguments(self, parser):
        parser.add_argument(
            '--confirm',
            action='store_true',
            help='Skip confirmation prompt',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the accounts that would be deleted',
        )

    def handle(self, *args, **options):
        admins = User.objects.filter(role=User.ROLE_ADMIN)
        test_users = User.objects.filter(email__icontains='test').exclude(role=User.ROLE_ADMIN)
        targets = User.objects.filter(Q(pk__in=admins) | Q(pk__in=test_users))

        self.stdout.write(f'Admin users: {admins.count()}')
        self.stdout.write(f'Test users: {test_users.count()}')
        for user in targets.order_by('email'):
            self.stdout.write(f'  - {user.email} ({user.role})')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No accounts were deleted'))
            return

        if not options['confirm']:
            self.stdout.write(self.style.WARNING('WARNING: This will permanently delete the accounts above.'))
            confirm = input('Type "YES" to confirm: ')
            if confirm != 'YES':
                self.stdout.write(self.style.ERROR('Operation cancelled.'))
                return

        with transaction.atomic():
            admin_count = admins.count()
            test_count = test_users.count()
            targets.delete()

        self.stdout.write(self.style.SUCCESS(f'Admin users deleted: {admin_count}'))
        self.stdout.write(self.style.SUCCESS(f'Test users deleted: {test_count}'))
