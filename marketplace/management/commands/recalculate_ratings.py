# Recalculate Ratings Management Command
from decimal import Decimal

from django.core.management.base import BaseCommand

from marketplace.models import User, Review
from marketplace.signals import AS_BUYER, AS_SELLER, average_rating


class Command(BaseCommand):
    help = 'Recalculates seller and buyer ratings for all users to ensure data consistency.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run the command without saving changes to the database.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=1000,
            help='Batch size for bulk processing.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        batch_size = options['batch_size']

        self.recalculate_users(dry_run, batch_size)

        if dry_run:
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
        else:
            self.stdout.write(self.style.SUCCESS('Recalculation completed successfully.'))

    def recalculate_users(self, dry_run, batch_size):
        self.stdout.write('Recalculating user ratings...')
        users = User.objects.all().iterator(chunk_size=batch_size)
        updates = []
        count = 0

        for user in users:
            received = Review.objects.filter(seller=user)
            new_seller_avg = average_rating(received.filter(AS_SELLER))
            new_buyer_avg = average_rating(received.filter(AS_BUYER))

            if (
                abs(user.avg_rating_as_seller - new_seller_avg) > Decimal('0.001')
                or abs(user.avg_rating_as_buyer - new_buyer_avg) > Decimal('0.001')
            ):
                if dry_run:
                    self.stdout.write(
                        f'  [DRY-RUN] User {user.id}: '
                        f'Seller {user.avg_rating_as_seller} -> {new_seller_avg}, '
                        f'Buyer {user.avg_rating_as_buyer} -> {new_buyer_avg}'
                    )
                user.avg_rating_as_seller = new_seller_avg
                user.avg_rating_as_buyer = new_buyer_avg
                updates.append(user)

            if len(updates) >= batch_size:
                if not dry_run:
                    User.objects.bulk_update(updates, ['avg_rating_as_seller', 'avg_rating_as_buyer'])
                updates = []

            count += 1
            if count % 100 == 0:
                self.stdout.write(f'Processed {count} users...')

        if updates and not dry_run:
            User.objects.bulk_update(updates, ['avg_rating_as_seller', 'avg_rating_as_buyer'])

        self.stdout.write(f'Processed {count} users total.')
