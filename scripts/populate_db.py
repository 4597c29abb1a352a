import os
import sys
import django
import random
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'campus_marketplace.settings')
django.setup()

from marketplace.exceptions import MarketplaceError
from marketplace.models import Listing, Offer, User
from marketplace.services import bundles, engagement, listing_views, offers, reviews, sales

fake = Faker()

CAMPUSES = ['North Campus', 'South Campus', 'Downtown']
CATEGORIES = ['furniture', 'electronics', 'books', 'appliances', 'clothing', 'tutoring']
CONDITIONS = ['new', 'like_new', 'good', 'fair']
ITEM_TITLES = [
    "Study Desk", "Office Chair", "Mini Fridge", "Desk Lamp", "Bookshelf",
    "Calculus Textbook", "Bike Helmet", "Microwave", "Monitor", "Bean Bag",
]


class Unlimited:
    """Seeding issues many offers per buyer; skip rate limiting."""

    def is_limited(self, key, max_hits, window_seconds):
        return False


def create_users(num_users=20):
    print(f"Creating {num_users} users...")
    users = []

    for _ in range(num_users):
        email = fake.unique.email()
        username = email.split('@')[0]
        has_university_email = random.random() < 0.4
        user = User.objects.create_user(
            username=username,
            email=email,
            password='password123',
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            campus=random.choice(CAMPUSES),
            university_email=f"{username}@campus.edu" if has_university_email else '',
            is_verified=random.random() < 0.3,
        )
        users.append(user)

    print(f"Created {len(users)} users.")
    return users


def create_listings(users):
    print("Creating listings...")
    listings = []

    for user in users:
        # Each user posts 1-4 listings
        for _ in range(random.randint(1, 4)):
            price = random.randint(5, 300) * 100
            on_sale = random.random() < 0.25
            rent = random.random() < 0.15
            listing = Listing.objects.create(
                owner=user,
                title=f"{random.choice(['Vintage', 'Modern', 'Used', 'Barely Used'])} {random.choice(ITEM_TITLES)}",
                description=fake.paragraph(),
                price_cents=price,
                original_price_cents=int(price * 1.25) if on_sale else None,
                discount_percent=20 if on_sale else None,
                category=random.choice(CATEGORIES),
                condition=random.choice(CONDITIONS),
                campus=user.campus or random.choice(CAMPUSES),
                transaction_type=Listing.RENT if rent else Listing.SELL,
                rental_period_days=random.choice([7, 30, 90]) if rent else None,
            )
            listings.append(listing)

    print(f"Created {len(listings)} listings.")
    return listings


def create_offers(users, listings):
    print("Creating offers...")
    created = []
    limiter = Unlimited()

    for listing in random.sample(listings, k=len(listings) // 2):
        buyers = [u for u in users if u.pk != listing.owner_id]
        for buyer in random.sample(buyers, k=random.randint(1, 3)):
            amount = int(listing.price_cents * random.uniform(0.6, 1.0))
            offer = offers.submit_offer(
                buyer_id=buyer.pk,
                listing_id=listing.pk,
                seller_id=listing.owner_id,
                amount_cents=amount,
                message=fake.sentence(),
                rate_limiter=limiter,
            )
            created.append(offer)

    # Sellers respond to about half of the offers
    for offer in random.sample(created, k=len(created) // 2):
        decision = random.choice([Offer.ACCEPTED, Offer.DECLINED])
        try:
            offers.respond_to_offer(offer.seller_id, offer.pk, decision)
        except MarketplaceError as e:
            print(f"  Skipped offer {offer.pk}: {e.message}")

    print(f"Created {len(created)} offers.")
    return created


def create_sales(listings):
    print("Creating sales...")
    transactions = []

    for listing in Listing.objects.filter(status=Listing.RESERVED):
        accepted = listing.offers.filter(status=Offer.ACCEPTED).first()
        if accepted is None:
            continue
        txn = sales.mark_sold(listing.owner_id, listing.pk, accepted.buyer_id)
        transactions.append(txn)

    print(f"Created {len(transactions)} transactions.")
    return transactions


def create_reviews(transactions):
    print("Creating reviews...")
    count = 0

    for txn in transactions:
        # 70% chance each side leaves a review
        for reviewer_id in (txn.buyer_id, txn.seller_id):
            if random.random() < 0.7:
                reviews.submit_mutual_review(
                    reviewer_id=reviewer_id,
                    transaction_id=txn.pk,
                    rating=random.randint(3, 5),
                    comment=fake.sentence(),
                )
                count += 1

    print(f"Created {count} reviews.")


def create_engagement(users, listings):
    print("Creating saves, follows and views...")

    for user in users:
        for listing in random.sample(listings, k=min(5, len(listings))):
            listing_views.record_view(listing.pk, user.pk)
            if random.random() < 0.3:
                engagement.toggle_saved_listing(user.pk, listing.pk)
        for other in random.sample(users, k=3):
            engagement.toggle_follow(user.pk, other.pk)


def create_bundles(users):
    print("Creating bundles...")
    count = 0

    for user in random.sample(users, k=len(users) // 4):
        available = list(
            Listing.objects.filter(owner=user, status=Listing.AVAILABLE, bundle__isnull=True)
            .values_list('pk', flat=True)
        )
        if len(available) < 2:
            continue
        bundles.create_bundle(
            owner_id=user.pk,
            title=f"{user.first_name}'s move-out bundle",
            discount_percent=random.choice([5, 10, 15]),
            listing_ids=available,
        )
        count += 1

    print(f"Created {count} bundles.")


def main():
    print("Starting database population...")

    users = create_users(num_users=20)
    listings = create_listings(users)
    create_offers(users, listings)
    transactions = create_sales(listings)
    create_reviews(transactions)
    create_engagement(users, listings)
    create_bundles(users)

    print("Database population completed successfully!")


if __name__ == '__main__':
    main()
