"""
Seller badges shown next to a seller's listings.
"""

from dataclasses import dataclass

from ..conf import marketplace_settings
from ..exceptions import NotFound
from ..models import Transaction, User


@dataclass(frozen=True)
class Badge:
    key: str
    label: str
    icon: str


VERIFIED = Badge(key='verified', label='Verified Student', icon='✓')
TRUSTED = Badge(key='trusted', label='Trusted Seller', icon='★')


def seller_badges(user_id):
    """
    Badges earned by ``user_id``.

    - verified: the user is verified or registered a university email
    - trusted: the user completed enough sales as seller
    """
    try:
        user = User.objects.only('is_verified', 'university_email').get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound(f'User with ID {user_id} does not exist.')

    badges = []
    if user.is_verified or user.university_email:
        badges.append(VERIFIED)

    sales = Transaction.objects.filter(seller_id=user_id).count()
    if sales >= marketplace_settings.TRUSTED_SELLER_MIN_SALES:
        badges.append(TRUSTED)

    return badges
