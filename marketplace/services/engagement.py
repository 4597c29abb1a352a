"""
Engagement toggles: saving listings and following users.

A toggle flips the existence of one relation row. The flip is a single
delete-if-exists-else-insert executed while holding a row lock on the
actor, so concurrent duplicate requests (a double click) are applied one
after the other and N identical calls leave the relation present iff N is
odd. Toggles are best-effort: self-targets and storage failures are a
silent no-op.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import DatabaseError, transaction

from ..models import Follow, Listing, SavedListing, User

logger = logging.getLogger(__name__)

SAVED_LISTING = 'saved_listing'
FOLLOW = 'follow'


@dataclass(frozen=True)
class ToggleResult:
    """
    Outcome of a toggle.

    ``active`` is the relation's existence after the call, or None when the
    call was a no-op whose state could not be determined.
    """

    changed: bool
    active: Optional[bool]


NOOP = ToggleResult(changed=False, active=None)


def _saved_listing_relation(actor_id, target_id):
    owner_id = Listing.objects.filter(pk=target_id).values_list('owner_id', flat=True).first()
    if owner_id is None or owner_id == actor_id:
        return None
    return SavedListing, {'user_id': actor_id, 'listing_id': target_id}


def _follow_relation(actor_id, target_id):
    if target_id == actor_id or not User.objects.filter(pk=target_id).exists():
        return None
    return Follow, {'follower_id': actor_id, 'following_id': target_id}


RELATIONS = {
    SAVED_LISTING: _saved_listing_relation,
    FOLLOW: _follow_relation,
}


def toggle(relation_kind, actor_id, target_id):
    """
    Flip a saved-listing or follow relation between actor and target.

    Args:
        relation_kind: ``SAVED_LISTING`` or ``FOLLOW``
        actor_id: Authenticated user
        target_id: Listing id (saved listing) or user id (follow)

    Returns:
        ToggleResult: ``changed`` is False for ignored calls

    Raises:
        ValueError: relation_kind is unknown (a programming error)
    """
    try:
        resolve = RELATIONS[relation_kind]
    except KeyError:
        raise ValueError(f'Unknown relation kind: {relation_kind}')

    try:
        relation = resolve(actor_id, target_id)
        if relation is None:
            # Self-save, self-follow or missing target
            return ToggleResult(changed=False, active=False)
        model, lookup = relation

        with transaction.atomic():
            # Row lock on the actor serializes toggles issued by the same actor
            locked = User.objects.select_for_update().filter(pk=actor_id).values_list('pk', flat=True).first()
            if locked is None:
                return ToggleResult(changed=False, active=False)

            deleted, _ = model.objects.filter(**lookup).delete()
            if deleted:
                active = False
            else:
                model.objects.create(**lookup)
                active = True
    except DatabaseError as e:
        logger.warning(
            f"Toggle failed and was ignored: {e}, Kind: {relation_kind}, "
            f"Actor: {actor_id}, Target: {target_id}",
            exc_info=True
        )
        return NOOP

    logger.info(
        f"Toggled {relation_kind}. Actor: {actor_id}, Target: {target_id}, Active: {active}"
    )
    return ToggleResult(changed=True, active=active)


def toggle_saved_listing(user_id, listing_id):
    return toggle(SAVED_LISTING, user_id, listing_id)


def toggle_follow(follower_id, following_id):
    return toggle(FOLLOW, follower_id, following_id)
