"""
Failure taxonomy for marketplace operations.

Every operation either returns a value or raises one of these. Each error
carries a machine-readable ``code`` and the HTTP status the API layer
answers with, so callers can report the failure verbatim.
"""


class MarketplaceError(Exception):
    """Base class for all engine failures."""

    code = 'error'
    status_code = 400
    default_message = 'The request could not be completed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(MarketplaceError):
    """Malformed or out-of-range input, detected before any mutation."""

    code = 'invalid_input'
    status_code = 400
    default_message = 'Invalid input.'


class InvalidAmount(InvalidInput):
    code = 'invalid_amount'
    default_message = 'Offer amount must be a positive number.'


class NotFound(MarketplaceError):
    code = 'not_found'
    status_code = 404
    default_message = 'Not found.'


class NotAuthorized(MarketplaceError):
    """The actor lacks the ownership relationship the action requires."""

    code = 'not_authorized'
    status_code = 403
    default_message = 'You are not allowed to perform this action.'


class InvalidStateTransition(MarketplaceError):
    """The target entity is not in a state that allows the action."""

    code = 'invalid_state_transition'
    status_code = 409
    default_message = 'This action is not allowed in the current state.'


class AlreadyResolved(InvalidStateTransition):
    code = 'already_resolved'
    default_message = 'This offer has already been responded to.'


class AlreadySold(InvalidStateTransition):
    code = 'already_sold'
    default_message = 'This listing has already been sold.'


class ReviewsDisabled(InvalidStateTransition):
    code = 'reviews_disabled'
    default_message = 'The seller has disabled reviews for this listing.'


class SelfAction(MarketplaceError):
    """The actor targeted themself where that is forbidden."""

    code = 'self_action'
    status_code = 400
    default_message = 'You cannot perform this action on yourself.'


class SelfOffer(SelfAction):
    code = 'self_offer'
    default_message = 'You cannot make an offer on your own listing.'


class SelfSale(SelfAction):
    code = 'self_sale'
    default_message = 'You cannot sell a listing to yourself.'


class AlreadyExists(MarketplaceError):
    code = 'already_exists'
    status_code = 409
    default_message = 'This record already exists.'


class AlreadyReviewed(AlreadyExists):
    code = 'already_reviewed'
    default_message = 'You have already reviewed this transaction.'


class RateLimited(MarketplaceError):
    code = 'rate_limited'
    status_code = 429
    default_message = 'Too many requests. Please try again later.'


class PersistenceFailure(MarketplaceError):
    """Storage failed; nothing was committed and the caller may retry."""

    code = 'persistence_failure'
    status_code = 503
    default_message = 'Something went wrong while saving. Please try again.'
