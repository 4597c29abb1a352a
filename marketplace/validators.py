"""
Validators shared by the marketplace models and services.

Model field validators raise Django's ``ValidationError``; the ``check_*``
helpers used by the service layer raise ``InvalidInput`` so the failure
reaches the caller with its machine code.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError

from .exceptions import InvalidAmount, InvalidInput

OFFER_MESSAGE_MIN_LENGTH = 2
REVIEW_COMMENT_MIN_LENGTH = 3
BUNDLE_TITLE_MIN_LENGTH = 3

# Largest value every supported backend stores in a PositiveIntegerField
MAX_AMOUNT_CENTS = 2147483647


def validate_phone_number(value):
    """
    Validate phone number format.

    Accepts digits with optional country code, spaces, dashes and
    parentheses. Requires at least 10 digits.

    Raises:
        ValidationError: If phone number format is invalid
    """
    if not value:  # Optional field
        return

    if not re.match(r'^[\d\s\-\+\(\)]+$', value):
        raise ValidationError(
            'Phone number can only contain digits, spaces, dashes, parentheses, and plus sign.',
            code='invalid_phone_chars'
        )

    digits = re.sub(r'\D', '', value)

    if len(digits) < 10:
        raise ValidationError(
            'Phone number must contain at least 10 digits.',
            code='phone_too_short'
        )


def validate_university_email(value):
    """University addresses must sit on an academic domain."""
    if not value:
        return
    domain = value.rsplit('@', 1)[-1].lower()
    if not (domain.endswith('.edu') or '.ac.' in domain or domain.endswith('.ac')):
        raise ValidationError(
            'University email must use an academic domain (.edu or .ac).',
            code='invalid_university_email'
        )


def check_amount_cents(value):
    """
    Normalise an offer amount to a positive integer number of cents.

    Booleans, non-numeric values, NaN and infinities are rejected. Finite
    fractional values are rounded to the nearest cent.

    Raises:
        InvalidAmount: If the amount is not a positive finite number or is
            larger than MAX_AMOUNT_CENTS
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount()
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmount()
    if not amount.is_finite():
        raise InvalidAmount()
    cents = int(amount.to_integral_value(rounding=ROUND_HALF_UP))
    if cents <= 0 or cents > MAX_AMOUNT_CENTS:
        raise InvalidAmount()
    return cents


def check_optional_text(value, min_length, field):
    """
    Return ``value`` when absent or long enough, else raise ``InvalidInput``.

    ``None`` means the field was not supplied. A supplied string is checked
    as-is against ``min_length``.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f'{field.capitalize()} must be text.')
    if len(value) < min_length:
        raise InvalidInput(
            f'{field.capitalize()} must be at least {min_length} characters.'
        )
    return value


def check_rating(value):
    """Ratings are whole numbers from 1 to 5."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput('Rating must be an integer.')
    if value < 1 or value > 5:
        raise InvalidInput('Rating must be between 1 and 5.')
    return value


def check_discount_percent(value, maximum=100):
    """Discounts are whole percentages from 0 to ``maximum``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput('Discount percent must be an integer.')
    if value < 0 or value > maximum:
        raise InvalidInput(f'Discount percent must be between 0 and {maximum}.')
    return value
