"""
Input coercion for JSON request fields

Every helper raises ValidationError for a value of the wrong shape, so a
malformed body never reaches the services as an unexpected type.
"""

from decimal import Decimal, InvalidOperation

from utils.errors import ValidationError
from utils.timezone_helper import parse_iso_datetime


def text_field(value, field):
    """Stripped text for an optional string field; None and '' give ''"""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text")
    return value.strip()


def parse_amount(value):
    """Positive Decimal from JSON input, ValidationError otherwise"""
    if isinstance(value, bool):
        raise ValidationError("amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("amount must be greater than zero")
    return amount


def parse_required_date(value, field):
    try:
        parsed = parse_iso_datetime(value)
    except (TypeError, ValueError):
        parsed = None
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO date")
    return parsed
