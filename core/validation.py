# core/validation.py
import re
from decimal import Decimal, InvalidOperation

from .exceptions import ValidationError


EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_RE = re.compile(r'^\+?[1-9]\d{1,14}$')


def is_valid_email(email):
    return bool(email) and bool(EMAIL_RE.match(email))


def validate_email(email, field_name='email'):
    if not email:
        raise ValidationError(f'{field_name} is required', field_name)
    if not is_valid_email(email):
        raise ValidationError(f'{field_name} is invalid', field_name)


def validate_required(value, field_name):
    if value is None or value == '':
        raise ValidationError(f'{field_name} is required', field_name)


def _as_number(value):
    if isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None


def validate_positive_number(value, field_name):
    number = _as_number(value)
    if number is None or number <= 0:
        raise ValidationError(f'{field_name} must be a positive number', field_name)


def validate_non_negative_number(value, field_name):
    number = _as_number(value)
    if number is None or number < 0:
        raise ValidationError(f'{field_name} must be a non-negative number', field_name)


def is_valid_phone_number(phone):
    return bool(PHONE_RE.match(re.sub(r'\s', '', phone or '')))


def validate_phone_number(phone, field_name='phone'):
    """Phone is optional; only a non-empty value is checked."""
    if phone and not is_valid_phone_number(phone):
        raise ValidationError(f'{field_name} is invalid', field_name)
