# promotions/utils.py
"""
Promotion pricing helpers.

Everything here is pure: callers pass in items and promotions they have
already loaded (model instances or plain dicts) and get prices back.
Nothing touches the database or raises for an unusable promotion.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from core.pricing import get_final_price, round_money, safe_decimal
from .models import DiscountType, PromotionStatus

logger = logging.getLogger(__name__)


def _field(obj, name, default=None):
    """Read a field from a model instance or a plain mapping."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def to_datetime(value):
    """
    Normalize a promotion date into an aware datetime.

    Accepts datetime/date values, objects exposing to_datetime() or
    to_pydatetime() (document-store timestamps, pandas), and ISO strings.
    Raises ValueError/TypeError for anything else.
    """
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        result = parse_datetime(text)
        if result is None:
            day = parse_date(text)
            if day is None:
                raise ValueError(f"Unrecognised date value: {value!r}")
            result = datetime.combine(day, time.min)
    else:
        converter = getattr(value, 'to_datetime', None) or getattr(value, 'to_pydatetime', None)
        if not callable(converter):
            raise TypeError(f"Cannot convert {type(value).__name__} to datetime")
        result = converter()
        if not isinstance(result, datetime):
            raise TypeError(f"{type(value).__name__} did not convert to a datetime")

    if timezone.is_naive(result):
        result = timezone.make_aware(result)
    return result


def is_promotion_effective(promotion, now=None):
    """Active status and now within [start_date, end_date]. Never raises."""
    now = now or timezone.now()
    try:
        if timezone.is_naive(now):
            now = timezone.make_aware(now)
        start_date = to_datetime(_field(promotion, 'start_date'))
        end_date = to_datetime(_field(promotion, 'end_date'))
        return _field(promotion, 'status') == PromotionStatus.ACTIVE and start_date <= now <= end_date
    except Exception as e:
        logger.debug(f"Skipping promotion {_field(promotion, 'id')} with bad dates: {e}")
        return False


def _contains_id(ids, item_id):
    if not ids or not isinstance(ids, (list, tuple, set, frozenset)):
        return False
    return any(str(candidate) == item_id for candidate in ids)


def find_item_promotion(item, promotions, now=None):
    """
    First effective promotion (in the given order) covering the item,
    through either its product ids or its service ids. None otherwise.
    """
    item_id = _field(item, 'id')
    if not item_id or not promotions:
        return None

    now = now or timezone.now()
    item_id = str(item_id)

    for promotion in promotions:
        if not is_promotion_effective(promotion, now):
            continue
        if _contains_id(_field(promotion, 'product_ids'), item_id):
            return promotion
        if _contains_id(_field(promotion, 'service_ids'), item_id):
            return promotion

    return None


def calculate_promotion_price(base_price, promotion):
    """Discounted price, never below zero. Not rounded; callers round for display."""
    base_price = safe_decimal(base_price)
    discount = safe_decimal(_field(promotion, 'discount'))

    if _field(promotion, 'discount_type') == DiscountType.PERCENTAGE:
        price = base_price * (1 - discount / 100)
    else:
        price = base_price - discount

    return max(Decimal('0'), price)


def get_promotion_discount_percentage(promotion):
    # A fixed discount has no percentage without a base price; UI shows "On Sale"
    if _field(promotion, 'discount_type') == DiscountType.PERCENTAGE:
        return safe_decimal(_field(promotion, 'discount'))
    return Decimal('0')


def get_item_effective_price(item, promotion=None, default_fee_rate=None):
    """
    Promotion price if a promotion applies, then the transaction fee when the
    item opts in. The item's own fee rate wins over default_fee_rate, which
    wins over the TRANSACTION_FEE_RATE setting.
    """
    base_price = _field(item, 'base_price')
    promotion_price = calculate_promotion_price(base_price, promotion) if promotion else None

    return get_final_price(
        base_price,
        promotion_price,
        _field(item, 'include_transaction_fee', False),
        _field(item, 'transaction_fee_rate') or default_fee_rate,
    )


def calculate_cart_subtotal(lines, promotions, now=None, default_fee_rate=None):
    """
    Sum of effective price x quantity.
    Each line is a mapping with 'item' and 'quantity'.
    """
    now = now or timezone.now()
    subtotal = Decimal('0.00')
    for line in lines:
        item = line['item']
        quantity = int(line.get('quantity', 1))
        promotion = find_item_promotion(item, promotions, now)
        subtotal += get_item_effective_price(item, promotion, default_fee_rate) * quantity
    return round_money(subtotal)
