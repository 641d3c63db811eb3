# core/pricing.py
"""
Transaction fee and price helpers.

The fee is passed on to the customer: a price "with fee" is grossed up so
that, once the fee is deducted, the business still receives the original
amount (price_with_fee = price / (1 - rate)).
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from django.conf import settings


DEFAULT_TRANSACTION_FEE_RATE = Decimal('0.03')

TWO_PLACES = Decimal('0.01')


def safe_decimal(value, default='0.00'):
    """Safely convert a value to Decimal."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)


def round_money(value):
    return safe_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def get_default_fee_rate():
    return safe_decimal(getattr(settings, 'TRANSACTION_FEE_RATE', DEFAULT_TRANSACTION_FEE_RATE))


def _check_fee_rate(fee_rate):
    fee_rate = safe_decimal(fee_rate)
    if fee_rate <= 0 or fee_rate >= 1:
        raise ValueError('Fee rate must be between 0 and 1')
    return fee_rate


def calculate_price_with_transaction_fee(original_price, fee_rate=None):
    """Gross up a price so the business nets original_price after the fee."""
    fee_rate = _check_fee_rate(get_default_fee_rate() if fee_rate is None else fee_rate)
    original_price = safe_decimal(original_price)

    if original_price <= 0:
        return Decimal('0.00')

    return round_money(original_price / (1 - fee_rate))


def get_effective_price(base_price, include_transaction_fee=False, transaction_fee_rate=None):
    """Selling price of an item, with the fee added when the item opts in."""
    if not include_transaction_fee:
        return safe_decimal(base_price)
    return calculate_price_with_transaction_fee(base_price, transaction_fee_rate)


def get_final_price(base_price, promotion_price, include_transaction_fee=False, transaction_fee_rate=None):
    """
    Final selling price: promotion discount first, then the transaction fee
    on top of the discounted price.
    """
    price_after_promotion = base_price if promotion_price is None else promotion_price

    if not include_transaction_fee:
        return round_money(price_after_promotion)

    return calculate_price_with_transaction_fee(price_after_promotion, transaction_fee_rate)


def calculate_transaction_fee_amount(price_with_fee, fee_rate=None):
    fee_rate = _check_fee_rate(get_default_fee_rate() if fee_rate is None else fee_rate)
    price_with_fee = safe_decimal(price_with_fee)
    if price_with_fee <= 0:
        return Decimal('0.00')
    return round_money(price_with_fee * fee_rate)


def calculate_net_amount(price_with_fee, fee_rate=None):
    """What the business receives after the fee is deducted."""
    fee_rate = _check_fee_rate(get_default_fee_rate() if fee_rate is None else fee_rate)
    price_with_fee = safe_decimal(price_with_fee)
    if price_with_fee <= 0:
        return Decimal('0.00')
    return round_money(price_with_fee * (1 - fee_rate))


def calculate_revenue_metrics(gross_revenue, fee_rate=None):
    """Split gross revenue into transaction fees (a cost) and net revenue."""
    gross_revenue = round_money(gross_revenue)
    transaction_fees = calculate_transaction_fee_amount(gross_revenue, fee_rate)
    return {
        'gross_revenue':    gross_revenue,
        'transaction_fees': transaction_fees,
        'net_revenue':      round_money(gross_revenue - transaction_fees),
    }
