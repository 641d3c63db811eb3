# promotions/services.py
"""
Promotion CRUD on top of the ORM.
"""

import logging

from core.exceptions import NotFoundError, ValidationError
from core.context import build_store_context
from core.validation import validate_non_negative_number, validate_required
from .models import DiscountType, Promotion, PromotionStatus
from .utils import find_item_promotion, to_datetime

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    'name', 'slug', 'description', 'status', 'discount_type', 'discount',
    'start_date', 'end_date', 'product_ids', 'service_ids',
}


def get_promotion_by_id(promotion_id):
    try:
        return Promotion.objects.get(pk=promotion_id)
    except (Promotion.DoesNotExist, ValueError):
        raise NotFoundError('Promotion', promotion_id)


def get_promotions(status=None, business_id=None, limit=None):
    queryset = Promotion.objects.all()
    if status:
        queryset = queryset.filter(status=status)
    if business_id:
        queryset = queryset.filter(business_id=business_id)
    queryset = queryset.order_by('-start_date')
    if limit:
        queryset = queryset[:limit]
    return list(queryset)


def _clean_dates(data):
    try:
        start_date = to_datetime(data['start_date'])
        end_date = to_datetime(data['end_date'])
    except (TypeError, ValueError):
        raise ValidationError('Start date and end date must be valid dates', 'start_date')
    if end_date < start_date:
        raise ValidationError('End date must be after start date', 'end_date')
    data['start_date'] = start_date
    data['end_date'] = end_date


def _clean_discount(data):
    validate_non_negative_number(data.get('discount'), 'discount')
    if data.get('discount_type') not in DiscountType.values:
        raise ValidationError('Discount type must be percentage or fixed', 'discount_type')
    if data.get('status') not in PromotionStatus.values:
        raise ValidationError('Unknown promotion status', 'status')


def create_promotion(data, context=None):
    """Create a promotion; name, start date and end date are required."""
    for field in ('name', 'start_date', 'end_date'):
        if not data.get(field):
            raise ValidationError('Name, start date, and end date are required', field)
    validate_required(data.get('discount'), 'discount')

    data = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
    data.setdefault('discount_type', DiscountType.PERCENTAGE)
    data.setdefault('status', PromotionStatus.ACTIVE)
    _clean_dates(data)
    _clean_discount(data)

    context = context or build_store_context()
    promotion = Promotion.objects.create(business_id=context.business_id, **data)
    logger.info(f"Promotion {promotion.pk} created: {promotion.name}")
    return promotion


def update_promotion(promotion_id, updates):
    """Merge the given fields into an existing promotion."""
    promotion = get_promotion_by_id(promotion_id)

    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown promotion fields: {', '.join(sorted(unknown))}")

    merged = {field: getattr(promotion, field) for field in EDITABLE_FIELDS}
    merged.update(updates)
    _clean_dates(merged)
    _clean_discount(merged)

    for field in updates:
        setattr(promotion, field, merged[field])
    promotion.save()
    return promotion


def delete_promotion(promotion_id):
    promotion = get_promotion_by_id(promotion_id)
    promotion.delete()
    logger.info(f"Promotion {promotion_id} deleted")


def get_item_promotion(item, promotions=None):
    """Promotion for an item, loading active promotions when none are given."""
    if promotions is None:
        promotions = get_promotions(status=PromotionStatus.ACTIVE)
    return find_item_promotion(item, promotions)
