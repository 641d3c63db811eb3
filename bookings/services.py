# bookings/services.py
"""
Booking CRUD.

Same shape as the order service: generic status updates go through the
booking transition rules; cancellation and no-show are dedicated flows
with their own preconditions.
"""

import logging
import random
import string
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from catalog.models import Item
from core.context import build_store_context
from core.exceptions import NotFoundError, ValidationError
from core.pricing import round_money, safe_decimal
from core.validation import validate_email, validate_phone_number, validate_required
from notifications.services import notify_booking_cancellation, notify_booking_status_change
from promotions.services import get_item_promotion
from promotions.utils import get_item_effective_price, to_datetime
from .models import Booking, BookingStatus
from .status import BOOKING_TRANSITIONS

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    'status', 'customer_name', 'customer_phone', 'notes', 'staff_notes',
    'refunded_amount', 'refunded_reason', 'canceled_reason',
}

STATUS_TIMESTAMPS = {
    BookingStatus.PAID:      'paid_at',
    BookingStatus.COMPLETED: 'completed_at',
    BookingStatus.CANCELED:  'canceled_at',
    BookingStatus.NO_SHOW:   'no_show_at',
    BookingStatus.REFUNDED:  'refunded_at',
}

NO_SHOW_FROM = (BookingStatus.PAID, BookingStatus.CONFIRMED)


def generate_booking_number():
    timestamp  = timezone.now().strftime('%Y%m%d')
    random_str = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"BKG-{timestamp}-{random_str}"


# ==================== READ ====================

def get_booking_by_id(booking_id):
    try:
        return Booking.objects.get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError):
        raise NotFoundError('Booking', booking_id)


def get_booking_by_number(booking_number):
    try:
        return Booking.objects.get(booking_number=booking_number)
    except Booking.DoesNotExist:
        raise NotFoundError('Booking', booking_number)


def get_bookings(status=None, customer_id=None, service_id=None, limit=None):
    queryset = Booking.objects.all()
    if status:
        queryset = queryset.filter(status=status)
    if customer_id:
        queryset = queryset.filter(customer_id=customer_id)
    if service_id:
        queryset = queryset.filter(service_id=str(service_id))
    queryset = queryset.order_by('-start_time')
    if limit:
        queryset = queryset[:limit]
    return list(queryset)


# ==================== CREATE ====================

def _get_service(service_id):
    try:
        service = Item.objects.filter(pk=service_id, item_type='service', is_active=True).first()
    except (ValueError, TypeError):
        service = None
    if service is None:
        raise ValidationError(f"Service not found: {service_id}", 'service_id')
    return service


def create_booking(data, context=None, promotions=None):
    """
    Reserve a time slot for a service. The price is the service's effective
    price at booking time, running promotion and transaction fee included.
    """
    validate_required(data.get('service_id'), 'service_id')
    validate_email(data.get('customer_email'), 'customer_email')
    validate_phone_number(data.get('customer_phone', ''), 'customer_phone')
    validate_required(data.get('start_time'), 'start_time')

    service = _get_service(data['service_id'])

    try:
        start_time = to_datetime(data['start_time'])
    except (TypeError, ValueError):
        raise ValidationError('start_time must be a valid date and time', 'start_time')

    try:
        duration = int(data.get('duration_minutes') or service.duration_minutes or 0)
    except (TypeError, ValueError):
        duration = 0
    if duration <= 0:
        raise ValidationError('duration_minutes must be a positive number', 'duration_minutes')

    promotion = get_item_promotion(service, promotions)
    context = context or build_store_context()
    price = get_item_effective_price(service, promotion, context.transaction_fee_rate)

    total = price
    booking_fee = None
    if data.get('booking_fee'):
        booking_fee = round_money(data['booking_fee'])
        if booking_fee <= 0 or booking_fee > price:
            raise ValidationError('Booking fee must be between 0 and the service price', 'booking_fee')
        total = booking_fee

    booking = Booking.objects.create(
        booking_number     = generate_booking_number(),
        business_id        = context.business_id,
        service_id         = str(service.pk),
        service_name       = service.name,
        customer_id        = data.get('customer_id', '') or '',
        customer_email     = data['customer_email'],
        customer_name      = data.get('customer_name', ''),
        customer_phone     = data.get('customer_phone', ''),
        start_time         = start_time,
        end_time           = start_time + timedelta(minutes=duration),
        duration_minutes   = duration,
        currency           = data.get('currency') or context.currency,
        base_price         = price,
        booking_fee        = booking_fee,
        total_amount       = total,
        is_partial_payment = booking_fee is not None and booking_fee < price,
        notes              = data.get('notes', ''),
    )

    if promotion is not None:
        logger.info(f"Booking {booking.booking_number} priced with promotion {getattr(promotion, 'pk', None)}")
    logger.info(f"Booking {booking.booking_number} created for {booking.customer_email}")
    return booking


# ==================== UPDATE ====================

def _stamp_status(booking, new_status):
    booking.status = new_status
    timestamp_field = STATUS_TIMESTAMPS.get(new_status)
    if timestamp_field:
        setattr(booking, timestamp_field, timezone.now())


def update_booking(booking_id, updates):
    """Merge updates into a booking; a status change must be an allowed transition."""
    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown booking fields: {', '.join(sorted(unknown))}")

    with transaction.atomic():
        booking = get_booking_by_id(booking_id)
        previous_status = booking.status
        new_status = updates.get('status')
        is_status_update = bool(new_status) and new_status != previous_status

        if new_status and new_status not in BookingStatus.values:
            raise ValidationError(f"Unknown booking status: {new_status}", 'status')

        if is_status_update and not BOOKING_TRANSITIONS.is_valid_transition(previous_status, new_status):
            raise ValidationError(
                f"Cannot change booking status from {previous_status} to {new_status}. Invalid status transition.",
                'status',
            )

        for field, value in updates.items():
            if field != 'status':
                setattr(booking, field, value)
        if is_status_update:
            _stamp_status(booking, new_status)
        booking.save()

    if is_status_update:
        logger.info(f"Booking {booking.booking_number} status {previous_status} -> {booking.status}")
        notify_booking_status_change(booking, previous_status)

    return booking


def update_booking_status(booking_id, new_status):
    return update_booking(booking_id, {'status': new_status})


def cancel_booking(booking_id, reason=None):
    booking = get_booking_by_id(booking_id)

    if booking.status == BookingStatus.COMPLETED:
        raise ValidationError('Cannot cancel a completed booking', 'status')
    if booking.status == BookingStatus.CANCELED:
        raise ValidationError('Booking is already canceled', 'status')
    if BOOKING_TRANSITIONS.is_terminal(booking.status):
        raise ValidationError(f"Cannot cancel a {booking.status} booking", 'status')

    _stamp_status(booking, BookingStatus.CANCELED)
    if reason and reason.strip():
        booking.canceled_reason = reason.strip()
    booking.save()

    logger.info(f"Booking {booking.booking_number} canceled")
    notify_booking_cancellation(booking)
    return booking


def mark_no_show(booking_id):
    """Customer did not turn up for a paid or confirmed booking."""
    booking = get_booking_by_id(booking_id)

    if booking.status not in NO_SHOW_FROM:
        raise ValidationError(f"Cannot mark a {booking.status} booking as no-show", 'status')

    _stamp_status(booking, BookingStatus.NO_SHOW)
    booking.save()
    logger.info(f"Booking {booking.booking_number} marked as no-show")
    return booking


def refund_booking(booking_id, amount=None, reason=None):
    booking = get_booking_by_id(booking_id)

    refund_amount = booking.total_amount if amount is None else round_money(amount)
    if refund_amount <= 0 or refund_amount > safe_decimal(booking.total_amount):
        raise ValidationError('Refund amount must be between 0 and the amount paid', 'refunded_amount')

    updates = {
        'status':          BookingStatus.REFUNDED,
        'refunded_amount': refund_amount,
    }
    if reason:
        updates['refunded_reason'] = reason
    return update_booking(booking_id, updates)


def delete_booking(booking_id):
    booking = get_booking_by_id(booking_id)
    booking.delete()
    logger.info(f"Booking {booking_id} deleted")
