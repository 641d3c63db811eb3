from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from bookings.models import Booking, BookingStatus
from bookings.services import (
    cancel_booking,
    create_booking,
    get_bookings,
    mark_no_show,
    refund_booking,
    update_booking,
    update_booking_status,
)
from core.exceptions import NotFoundError, ValidationError
from notifications.models import Notification, NotificationType

pytestmark = pytest.mark.django_db


def _booking_data(service, **overrides):
    data = {
        'service_id':     service.pk,
        'customer_email': 'kondwani@example.com',
        'customer_name':  'Kondwani',
        'customer_phone': '+265991234567',
        'start_time':     '2025-07-01T09:00:00Z',
    }
    data.update(overrides)
    return data


@pytest.fixture
def booking(service, store_context):
    return create_booking(_booking_data(service), context=store_context, promotions=[])


def _set_status(booking, status):
    Booking.objects.filter(pk=booking.pk).update(status=status)
    booking.refresh_from_db()
    return booking


# ── Create ───────────────────────────────────────────────────

class TestCreateBooking:
    def test_defaults_from_service(self, booking, service):
        assert booking.status == BookingStatus.PENDING
        assert booking.booking_number.startswith('BKG-')
        assert booking.service_id == str(service.pk)
        assert booking.service_name == 'Haircut'
        assert booking.duration_minutes == 45
        assert booking.end_time - booking.start_time == timedelta(minutes=45)
        assert booking.total_amount == Decimal('50.00')
        assert not booking.is_partial_payment

    def test_priced_with_running_promotion(self, service, store_context, make_promotion):
        make_promotion(service_ids=[str(service.pk)])
        booking = create_booking(_booking_data(service), context=store_context)
        assert booking.base_price == Decimal('40.00')
        assert booking.total_amount == Decimal('40.00')

    def test_expired_promotion_ignored(self, service, store_context, make_promotion):
        now = timezone.now()
        make_promotion(service_ids=[service.pk], start_date=now - timedelta(days=10), end_date=now - timedelta(days=1))
        booking = create_booking(_booking_data(service), context=store_context)
        assert booking.total_amount == Decimal('50.00')

    def test_transaction_fee_from_context(self, service, store_context):
        service.include_transaction_fee = True
        service.base_price = Decimal('97.00')
        service.save()
        booking = create_booking(_booking_data(service), context=store_context, promotions=[])
        assert booking.total_amount == Decimal('100.00')

    def test_partial_payment(self, service, store_context):
        booking = create_booking(_booking_data(service, booking_fee='10'), context=store_context, promotions=[])
        assert booking.booking_fee == Decimal('10.00')
        assert booking.total_amount == Decimal('10.00')
        assert booking.is_partial_payment

    def test_booking_fee_above_price(self, service, store_context):
        with pytest.raises(ValidationError) as exc:
            create_booking(_booking_data(service, booking_fee='60'), context=store_context, promotions=[])
        assert exc.value.field == 'booking_fee'

    def test_product_is_not_bookable(self, product, store_context):
        with pytest.raises(ValidationError, match='Service not found'):
            create_booking(_booking_data(product), context=store_context, promotions=[])

    @pytest.mark.parametrize('overrides,field', [
        ({'customer_email': 'nope'}, 'customer_email'),
        ({'customer_phone': 'call me'}, 'customer_phone'),
        ({'start_time': 'tomorrow-ish'}, 'start_time'),
        ({'start_time': ''}, 'start_time'),
    ])
    def test_invalid_input(self, service, store_context, overrides, field):
        with pytest.raises(ValidationError) as exc:
            create_booking(_booking_data(service, **overrides), context=store_context, promotions=[])
        assert exc.value.field == field

    def test_listing(self, booking, service):
        assert get_bookings(service_id=service.pk) == [booking]
        assert get_bookings(status='paid') == []


# ── Status transitions ───────────────────────────────────────

class TestBookingStatus:
    def test_lifecycle(self, booking):
        for status in ('paid', 'confirmed', 'completed'):
            booking = update_booking_status(booking.pk, status)
        booking.refresh_from_db()
        assert booking.status == BookingStatus.COMPLETED
        assert booking.paid_at is not None
        assert booking.completed_at is not None

        types = set(Notification.objects.filter(booking_id=str(booking.pk)).values_list('type', flat=True))
        assert types == {
            NotificationType.BOOKING_PAID.value,
            NotificationType.BOOKING_CONFIRMED.value,
            NotificationType.BOOKING_COMPLETED.value,
        }

    def test_completed_booking_is_frozen(self, booking):
        booking = _set_status(booking, BookingStatus.COMPLETED)
        with pytest.raises(ValidationError, match='Invalid status transition'):
            update_booking_status(booking.pk, 'confirmed')

    def test_no_show_not_reachable_generically(self, booking):
        booking = _set_status(booking, BookingStatus.CONFIRMED)
        with pytest.raises(ValidationError):
            update_booking_status(booking.pk, 'no_show')

    def test_staff_notes_update(self, booking):
        booking = update_booking(booking.pk, {'staff_notes': 'Prefers afternoon'})
        assert booking.staff_notes == 'Prefers afternoon'

    def test_missing_booking(self):
        with pytest.raises(NotFoundError):
            update_booking_status(424242, 'paid')


class TestNoShow:
    @pytest.mark.parametrize('status', [BookingStatus.PAID, BookingStatus.CONFIRMED])
    def test_from_paid_or_confirmed(self, booking, status):
        booking = _set_status(booking, status)
        booking = mark_no_show(booking.pk)
        assert booking.status == BookingStatus.NO_SHOW
        assert booking.no_show_at is not None

    @pytest.mark.parametrize('status', [BookingStatus.PENDING, BookingStatus.COMPLETED, BookingStatus.CANCELED])
    def test_rejected_otherwise(self, booking, status):
        booking = _set_status(booking, status)
        with pytest.raises(ValidationError, match='no-show'):
            mark_no_show(booking.pk)


class TestCancelBooking:
    def test_cancel_confirmed(self, booking):
        booking = _set_status(booking, BookingStatus.CONFIRMED)
        booking = cancel_booking(booking.pk, reason='Travelling')
        assert booking.status == BookingStatus.CANCELED
        assert booking.canceled_reason == 'Travelling'
        notification = Notification.objects.get(booking_id=str(booking.pk))
        assert notification.type == NotificationType.BOOKING_CANCELED
        assert 'Travelling' in notification.body

    def test_cannot_cancel_completed(self, booking):
        booking = _set_status(booking, BookingStatus.COMPLETED)
        with pytest.raises(ValidationError, match='Cannot cancel a completed booking'):
            cancel_booking(booking.pk)

    def test_cannot_cancel_twice(self, booking):
        cancel_booking(booking.pk)
        with pytest.raises(ValidationError, match='Booking is already canceled'):
            cancel_booking(booking.pk)

    def test_cannot_cancel_no_show(self, booking):
        booking = _set_status(booking, BookingStatus.NO_SHOW)
        with pytest.raises(ValidationError):
            cancel_booking(booking.pk)


class TestRefundBooking:
    def test_refund_paid(self, booking):
        booking = _set_status(booking, BookingStatus.PAID)
        booking = refund_booking(booking.pk, amount='20', reason='Stylist unavailable')
        assert booking.status == BookingStatus.REFUNDED
        assert booking.refunded_amount == Decimal('20.00')
        assert booking.refunded_at is not None

    def test_refund_confirmed_rejected(self, booking):
        booking = _set_status(booking, BookingStatus.CONFIRMED)
        with pytest.raises(ValidationError, match='Invalid status transition'):
            refund_booking(booking.pk)


def test_lookup_and_delete(booking):
    from bookings.services import delete_booking, get_booking_by_number

    assert get_booking_by_number(booking.booking_number) == booking
    delete_booking(booking.pk)
    with pytest.raises(NotFoundError):
        get_booking_by_number(booking.booking_number)
