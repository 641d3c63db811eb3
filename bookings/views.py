# bookings/views.py
from django.contrib.admin.views.decorators import staff_member_required
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from core.exceptions import StoreError
from core.views import error_response
from .models import Booking
from .services import cancel_booking, mark_no_show, update_booking_status
from .status import BOOKING_TRANSITIONS


def _get_customer_booking(request, booking_number):
    if request.user.is_staff:
        return get_object_or_404(Booking, booking_number=booking_number)
    return get_object_or_404(Booking, booking_number=booking_number, customer_email__iexact=request.user.email)


def _booking_payload(booking):
    return {
        'booking_number': booking.booking_number,
        'service_id':     booking.service_id,
        'service_name':   booking.service_name,
        'status':         booking.status,
        'status_display': booking.get_status_display(),
        'is_final':       BOOKING_TRANSITIONS.is_terminal(booking.status),
        'start_time':     booking.start_time.isoformat(),
        'end_time':       booking.end_time.isoformat(),
        'currency':       booking.currency,
        'total_amount':   str(booking.total_amount),
        'is_partial_payment': booking.is_partial_payment,
    }


@login_required
@require_GET
def booking_detail(request, booking_number):
    booking = _get_customer_booking(request, booking_number)
    return JsonResponse({'success': True, 'booking': _booking_payload(booking)})


@login_required
@require_POST
def cancel(request, booking_number):
    booking = _get_customer_booking(request, booking_number)
    try:
        booking = cancel_booking(booking.pk, reason=request.POST.get('reason', ''))
    except StoreError as e:
        return error_response(e)
    return JsonResponse({'success': True, 'booking': _booking_payload(booking)})


@staff_member_required
@require_POST
def update_status(request, booking_number):
    booking = get_object_or_404(Booking, booking_number=booking_number)
    try:
        booking = update_booking_status(booking.pk, request.POST.get('status', '').strip())
    except StoreError as e:
        return error_response(e)
    return JsonResponse({'success': True, 'booking': _booking_payload(booking)})


@staff_member_required
@require_POST
def no_show(request, booking_number):
    booking = get_object_or_404(Booking, booking_number=booking_number)
    try:
        booking = mark_no_show(booking.pk)
    except StoreError as e:
        return error_response(e)
    return JsonResponse({'success': True, 'booking': _booking_payload(booking)})
