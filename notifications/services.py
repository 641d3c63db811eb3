# notifications/services.py
"""
Notifications for order and booking lifecycle events.

The notify_* helpers are called after a record has been saved. They never
raise: a failed notification is logged and must not undo the status change.
"""

import logging

from django.conf import settings
from django.utils import timezone

from core.exceptions import NotFoundError
from .email_service import EmailDeliveryError, send_email
from .models import DeliveryStatus, Notification, NotificationChannel, NotificationType

logger = logging.getLogger(__name__)


ORDER_STATUS_MESSAGES = {
    'paid': (
        NotificationType.ORDER_PAID,
        'Order Paid - #{number}',
        'Your order #{number} has been paid and is being processed.',
    ),
    'shipped': (
        NotificationType.ORDER_SHIPPED,
        'Order Shipped - #{number}',
        'Your order #{number} has been shipped and is on its way to you.',
    ),
    'completed': (
        NotificationType.ORDER_COMPLETED,
        'Order Completed - #{number}',
        'Your order #{number} has been completed. Thank you for your purchase!',
    ),
}

BOOKING_STATUS_MESSAGES = {
    'paid': (
        NotificationType.BOOKING_PAID,
        'Booking Paid - #{number}',
        'Your booking #{number} has been paid and is being confirmed.',
    ),
    'confirmed': (
        NotificationType.BOOKING_CONFIRMED,
        'Booking Confirmed - #{number}',
        'Your booking #{number} has been confirmed. We look forward to serving you!',
    ),
    'completed': (
        NotificationType.BOOKING_COMPLETED,
        'Booking Completed - #{number}',
        'Your booking #{number} has been completed. Thank you for choosing us!',
    ),
}


def _default_channels():
    channels = [NotificationChannel.IN_APP.value]
    if getattr(settings, 'NOTIFICATIONS_EMAIL_ENABLED', False):
        channels.append(NotificationChannel.EMAIL.value)
    return channels


def is_notification_enabled(notification_type):
    disabled = getattr(settings, 'DISABLED_NOTIFICATION_TYPES', ())
    return str(notification_type) not in {str(t) for t in disabled}


def create_notification(notification_type, title, body, recipient_id='', recipient_email='',
                        channels=None, order_id='', booking_id='', business_id='', metadata=None):
    """
    Store a notification and deliver it on every requested channel.
    Returns None when this notification type is switched off.
    """
    if not is_notification_enabled(notification_type):
        logger.info(f"Notification type {notification_type} is disabled in settings. Skipping creation.")
        return None

    channels = [str(c) for c in (channels or _default_channels())]
    delivery_status = {channel: DeliveryStatus.PENDING.value for channel in channels}
    if NotificationChannel.IN_APP in channels:
        delivery_status[NotificationChannel.IN_APP.value] = DeliveryStatus.SENT.value

    notification = Notification(
        business_id     = business_id or '',
        type            = notification_type,
        title           = title,
        body            = body,
        recipient_id    = recipient_id or '',
        recipient_email = recipient_email or '',
        channels        = channels,
        delivery_status = delivery_status,
        order_id        = str(order_id or ''),
        booking_id      = str(booking_id or ''),
        metadata        = metadata or {},
    )

    if NotificationChannel.EMAIL in channels:
        if not notification.recipient_email:
            delivery_status[NotificationChannel.EMAIL.value] = DeliveryStatus.FAILED.value
            notification.error_message = 'No recipient email'
        else:
            try:
                send_email(notification.recipient_email, title, f'<p>{body}</p>', text=body)
                delivery_status[NotificationChannel.EMAIL.value] = DeliveryStatus.SENT.value
            except EmailDeliveryError as e:
                logger.warning(f"Email delivery failed for {notification.recipient_email}: {e}")
                delivery_status[NotificationChannel.EMAIL.value] = DeliveryStatus.FAILED.value
                notification.error_message = str(e)

    notification.save()
    return notification


# ==================== ORDER / BOOKING EVENTS ====================

def notify_order_status_change(order, previous_status=None):
    """Notify the customer when an order is paid, shipped or completed."""
    message = ORDER_STATUS_MESSAGES.get(str(order.status))
    if message is None:
        return None

    notification_type, title, body = message
    number = order.order_number or order.pk
    metadata = {'status': str(order.status), 'order_number': order.order_number}
    if previous_status:
        metadata['previous_status'] = str(previous_status)

    try:
        notification = create_notification(
            notification_type,
            title.format(number=number),
            body.format(number=number),
            recipient_id    = order.customer_id,
            recipient_email = order.customer_email,
            order_id        = order.pk,
            business_id     = order.business_id,
            metadata        = metadata,
        )
    except Exception as e:
        logger.error(f"Error creating order status notification for {order.order_number}: {e}", exc_info=True)
        return None

    if notification:
        logger.info(f"Order status notification {notification.pk} created for {order.order_number} ({order.status})")
    return notification


def notify_booking_status_change(booking, previous_status=None):
    """Notify the customer when a booking is paid, confirmed or completed."""
    message = BOOKING_STATUS_MESSAGES.get(str(booking.status))
    if message is None:
        return None

    notification_type, title, body = message
    number = booking.booking_number or booking.pk
    metadata = {'status': str(booking.status), 'booking_number': booking.booking_number}
    if previous_status:
        metadata['previous_status'] = str(previous_status)

    try:
        return create_notification(
            notification_type,
            title.format(number=number),
            body.format(number=number),
            recipient_id    = booking.customer_id,
            recipient_email = booking.customer_email,
            booking_id      = booking.pk,
            business_id     = booking.business_id,
            metadata        = metadata,
        )
    except Exception as e:
        logger.error(f"Error creating booking status notification for {booking.booking_number}: {e}", exc_info=True)
        return None


def notify_order_cancellation(order):
    number = order.order_number or order.pk
    body = f"Your order #{number} has been canceled."
    if order.canceled_reason:
        body += f" Reason: {order.canceled_reason}"

    try:
        return create_notification(
            NotificationType.ORDER_CANCELED,
            f"Order Canceled - #{number}",
            body,
            recipient_id    = order.customer_id,
            recipient_email = order.customer_email,
            order_id        = order.pk,
            business_id     = order.business_id,
            metadata        = {'order_number': order.order_number},
        )
    except Exception as e:
        logger.error(f"Error creating cancellation notification for {order.order_number}: {e}", exc_info=True)
        return None


def notify_booking_cancellation(booking):
    number = booking.booking_number or booking.pk
    body = f"Your booking #{number} for {booking.service_name} has been canceled."
    if booking.canceled_reason:
        body += f" Reason: {booking.canceled_reason}"

    try:
        return create_notification(
            NotificationType.BOOKING_CANCELED,
            f"Booking Canceled - #{number}",
            body,
            recipient_id    = booking.customer_id,
            recipient_email = booking.customer_email,
            booking_id      = booking.pk,
            business_id     = booking.business_id,
            metadata        = {'booking_number': booking.booking_number},
        )
    except Exception as e:
        logger.error(f"Error creating cancellation notification for {booking.booking_number}: {e}", exc_info=True)
        return None


# ==================== READ STATE ====================

def get_notifications_for_recipient(recipient_id=None, recipient_email=None, unread_only=False, limit=None):
    if not recipient_id and not recipient_email:
        return []

    queryset = Notification.objects.all()
    if recipient_id:
        queryset = queryset.filter(recipient_id=recipient_id)
    else:
        queryset = queryset.filter(recipient_email__iexact=recipient_email)
    if unread_only:
        queryset = queryset.filter(is_read=False)
    if limit:
        queryset = queryset[:limit]
    return list(queryset)


def mark_as_read(notification_id, recipient_email=None):
    try:
        notification = Notification.objects.get(pk=notification_id)
    except (Notification.DoesNotExist, ValueError):
        raise NotFoundError('Notification', notification_id)

    if recipient_email and notification.recipient_email.lower() != recipient_email.lower():
        raise NotFoundError('Notification', notification_id)

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = timezone.now()
        if NotificationChannel.IN_APP in notification.channels:
            notification.delivery_status[NotificationChannel.IN_APP.value] = DeliveryStatus.READ.value
        notification.save(update_fields=['is_read', 'read_at', 'delivery_status', 'updated_at'])
    return notification
