from django.db import models


class NotificationType(models.TextChoices):
    ORDER_PAID = 'order_paid', 'Order Paid'
    ORDER_SHIPPED = 'order_shipped', 'Order Shipped'
    ORDER_COMPLETED = 'order_completed', 'Order Completed'
    ORDER_CANCELED = 'order_canceled', 'Order Canceled'
    BOOKING_PAID = 'booking_paid', 'Booking Paid'
    BOOKING_CONFIRMED = 'booking_confirmed', 'Booking Confirmed'
    BOOKING_COMPLETED = 'booking_completed', 'Booking Completed'
    BOOKING_CANCELED = 'booking_canceled', 'Booking Canceled'


class NotificationChannel(models.TextChoices):
    IN_APP = 'in_app', 'In App'
    EMAIL = 'email', 'Email'


class DeliveryStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    SENT = 'sent', 'Sent'
    FAILED = 'failed', 'Failed'
    READ = 'read', 'Read'


class Notification(models.Model):
    """
    Customer-facing notification about an order or booking.
    Always stored for in-app display; optionally also emailed.
    """
    business_id = models.CharField(max_length=64, blank=True, db_index=True)

    type = models.CharField(max_length=40, choices=NotificationType.choices)
    title = models.CharField(max_length=255)
    body = models.TextField()

    # Recipient (guest customers only have an email)
    recipient_id = models.CharField(max_length=128, blank=True, db_index=True)
    recipient_email = models.EmailField(blank=True, db_index=True)

    channels = models.JSONField(default=list)
    # {channel: DeliveryStatus}
    delivery_status = models.JSONField(default=dict)
    error_message = models.TextField(blank=True)

    # Related records
    order_id = models.CharField(max_length=64, blank=True)
    booking_id = models.CharField(max_length=64, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient_id', '-created_at']),
            models.Index(fields=['recipient_email', '-created_at']),
        ]

    def __str__(self):
        target = self.recipient_email or self.recipient_id
        return f"{self.title} -> {target}"
