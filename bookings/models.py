# bookings/models.py
from django.db import models


class BookingStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'
    CONFIRMED = 'confirmed', 'Confirmed'
    COMPLETED = 'completed', 'Completed'
    CANCELED = 'canceled', 'Canceled'
    NO_SHOW = 'no_show', 'No Show'
    REFUNDED = 'refunded', 'Refunded'


class Booking(models.Model):
    """Time-slot reservation of a service"""
    booking_number = models.CharField(max_length=50, unique=True, db_index=True)
    business_id = models.CharField(max_length=64, blank=True, db_index=True)

    # Service snapshot
    service_id = models.CharField(max_length=64, db_index=True)
    service_name = models.CharField(max_length=255)

    # Customer (empty customer_id for guest bookings)
    customer_id = models.CharField(max_length=128, blank=True, db_index=True)
    customer_email = models.EmailField()
    customer_name = models.CharField(max_length=200, blank=True)
    customer_phone = models.CharField(max_length=20, blank=True)

    status = models.CharField(max_length=20, choices=BookingStatus.choices, default=BookingStatus.PENDING, db_index=True)

    # Time slot
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()

    # Pricing
    currency = models.CharField(max_length=3, default='MWK')
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    booking_fee = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    is_partial_payment = models.BooleanField(default=False)

    notes = models.TextField(blank=True)
    staff_notes = models.TextField(blank=True)

    # Lifecycle
    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    canceled_reason = models.TextField(blank=True)
    no_show_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    refunded_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    refunded_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['-start_time']
        indexes = [
            models.Index(fields=['service_id', 'start_time']),
            models.Index(fields=['status', '-created_at']),
        ]

    def __str__(self):
        return self.booking_number
