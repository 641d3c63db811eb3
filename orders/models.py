# orders/models.py
from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'
    PROCESSING = 'processing', 'Processing'
    SHIPPED = 'shipped', 'Shipped'
    COMPLETED = 'completed', 'Completed'
    CANCELED = 'canceled', 'Canceled'
    REFUNDED = 'refunded', 'Refunded'


class FulfillmentMethod(models.TextChoices):
    DELIVERY = 'delivery', 'Delivery'
    PICKUP = 'pickup', 'Pickup'


class Order(models.Model):
    """Main order model"""

    # Order Identifiers
    order_number = models.CharField(max_length=50, unique=True, db_index=True)
    business_id = models.CharField(max_length=64, blank=True, db_index=True)

    # Customer (empty customer_id for guest checkout)
    customer_id = models.CharField(max_length=128, blank=True, db_index=True)
    customer_email = models.EmailField()
    customer_name = models.CharField(max_length=200, blank=True)

    # Status
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True)

    # Pricing
    currency = models.CharField(max_length=3, default='MWK')
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    shipping_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)

    # Delivery
    fulfillment_method = models.CharField(max_length=20, choices=FulfillmentMethod.choices, default=FulfillmentMethod.DELIVERY)
    shipping_address = models.JSONField(default=dict, blank=True)
    tracking_number = models.CharField(max_length=255, blank=True)
    carrier = models.CharField(max_length=100, blank=True)

    # Payment
    payment_method = models.CharField(max_length=50, blank=True)
    payment_transaction_id = models.CharField(max_length=255, blank=True)

    notes = models.TextField(blank=True)

    # Lifecycle
    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    canceled_reason = models.TextField(blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    refunded_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    refunded_reason = models.TextField(blank=True)

    # Inventory bookkeeping, each step applied at most once
    inventory_released = models.BooleanField(default=False)
    inventory_updated = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer_id', '-created_at']),
            models.Index(fields=['status', '-created_at']),
        ]

    def __str__(self):
        return self.order_number


class OrderItem(models.Model):
    """Individual items within an order (price snapshot at order time)"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')

    product_id = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)
    sku = models.CharField(max_length=100, blank=True)

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class OrderStatusHistory(models.Model):
    """Track order status changes"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    from_status = models.CharField(max_length=20, blank=True)
    to_status = models.CharField(max_length=20)

    reason = models.TextField(blank=True)
    changed_by = models.CharField(max_length=128, default='system')

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_status_history'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['order', '-created_at']),
        ]
