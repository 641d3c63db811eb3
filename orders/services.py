# orders/services.py
"""
Order CRUD.

Status changes requested through update_order() must pass the order
transition rules. Cancellation is its own flow: the rules never admit a
generic move into 'canceled', so cancel_order() checks its own
preconditions instead.

Tracked stock moves with the order: reserved on creation, released on
cancel, deducted from stock_quantity once the order is paid.
"""

import logging
import random
import string
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from catalog.models import Item
from core.context import build_store_context
from core.exceptions import NotFoundError, ValidationError
from core.pricing import round_money, safe_decimal
from core.validation import validate_email, validate_non_negative_number, validate_required
from notifications.services import notify_order_cancellation, notify_order_status_change
from .models import Order, OrderItem, OrderStatus, OrderStatusHistory
from .status import ORDER_TRANSITIONS

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    'status', 'customer_name', 'tracking_number', 'carrier', 'notes',
    'payment_method', 'payment_transaction_id', 'shipping_address',
    'refunded_amount', 'refunded_reason', 'canceled_reason',
}

# Lifecycle timestamp stamped when an order enters the status
STATUS_TIMESTAMPS = {
    OrderStatus.PAID:      'paid_at',
    OrderStatus.COMPLETED: 'completed_at',
    OrderStatus.CANCELED:  'canceled_at',
    OrderStatus.REFUNDED:  'refunded_at',
}


def generate_order_number():
    timestamp  = timezone.now().strftime('%Y%m%d')
    random_str = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"ORD-{timestamp}-{random_str}"


# ─────────────────────────────────────────────────────────────
# READ
# ─────────────────────────────────────────────────────────────

def get_order_by_id(order_id):
    try:
        return Order.objects.get(pk=order_id)
    except (Order.DoesNotExist, ValueError):
        raise NotFoundError('Order', order_id)


def _get_order_for_update(order_id):
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except (Order.DoesNotExist, ValueError):
        raise NotFoundError('Order', order_id)


def get_order_by_number(order_number):
    try:
        return Order.objects.get(order_number=order_number)
    except Order.DoesNotExist:
        raise NotFoundError('Order', order_number)


def get_orders(status=None, customer_id=None, business_id=None, limit=None):
    queryset = Order.objects.all()
    if status:
        queryset = queryset.filter(status=status)
    if customer_id:
        queryset = queryset.filter(customer_id=customer_id)
    if business_id:
        queryset = queryset.filter(business_id=business_id)
    queryset = queryset.order_by('-created_at')
    if limit:
        queryset = queryset[:limit]
    return list(queryset)


# ─────────────────────────────────────────────────────────────
# INVENTORY
# ─────────────────────────────────────────────────────────────

def validate_inventory(items):
    """Every line must reference a known item with enough unreserved stock."""
    for line in items:
        product_id = line['product_id']
        try:
            item = Item.objects.filter(pk=product_id).first()
        except (ValueError, TypeError):
            item = None
        if item is None:
            raise ValidationError(f"Product not found: {product_id}", 'items')

        if item.item_type != 'product' or not item.track_inventory:
            continue

        if item.available_quantity < line['quantity']:
            raise ValidationError(
                f"Insufficient stock for {item.name}. "
                f"Available: {item.available_quantity}, Requested: {line['quantity']}",
                'items',
            )


def _locked_tracked_items(order):
    """(order line, locked Item) for each line that moves stock. Run inside a transaction."""
    for line in order.items.all():
        try:
            item = Item.objects.select_for_update().filter(pk=line.product_id).first()
        except (ValueError, TypeError):
            item = None
        if item is None:
            logger.warning(f"Item {line.product_id} on order {order.order_number} no longer exists")
            continue
        if item.item_type != 'product' or not item.track_inventory:
            continue
        yield line, item


def reserve_inventory(order):
    """Hold stock for a new order. Raises if any line no longer fits."""
    for line, item in _locked_tracked_items(order):
        if item.available_quantity < line.quantity:
            raise ValidationError(f"Insufficient stock for product: {item.name}", 'items')
        item.reserved_quantity += line.quantity
        item.save(update_fields=['reserved_quantity', 'updated_at'])

    logger.info(f"Reserved inventory for order {order.order_number}")


def release_inventory(order):
    """Give back the stock a canceled order was holding."""
    if order.inventory_released or order.inventory_updated:
        logger.info(f"Inventory already settled for order {order.order_number}")
        return False

    for line, item in _locked_tracked_items(order):
        item.reserved_quantity = max(0, item.reserved_quantity - line.quantity)
        item.save(update_fields=['reserved_quantity', 'updated_at'])

    order.inventory_released = True
    order.save(update_fields=['inventory_released', 'updated_at'])
    logger.info(f"Released inventory for order {order.order_number}")
    return True


def adjust_inventory_for_paid_order(order):
    """Turn a paid order's reservation into a stock deduction."""
    if order.inventory_updated:
        logger.info(f"Inventory already updated for order {order.order_number}")
        return False

    for line, item in _locked_tracked_items(order):
        item.stock_quantity = max(0, item.stock_quantity - line.quantity)
        item.reserved_quantity = max(0, item.reserved_quantity - line.quantity)
        item.save(update_fields=['stock_quantity', 'reserved_quantity', 'updated_at'])
        if item.available_quantity <= 0:
            logger.info(f"{item.name} is out of stock")

    order.inventory_updated = True
    order.save(update_fields=['inventory_updated', 'updated_at'])
    logger.info(f"Deducted inventory for paid order {order.order_number}")
    return True


# ─────────────────────────────────────────────────────────────
# CREATE
# ─────────────────────────────────────────────────────────────

def _clean_items(items):
    if not items:
        raise ValidationError('Order must contain at least one item', 'items')

    cleaned = []
    for line in items:
        validate_required(line.get('product_id'), 'product_id')
        try:
            quantity = int(line.get('quantity', 0))
        except (TypeError, ValueError):
            quantity = 0
        if quantity <= 0:
            raise ValidationError('quantity must be a positive number', 'quantity')
        validate_non_negative_number(line.get('unit_price'), 'unit_price')

        unit_price = round_money(line['unit_price'])
        cleaned.append({
            'product_id':   str(line['product_id']),
            'product_name': line.get('product_name', ''),
            'sku':          line.get('sku', ''),
            'quantity':     quantity,
            'unit_price':   unit_price,
            'subtotal':     round_money(unit_price * quantity),
        })
    return cleaned


def create_order(data, items, context=None):
    """
    Create a pending order from checkout data and cart lines.
    Each line: product_id, product_name, quantity, unit_price (snapshot).
    """
    validate_email(data.get('customer_email'), 'customer_email')
    lines = _clean_items(items)
    validate_inventory(lines)

    context = context or build_store_context()

    subtotal = sum((line['subtotal'] for line in lines), Decimal('0.00'))
    tax      = safe_decimal(data.get('tax_amount', 0))
    shipping = safe_decimal(data.get('shipping_amount', 0))
    discount = safe_decimal(data.get('discount_amount', 0))
    total    = max(Decimal('0.00'), subtotal + tax + shipping - discount)

    with transaction.atomic():
        order = Order.objects.create(
            order_number       = generate_order_number(),
            business_id        = context.business_id,
            customer_id        = data.get('customer_id', '') or '',
            customer_email     = data['customer_email'],
            customer_name      = data.get('customer_name', ''),
            currency           = data.get('currency') or context.currency,
            subtotal           = subtotal,
            tax_amount         = tax,
            shipping_amount    = shipping,
            discount_amount    = discount,
            total_amount       = round_money(total),
            fulfillment_method = data.get('fulfillment_method', 'delivery'),
            shipping_address   = data.get('shipping_address') or {},
            notes              = data.get('notes', ''),
        )
        OrderItem.objects.bulk_create([OrderItem(order=order, **line) for line in lines])
        OrderStatusHistory.objects.create(
            order      = order,
            from_status= '',
            to_status  = order.status,
            reason     = 'Order created',
            changed_by = order.customer_id or 'guest',
        )
        reserve_inventory(order)

    logger.info(f"Order {order.order_number} created for {order.customer_email} ({order.total_amount} {order.currency})")
    return order


# ─────────────────────────────────────────────────────────────
# UPDATE
# ─────────────────────────────────────────────────────────────

def _record_status_change(order, previous_status, reason, changed_by):
    OrderStatusHistory.objects.create(
        order       = order,
        from_status = previous_status,
        to_status   = order.status,
        reason      = reason or '',
        changed_by  = changed_by,
    )


def _stamp_status(order, new_status):
    order.status = new_status
    timestamp_field = STATUS_TIMESTAMPS.get(new_status)
    if timestamp_field:
        setattr(order, timestamp_field, timezone.now())


def update_order(order_id, updates, reason=None, changed_by='admin'):
    """
    Merge updates into an order. A status change must be an allowed
    transition; it is recorded in the history and the customer is notified.
    """
    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown order fields: {', '.join(sorted(unknown))}")

    with transaction.atomic():
        order = _get_order_for_update(order_id)
        previous_status = order.status
        new_status = updates.get('status')
        is_status_update = bool(new_status) and new_status != previous_status

        if new_status and new_status not in OrderStatus.values:
            raise ValidationError(f"Unknown order status: {new_status}", 'status')

        if is_status_update and not ORDER_TRANSITIONS.is_valid_transition(previous_status, new_status):
            raise ValidationError(
                f"Cannot change order status from {previous_status} to {new_status}. Invalid status transition.",
                'status',
            )

        for field, value in updates.items():
            if field != 'status':
                setattr(order, field, value)
        if is_status_update:
            _stamp_status(order, new_status)
        order.save()

        if is_status_update:
            _record_status_change(order, previous_status, reason, changed_by)
            if new_status == OrderStatus.PAID:
                adjust_inventory_for_paid_order(order)

    if is_status_update:
        logger.info(f"Order {order.order_number} status {previous_status} -> {order.status} by {changed_by}")
        notify_order_status_change(order, previous_status)

    return order


def update_order_status(order_id, new_status, reason=None, changed_by='admin'):
    return update_order(order_id, {'status': new_status}, reason=reason, changed_by=changed_by)


def cancel_order(order_id, reason=None, changed_by='customer'):
    """Cancel from any non-final status and give back reserved stock."""
    with transaction.atomic():
        order = _get_order_for_update(order_id)

        if order.status == OrderStatus.COMPLETED:
            raise ValidationError('Cannot cancel a completed order', 'status')
        if order.status == OrderStatus.CANCELED:
            raise ValidationError('Order is already canceled', 'status')
        if ORDER_TRANSITIONS.is_terminal(order.status):
            raise ValidationError(f"Cannot cancel a {order.status} order", 'status')

        previous_status = order.status
        _stamp_status(order, OrderStatus.CANCELED)
        if reason and reason.strip():
            order.canceled_reason = reason.strip()
        order.save()
        _record_status_change(order, previous_status, reason, changed_by)
        release_inventory(order)

    logger.info(f"Order {order.order_number} canceled by {changed_by}")
    notify_order_cancellation(order)
    return order


def refund_order(order_id, amount=None, reason=None, changed_by='admin'):
    """Refund a paid order, fully unless a smaller amount is given."""
    order = get_order_by_id(order_id)

    refund_amount = order.total_amount if amount is None else round_money(amount)
    if refund_amount <= 0 or refund_amount > order.total_amount:
        raise ValidationError('Refund amount must be between 0 and the order total', 'refunded_amount')

    updates = {
        'status':          OrderStatus.REFUNDED,
        'refunded_amount': refund_amount,
    }
    if reason:
        updates['refunded_reason'] = reason
    return update_order(order_id, updates, reason=reason, changed_by=changed_by)


def delete_order(order_id):
    order = get_order_by_id(order_id)
    order.delete()
    logger.info(f"Order {order_id} deleted")
