"""
Order service tests: creation, status transitions, cancel and refund flows.
"""

from decimal import Decimal

import pytest

from core.exceptions import NotFoundError, ValidationError
from notifications.models import Notification, NotificationType
from orders.models import Order, OrderStatus, OrderStatusHistory
from orders.services import (
    cancel_order,
    create_order,
    get_order_by_number,
    get_orders,
    refund_order,
    update_order,
    update_order_status,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def order(product, store_context):
    return create_order(
        {'customer_email': 'ama@example.com', 'customer_id': 'cust-1', 'customer_name': 'Ama'},
        [{'product_id': product.pk, 'product_name': product.name, 'quantity': 2, 'unit_price': '100.00'}],
        context=store_context,
    )


def _set_status(order, status):
    Order.objects.filter(pk=order.pk).update(status=status)
    order.refresh_from_db()
    return order


# ── Create ───────────────────────────────────────────────────

class TestCreateOrder:
    def test_creates_pending_order(self, order):
        assert order.status == OrderStatus.PENDING
        assert order.order_number.startswith('ORD-')
        assert order.business_id == 'biz-1'
        assert order.currency == 'MWK'
        assert order.subtotal == Decimal('200.00')
        assert order.total_amount == Decimal('200.00')
        assert order.items.count() == 1

    def test_initial_history_entry(self, order):
        entry = order.status_history.get()
        assert entry.from_status == ''
        assert entry.to_status == OrderStatus.PENDING
        assert entry.reason == 'Order created'

    def test_totals_include_shipping_and_discount(self, product, store_context):
        order = create_order(
            {'customer_email': 'ama@example.com', 'shipping_amount': '15', 'discount_amount': '5'},
            [{'product_id': product.pk, 'quantity': 1, 'unit_price': 100}],
            context=store_context,
        )
        assert order.total_amount == Decimal('110.00')

    def test_unknown_product(self, store_context):
        with pytest.raises(ValidationError, match='Product not found: 9999'):
            create_order(
                {'customer_email': 'ama@example.com'},
                [{'product_id': 9999, 'quantity': 1, 'unit_price': 10}],
                context=store_context,
            )
        assert not Order.objects.exists()

    def test_insufficient_stock(self, product, store_context):
        with pytest.raises(ValidationError, match='Insufficient stock for Shea Butter Soap'):
            create_order(
                {'customer_email': 'ama@example.com'},
                [{'product_id': product.pk, 'quantity': 11, 'unit_price': 100}],
                context=store_context,
            )

    def test_requires_items_and_email(self, product, store_context):
        with pytest.raises(ValidationError):
            create_order({'customer_email': 'ama@example.com'}, [], context=store_context)
        with pytest.raises(ValidationError) as exc:
            create_order(
                {'customer_email': 'not-an-email'},
                [{'product_id': product.pk, 'quantity': 1, 'unit_price': 100}],
                context=store_context,
            )
        assert exc.value.field == 'customer_email'

    def test_lookup(self, order):
        assert get_order_by_number(order.order_number) == order
        assert get_orders(customer_id='cust-1') == [order]
        with pytest.raises(NotFoundError):
            get_order_by_number('ORD-MISSING')


# ── Status transitions ───────────────────────────────────────

class TestUpdateOrderStatus:
    def test_happy_path_to_completed(self, order):
        for status in ('paid', 'processing', 'shipped', 'completed'):
            order = update_order_status(order.pk, status)
            assert order.status == status

        order.refresh_from_db()
        assert order.paid_at is not None
        assert order.completed_at is not None
        assert [h.to_status for h in order.status_history.order_by('id')] == [
            'pending', 'paid', 'processing', 'shipped', 'completed',
        ]

    def test_history_records_reason_and_actor(self, order):
        update_order_status(order.pk, 'paid', reason='Mobile money received', changed_by='staff-7')
        entry = order.status_history.first()
        assert (entry.from_status, entry.to_status) == ('pending', 'paid')
        assert entry.reason == 'Mobile money received'
        assert entry.changed_by == 'staff-7'

    def test_terminal_order_is_frozen(self, order):
        order = _set_status(order, OrderStatus.COMPLETED)
        with pytest.raises(ValidationError, match='Invalid status transition'):
            update_order_status(order.pk, 'shipped')

        order.refresh_from_db()
        assert order.status == OrderStatus.COMPLETED
        assert not OrderStatusHistory.objects.filter(order=order, from_status='completed').exists()

    def test_generic_cancel_rejected(self, order):
        with pytest.raises(ValidationError) as exc:
            update_order_status(order.pk, 'canceled')
        assert exc.value.field == 'status'

    def test_refund_only_from_paid(self, order):
        with pytest.raises(ValidationError):
            update_order_status(order.pk, 'refunded')
        order = _set_status(order, OrderStatus.PAID)
        assert update_order_status(order.pk, 'refunded').status == OrderStatus.REFUNDED

    def test_same_status_is_noop(self, order):
        update_order_status(order.pk, 'pending')
        assert order.status_history.count() == 1

    def test_unknown_status(self, order):
        with pytest.raises(ValidationError, match='Unknown order status'):
            update_order_status(order.pk, 'lost')

    def test_unknown_field(self, order):
        with pytest.raises(ValidationError, match='Unknown order fields: total_amount'):
            update_order(order.pk, {'total_amount': 0})

    def test_non_status_update(self, order):
        order = update_order(order.pk, {'tracking_number': 'TRK-1', 'carrier': 'DHL'})
        assert order.tracking_number == 'TRK-1'
        assert order.status_history.count() == 1

    def test_missing_order(self):
        with pytest.raises(NotFoundError):
            update_order_status(424242, 'paid')


class TestOrderNotifications:
    @pytest.mark.parametrize('status,notification_type', [
        ('paid', NotificationType.ORDER_PAID),
        ('processing', None),
    ])
    def test_from_pending(self, order, status, notification_type):
        update_order_status(order.pk, status)
        notifications = Notification.objects.filter(order_id=str(order.pk))
        if notification_type is None:
            assert not notifications.exists()
        else:
            notification = notifications.get()
            assert notification.type == notification_type
            assert notification.recipient_email == 'ama@example.com'
            assert order.order_number in notification.title

    def test_shipped_and_completed(self, order):
        order = _set_status(order, OrderStatus.PROCESSING)
        update_order_status(order.pk, 'shipped')
        update_order_status(order.pk, 'completed')
        types = set(Notification.objects.filter(order_id=str(order.pk)).values_list('type', flat=True))
        assert types == {NotificationType.ORDER_SHIPPED.value, NotificationType.ORDER_COMPLETED.value}

    def test_failed_notification_does_not_undo_status(self, order, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError('database is locked')

        monkeypatch.setattr('notifications.services.create_notification', boom)
        order = update_order_status(order.pk, 'paid')
        order.refresh_from_db()
        assert order.status == OrderStatus.PAID


# ── Cancel / refund ──────────────────────────────────────────

class TestCancelOrder:
    def test_cancel_pending(self, order):
        order = cancel_order(order.pk, reason='  Changed my mind  ')
        order.refresh_from_db()
        assert order.status == OrderStatus.CANCELED
        assert order.canceled_reason == 'Changed my mind'
        assert order.canceled_at is not None
        assert order.status_history.first().to_status == 'canceled'
        assert Notification.objects.get(order_id=str(order.pk)).type == NotificationType.ORDER_CANCELED

    def test_cancel_shipped(self, order):
        order = _set_status(order, OrderStatus.SHIPPED)
        assert cancel_order(order.pk).status == OrderStatus.CANCELED

    def test_cannot_cancel_completed(self, order):
        order = _set_status(order, OrderStatus.COMPLETED)
        with pytest.raises(ValidationError, match='Cannot cancel a completed order'):
            cancel_order(order.pk)

    def test_cannot_cancel_twice(self, order):
        cancel_order(order.pk)
        with pytest.raises(ValidationError, match='Order is already canceled'):
            cancel_order(order.pk)

    def test_cannot_cancel_refunded(self, order):
        order = _set_status(order, OrderStatus.REFUNDED)
        with pytest.raises(ValidationError, match='Cannot cancel a refunded order'):
            cancel_order(order.pk)


class TestRefundOrder:
    def test_full_refund(self, order):
        order = _set_status(order, OrderStatus.PAID)
        order = refund_order(order.pk, reason='Damaged')
        assert order.status == OrderStatus.REFUNDED
        assert order.refunded_amount == Decimal('200.00')
        assert order.refunded_reason == 'Damaged'
        assert order.refunded_at is not None

    def test_partial_refund(self, order):
        order = _set_status(order, OrderStatus.PAID)
        assert refund_order(order.pk, amount='50').refunded_amount == Decimal('50.00')

    @pytest.mark.parametrize('amount', ['0', '-1', '200.01'])
    def test_amount_out_of_range(self, order, amount):
        order = _set_status(order, OrderStatus.PAID)
        with pytest.raises(ValidationError):
            refund_order(order.pk, amount=amount)

    def test_refund_unpaid_order_rejected(self, order):
        with pytest.raises(ValidationError, match='Invalid status transition'):
            refund_order(order.pk)


def test_delete_order_removes_lines_and_history(order):
    from orders.models import OrderItem
    from orders.services import delete_order

    delete_order(order.pk)
    assert not Order.objects.exists()
    assert not OrderItem.objects.exists()
    assert not OrderStatusHistory.objects.exists()
    with pytest.raises(NotFoundError):
        delete_order(order.pk)


# ── Inventory ────────────────────────────────────────────────

class TestInventory:
    def _order(self, product, store_context, quantity):
        return create_order(
            {'customer_email': 'ama@example.com'},
            [{'product_id': product.pk, 'quantity': quantity, 'unit_price': '100.00'}],
            context=store_context,
        )

    def test_create_reserves_stock(self, order, product):
        product.refresh_from_db()
        assert product.stock_quantity == 10
        assert product.reserved_quantity == 2
        assert product.available_quantity == 8

    def test_reserved_stock_cannot_be_sold_twice(self, product, store_context):
        self._order(product, store_context, 10)
        with pytest.raises(ValidationError, match='Insufficient stock for Shea Butter Soap'):
            self._order(product, store_context, 10)

        assert Order.objects.count() == 1
        product.refresh_from_db()
        assert product.reserved_quantity == 10

    def test_untracked_items_are_not_reserved(self, service, store_context):
        create_order(
            {'customer_email': 'ama@example.com'},
            [{'product_id': service.pk, 'quantity': 3, 'unit_price': '50.00'}],
            context=store_context,
        )
        service.refresh_from_db()
        assert service.reserved_quantity == 0

    def test_cancel_releases_reservation(self, order, product):
        cancel_order(order.pk)
        product.refresh_from_db()
        assert product.reserved_quantity == 0
        assert product.stock_quantity == 10

        order.refresh_from_db()
        assert order.inventory_released

    def test_release_is_applied_once(self, order, product):
        from orders.services import release_inventory

        cancel_order(order.pk)
        order.refresh_from_db()
        assert release_inventory(order) is False
        product.refresh_from_db()
        assert product.reserved_quantity == 0

    def test_paid_deducts_stock(self, order, product):
        update_order_status(order.pk, 'paid')
        product.refresh_from_db()
        assert product.stock_quantity == 8
        assert product.reserved_quantity == 0

        order.refresh_from_db()
        assert order.inventory_updated

    def test_second_paid_adjustment_is_noop(self, order, product):
        from orders.services import adjust_inventory_for_paid_order

        update_order_status(order.pk, 'paid')
        order.refresh_from_db()
        assert adjust_inventory_for_paid_order(order) is False
        product.refresh_from_db()
        assert product.stock_quantity == 8

    def test_cancel_after_payment_keeps_deduction(self, order, product):
        update_order_status(order.pk, 'paid')
        cancel_order(order.pk)
        product.refresh_from_db()
        assert (product.stock_quantity, product.reserved_quantity) == (8, 0)
