# orders/views.py
from django.contrib.admin.views.decorators import staff_member_required
from django.contrib.auth.decorators import login_required
from django.db.models import Sum
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST
import logging

from core.analytics import track_event
from core.context import get_store_context
from core.exceptions import StoreError
from core.pricing import calculate_revenue_metrics
from core.views import error_response
from .models import Order, OrderStatus
from .services import cancel_order, refund_order, update_order_status
from .status import ORDER_TRANSITIONS

logger = logging.getLogger(__name__)

# Orders whose payment has been captured and not returned
REVENUE_STATUSES = [
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.COMPLETED,
]


def _get_customer_order(request, order_number):
    if request.user.is_staff:
        return get_object_or_404(Order, order_number=order_number)
    return get_object_or_404(Order, order_number=order_number, customer_email__iexact=request.user.email)


def _order_payload(order):
    return {
        'order_number':   order.order_number,
        'status':         order.status,
        'status_display': order.get_status_display(),
        'is_final':       ORDER_TRANSITIONS.is_terminal(order.status),
        'currency':       order.currency,
        'subtotal':       str(order.subtotal),
        'total_amount':   str(order.total_amount),
        'tracking_number': order.tracking_number,
        'carrier':        order.carrier,
        'items': [
            {
                'product_id':   item.product_id,
                'product_name': item.product_name,
                'quantity':     item.quantity,
                'unit_price':   str(item.unit_price),
                'subtotal':     str(item.subtotal),
            }
            for item in order.items.all()
        ],
        'status_history': [
            {
                'from_status': entry.from_status,
                'to_status':   entry.to_status,
                'reason':      entry.reason,
                'created_at':  entry.created_at.isoformat(),
            }
            for entry in order.status_history.all()
        ],
    }


# ─────────────────────────────────────────────────────────────
# CUSTOMER
# ─────────────────────────────────────────────────────────────

@login_required
@require_GET
def order_detail(request, order_number):
    order = _get_customer_order(request, order_number)
    return JsonResponse({'success': True, 'order': _order_payload(order)})


@login_required
@require_GET
def get_order_status(request, order_number):
    order = _get_customer_order(request, order_number)
    return JsonResponse({
        'order_number':    order.order_number,
        'status':          order.status,
        'status_display':  order.get_status_display(),
        'tracking_number': order.tracking_number,
        'carrier':         order.carrier,
    })


@login_required
@require_POST
def cancel(request, order_number):
    order = _get_customer_order(request, order_number)
    try:
        order = cancel_order(
            order.pk,
            reason=request.POST.get('reason', ''),
            changed_by=str(request.user.pk),
        )
    except StoreError as e:
        return error_response(e)

    track_event(get_store_context(request), 'order_canceled', {'order_number': order.order_number})
    return JsonResponse({'success': True, 'status': order.status, 'message': 'Order cancelled.'})


# ─────────────────────────────────────────────────────────────
# STAFF
# ─────────────────────────────────────────────────────────────

@staff_member_required
@require_POST
def update_status(request, order_number):
    order = get_object_or_404(Order, order_number=order_number)
    new_status = request.POST.get('status', '').strip()

    try:
        order = update_order_status(
            order.pk,
            new_status,
            reason=request.POST.get('reason', ''),
            changed_by=str(request.user.pk),
        )
    except StoreError as e:
        logger.warning(f"Rejected status change for {order_number} to {new_status!r}: {e}")
        return error_response(e)

    return JsonResponse({'success': True, 'order': _order_payload(order)})


@staff_member_required
@require_POST
def refund(request, order_number):
    order = get_object_or_404(Order, order_number=order_number)
    amount = request.POST.get('amount', '').strip() or None

    try:
        order = refund_order(
            order.pk,
            amount=amount,
            reason=request.POST.get('reason', ''),
            changed_by=str(request.user.pk),
        )
    except StoreError as e:
        return error_response(e)

    return JsonResponse({
        'success':         True,
        'status':          order.status,
        'refunded_amount': str(order.refunded_amount),
    })


@staff_member_required
@require_GET
def revenue_summary(request):
    """Gross revenue of paid orders split into transaction fees and net."""
    store = get_store_context(request)
    orders = Order.objects.filter(status__in=REVENUE_STATUSES)
    if store.business_id:
        orders = orders.filter(business_id=store.business_id)

    gross = orders.aggregate(total=Sum('total_amount'))['total'] or 0
    metrics = calculate_revenue_metrics(gross, store.transaction_fee_rate)

    return JsonResponse({
        'success':          True,
        'currency':         store.currency,
        'order_count':      orders.count(),
        'gross_revenue':    str(metrics['gross_revenue']),
        'transaction_fees': str(metrics['transaction_fees']),
        'net_revenue':      str(metrics['net_revenue']),
    })
