# promotions/views.py
import json

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from catalog.models import Item
from core.context import get_store_context
from core.analytics import track_event
from core.pricing import round_money
from .models import PromotionStatus
from .services import get_promotions
from .utils import (
    calculate_cart_subtotal,
    calculate_promotion_price,
    find_item_promotion,
    get_item_effective_price,
    get_promotion_discount_percentage,
    is_promotion_effective,
)


def _promotion_payload(promotion):
    return {
        'id':            promotion.pk,
        'name':          promotion.name,
        'slug':          promotion.slug,
        'discount_type': promotion.discount_type,
        'discount':      str(promotion.discount),
        'discount_percentage': str(get_promotion_discount_percentage(promotion)),
        'start_date':    promotion.start_date.isoformat(),
        'end_date':      promotion.end_date.isoformat(),
        'product_ids':   promotion.product_ids,
        'service_ids':   promotion.service_ids,
    }


@require_GET
def active_promotions(request):
    """All promotions running right now (public)."""
    now = timezone.now()
    promotions = [
        p for p in get_promotions(status=PromotionStatus.ACTIVE)
        if is_promotion_effective(p, now)
    ]
    return JsonResponse({
        'success':    True,
        'promotions': [_promotion_payload(p) for p in promotions],
    })


@require_GET
def item_price(request, item_id):
    """Effective selling price of one item, with any running promotion applied."""
    item = get_object_or_404(Item, pk=item_id, is_active=True)

    store = get_store_context(request)
    promotion = find_item_promotion(item, get_promotions(status=PromotionStatus.ACTIVE))
    track_event(store, 'view_item_price', {'item_id': item.pk})

    return JsonResponse({
        'success':         True,
        'item_id':         item.pk,
        'base_price':      str(item.base_price),
        'promotion_price': str(round_money(calculate_promotion_price(item.base_price, promotion))) if promotion else None,
        'final_price':     str(get_item_effective_price(item, promotion, store.transaction_fee_rate)),
        'promotion':       _promotion_payload(promotion) if promotion else None,
    })


@require_POST
def cart_quote(request):
    """
    Price a cart: body is {"lines": [{"item_id": 1, "quantity": 2}, ...]}.
    """
    try:
        payload = json.loads(request.body or b'{}')
        requested = [(int(line['item_id']), int(line.get('quantity', 1))) for line in payload.get('lines', [])]
    except (ValueError, TypeError, KeyError, AttributeError):
        return JsonResponse({'success': False, 'error': 'Invalid cart payload'}, status=400)

    if any(quantity <= 0 for _, quantity in requested):
        return JsonResponse({'success': False, 'error': 'Quantities must be positive'}, status=400)

    items = Item.objects.in_bulk([item_id for item_id, _ in requested])
    missing = [item_id for item_id, _ in requested if item_id not in items]
    if missing:
        return JsonResponse({'success': False, 'error': f'Unknown items: {missing}'}, status=404)

    store = get_store_context(request)
    lines = [{'item': items[item_id], 'quantity': quantity} for item_id, quantity in requested]
    subtotal = calculate_cart_subtotal(
        lines,
        get_promotions(status=PromotionStatus.ACTIVE),
        default_fee_rate=store.transaction_fee_rate,
    )

    return JsonResponse({'success': True, 'currency': store.currency, 'subtotal': str(subtotal)})
