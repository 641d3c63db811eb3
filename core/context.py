# core/context.py
"""
Per-request store context.

Holds the business id, currency, fee rate and analytics id that code used to
read from module-level globals. Built once per request and passed explicitly
to the services that need it.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

from .pricing import get_default_fee_rate, safe_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreContext:
    business_id: str = ''
    currency: str = 'MWK'
    transaction_fee_rate: Decimal = Decimal('0.03')
    analytics_tracking_id: str = ''

    @property
    def analytics_enabled(self):
        return bool(self.analytics_tracking_id)


def build_store_context(business=None):
    """
    Build a context from the business profile and settings.
    Falls back to the first active business when none is given.
    """
    if business is None:
        from store.models import Business
        business = Business.objects.filter(is_active=True).order_by('created_at').first()

    currency = getattr(settings, 'DEFAULT_CURRENCY', 'MWK')
    fee_rate = get_default_fee_rate()
    tracking_id = getattr(settings, 'ANALYTICS_TRACKING_ID', '') or ''

    if business is None:
        logger.debug("No business profile configured, using settings defaults")
        return StoreContext(
            currency=currency,
            transaction_fee_rate=fee_rate,
            analytics_tracking_id=tracking_id,
        )

    return StoreContext(
        business_id=str(business.pk),
        currency=business.currency or currency,
        transaction_fee_rate=safe_decimal(business.transaction_fee_rate) if business.transaction_fee_rate else fee_rate,
        analytics_tracking_id=business.analytics_tracking_id or tracking_id,
    )


def get_store_context(request):
    """Return the context for this request, building it on first use."""
    context = getattr(request, '_store_context', None)
    if context is None:
        context = build_store_context()
        request._store_context = context
    return context
