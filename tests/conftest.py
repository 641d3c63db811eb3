from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from catalog.models import Item
from core.context import StoreContext
from promotions.models import Promotion


@pytest.fixture
def store_context():
    return StoreContext(
        business_id='biz-1',
        currency='MWK',
        transaction_fee_rate=Decimal('0.03'),
    )


@pytest.fixture
def product(db):
    return Item.objects.create(
        name='Shea Butter Soap',
        slug='shea-butter-soap',
        item_type='product',
        base_price=Decimal('100.00'),
        track_inventory=True,
        stock_quantity=10,
    )


@pytest.fixture
def service(db):
    return Item.objects.create(
        name='Haircut',
        slug='haircut',
        item_type='service',
        base_price=Decimal('50.00'),
        duration_minutes=45,
    )


@pytest.fixture
def make_promotion(db):
    def _make(**overrides):
        now = timezone.now()
        data = {
            'name': 'Summer Sale',
            'status': 'active',
            'discount_type': 'percentage',
            'discount': Decimal('20'),
            'start_date': now - timedelta(days=1),
            'end_date': now + timedelta(days=1),
            'product_ids': [],
            'service_ids': [],
        }
        data.update(overrides)
        return Promotion.objects.create(**data)
    return _make


@pytest.fixture(autouse=True)
def _no_email(settings):
    settings.NOTIFICATIONS_EMAIL_ENABLED = False
    settings.DISABLED_NOTIFICATION_TYPES = []
