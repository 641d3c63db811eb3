from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal


class Category(models.Model):
    """Item categories"""
    name = models.CharField(max_length=100)
    slug = models.SlugField(unique=True, db_index=True)
    description = models.TextField(blank=True)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'catalog_categories'
        verbose_name_plural = 'Categories'
        ordering = ['display_order', 'name']

    def __str__(self):
        return self.name


class Item(models.Model):
    """Anything the store sells: a physical product or a bookable service"""

    ITEM_TYPES = [
        ('product', 'Product'),
        ('service', 'Service'),
    ]

    business_id = models.CharField(max_length=64, blank=True, db_index=True)

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=300, unique=True, db_index=True)
    sku = models.CharField(max_length=100, blank=True)
    item_type = models.CharField(max_length=20, choices=ITEM_TYPES, default='product', db_index=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='items')
    description = models.TextField(blank=True)

    # Pricing
    base_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    include_transaction_fee = models.BooleanField(default=False)
    # Empty means the store-wide rate applies
    transaction_fee_rate = models.DecimalField(
        max_digits=5, decimal_places=4, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0.0001')), MaxValueValidator(Decimal('0.9999'))],
    )

    # Inventory (products only)
    track_inventory = models.BooleanField(default=False)
    stock_quantity = models.IntegerField(default=0)
    # Held by unpaid orders; released on cancel, deducted from stock on payment
    reserved_quantity = models.PositiveIntegerField(default=0)

    # Services
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'catalog_items'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['slug']),
            models.Index(fields=['item_type', 'is_active']),
        ]

    def __str__(self):
        return self.name

    @property
    def is_service(self):
        return self.item_type == 'service'

    @property
    def available_quantity(self):
        return self.stock_quantity - self.reserved_quantity
