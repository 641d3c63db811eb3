# promotions/models.py
from django.db import models
from django.core.validators import MinValueValidator


class PromotionStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'
    EXPIRED = 'expired', 'Expired'


class DiscountType(models.TextChoices):
    PERCENTAGE = 'percentage', 'Percentage'
    FIXED = 'fixed', 'Fixed Amount'


class Promotion(models.Model):
    """Time-boxed discount on a set of products and/or services"""
    business_id = models.CharField(max_length=64, blank=True, db_index=True)

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, blank=True)
    description = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=PromotionStatus.choices, default=PromotionStatus.ACTIVE)

    discount_type = models.CharField(max_length=20, choices=DiscountType.choices, default=DiscountType.PERCENTAGE)
    discount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])

    # Validity
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    # Applicability (ids as stored by the catalog, compared as strings)
    product_ids = models.JSONField(default=list, blank=True)
    service_ids = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'promotions'
        ordering = ['-start_date']
        indexes = [
            models.Index(fields=['status', 'start_date', 'end_date']),
        ]

    def __str__(self):
        return self.name
