from django.contrib import admin
from unfold.admin import ModelAdmin
from unfold.decorators import display
from .models import Promotion
from .utils import is_promotion_effective


@admin.register(Promotion)
class PromotionAdmin(ModelAdmin):
    list_display = ("name", "status", "discount_type", "discount", "start_date", "end_date", "effective_display")
    list_filter = ("status", "discount_type")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}

    @display(description="Running now", boolean=True)
    def effective_display(self, obj):
        return is_promotion_effective(obj)
