from django.contrib import admin
from unfold.admin import ModelAdmin
from unfold.decorators import display
from .models import Category, Item


@admin.register(Category)
class CategoryAdmin(ModelAdmin):
    list_display = ("name", "display_order", "is_active")
    prepopulated_fields = {"slug": ("name",)}
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(Item)
class ItemAdmin(ModelAdmin):
    list_display = [
        "name",
        "item_type",
        "category_display",
        "base_price",
        "include_transaction_fee",
        "stock_quantity",
        "reserved_quantity",
        "is_active",
    ]
    readonly_fields = ["reserved_quantity"]
    list_filter = ["item_type", "category", "include_transaction_fee", "is_active"]
    search_fields = ["name", "sku"]
    prepopulated_fields = {"slug": ("name",)}

    @display(description="Category")
    def category_display(self, obj):
        return obj.category.name if obj.category else "-"
