from django.contrib import admin
from unfold.admin import ModelAdmin
from .models import Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ("from_status", "to_status", "reason", "changed_by", "created_at")
    can_delete = False


@admin.register(Order)
class OrderAdmin(ModelAdmin):
    list_display = ("order_number", "customer_email", "status", "total_amount", "currency", "created_at")
    list_filter = ("status", "fulfillment_method")
    search_fields = ("order_number", "customer_email", "customer_name")
    # Status moves go through the order service so the transition rules apply
    readonly_fields = ("status", "paid_at", "completed_at", "canceled_at", "refunded_at", "inventory_released", "inventory_updated")
    inlines = [OrderItemInline, OrderStatusHistoryInline]
