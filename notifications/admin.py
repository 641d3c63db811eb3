from django.contrib import admin
from unfold.admin import ModelAdmin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(ModelAdmin):
    list_display = (
        "id",
        "type",
        "title",
        "recipient_email",
        "order_id",
        "booking_id",
        "is_read",
        "created_at",
    )

    list_filter = ("type", "is_read")
    search_fields = ("recipient_email", "title", "order_id", "booking_id")
    readonly_fields = ("created_at", "read_at", "delivery_status")
