from django.contrib import admin
from unfold.admin import ModelAdmin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(ModelAdmin):
    list_display = ("booking_number", "service_name", "customer_email", "start_time", "status", "total_amount")
    list_filter = ("status",)
    search_fields = ("booking_number", "customer_email", "service_name")
    readonly_fields = ("status", "paid_at", "completed_at", "canceled_at", "no_show_at", "refunded_at")
