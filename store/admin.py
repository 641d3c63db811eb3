from django.contrib import admin
from unfold.admin import ModelAdmin
from .models import Business


@admin.register(Business)
class BusinessAdmin(ModelAdmin):
    list_display = ("name", "email", "currency", "transaction_fee_rate", "is_active")
    prepopulated_fields = {"slug": ("name",)}
    search_fields = ("name", "email")
    list_filter = ("is_active",)
