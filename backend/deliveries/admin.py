"""Tells what to show in the Django admin interface for deliveries app"""

from django.contrib import admin
from .models import Delivery, DeliveryOffer

@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    """Delivery admin"""
    list_display = ['id', 'status', 'offered_driver', 'offer_expires_at', 'driver', 'created_at', 'assigned_at']
    list_filter = ['status', 'created_at']
    search_fields = ['pickup_address', 'dropoff_address', 'driver__user__username']
    readonly_fields = ['created_at', 'assigned_at', 'completed_at']
    date_hierarchy = 'created_at'


@admin.register(DeliveryOffer)
class DeliveryOfferAdmin(admin.ModelAdmin):
    list_display = ("delivery", "driver", "status", "offered_at", "expires_at", "responded_at")
    list_filter = ("status",)
    search_fields = ("delivery__id", "driver__user__username")
