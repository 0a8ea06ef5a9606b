from django.contrib import admin
from drivers.models import Driver


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    """Admin panel for managing Drivers"""

    list_display = [
        "user",
        "vehicle_number",
        "is_available",
        "is_on_delivery",
        "rating",
        "last_status_update",
    ]

    list_filter = [
        "is_available",
        "is_on_delivery",
    ]

    search_fields = [
        "user__username",
        "vehicle_number",
    ]

    readonly_fields = [
        "last_status_update",
    ]

    ordering = ("user__username",)
