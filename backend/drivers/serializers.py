from rest_framework import serializers
from drivers.models import Driver


class DriverProfileSerializer(serializers.ModelSerializer):
    """
    Full driver profile serializer
    """
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = Driver
        fields = [
            "id",
            "username",
            "vehicle_number",
            "is_available",
            "is_on_delivery",
            "rating",
            "last_status_update",
        ]
        read_only_fields = ["id", "is_on_delivery", "rating", "last_status_update"]


class DriverStatusSerializer(serializers.Serializer):
    """
    Serializer for updating driver availability.
    """
    is_available = serializers.BooleanField()
