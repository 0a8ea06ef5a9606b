from rest_framework import serializers

from .models import Delivery, DeliveryOffer


class DeliverySerializer(serializers.ModelSerializer):
    """Serializer for Deliveries"""

    class Meta:
        model = Delivery
        fields = ['id', 'status', 'offered_driver', 'offer_expires_at', 'driver',
                  'pickup_address', 'dropoff_address', 'created_at', 'assigned_at',
                  'completed_at']
        read_only_fields = fields


class DeliveryOfferSerializer(serializers.ModelSerializer):
    """Serializer for ledger rows"""

    class Meta:
        model = DeliveryOffer
        fields = ['id', 'delivery', 'driver', 'status', 'offered_at', 'expires_at', 'responded_at']
        read_only_fields = fields


class DriverOfferSerializer(serializers.ModelSerializer):
    """What a driver sees for an offer waiting on them"""
    delivery = DeliverySerializer(read_only=True)

    class Meta:
        model = DeliveryOffer
        fields = ['id', 'delivery', 'status', 'offered_at', 'expires_at']


class OfferResponseSerializer(serializers.Serializer):
    """Serializer for a driver's answer to an offer"""
    action = serializers.ChoiceField(choices=['accept', 'decline'])


class ReclaimSerializer(serializers.Serializer):
    """Defaults to the calling driver when driver_id is omitted"""
    driver_id = serializers.IntegerField(required=False)
