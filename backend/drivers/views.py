from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from drivers.models import Driver
from drivers.serializers import (
    DriverProfileSerializer,
    DriverStatusSerializer,
)
from deliveries.serializers import DeliverySerializer, DriverOfferSerializer

from drivers import services

# Utility: Ensure request.user is a driver
def require_driver(user):
    try:
        profile = user.driver_profile
        return True, profile
    except Driver.DoesNotExist:
        return False, Response({"error": "Only drivers allowed"}, status=403)


class DriverProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile  # Response object

        serializer = DriverProfileSerializer(profile, context={"request": request})
        return Response(serializer.data)


class DriverStatusView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        return Response({
            "is_available": profile.is_available,
            "is_on_delivery": profile.is_on_delivery,
        })

    def put(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        serializer = DriverStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        is_available = serializer.validated_data["is_available"]

        services.update_driver_availability(profile, is_available)

        return Response({
            "message": "Available for offers" if is_available else "Offline",
            "is_available": is_available,
        })


class DriverOffersView(APIView):
    """Pending offers for the calling driver; the driver app polls this."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        from services.matching.offer_ledger import pending_offers_for_driver

        offers = pending_offers_for_driver(profile.id)
        serializer = DriverOfferSerializer(offers, many=True, context={"request": request})

        return Response({"offers": serializer.data, "count": len(serializer.data)})


class DriverCurrentDeliveryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_driver(request.user)
        if ok is False:
            return profile

        from services.delivery_management import get_current_driver_delivery

        delivery = get_current_driver_delivery(profile.id)
        if not delivery:
            return Response({"message": "No active delivery"}, status=404)

        serializer = DeliverySerializer(delivery, context={"request": request})
        return Response(serializer.data)
