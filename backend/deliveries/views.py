import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from drivers.views import require_driver
from services.exceptions import DispatchError
from services.matching import Dispatcher
from services.delivery_management import (
    OfferResponseResult,
    complete_delivery,
    reclaim_delivery,
    respond_to_offer,
    sweep_expired_offers,
)
from .serializers import (
    DeliveryOfferSerializer,
    DeliverySerializer,
    OfferResponseSerializer,
    ReclaimSerializer,
)

logger = logging.getLogger(__name__)


def _error_response(exc: DispatchError, **extra):
    """Structured error body; status code comes from the exception class."""
    return Response(
        {
            'success': False,
            'error': exc.error_code,
            'message': exc.message,
            **extra,
        },
        status=exc.status_code
    )


# ==================== Dispatcher APIs (staff / service callers) ====================

@api_view(['POST'])
@permission_classes([IsAdminUser])
def dispatch_delivery(request, delivery_id):
    """Offer a pending delivery to the best eligible driver."""
    try:
        result = Dispatcher().dispatch(delivery_id)
    except DispatchError as exc:
        return _error_response(exc, delivery_id=delivery_id)

    if result.parked:
        return Response({
            'parked': True,
            'delivery_id': delivery_id,
            'message': 'No available drivers',
        })

    return Response({
        'offer': DeliveryOfferSerializer(result.offer).data,
        'driver_id': result.driver_id,
    })


@api_view(['POST'])
@permission_classes([IsAdminUser])
def sweep_offers(request):
    """
    Expire offers whose response window has passed and redispatch their deliveries.

    Normally driven by Celery beat; exposed for external schedulers.
    """
    try:
        result = sweep_expired_offers()
    except DispatchError as exc:
        return _error_response(exc)

    return Response({
        **result.as_dict(),
        'message': 'No expired offers' if result.nothing_to_do else 'Expired offers processed',
    })


# ==================== Driver APIs ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def respond_to_delivery_offer(request, offer_id):
    """Accept or decline an offer made to the calling driver."""
    ok, profile = require_driver(request.user)
    if ok is False:
        return profile

    serializer = OfferResponseSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        result = respond_to_offer(
            offer_id,
            serializer.validated_data['action'],
            driver_id=profile.id,
        )
    except DispatchError as exc:
        return _error_response(exc, offer_id=offer_id)

    if result.outcome == OfferResponseResult.EXPIRED:
        return Response(
            {
                'success': False,
                'error': 'offer_expired',
                'message': 'This offer has timed out.',
                'delivery_id': result.delivery_id,
            },
            status=status.HTTP_410_GONE
        )

    return Response({
        'success': True,
        'action': result.outcome,
        'delivery_id': result.delivery_id,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reclaim(request, delivery_id):
    """Take back a delivery the calling driver declined earlier, if still unassigned."""
    ok, profile = require_driver(request.user)
    if ok is False:
        return profile

    serializer = ReclaimSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    driver_id = serializer.validated_data.get('driver_id', profile.id)

    try:
        result = reclaim_delivery(delivery_id, driver_id, caller_user_id=request.user.id)
    except DispatchError as exc:
        return _error_response(exc, delivery_id=delivery_id)

    return Response({
        'success': True,
        'delivery_id': result.delivery_id,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complete(request, delivery_id):
    """Driver marks their assigned delivery as completed."""
    ok, profile = require_driver(request.user)
    if ok is False:
        return profile

    try:
        delivery = complete_delivery(delivery_id, profile.id)
    except DispatchError as exc:
        return _error_response(exc, delivery_id=delivery_id)

    return Response({
        'success': True,
        'delivery': DeliverySerializer(delivery).data,
        'message': 'Delivery completed successfully',
    })
