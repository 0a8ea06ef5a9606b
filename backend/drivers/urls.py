from django.urls import path
from .views import (
    DriverProfileView,
    DriverStatusView,
    DriverOffersView,
    DriverCurrentDeliveryView,
)

urlpatterns = [
    path("profile/", DriverProfileView.as_view(), name="driver-profile"),
    path("status/", DriverStatusView.as_view(), name="driver-status"),
    path("offers/", DriverOffersView.as_view(), name="driver-offers"),
    path("current-delivery/", DriverCurrentDeliveryView.as_view(), name="driver-current-delivery"),
]
