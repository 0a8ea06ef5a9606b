from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # JWT tokens (driver app and service callers)
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # Driver APIs (profile, availability, offers, current delivery)
    path('api/driver/', include('drivers.urls')),

    # Delivery dispatch, offer responses, reclaim, sweep
    path('api/deliveries/', include('deliveries.urls')),
]
