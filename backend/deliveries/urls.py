from django.urls import path
from . import views

app_name = 'deliveries'

urlpatterns = [
    # Dispatcher
    path('<int:delivery_id>/dispatch/', views.dispatch_delivery, name='dispatch-delivery'),
    path('offers/sweep/', views.sweep_offers, name='sweep-offers'),

    # Driver actions
    path('offers/<int:offer_id>/respond/', views.respond_to_delivery_offer, name='respond-offer'),
    path('<int:delivery_id>/reclaim/', views.reclaim, name='reclaim-delivery'),
    path('<int:delivery_id>/complete/', views.complete, name='complete-delivery'),
]
