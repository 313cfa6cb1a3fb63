from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ReservationViewSet

app_name = 'reservations'

router = DefaultRouter()
router.register(r'', ReservationViewSet, basename='reservation')

urlpatterns = [
    path('', include(router.urls)),
]

# Available endpoints:
# GET    /api/reservations/                   - List own reservations
# POST   /api/reservations/                   - Reserve (authorizes a hold)
# GET    /api/reservations/{id}/              - Get reservation details
# POST   /api/reservations/{id}/cancel/       - Cancel and release the hold
# POST   /api/reservations/{id}/pickup/       - Record pickup (pickup point staff)
# POST   /api/reservations/{id}/return/       - Record return (pickup point staff)
