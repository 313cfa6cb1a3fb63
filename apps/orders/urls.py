from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import OrderViewSet

app_name = 'orders'

router = DefaultRouter()
router.register(r'', OrderViewSet, basename='order')

urlpatterns = [
    path('', include(router.urls)),
]

# Available endpoints:
# GET    /api/orders/                 - List visible orders (?drop=<uuid>)
# GET    /api/orders/{id}/            - Get order with items
