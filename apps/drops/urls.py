from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DropViewSet

app_name = 'drops'

router = DefaultRouter()
router.register(r'', DropViewSet, basename='drop')

urlpatterns = [
    path('', include(router.urls)),
]

# Available endpoints:
# GET    /api/drops/                          - List drops
# POST   /api/drops/                          - Create drop (admin)
# GET    /api/drops/{id}/                     - Get drop details
# POST   /api/drops/{id}/transition/          - Apply lifecycle action (admin)
# GET    /api/drops/{id}/summary/             - Funding progress
# GET    /api/drops/{id}/settlement/          - Settlement report (admin)
