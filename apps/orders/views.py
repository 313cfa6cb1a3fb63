from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.pagination import PageNumberPagination

from .permissions import CanViewOrders
from .serializers import OrderSerializer
from .services import get_visible_orders


class OrderPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Orders written when drops settle.

    list: Orders visible to the user (own point, own supplies, or all for admins)
    retrieve: Order with its items
    """

    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, CanViewOrders]
    pagination_class = OrderPagination

    def get_queryset(self):
        queryset = get_visible_orders(self.request.user)
        drop_id = self.request.query_params.get('drop')
        if drop_id:
            queryset = queryset.filter(drop_id=drop_id)
        return queryset
