from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from django.db.models import Q
from drf_spectacular.utils import extend_schema

from .models import Reservation
from .permissions import IsReservationParticipant, IsPickupOperatorForReservation
from .serializers import (
    ReservationSerializer,
    ReservationCreateSerializer,
    ReservationFilterSerializer,
    ReturnInputSerializer,
)
from apps.drops.exceptions import DropsServiceError
from apps.drops.responses import error_response
from apps.reservations.services import reserve, cancel_reservation
from apps.reputation.serializers import ReputationUpdateSerializer
from apps.reputation.services import record_return, record_pickup


class ReservationPagination(PageNumberPagination):
    """Custom pagination for reservations."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ReservationViewSet(mixins.ListModelMixin,
                         mixins.RetrieveModelMixin,
                         viewsets.GenericViewSet):
    """
    ViewSet for reservations.

    list: The user's own reservations
    create: Reserve a product in an active drop (authorizes a hold)
    retrieve: Reservation details
    cancel: Cancel an authorized reservation (owner)
    pickup: Record the item as collected (pickup point staff)
    record_return: Record the item as refused (pickup point staff)
    """

    queryset = Reservation.objects.select_related('product', 'drop', 'pickup_point', 'user')
    serializer_class = ReservationSerializer
    permission_classes = [IsAuthenticated, IsReservationParticipant]
    pagination_class = ReservationPagination

    def get_permissions(self):
        if self.action in ['pickup', 'record_return']:
            return [IsAuthenticated(), IsPickupOperatorForReservation()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user

        if self.action == 'list':
            queryset = queryset.filter(user=user)

            filter_serializer = ReservationFilterSerializer(data=self.request.query_params)
            filter_serializer.is_valid(raise_exception=True)
            params = filter_serializer.validated_data

            if 'drop' in params:
                queryset = queryset.filter(drop_id=params['drop'])
            if 'payment_status' in params:
                queryset = queryset.filter(payment_status=params['payment_status'])
            return queryset

        if user.is_marketplace_admin:
            return queryset
        if user.is_pickup_operator and user.pickup_point_id:
            return queryset.filter(Q(user=user) | Q(pickup_point_id=user.pickup_point_id))
        return queryset.filter(user=user)

    @extend_schema(request=ReservationCreateSerializer, responses={201: ReservationSerializer})
    def create(self, request):
        """
        Reserve a product: hold its full price and join the drop.

        POST /api/reservations/
        Body: {"drop": uuid, "product": uuid, "payment_method": uuid (optional)}
        """
        serializer = ReservationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reservation = reserve(
                user=request.user,
                product=serializer.validated_data['product'],
                drop=serializer.validated_data['drop'],
                payment_method=serializer.validated_data.get('payment_method'),
            )
        except DropsServiceError as e:
            return error_response(e)

        return Response(ReservationSerializer(reservation).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: ReservationSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        Cancel the reservation and release its hold.

        POST /api/reservations/{id}/cancel/
        """
        reservation = self.get_object()

        try:
            reservation = cancel_reservation(reservation=reservation, user=request.user)
        except DropsServiceError as e:
            return error_response(e)

        return Response(ReservationSerializer(reservation).data)

    @extend_schema(request=None, responses={200: ReservationSerializer})
    @action(detail=True, methods=['post'])
    def pickup(self, request, pk=None):
        """
        Record that the item was collected.

        POST /api/reservations/{id}/pickup/
        """
        reservation = self.get_object()

        try:
            reservation = record_pickup(reservation=reservation)
        except DropsServiceError as e:
            return error_response(e)

        return Response(ReservationSerializer(reservation).data)

    @extend_schema(request=ReturnInputSerializer, responses={200: ReputationUpdateSerializer})
    @action(detail=True, methods=['post'], url_path='return', url_name='return')
    def record_return(self, request, pk=None):
        """
        Record that the item was refused at the pickup point.

        POST /api/reservations/{id}/return/
        Body: {"reason": "optional"}
        """
        reservation = self.get_object()

        serializer = ReturnInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            update = record_return(
                user=reservation.user,
                reservation=reservation,
                reason=serializer.validated_data['reason'],
            )
        except DropsServiceError as e:
            return error_response(e)

        return Response(ReputationUpdateSerializer(update).data)
