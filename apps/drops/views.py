from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema

from .models import Drop, DropStatus, SettlementReport
from .permissions import IsMarketplaceAdmin
from .responses import error_response
from .serializers import (
    DropSerializer,
    DropListSerializer,
    DropCreateSerializer,
    DropFilterSerializer,
    DropTransitionSerializer,
    DropSummarySerializer,
    SettlementReportSerializer,
)
from apps.drops.services import (
    create_drop,
    transition,
    get_drop_summary,
    # Exceptions
    DropsServiceError,
)


class DropPagination(PageNumberPagination):
    """Custom pagination for drops."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class DropViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  viewsets.GenericViewSet):
    """
    ViewSet for drops.

    All lifecycle changes go through the state machine service.

    list: Drops visible to the user (admins see unapproved ones too)
    create: Create a drop pending approval (admin)
    retrieve: Drop details
    transition: Apply a lifecycle action (admin)
    summary: Funding progress and reservation counts
    settlement: Settlement report (admin)
    """

    queryset = Drop.objects.select_related('pickup_point', 'supplier_list')
    serializer_class = DropSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = DropPagination

    def get_permissions(self):
        """Drop management is admin only."""
        if self.action in ['create', 'transition', 'settlement']:
            return [IsAuthenticated(), IsMarketplaceAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()

        if not self.request.user.is_marketplace_admin:
            queryset = queryset.exclude(
                status__in=[DropStatus.PENDING_APPROVAL, DropStatus.APPROVED]
            )

        if self.action == 'list':
            filter_serializer = DropFilterSerializer(data=self.request.query_params)
            filter_serializer.is_valid(raise_exception=True)
            params = filter_serializer.validated_data

            if 'status' in params:
                queryset = queryset.filter(status=params['status'])
            if 'pickup_point' in params:
                queryset = queryset.filter(pickup_point_id=params['pickup_point'])

        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return DropListSerializer
        return DropSerializer

    @extend_schema(request=DropCreateSerializer, responses={201: DropSerializer})
    def create(self, request):
        """Create a drop pending approval."""
        serializer = DropCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            drop = create_drop(
                name=serializer.validated_data['name'],
                pickup_point=serializer.validated_data['pickup_point'],
                supplier_list=serializer.validated_data['supplier_list'],
                target_value=serializer.validated_data.get('target_value'),
                created_by=request.user,
            )
        except DropsServiceError as e:
            return error_response(e)

        return Response(DropSerializer(drop).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=DropTransitionSerializer, responses={200: DropSerializer})
    @action(detail=True, methods=['post'])
    def transition(self, request, pk=None):
        """
        Apply a lifecycle action to the drop.

        POST /api/drops/{id}/transition/
        Body: {"action": "approve" | "activate" | "deactivate" | "reactivate" | "complete" | "cancel"}
        """
        drop = self.get_object()

        serializer = DropTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            drop = transition(drop, serializer.validated_data['action'], request.user)
        except DropsServiceError as e:
            return error_response(e)

        return Response(DropSerializer(drop).data)

    @extend_schema(responses={200: DropSummarySerializer})
    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        """
        Get funding progress of the drop.

        GET /api/drops/{id}/summary/
        """
        drop = self.get_object()
        summary = get_drop_summary(drop)
        return Response(DropSummarySerializer(summary).data)

    @extend_schema(responses={200: SettlementReportSerializer})
    @action(detail=True, methods=['get'])
    def settlement(self, request, pk=None):
        """
        Get the settlement report of a completed drop.

        GET /api/drops/{id}/settlement/
        """
        drop = self.get_object()
        report = get_object_or_404(SettlementReport, drop=drop)
        return Response(SettlementReportSerializer(report).data)
