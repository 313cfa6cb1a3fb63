from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import UserReputationSerializer
from .services import get_reputation


@extend_schema(
    responses={200: UserReputationSerializer},
    description="Get the current user's rating, returns count and suspension state.",
    tags=['reputation'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_reputation(request):
    """Get the current user's reputation."""
    reputation = get_reputation(request.user)
    return Response(UserReputationSerializer(reputation).data)
