"""
Views for the Users app.

Identity is a thin collaborator of the group buying engine: it only has to
issue JWTs and tell the engine who the actor is and which role they hold.
"""
import logging

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from apps.users.serializers import (
    LoginSerializer,
    UserRegistrationSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from common.exceptions import ActionForbidden

logger = logging.getLogger(__name__)
User = get_user_model()


def _token_response(user, http_status=status.HTTP_200_OK):
    refresh = RefreshToken.for_user(user)
    return Response(
        {
            'success': True,
            'data': {
                'user': UserSerializer(user).data,
                'accessToken': str(refresh.access_token),
                'refreshToken': str(refresh),
            },
        },
        status=http_status,
    )


class RegisterView(APIView):
    """
    POST /api/v1/auth/register/

    Customers and vendors self-register; platform admins are created with
    ``seed_demo_user`` or the Django admin.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info('User %s registered as %s', user.pk, user.role)
        return _token_response(user, status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/v1/auth/login/
    Body: {"email": "...", "password": "..."}
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = User.objects.filter(email=serializer.validated_data['email']).first()
        if user is None or not user.check_password(serializer.validated_data['password']):
            logger.info('Failed login for %s', serializer.validated_data['email'])
            raise AuthenticationFailed('Invalid email or password.')
        if not user.is_active:
            raise ActionForbidden('This account has been disabled.')

        return _token_response(user)


class UserProfileView(APIView):
    """
    GET   /api/v1/users/me/
    PATCH /api/v1/users/me/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'success': True, 'data': UserSerializer(request.user).data})

    def patch(self, request):
        serializer = UserUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'data': UserSerializer(request.user).data})
