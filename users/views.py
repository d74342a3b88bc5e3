# users/views.py
from django.contrib.auth import authenticate, get_user_model, login, logout
from rest_framework import status, viewsets
from rest_framework.authtoken.models import Token
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView
import logging

from .serializers import LoginSerializer, StaffUserSerializer, UserSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


# ================================
# SESSION: LOGIN / CHECK / LOGOUT
# ================================

class AuthView(APIView):
    """
    POST   -> login with email + password, returns the user and an API token
    GET    -> current user, or ``{"user": null}``
    DELETE -> logout
    """
    permission_classes = [AllowAny]

    def get(self, request):
        if not request.user.is_authenticated:
            return Response({'user': None})
        return Response({'user': UserSerializer(request.user).data})

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']

        account = User.objects.filter(email__iexact=email).first()
        user = None
        if account is not None:
            user = authenticate(
                request,
                username=account.get_username(),
                password=serializer.validated_data['password'],
            )

        if user is None:
            logger.warning(f"Failed login attempt for {email}")
            return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

        login(request._request, user)
        token, _ = Token.objects.get_or_create(user=user)
        logger.info(f"User logged in: {user.get_username()}")

        return Response({'user': UserSerializer(user).data, 'token': token.key})

    def delete(self, request):
        if request.user.is_authenticated:
            Token.objects.filter(user=request.user).delete()
            logger.info(f"User logged out: {request.user.get_username()}")
        logout(request._request)
        return Response({'success': True})


# ================================
# STAFF ACCOUNTS (ADMIN ONLY)
# ================================

class UserViewSet(viewsets.ModelViewSet):
    queryset = User.objects.select_related('profile').order_by('email')
    serializer_class = StaffUserSerializer
    permission_classes = [IsAdminUser]
