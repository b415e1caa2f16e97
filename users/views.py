import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import authenticate, login, logout
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from cases.permissions import IsAdmin
from portalconfig.api import Conflict, success_response

from .models import Attorney, InternalStaff, User
from .serializers import (
    RoleChangeSerializer, SessionUserSerializer, SignInSerializer,
    SignUpSerializer, StaffCreateSerializer, UserSerializer,
)
from .utils import create_client_profile

logger = logging.getLogger(__name__)


def start_session(request, user, remember_me):
    """Logs the user in and stretches the session to 30 or 90 days."""
    login(request, user)
    days = settings.REMEMBER_ME_SESSION_DAYS if remember_me else settings.SESSION_DAYS
    request.session.set_expiry(int(timedelta(days=days).total_seconds()))
    return timezone.now() + timedelta(days=days)


def create_user_with_role(name, email, password, role):
    """
    Creates an account and the profile row its role needs. Raises Conflict if
    the email address is already registered.
    """
    if User.objects.filter(email=email).exists():
        raise Conflict("This email address is already registered.")

    with transaction.atomic():
        # A concurrent sign-up with the same address can pass the check above
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=email, email=email, password=password, name=name, role=role
                )
        except IntegrityError:
            raise Conflict("This email address is already registered.")

        if role == User.Role.CLIENT:
            create_client_profile(user)
        elif role == User.Role.ATTORNEY:
            Attorney.objects.create(user=user)
        elif role == User.Role.INTERNAL_STAFF:
            InternalStaff.objects.create(user=user)
    return user


# --- View 1: Sign up (new clients) ---
class SignUpView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = SignUpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = create_user_with_role(data['name'].strip(), data['email'], data['password'], User.Role.CLIENT)
        expires_at = start_session(request, user, data['rememberMe'])
        logger.info("New client account %s", user.pk)

        return success_response(
            {
                'user': {**UserSerializer(user).data, 'role': user.role.lower()},
                'session': {'expiresAt': expires_at.isoformat()},
            },
            status_code=status.HTTP_201_CREATED,
        )


# --- View 2: Sign in ---
class SignInView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = SignInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        # Usernames mirror email addresses; inactive accounts are refused here too
        user = authenticate(request, username=data['email'], password=data['password'])
        if user is None:
            raise AuthenticationFailed("Incorrect email address or password.")

        expires_at = start_session(request, user, data['rememberMe'])
        logger.info("User %s signed in", user.pk)

        return success_response({
            'user': {**SessionUserSerializer(user).data, 'lastLoginAt': timezone.now().isoformat()},
            'session': {'expiresAt': expires_at.isoformat()},
        })


# --- View 3: Logout ---
class LogoutView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        logout(request)
        return success_response(message="Signed out.")


# --- View 4: Current session ---
class SessionView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return success_response({'user': SessionUserSerializer(request.user).data})


# --- View 5: Staff management (admins only) ---
class StaffView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def get(self, request):
        users = User.objects.all().order_by('-date_joined', '-id')

        # Search Filter (checks name and email)
        search_query = request.query_params.get('q', '').strip()
        if search_query:
            users = users.filter(Q(name__icontains=search_query) | Q(email__icontains=search_query))

        role_filter = request.query_params.get('role', '')
        if role_filter:
            users = users.filter(role=role_filter)

        data = UserSerializer(users, many=True).data
        return success_response({'users': data, 'total': len(data)})

    def post(self, request):
        serializer = StaffCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = create_user_with_role(data['name'].strip(), data['email'], data['password'], data['role'])
        logger.info("Admin %s created user %s with role %s", request.user.pk, user.pk, user.role)

        return success_response(
            {'id': user.pk, 'name': user.name, 'email': user.email, 'role': user.role},
            message="Staff member added.",
            status_code=status.HTTP_201_CREATED,
        )

    def patch(self, request):
        serializer = RoleChangeSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        target = User.objects.filter(pk=data['userId']).first()
        if target is None:
            raise NotFound("User not found.")

        old_role = target.change_role(data['role'])

        return success_response(
            {'userId': target.pk, 'oldRole': old_role, 'newRole': target.role},
            message="Role updated.",
        )
