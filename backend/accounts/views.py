import logging

from django.contrib.auth.models import update_last_login
from django.db.models import Q
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action, api_view, authentication_classes, permission_classes
from rest_framework.exceptions import AuthenticationFailed

from leavestride.api import envelope
from leavestride.exceptions import Unauthorized

from . import services
from .authentication import resolve_user
from .models import User
from .navigation import menu_for
from .permissions import IsAdmin
from .serializers import (
    LoginSerializer, ManagerSummarySerializer, PasswordSerializer, RefreshSerializer,
    RegisterSerializer, UserSerializer, UserWriteSerializer,
)
from .tokens import REFRESH, issue_tokens

logger = logging.getLogger(__name__)


def _session(user):
    return dict(user=UserSerializer(user).data, **issue_tokens(user))


@api_view(['POST'])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def login(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email']

    user = User.objects.select_related('manager', 'leave_balance').filter(email=email).first()
    if user is None or not user.check_password(serializer.validated_data['password']):
        logger.warning('Failed login for %s: invalid credentials', email)
        raise Unauthorized('Invalid credentials')
    if not user.is_active:
        logger.warning('Failed login for %s: account deactivated', email)
        raise Unauthorized('Account is deactivated')

    update_last_login(None, user)
    logger.info('User %s logged in', user.email)
    return envelope(_session(user), message='Login successful')


@api_view(['POST'])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def register(request):
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = services.create_user(role=User.ROLE_EMPLOYEE, welcome_email=False, **serializer.validated_data)
    update_last_login(None, user)
    return envelope(_session(user), message='Registration successful', status_code=status.HTTP_201_CREATED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def refresh(request):
    serializer = RefreshSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        user = resolve_user(serializer.validated_data['refresh_token'], REFRESH)
    except AuthenticationFailed as exc:
        raise Unauthorized(exc.detail)
    return envelope(issue_tokens(user))


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def me(request):
    return envelope(UserSerializer(request.user).data)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def menu(request):
    return envelope(menu_for(request.user.role))


class UserViewSet(viewsets.ModelViewSet):
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdmin]
    http_method_names = ['get', 'post', 'put', 'patch', 'delete', 'head', 'options']

    def get_permissions(self):
        if self.action == 'managers':
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    def get_queryset(self):
        qs = User.objects.select_related('manager', 'leave_balance')
        if self.action != 'list':
            return qs

        params = self.request.query_params
        search = params.get('search', '').strip()
        if search:
            qs = qs.filter(
                Q(first_name__icontains=search) | Q(last_name__icontains=search)
                | Q(email__icontains=search) | Q(employee_id__icontains=search)
            )
        department = params.get('department', '').strip()
        if department and department != 'all':
            qs = qs.filter(department=department)
        role = params.get('role', '').strip().upper()
        if role and role != 'ALL':
            qs = qs.filter(role=role)
        state = params.get('status', '').strip().lower()
        if state == 'active':
            qs = qs.filter(is_active=True)
        elif state == 'inactive':
            qs = qs.filter(is_active=False)
        return qs.order_by('-date_joined', '-id')

    def list(self, request, *args, **kwargs):
        qs = self.get_queryset()
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return envelope(self.get_serializer(qs, many=True).data)

    def retrieve(self, request, *args, **kwargs):
        return envelope(self.get_serializer(self.get_object()).data)

    def create(self, request, *args, **kwargs):
        serializer = UserWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.create_user(**serializer.validated_data)
        return envelope(
            UserSerializer(user).data,
            message='User created successfully',
            status_code=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        user = self.get_object()
        serializer = UserWriteSerializer(user, data=request.data, partial=kwargs.pop('partial', False))
        serializer.is_valid(raise_exception=True)
        user = services.update_user(user, request.user, serializer.validated_data)
        return envelope(UserSerializer(user).data, message='User updated successfully')

    def destroy(self, request, *args, **kwargs):
        services.delete_user(self.get_object(), request.user)
        return envelope(message='User deleted successfully')

    @action(detail=True, methods=['put'])
    def password(self, request, pk=None):
        user = self.get_object()
        serializer = PasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user.set_password(serializer.validated_data['new_password'])
        user.save(update_fields=['password', 'updated_at'])
        logger.info('Password of %s reset by %s', user.email, request.user.email)
        return envelope(message='Password updated successfully')

    @action(detail=True, methods=['put'])
    def activate(self, request, pk=None):
        user = services.set_active(self.get_object(), request.user, True)
        return envelope(UserSerializer(user).data, message='User activated successfully')

    @action(detail=True, methods=['put'])
    def deactivate(self, request, pk=None):
        user = services.set_active(self.get_object(), request.user, False)
        return envelope(UserSerializer(user).data, message='User deactivated successfully')

    @action(detail=False, methods=['get'])
    def managers(self, request):
        qs = User.objects.filter(
            is_active=True, role__in=[User.ROLE_MANAGER, User.ROLE_ADMIN],
        ).order_by('first_name', 'last_name')
        return envelope(ManagerSummarySerializer(qs, many=True).data)
