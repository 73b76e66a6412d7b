import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.views import APIView

from accounts.models import User
from accounts.permissions import IsAdmin, IsManagerOrAdmin
from leavestride.api import envelope

from . import services, utils
from .models import Holiday
from .serializers import (
    HolidaySerializer, LeaveBalanceSerializer, LeaveRequestCreateSerializer,
    LeaveRequestFilterSerializer, LeaveRequestSerializer, LeaveStatusSerializer,
    UserLeaveBalanceSerializer,
)

logger = logging.getLogger(__name__)


class LeaveRequestViewSet(viewsets.ModelViewSet):
    serializer_class = LeaveRequestSerializer
    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return services.visible_requests(self.request.user).prefetch_related('history')

    def list(self, request, *args, **kwargs):
        filters = LeaveRequestFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        qs = services.filter_requests(self.get_queryset(), **filters.validated_data)
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return envelope(self.get_serializer(qs, many=True).data)

    def retrieve(self, request, *args, **kwargs):
        return envelope(self.get_serializer(self.get_object()).data)

    def create(self, request, *args, **kwargs):
        data = LeaveRequestCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        req = services.submit(request.user, **data.validated_data)
        return envelope(
            self.get_serializer(req).data,
            message='Leave request created successfully',
            status_code=status.HTTP_201_CREATED,
        )

    def partial_update(self, request, *args, **kwargs):
        data = LeaveStatusSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        req = services.transition(
            kwargs['pk'], request.user, data.validated_data['status'], data.validated_data['comment'],
        )
        return envelope(self.get_serializer(req).data, message='Leave request updated successfully')

    def destroy(self, request, *args, **kwargs):
        services.soft_delete(kwargs['pk'], request.user)
        return envelope(message='Leave request deleted successfully')


class HolidayViewSet(mixins.CreateModelMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    serializer_class = HolidaySerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = None

    def get_permissions(self):
        if self.action == 'create':
            return [permissions.IsAuthenticated(), IsAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        year = self.request.query_params.get('year')
        if self.action != 'list' or not year:
            return utils.list_holidays()
        try:
            return utils.list_holidays(int(year))
        except ValueError:
            raise ValidationError({'year': 'A valid year is required.'})

    def list(self, request, *args, **kwargs):
        return envelope(self.get_serializer(self.get_queryset(), many=True).data)

    def retrieve(self, request, *args, **kwargs):
        return envelope(self.get_serializer(self.get_object()).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        holiday = utils.create_holiday(
            serializer.validated_data['name'],
            serializer.validated_data['date'],
            serializer.validated_data.get('holiday_type', Holiday.TYPE_COMPANY),
            serializer.validated_data.get('description', ''),
        )
        return envelope(
            self.get_serializer(holiday).data,
            message='Holiday created successfully',
            status_code=status.HTTP_201_CREATED,
        )


class MeBalanceView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        balance = utils.get_or_create_balance(request.user)
        return envelope(LeaveBalanceSerializer(balance).data)


class AdminDashboardView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsManagerOrAdmin]

    def get(self, request):
        return envelope(services.dashboard_stats())


class AdminLeaveBalancesList(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        items = []
        for user in User.objects.order_by('first_name', 'last_name'):
            balance = utils.get_or_create_balance(user)
            items.append(UserLeaveBalanceSerializer(balance).data)
        return envelope(items)


class AdminLeaveBalanceDetail(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def put(self, request, user_id: int):
        return self._update(request, user_id)

    def patch(self, request, user_id: int):
        return self._update(request, user_id)

    def _update(self, request, user_id: int):
        user = get_object_or_404(User, pk=user_id)
        with transaction.atomic():
            balance = utils.get_or_create_balance(user, lock=True)
            serializer = LeaveBalanceSerializer(balance, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
        logger.info('Leave balances of %s set to %s by %s', user.email, balance.as_dict(), request.user.email)
        return envelope(UserLeaveBalanceSerializer(balance).data, message='Leave balances updated successfully')
