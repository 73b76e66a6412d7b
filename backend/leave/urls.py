from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    HolidayViewSet, LeaveRequestViewSet,
    MeBalanceView, AdminDashboardView, AdminLeaveBalancesList, AdminLeaveBalanceDetail,
)

router = DefaultRouter()
router.register('leaves', LeaveRequestViewSet, basename='leave')
router.register('holidays', HolidayViewSet, basename='holiday')

urlpatterns = [
    path('', include(router.urls)),
    path('leave/balance/', MeBalanceView.as_view(), name='leave-balance'),
    path('admin/dashboard/', AdminDashboardView.as_view(), name='admin-dashboard'),
    path('admin/leave-balances/', AdminLeaveBalancesList.as_view(), name='admin-leave-balances'),
    path('admin/leave-balances/<int:user_id>/', AdminLeaveBalanceDetail.as_view(), name='admin-leave-balance-detail'),
]
