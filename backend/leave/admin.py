from django.contrib import admin

from .models import Holiday, LeaveBalance, LeaveHistory, LeaveRequest


@admin.register(Holiday)
class HolidayAdmin(admin.ModelAdmin):
    list_display = ('name', 'date', 'holiday_type')
    list_filter = ('holiday_type', 'date')
    search_fields = ('name',)


@admin.register(LeaveBalance)
class LeaveBalanceAdmin(admin.ModelAdmin):
    list_display = ('user', 'sick', 'casual', 'vacation', 'academic', 'updated_at')
    search_fields = ('user__email', 'user__employee_id', 'user__first_name', 'user__last_name')


class LeaveHistoryInline(admin.TabularInline):
    model = LeaveHistory
    extra = 0
    can_delete = False
    readonly_fields = ('action', 'actor', 'at', 'comment')

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(LeaveRequest)
class LeaveRequestAdmin(admin.ModelAdmin):
    list_display = ('user', 'leave_type', 'start_date', 'end_date', 'days', 'status', 'approver', 'deleted_at')
    list_filter = ('status', 'leave_type', 'start_date')
    search_fields = ('user__email', 'user__employee_id', 'user__first_name', 'user__last_name')
    readonly_fields = ('days', 'created_at', 'updated_at')
    inlines = [LeaveHistoryInline]
