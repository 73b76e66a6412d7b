from rest_framework import serializers

from accounts.models import User

from .models import Holiday, LeaveBalance, LeaveHistory, LeaveRequest


class EmployeeSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'employee_id', 'department']


class ApproverSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name']


class HolidaySerializer(serializers.ModelSerializer):
    type = serializers.ChoiceField(source='holiday_type', choices=Holiday.TYPE_CHOICES, required=False)

    class Meta:
        model = Holiday
        fields = ['id', 'name', 'date', 'type', 'description', 'created_at']
        read_only_fields = ['created_at']
        # Uniqueness is reported as a conflict by the registry itself
        extra_kwargs = {'date': {'validators': []}}


class LeaveBalanceSerializer(serializers.ModelSerializer):
    class Meta:
        model = LeaveBalance
        fields = ['sick', 'casual', 'vacation', 'academic']


class UserLeaveBalanceSerializer(serializers.ModelSerializer):
    user = EmployeeSummarySerializer(read_only=True)

    class Meta:
        model = LeaveBalance
        fields = ['user', 'sick', 'casual', 'vacation', 'academic', 'updated_at']


class LeaveHistorySerializer(serializers.ModelSerializer):
    by = serializers.PrimaryKeyRelatedField(source='actor', read_only=True)

    class Meta:
        model = LeaveHistory
        fields = ['action', 'by', 'at', 'comment']


class LeaveRequestSerializer(serializers.ModelSerializer):
    user = EmployeeSummarySerializer(read_only=True)
    approver = ApproverSerializer(read_only=True)
    history = LeaveHistorySerializer(many=True, read_only=True)

    class Meta:
        model = LeaveRequest
        fields = [
            'id', 'user', 'leave_type', 'start_date', 'end_date', 'days', 'reason', 'status',
            'approver', 'history', 'created_at', 'updated_at',
        ]
        read_only_fields = ['days', 'status', 'created_at', 'updated_at']


class LeaveRequestCreateSerializer(serializers.Serializer):
    leave_type = serializers.ChoiceField(choices=LeaveRequest.TYPE_CHOICES)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    reason = serializers.CharField(max_length=500, trim_whitespace=True)


class LeaveStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[
        LeaveRequest.STATUS_APPROVED,
        LeaveRequest.STATUS_REJECTED,
        LeaveRequest.STATUS_CANCELLED,
    ])
    comment = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')


class LeaveRequestFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=LeaveRequest.STATUS_CHOICES, required=False, allow_blank=True)
    leave_type = serializers.ChoiceField(choices=LeaveRequest.TYPE_CHOICES, required=False, allow_blank=True)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
