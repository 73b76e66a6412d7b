from django.conf import settings
from rest_framework import serializers

from .models import User


class ManagerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'employee_id']


class BalancesField(serializers.Serializer):
    sick = serializers.IntegerField(min_value=0, required=False)
    casual = serializers.IntegerField(min_value=0, required=False)
    vacation = serializers.IntegerField(min_value=0, required=False)
    academic = serializers.IntegerField(min_value=0, required=False)


class UserSerializer(serializers.ModelSerializer):
    manager = ManagerSummarySerializer(read_only=True)
    leave_balances = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'first_name', 'last_name', 'email', 'employee_id', 'role', 'department',
            'manager', 'leave_balances', 'is_active', 'last_login', 'date_joined', 'updated_at',
        ]
        read_only_fields = fields

    def get_leave_balances(self, user):
        balance = getattr(user, 'leave_balance', None)
        if balance is None:
            return dict(settings.LEAVE_BALANCE_DEFAULTS)
        return balance.as_dict()


class UserWriteSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, min_length=6)
    manager = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True,
        error_messages={'does_not_exist': 'Manager not found.'},
    )
    leave_balances = BalancesField(required=False)

    class Meta:
        model = User
        fields = [
            'first_name', 'last_name', 'email', 'password', 'employee_id', 'role', 'department',
            'manager', 'leave_balances', 'is_active',
        ]
        extra_kwargs = {
            'first_name': {'required': True, 'allow_blank': False, 'max_length': 50},
            'last_name': {'required': True, 'allow_blank': False, 'max_length': 50},
            'department': {'required': True, 'allow_blank': False},
            # Duplicates are reported as conflicts by the user service
            'employee_id': {'required': False, 'allow_blank': True, 'validators': []},
            'email': {'validators': []},
        }

    def validate_email(self, value):
        return value.strip().lower()

    def validate_employee_id(self, value):
        return value.strip().upper()

    def validate_manager(self, value):
        if value is not None and self.instance is not None and value.pk == self.instance.pk:
            raise serializers.ValidationError('A user cannot be their own manager.')
        return value


class PasswordSerializer(serializers.Serializer):
    new_password = serializers.CharField(min_length=6, write_only=True)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate_email(self, value):
        return value.strip().lower()


class RegisterSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=50)
    last_name = serializers.CharField(max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    department = serializers.CharField(max_length=100)
    employee_id = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate_email(self, value):
        return value.strip().lower()


class RefreshSerializer(serializers.Serializer):
    refresh_token = serializers.CharField()
