from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'employee_id', 'first_name', 'last_name', 'role', 'department', 'manager', 'is_active')
    list_filter = ('role', 'department', 'is_active')
    search_fields = ('email', 'employee_id', 'first_name', 'last_name')
    ordering = ('-date_joined',)
    raw_id_fields = ('manager',)
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Organisation', {'fields': ('employee_id', 'role', 'department', 'manager')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'department', 'role', 'password1', 'password2'),
        }),
    )
