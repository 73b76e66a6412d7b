from django.contrib.auth.models import AbstractUser
from django.db import models

from .utils import generate_employee_id


class User(AbstractUser):
    ROLE_EMPLOYEE = 'EMPLOYEE'
    ROLE_MANAGER = 'MANAGER'
    ROLE_ADMIN = 'ADMIN'
    ROLE_CHOICES = (
        (ROLE_EMPLOYEE, 'Employee'),
        (ROLE_MANAGER, 'Manager'),
        (ROLE_ADMIN, 'Admin'),
    )

    email = models.EmailField(unique=True)
    employee_id = models.CharField(max_length=20, unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_EMPLOYEE)
    department = models.CharField(max_length=100, blank=True)

    # Direct line manager; reports are looked up through ``reports``
    manager = models.ForeignKey('self', null=True, blank=True, on_delete=models.SET_NULL, related_name='reports')

    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        ordering = ['-date_joined']
        indexes = [
            models.Index(fields=['department'], name='accounts_user_dept_idx'),
            models.Index(fields=['role'], name='accounts_user_role_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == self.ROLE_MANAGER

    def save(self, *args, **kwargs):
        self.email = (self.email or '').strip().lower()
        if not self.employee_id:
            self.employee_id = generate_employee_id(self.department)
        self.employee_id = self.employee_id.strip().upper()
        if not self.username:
            self.username = self.employee_id
        super().save(*args, **kwargs)
