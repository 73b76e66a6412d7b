from django.conf import settings
from django.db import models


class LeaveBalance(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='leave_balance')

    sick = models.PositiveIntegerField(default=12)
    casual = models.PositiveIntegerField(default=12)
    vacation = models.PositiveIntegerField(default=21)
    academic = models.PositiveIntegerField(default=5)

    updated_at = models.DateTimeField(auto_now=True)

    FIELDS = ('sick', 'casual', 'vacation', 'academic')

    def __str__(self) -> str:
        return f"Balance {self.user}"

    def as_dict(self) -> dict:
        return {field: getattr(self, field) for field in self.FIELDS}


class Holiday(models.Model):
    TYPE_NATIONAL = 'NATIONAL'
    TYPE_REGIONAL = 'REGIONAL'
    TYPE_COMPANY = 'COMPANY'
    TYPE_CHOICES = (
        (TYPE_NATIONAL, 'National'),
        (TYPE_REGIONAL, 'Regional'),
        (TYPE_COMPANY, 'Company'),
    )

    name = models.CharField(max_length=100)
    date = models.DateField(unique=True)
    holiday_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_COMPANY)
    description = models.CharField(max_length=300, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date']

    def __str__(self) -> str:
        return f"{self.name} ({self.date})"


class LeaveRequest(models.Model):
    TYPE_SICK = 'SICK'
    TYPE_CASUAL = 'CASUAL'
    TYPE_VACATION = 'VACATION'
    TYPE_ACADEMIC = 'ACADEMIC'
    TYPE_WFH = 'WFH'
    TYPE_COMP_OFF = 'COMP_OFF'
    TYPE_CHOICES = (
        (TYPE_SICK, 'Sick'),
        (TYPE_CASUAL, 'Casual'),
        (TYPE_VACATION, 'Vacation'),
        (TYPE_ACADEMIC, 'Academic'),
        (TYPE_WFH, 'Work from home'),
        (TYPE_COMP_OFF, 'Compensatory off'),
    )

    STATUS_PENDING = 'PENDING'
    STATUS_APPROVED = 'APPROVED'
    STATUS_REJECTED = 'REJECTED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_CANCELLED, 'Cancelled'),
    )
    TERMINAL_STATUSES = (STATUS_APPROVED, STATUS_REJECTED, STATUS_CANCELLED)
    # Statuses that block the dates for another request
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_APPROVED)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='leave_requests')
    leave_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    start_date = models.DateField()
    end_date = models.DateField()
    days = models.PositiveIntegerField()
    reason = models.TextField(max_length=500)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    approver = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='reviewed_leaves'
    )
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='leave_req_user_created_idx'),
            models.Index(fields=['status', '-created_at'], name='leave_req_status_created_idx'),
            models.Index(fields=['user', 'start_date', 'end_date', 'status'], name='leave_req_user_range_idx'),
        ]

    def __str__(self) -> str:
        return f"Request {self.user} {self.start_date} - {self.end_date} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def record(self, action: str, actor, comment: str = '') -> 'LeaveHistory':
        return self.history.create(action=action, actor=actor, comment=comment or '')


class LeaveHistory(models.Model):
    ACTION_DELETED = 'DELETED'
    ACTION_CHOICES = LeaveRequest.STATUS_CHOICES + (
        (ACTION_DELETED, 'Deleted'),
    )

    leave_request = models.ForeignKey(LeaveRequest, on_delete=models.CASCADE, related_name='history')
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    actor = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name='+')
    comment = models.CharField(max_length=200, blank=True)
    at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['at', 'id']
        verbose_name_plural = 'leave history'

    def __str__(self) -> str:
        return f"{self.action} by {self.actor} at {self.at}"
