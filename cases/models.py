from django.conf import settings
from django.db import models
from django.utils import timezone

from users.models import Attorney, InternalStaff

from .lifecycle import STATUS_CHOICES, progress_steps, status_label


class CaseQuerySet(models.QuerySet):
    def active(self):
        """Cases that have not been soft-deleted."""
        return self.filter(deleted_at__isnull=True)


# Model 1: Case - one trademark application, owned by a client user
class Case(models.Model):
    TRADEMARK_TYPES = [
        ('TEXT', 'Text'),
        ('LOGO', 'Logo'),
    ]

    CONSULTATION_ROUTES = [
        ('AI_SELF_SERVICE', 'AI self service'),
        ('ATTORNEY_CONSULTATION', 'Attorney consultation'),
    ]

    case_number = models.CharField(max_length=30, unique=True, help_text="e.g. 'MJ00010001'")
    # Per-client counter; the last four digits of the case number
    sequence_number = models.PositiveIntegerField()

    title = models.CharField(max_length=255)
    trademark_type = models.CharField(max_length=10, choices=TRADEMARK_TYPES)
    applicant = models.CharField(max_length=255)
    classes = models.JSONField(default=list, help_text="Nice class codes, e.g. [\"9\", \"42\"]")
    trademark_details = models.JSONField(default=dict, blank=True)
    class_selections = models.JSONField(null=True, blank=True)
    class_category = models.CharField(max_length=50, null=True, blank=True)
    product_service = models.TextField(null=True, blank=True)
    client_intake = models.JSONField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    status = models.CharField(max_length=40, choices=STATUS_CHOICES, default='DRAFT')
    consultation_route = models.CharField(max_length=30, choices=CONSULTATION_ROUTES, null=True, blank=True)
    consultation_started = models.BooleanField(default=False)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='cases')
    assigned_attorney = models.ForeignKey(
        Attorney, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_cases'
    )
    assigned_internal_staff = models.ForeignKey(
        InternalStaff, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_cases'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = CaseQuerySet.as_manager()

    class Meta:
        constraints = [
            # Two concurrent creations for one client cannot share a number
            models.UniqueConstraint(fields=['user', 'sequence_number'], name='unique_case_sequence_per_user'),
        ]

    def __str__(self):
        return f"{self.case_number} {self.title}"

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @property
    def status_label(self):
        return status_label(self.status)

    @property
    def progress(self):
        return progress_steps(self.status)

    def soft_delete(self):
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at', 'updated_at'])
