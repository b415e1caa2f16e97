import logging

from django.contrib.auth.models import AbstractUser
from django.db import models, transaction

logger = logging.getLogger(__name__)


# Model 1: User - one role per account
class User(AbstractUser):
    class Role(models.TextChoices):
        CLIENT = 'CLIENT', 'Client'
        INTERNAL_STAFF = 'INTERNAL_STAFF', 'Internal staff'
        ATTORNEY = 'ATTORNEY', 'Attorney'
        ADMIN = 'ADMIN', 'Admin'

    # Sign-in is by email, so it has to be unique. The username mirrors it.
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=100, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CLIENT)

    def __str__(self):
        return f"{self.email} ({self.role})"

    def change_role(self, role):
        """
        Sets the role and brings the profile rows in line with it.

        Attorney and InternalStaff rows are mutually exclusive and only exist
        while the role says so. A Client row is never deleted because its
        customer number prefixes every case number the client already owns.
        Calling this twice with the same role is a no-op the second time.
        """
        from .utils import create_client_profile

        with transaction.atomic():
            old_role = self.role
            self.role = role
            self.save(update_fields=['role'])

            if role == User.Role.ATTORNEY:
                Attorney.objects.get_or_create(user=self)
                InternalStaff.objects.filter(user=self).delete()
            elif role == User.Role.INTERNAL_STAFF:
                InternalStaff.objects.get_or_create(user=self)
                Attorney.objects.filter(user=self).delete()
            else:
                Attorney.objects.filter(user=self).delete()
                InternalStaff.objects.filter(user=self).delete()
                if role == User.Role.CLIENT and not Client.objects.filter(user=self).exists():
                    create_client_profile(self)

        logger.info("Role of user %s changed from %s to %s", self.pk, old_role, role)
        return old_role


# Model 2: Client profile - owns cases, carries the customer number
class Client(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='client_profile')
    customer_number = models.CharField(max_length=20, unique=True, help_text="e.g. 'MJ0001'")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.customer_number} ({self.user.email})"


# Model 3: Attorney profile - cases are assigned to this row, not to the user
class Attorney(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='attorney_profile')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Attorney {self.user.email}"


# Model 4: InternalStaff profile
class InternalStaff(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='internal_staff_profile')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'internal staff'

    def __str__(self):
        return f"Internal staff {self.user.email}"
