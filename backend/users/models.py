from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_SUPER_ADMIN = "SUPER_ADMIN"
    ROLE_ADMIN = "ADMIN"
    ROLE_VENDOR = "VENDOR"

    ROLE_CHOICES = [
        (ROLE_SUPER_ADMIN, "Super Admin"),
        (ROLE_ADMIN, "Admin"),
        (ROLE_VENDOR, "Vendor"),
    ]
    ADMIN_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN)

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_VENDOR)
    phone = models.CharField(max_length=30, blank=True, null=True)
    whatsapp_number = models.CharField(max_length=30, blank=True, null=True)

    class Meta:
        ordering = ["username"]

    @property
    def is_admin(self):
        return self.is_superuser or self.role in self.ADMIN_ROLES

    @property
    def is_vendor(self):
        return self.role == self.ROLE_VENDOR

    def __str__(self):
        return f"{self.username} ({self.role})"
