"""Custom user model for ITAM."""

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    """Application account with role, department and account type."""

    ROLE_SUPER_ADMIN = "Super Admin"
    ROLE_ADMIN = "Admin"
    ROLE_OPERATOR = "Operator"
    ROLE_REPORTER = "Reporter"

    ROLE_CHOICES = [
        (ROLE_SUPER_ADMIN, "Super Admin"),
        (ROLE_ADMIN, "Admin (Read, Write, Execute)"),
        (ROLE_OPERATOR, "Operator (Read, Write)"),
        (ROLE_REPORTER, "Reporter (Read)"),
    ]

    ACCOUNT_TYPE_CHOICES = [
        ("Standard", "Standard (Email & Password)"),
        ("Google", "Google"),
    ]

    DEPARTMENT_CHOICES = [
        ("Administrators", "Administrators"),
        ("Consultant", "Consultant"),
        ("Customer Support Team", "Customer Support Team"),
        ("DevOps Team", "DevOps Team"),
        ("DevOps-Production", "DevOps-Production"),
        ("Dropped", "Dropped"),
        ("FT QA Team", "FT QA Team"),
        ("IT Team-East", "IT Team-East"),
    ]

    email = models.EmailField("email address", blank=False, unique=True)
    display_name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Full name shown in audit fields",
    )
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        blank=True,
        default="",
    )
    department = models.CharField(
        max_length=100,
        blank=True,
        default="",
    )
    account_type = models.CharField(
        max_length=20,
        choices=ACCOUNT_TYPE_CHOICES,
        default="Standard",
    )

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["email"]

    def get_display_name(self):
        """Return display_name if set, otherwise full name or username."""
        if self.display_name:
            return self.display_name
        full = self.get_full_name()
        return full if full else self.username

    @property
    def actor(self):
        """Identifier stamped into created_by / updated_by audit fields."""
        return self.email or self.username

    def __str__(self):
        return self.get_display_name()
