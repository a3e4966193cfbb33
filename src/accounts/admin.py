"""Admin configuration for accounts app."""

import logging

from unfold.admin import ModelAdmin
from unfold.decorators import action, display

from django.contrib import admin, messages
from django.contrib.admin.models import CHANGE, LogEntry
from django.contrib.auth.admin import UserAdmin
from django.contrib.contenttypes.models import ContentType

from .forms import CustomUserChangeForm, CustomUserCreationForm
from .models import CustomUser

logger = logging.getLogger(__name__)


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin, ModelAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    model = CustomUser
    list_display = [
        "display_user",
        "email",
        "role",
        "department",
        "account_type",
        "display_active",
    ]
    list_filter = [
        "role",
        "department",
        "account_type",
        "is_active",
        "is_superuser",
    ]
    search_fields = [
        "username",
        "email",
        "display_name",
        "first_name",
        "last_name",
    ]
    fieldsets = (
        (
            "Profile",
            {
                "classes": ["tab"],
                "fields": (
                    "username",
                    "password",
                    "display_name",
                    "first_name",
                    "last_name",
                    "email",
                ),
            },
        ),
        (
            "Access",
            {
                "classes": ["tab"],
                "fields": (
                    "role",
                    "department",
                    "account_type",
                    "is_active",
                    "is_staff",
                    "is_superuser",
                ),
            },
        ),
        (
            "Activity",
            {
                "classes": ["tab"],
                "fields": ("last_login", "date_joined"),
            },
        ),
    )
    readonly_fields = ["last_login", "date_joined"]
    add_fieldsets = UserAdmin.add_fieldsets + (
        (
            "Access",
            {"fields": ("email", "display_name", "role", "department")},
        ),
    )

    @display(description="User", header=True, ordering="username")
    def display_user(self, obj):
        name = obj.display_name or obj.get_full_name() or obj.username
        return name, obj.username

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.is_active

    actions = ["make_reporter", "deactivate_users"]

    def _log_change(self, request, user, message):
        """Create a LogEntry for a bulk action change."""
        ct = ContentType.objects.get_for_model(user)
        LogEntry.objects.create(
            user_id=request.user.pk,
            content_type_id=ct.pk,
            object_id=str(user.pk),
            object_repr=str(user),
            action_flag=CHANGE,
            change_message=message,
        )

    @action(description="Downgrade to Reporter (read-only)")
    def make_reporter(self, request, queryset):
        for user in queryset:
            user.role = CustomUser.ROLE_REPORTER
            user.save(update_fields=["role"])
            self._log_change(request, user, "Role set to Reporter")
        logger.info(
            "%s downgraded %d user(s) to Reporter",
            request.user,
            queryset.count(),
        )
        messages.success(
            request, f"{queryset.count()} user(s) set to Reporter."
        )

    @action(description="Deactivate selected users")
    def deactivate_users(self, request, queryset):
        queryset = queryset.exclude(pk=request.user.pk)
        for user in queryset:
            user.is_active = False
            user.save(update_fields=["is_active"])
            self._log_change(request, user, "Deactivated via bulk action")
        messages.success(
            request, f"{queryset.count()} user(s) deactivated."
        )
