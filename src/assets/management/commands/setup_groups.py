"""Management command to create one admin permission group per role."""

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group, Permission
from django.contrib.contenttypes.models import ContentType
from django.core.management.base import BaseCommand

from assets.models import (
    Asset,
    AssetEditHistory,
    Device,
    Employee,
    Order,
    OrderHistory,
    PendingRequest,
)
from assets.services.permissions import get_user_role

User = get_user_model()

ALL = ("view", "add", "change", "delete")
WRITE = ("view", "add", "change")
VIEW = ("view",)

ROLE_PERMISSIONS = {
    User.ROLE_SUPER_ADMIN: {
        Asset: ALL,
        Employee: ALL,
        PendingRequest: ALL,
        Order: ALL,
        Device: ALL,
        AssetEditHistory: VIEW,
        OrderHistory: VIEW,
        User: ALL,
    },
    User.ROLE_ADMIN: {
        Asset: WRITE,
        Employee: WRITE,
        PendingRequest: ("view", "change"),
        Order: ALL,
        Device: WRITE,
        AssetEditHistory: VIEW,
        OrderHistory: VIEW,
        User: WRITE,
    },
    User.ROLE_OPERATOR: {
        Asset: WRITE,
        Employee: WRITE,
        PendingRequest: ("view", "add"),
        Order: WRITE,
        Device: VIEW,
        AssetEditHistory: VIEW,
        OrderHistory: VIEW,
    },
    User.ROLE_REPORTER: {
        Asset: VIEW,
        Employee: VIEW,
        PendingRequest: VIEW,
        Order: VIEW,
        Device: VIEW,
        AssetEditHistory: VIEW,
        OrderHistory: VIEW,
    },
}


class Command(BaseCommand):
    help = "Create the four role groups with matching model permissions"

    def add_arguments(self, parser):
        parser.add_argument(
            "--sync-users",
            action="store_true",
            help="Put every user into the group of their role",
        )

    def handle(self, *args, **options):
        groups = {}
        for role, models in ROLE_PERMISSIONS.items():
            group, created = Group.objects.get_or_create(name=role)
            perms = []
            for model, actions in models.items():
                ct = ContentType.objects.get_for_model(model)
                perms.extend(
                    Permission.objects.get(
                        content_type=ct,
                        codename=f"{action}_{model._meta.model_name}",
                    )
                    for action in actions
                )
            group.permissions.set(perms)
            groups[role] = group
            verb = "Created" if created else "Updated"
            self.stdout.write(
                self.style.SUCCESS(f"{verb} group '{role}' ({len(perms)} permissions)")
            )

        if options["sync_users"]:
            role_groups = list(groups.values())
            for user in User.objects.all():
                user.groups.remove(*role_groups)
                user.groups.add(groups[get_user_role(user)])
            self.stdout.write(self.style.SUCCESS("Synced role groups for all users"))
