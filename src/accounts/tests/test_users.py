"""Tests for user administration and role groups."""

from django.contrib.auth.models import Group
from django.core.management import call_command
from django.urls import reverse

from accounts.models import CustomUser

NEW_USER = {
    "email": "New.Person@Example.com",
    "display_name": "New Person",
    "role": "Operator",
    "department": "IT Team-East",
    "password": "s3cret-pass",
}


def _create(client, data):
    return client.post(
        reverse("accounts:user_list"), data, content_type="application/json"
    )


class TestUserAdministration:
    def test_admin_lists_users(self, admin_client, operator):
        users = admin_client.get(reverse("accounts:user_list")).json()["users"]
        assert {u["email"] for u in users} == {"admin@example.com", operator.email}

    def test_operator_forbidden(self, operator_client):
        response = operator_client.get(reverse("accounts:user_list"))
        assert response.status_code == 403
        assert response.json() == {"error": "Only administrators can manage users."}

    def test_create_user(self, admin_client):
        response = _create(admin_client, NEW_USER)
        assert response.status_code == 201
        user = CustomUser.objects.get(email="new.person@example.com")
        assert user.username == user.email
        assert user.role == "Operator"
        assert user.check_password("s3cret-pass")

    def test_duplicate_email(self, admin_client, operator):
        response = _create(admin_client, {**NEW_USER, "email": operator.email})
        assert response.status_code == 400
        assert "email" in response.json()["errors"]

    def test_role_and_password_required(self, admin_client):
        response = _create(admin_client, {**NEW_USER, "role": "", "password": ""})
        errors = response.json()["errors"]
        assert "role" in errors
        assert "password" in errors

    def test_google_account_without_password(self, admin_client):
        response = _create(
            admin_client, {**NEW_USER, "password": "", "account_type": "Google"}
        )
        assert response.status_code == 201
        user = CustomUser.objects.get(email="new.person@example.com")
        assert not user.has_usable_password()

    def test_unknown_department(self, admin_client):
        response = _create(admin_client, {**NEW_USER, "department": "Marketing"})
        assert response.status_code == 400

    def test_only_super_admin_creates_super_admins(self, admin_client):
        response = _create(admin_client, {**NEW_USER, "role": "Super Admin"})
        assert response.status_code == 403
        assert not CustomUser.objects.filter(email="new.person@example.com").exists()

    def test_super_admin_creates_super_admin(self, super_admin_client):
        response = _create(super_admin_client, {**NEW_USER, "role": "Super Admin"})
        assert response.status_code == 201


class TestSetupGroups:
    def test_creates_role_groups_and_syncs_users(self, operator, reporter):
        call_command("setup_groups", "--sync-users")
        assert set(Group.objects.values_list("name", flat=True)) >= {
            "Super Admin",
            "Admin",
            "Operator",
            "Reporter",
        }
        assert operator.groups.filter(name="Operator").exists()
        assert reporter.groups.filter(name="Reporter").exists()
        operator_perms = set(
            Group.objects.get(name="Operator").permissions.values_list(
                "codename", flat=True
            )
        )
        assert "change_asset" in operator_perms
        assert "delete_asset" not in operator_perms
