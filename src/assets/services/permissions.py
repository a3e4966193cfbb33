"""Role-based access control for inventory operations."""

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied

User = get_user_model()

logger = logging.getLogger(__name__)

SUPER_ADMIN = User.ROLE_SUPER_ADMIN
ADMIN = User.ROLE_ADMIN
OPERATOR = User.ROLE_OPERATOR
REPORTER = User.ROLE_REPORTER


def get_user_role(user: User) -> str | None:
    """Determine the user's application role.

    Returns one of 'Super Admin', 'Admin', 'Operator' or 'Reporter', or
    None for anonymous users. Django superusers without an explicit role
    count as Super Admin; any other account without a role is read-only.
    """
    if user is None or not user.is_authenticated:
        return None
    if user.role:
        return user.role
    if user.is_superuser:
        return SUPER_ADMIN
    return REPORTER


def can_write_assets(user: User) -> bool:
    """Create, edit, assign and return assets; manage orders and employees."""
    return get_user_role(user) in (SUPER_ADMIN, ADMIN, OPERATOR)


def requires_approval(user: User) -> bool:
    """Operators' assign/return actions go through a pending request."""
    return get_user_role(user) == OPERATOR


def can_approve_requests(user: User) -> bool:
    return get_user_role(user) in (SUPER_ADMIN, ADMIN)


def can_delete_assets(user: User) -> bool:
    return get_user_role(user) == SUPER_ADMIN


def can_delete_employees(user: User) -> bool:
    return get_user_role(user) == SUPER_ADMIN


def can_manage_users(user: User) -> bool:
    return get_user_role(user) in (SUPER_ADMIN, ADMIN)


def require(check, user: User, message: str) -> None:
    """Raise PermissionDenied unless ``check(user)`` holds."""
    if not check(user):
        logger.warning(
            "Permission denied for %s (%s): %s",
            getattr(user, "email", user),
            get_user_role(user),
            message,
        )
        raise PermissionDenied(message)
