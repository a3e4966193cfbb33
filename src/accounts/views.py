"""Authentication and user administration views for ITAM."""

import logging

from django_ratelimit.decorators import ratelimit

from django.contrib.auth import (
    authenticate,
    login,
    logout,
    update_session_auth_hash,
)
from django.contrib.auth.decorators import login_required
from django.contrib.auth.forms import PasswordChangeForm
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from assets.services.permissions import can_manage_users, get_user_role
from itam.http import json_error, request_data, validation_message

from .forms import ProfileEditForm, UserCreateForm
from .models import CustomUser

logger = logging.getLogger(__name__)


def serialize_user(user):
    return {
        "id": user.pk,
        "username": user.username,
        "email": user.email,
        "display_name": user.get_display_name(),
        "role": get_user_role(user),
        "department": user.department,
        "account_type": user.account_type,
        "is_active": user.is_active,
        "last_login": user.last_login.isoformat() if user.last_login else None,
    }


def _form_errors(form):
    return {field: [str(e) for e in errors] for field, errors in form.errors.items()}


@require_POST
@ratelimit(key="ip", rate="5/m", method="POST", block=False)
def login_view(request):
    """Sign in with email (or username) and password."""
    if getattr(request, "limited", False):
        return json_error(
            "Too many login attempts. Please try again shortly.", status=429
        )

    try:
        data = request_data(request)
    except ValidationError as exc:
        return json_error(validation_message(exc))

    username = (data.get("email") or data.get("username") or "").strip()
    password = data.get("password") or ""
    if not username or not password:
        return json_error("Email and password are required.")

    user = authenticate(request, username=username, password=password)
    if user is None:
        logger.warning("Failed login for %s", username)
        return json_error("Invalid login credentials.", status=401)

    login(request, user)
    logger.info("User %s signed in", user.actor)
    return JsonResponse({"user": serialize_user(user)})


@require_POST
def logout_view(request):
    """Handle user logout."""
    logout(request)
    return JsonResponse({"status": "logged_out"})


@login_required
def profile_view(request):
    """Return or update the current user's profile."""
    user = request.user
    if request.method == "POST":
        try:
            data = request_data(request)
        except ValidationError as exc:
            return json_error(validation_message(exc))
        form = ProfileEditForm(
            {
                "display_name": data.get("display_name", user.display_name),
                "email": data.get("email", user.email),
            },
            instance=user,
        )
        if not form.is_valid():
            return JsonResponse({"errors": _form_errors(form)}, status=400)
        form.save()
    return JsonResponse({"user": serialize_user(user)})


@login_required
@require_POST
def password_change_view(request):
    """Change current user's password."""
    try:
        data = request_data(request)
    except ValidationError as exc:
        return json_error(validation_message(exc))
    form = PasswordChangeForm(request.user, data)
    if not form.is_valid():
        return JsonResponse({"errors": _form_errors(form)}, status=400)
    user = form.save()
    update_session_auth_hash(request, user)
    logger.info("User %s changed their password", user.actor)
    return JsonResponse({"status": "password_changed"})


@login_required
def user_list_view(request):
    """List application users, or create one on POST."""
    if not can_manage_users(request.user):
        logger.warning(
            "User %s denied access to user administration",
            request.user.actor,
        )
        raise PermissionDenied("Only administrators can manage users.")

    if request.method == "POST":
        try:
            data = request_data(request)
        except ValidationError as exc:
            return json_error(validation_message(exc))
        form = UserCreateForm(data)
        if not form.is_valid():
            return JsonResponse({"errors": _form_errors(form)}, status=400)
        if (
            form.cleaned_data["role"] == CustomUser.ROLE_SUPER_ADMIN
            and get_user_role(request.user) != CustomUser.ROLE_SUPER_ADMIN
        ):
            raise PermissionDenied("Only a Super Admin can create Super Admins.")
        user = form.save()
        logger.info(
            "User %s created by %s with role %s",
            user.email,
            request.user.actor,
            user.role,
        )
        return JsonResponse({"user": serialize_user(user)}, status=201)

    users = CustomUser.objects.all().order_by("email")
    return JsonResponse({"users": [serialize_user(u) for u in users]})


@login_required
@require_GET
def session_view(request):
    """Return the signed-in user and their capabilities."""
    from assets.services import permissions

    user = request.user
    return JsonResponse(
        {
            "user": serialize_user(user),
            "can_write_assets": permissions.can_write_assets(user),
            "can_approve_requests": permissions.can_approve_requests(user),
            "can_delete_assets": permissions.can_delete_assets(user),
            "can_manage_users": permissions.can_manage_users(user),
            "requires_approval": permissions.requires_approval(user),
        }
    )
