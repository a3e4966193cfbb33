"""Sign-in by email address or username."""

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

logger = logging.getLogger(__name__)

User = get_user_model()


def find_user(identifier):
    """Look up a user by case-insensitive email or exact username.

    Returns None when nothing matches or an email matches more than one
    account.
    """
    identifier = (identifier or "").strip()
    if not identifier:
        return None
    if "@" in identifier:
        lookup = {"email__iexact": identifier}
    else:
        lookup = {"username": identifier}
    try:
        return User.objects.get(**lookup)
    except (User.DoesNotExist, User.MultipleObjectsReturned):
        return None


class EmailOrUsernameBackend(ModelBackend):
    """Password sign-in for Standard accounts.

    Google accounts are created without a usable password and never
    authenticate here.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        if password is None:
            return None
        user = find_user(username or kwargs.get("email"))
        if user is None:
            # run the hasher anyway so unknown accounts take as long
            User().set_password(password)
            return None
        if user.account_type == "Google":
            logger.info("Password sign-in refused for Google account %s", user.email)
            return None
        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
