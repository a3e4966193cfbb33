"""Request parsing and JSON response helpers shared by the apps."""

import functools
import json
import logging
from datetime import date, datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def request_data(request) -> dict:
    """Return the request payload as a plain dict.

    JSON bodies are decoded; form-encoded bodies fall back to ``POST``
    (multi-valued keys keep only their last value).
    """
    if request.content_type == "application/json":
        if not request.body:
            return {}
        try:
            data = json.loads(request.body)
        except ValueError as exc:
            raise ValidationError(f"Invalid JSON body: {exc}")
        if not isinstance(data, dict):
            raise ValidationError("JSON body must be an object.")
        return data
    return request.POST.dict()


def json_error(message, status=400) -> JsonResponse:
    return JsonResponse({"error": message}, status=status)


def validation_message(exc: ValidationError) -> str:
    """Flatten a ValidationError into a single user-facing message."""
    return "; ".join(exc.messages)


def json_errors(view):
    """Turn service ValidationError and IntegrityError into 400 responses.

    PermissionDenied is left to Django's 403 handler.
    """

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ValidationError as exc:
            return json_error(validation_message(exc))
        except IntegrityError as exc:
            logger.warning("Integrity error in %s: %s", view.__name__, exc)
            return json_error(str(exc))

    return wrapper


def to_json(value):
    """Convert model field values to JSON-safe primitives."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def to_json_tree(value):
    """Apply :func:`to_json` through nested dicts and lists."""
    if isinstance(value, dict):
        return {k: to_json_tree(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_tree(v) for v in value]
    return to_json(value)
