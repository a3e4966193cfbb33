"""ASGI config for the ITAM project."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "itam.settings")

application = get_asgi_application()
