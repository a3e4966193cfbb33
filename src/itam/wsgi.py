"""WSGI config for the ITAM project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "itam.settings")

application = get_wsgi_application()
