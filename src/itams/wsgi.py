"""WSGI config for the IT asset registry."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "itams.settings")

application = get_wsgi_application()
