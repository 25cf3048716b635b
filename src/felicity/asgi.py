"""ASGI config for the felicity project."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "felicity.settings")

application = get_asgi_application()
