"""WSGI entrypoint for FreightLink."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "freightlink.settings")

application = get_wsgi_application()
