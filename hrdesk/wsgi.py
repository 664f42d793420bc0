"""WSGI config for the hrdesk project."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hrdesk.settings")

application = get_wsgi_application()
