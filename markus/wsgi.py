"""WSGI config for the markus project."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "markus.settings")

application = get_wsgi_application()
