"""
WSGI config for contract_mis project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'contract_mis.settings')

application = get_wsgi_application()
