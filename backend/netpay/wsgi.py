"""
WSGI config for the net pay calculator.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'netpay.settings')

application = get_wsgi_application()
