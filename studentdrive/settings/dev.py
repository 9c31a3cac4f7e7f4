# studentdrive/settings/dev.py
from .base import *

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = True

ALLOWED_HOSTS = ['127.0.0.1', 'localhost']

# Print verification emails to the console during development
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

# Keep the manifest storage out of the way while iterating locally
STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}
