"""
Settings for the test suite: in-memory SQLite, throwaway media root.
"""
import tempfile

from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

MEDIA_ROOT = tempfile.mkdtemp(prefix='clinic-test-media-')

LOGGING['root']['level'] = 'WARNING'  # noqa: F405
