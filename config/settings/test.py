"""Test settings for GetIn project.

File-backed SQLite, eager Celery and no migrations. The test database lives
in a file so that every thread gets its own connection honouring the busy
timeout. Set ``TEST_DB_ENGINE`` to run against PostgreSQL instead.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'
ENCRYPTION_KEY = 'test-encryption-key'

if os.environ.get('TEST_DB_ENGINE'):  # noqa: F405
    DATABASES = {
        'default': {
            'ENGINE': os.environ['TEST_DB_ENGINE'],  # noqa: F405
            'NAME': os.environ.get('DB_NAME', 'getin'),  # noqa: F405
            'USER': os.environ.get('DB_USER', ''),  # noqa: F405
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),  # noqa: F405
            'HOST': os.environ.get('DB_HOST', ''),  # noqa: F405
            'PORT': os.environ.get('DB_PORT', ''),  # noqa: F405
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'test-db.sqlite3',  # noqa: F405
            'OPTIONS': SQLITE_OPTIONS,  # noqa: F405
            'TEST': {'NAME': BASE_DIR / 'test-db.sqlite3'},  # noqa: F405
        }
    }


class DisableMigrations:
    def __contains__(self, item):
        return True

    def __getitem__(self, item):
        return None


MIGRATION_MODULES = DisableMigrations()

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

LOGGING['root']['level'] = 'CRITICAL'  # noqa: F405
for _logger in LOGGING['loggers'].values():  # noqa: F405
    _logger['level'] = 'CRITICAL'
