"""
Test settings for the bizops tax data project.

Tests never reach the real tax data provider: the API key is blanked
before settings are loaded and every client is mocked.
"""

import os

os.environ["APILAYER_API_KEY"] = ""
os.environ.setdefault("ENVIRONMENT", "test")

from .base import *  # noqa: E402

SECRET_KEY = "test-secret-key-not-for-production"  # noqa: S105

DEBUG = False

ALLOWED_HOSTS = ["testserver", "localhost"]

# In-memory SQLite; the settings store only needs JSONField support
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Snapshot reads must hit the store, not a cache shared between tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.dummy.DummyCache",
    }
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

REST_FRAMEWORK["TEST_REQUEST_DEFAULT_FORMAT"] = "json"

configure_logging(log_level="CRITICAL")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": True,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "root": {
        "handlers": ["null"],
        "level": "DEBUG",
    },
}
