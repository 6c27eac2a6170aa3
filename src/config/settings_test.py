"""Settings for the test suite.

Provides the values that production requires from the environment and
turns off throttling and retry backoff.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("REDIS_URL", "")

from config.settings import *  # noqa: E402,F401,F403
from config.settings import REST_FRAMEWORK  # noqa: E402

DEBUG = False

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": [],
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "order-service-tests",
    }
}

EXTERNAL_MOCK_ENABLED = True
EXTERNAL_RETRY_ATTEMPTS = 1
EXTERNAL_RETRY_WAIT_INITIAL = 0.0
EXTERNAL_RETRY_WAIT_MAX = 0.0
