from .base import *

DEBUG = False

SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer',
    },
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'school-core-tests',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

ATTENDANCE_MAX_MERGE_RETRIES = 3
CHAT_TYPING_TIMEOUT_SECONDS = 5
CHAT_PRESENCE_TTL_SECONDS = 3600
CHAT_MESSAGE_MAX_LENGTH = 2000

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "loggers": {
        "apps": {
            "handlers": ["null"],
            "propagate": False,
        },
    },
}
