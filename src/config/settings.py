"""Django settings for the trip safety engine project."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-production")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if host]

INSTALLED_APPS = [
    "trip_safety",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = []

WSGI_APPLICATION = "config.wsgi.application"

# The engine is pure computation over in-memory data; nothing is persisted.
DATABASES = {}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

TRIP_SAFETY_LOG_LEVEL = os.getenv("TRIP_SAFETY_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "trip_safety": {
            "handlers": ["console"],
            "level": TRIP_SAFETY_LOG_LEVEL,
            "propagate": True,
        },
    },
}

DEFAULT_FUEL_TYPE = os.getenv("DEFAULT_FUEL_TYPE", "unleaded")
DEFAULT_TANK_RANGE_KM = float(os.getenv("DEFAULT_TANK_RANGE_KM", "600"))
DEFAULT_RESERVE_WARN_KM = float(os.getenv("DEFAULT_RESERVE_WARN_KM", "100"))
DEFAULT_RESERVE_CRITICAL_KM = float(os.getenv("DEFAULT_RESERVE_CRITICAL_KM", "50"))
