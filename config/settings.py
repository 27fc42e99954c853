"""
RentOps – Django Settings (Infrastructure Only)
================================================
Django serves as the framework container for the order core.
The engine modules are the authority; Django only hosts the snapshot
store and the thin JSON adapter.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get(
    "RENTOPS_SECRET_KEY", "rentops-dev-key-replace-before-deployment"
)

DEBUG = os.environ.get("RENTOPS_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    # ── RentOps Modules ───────────────────────────────────
    "core.snapshot_store",
]

# ── Middleware ────────────────────────────────────────────────
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

# ── URL & WSGI ────────────────────────────────────────────────
ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "rentops": {
            "handlers": ["console"],
            "level": os.environ.get("RENTOPS_LOG_LEVEL", "INFO"),
        },
    },
}

# ── Pricing ───────────────────────────────────────────────────
# Platform defaults. Per-company overrides live in the pricing
# config store.
RENTOPS_CURRENCY = "AED"
RENTOPS_DEFAULT_MARGIN_PERCENT = "25"

# Statuses in which line items and pricing inputs may change.
RENTOPS_EDITABLE_STATUSES = ("PRICING_REVIEW", "PENDING_APPROVAL")
