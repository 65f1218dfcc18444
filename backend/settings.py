"""
Django settings for the expedition journal backend - Production Ready
"""

import os
import dj_database_url
from pathlib import Path
from datetime import timedelta

# Load .env for development
from dotenv import load_dotenv

load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-q7v1m0r!k2e8w#t5zq^n4x9p$c3h6j@b0f-s8d2y1l5a%u7i"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get("DEBUG", "True").lower() == "true"

# Production-ready ALLOWED_HOSTS
ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

# Application definition
INSTALLED_APPS = [
    "jazzmin",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_extensions",
    # Third Party Apps
    "corsheaders",
    "rest_framework",
    "rest_framework_simplejwt",
    "rest_framework_simplejwt.token_blacklist",
    # Local Apps
    "core.stripe_integration.apps.StripeIntegrationConfig",
    "core.notifications.apps.NotificationsConfig",
    "explorers.apps.ExplorersConfig",
    "sponsorships.apps.SponsorshipsConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# CORS Settings - Production-ready
CORS_ALLOWED_ORIGINS = os.environ.get(
    "CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = [
    "DELETE",
    "GET",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
]

ROOT_URLCONF = "backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "backend.wsgi.application"

# Database - PostgreSQL in production, SQLite for development
if os.environ.get("DATABASE_URL"):
    DATABASES = {"default": dj_database_url.parse(os.environ.get("DATABASE_URL"))}
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"
    },
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images) - Production-ready
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"
        if not DEBUG
        else "django.contrib.staticfiles.storage.StaticFilesStorage"
    },
}

# Security Settings for Production
if not DEBUG:
    SECURE_CONTENT_TYPE_NOSNIFF = True
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_SECONDS = 31536000
    SECURE_SSL_REDIRECT = True
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST Framework Settings
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
}

# Simple JWT Settings
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(
        minutes=int(os.environ.get("JWT_ACCESS_TOKEN_LIFETIME_MINUTES", "15"))
    ),
    "REFRESH_TOKEN_LIFETIME": timedelta(
        days=int(os.environ.get("JWT_REFRESH_TOKEN_LIFETIME_DAYS", "1"))
    ),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": True,
    "UPDATE_LAST_LOGIN": True,
    "ALGORITHM": "HS256",
    "SIGNING_KEY": SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
}

# Email Settings
EMAIL_BACKEND = os.environ.get(
    "EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend"
)
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "587"))
EMAIL_USE_TLS = os.environ.get("EMAIL_USE_TLS", "False").lower() == "true"
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "noreply@expedition-journal.com")

# Frontend URL for links in e-mails
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")

# Jazzmin Settings
JAZZMIN_SETTINGS = {
    "site_title": "Expedition Journal Admin",
    "site_header": "Expedition Journal",
    "site_brand": "Expedition Journal",
    "welcome_sign": "Welcome to the Expedition Journal admin",
    "copyright": "Expedition Journal Team",
    "topmenu_links": [
        {"name": "Home", "url": "admin:index", "permissions": ["auth.view_user"]},
    ],
    "icons": {
        "auth": "fas fa-users-cog",
        "auth.user": "fas fa-user",
        "explorers.Explorer": "fas fa-hiking",
        "explorers.Expedition": "fas fa-route",
        "sponsorships.Sponsorship": "fas fa-hand-holding-usd",
    },
    "show_ui_builder": False,
    "order_with_respect_to": [
        "auth",
        "explorers",
        "sponsorships",
    ],
}

# ---- Logging ----
# Project loggers go to the console; the level is adjustable per environment.
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "core": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "explorers": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "sponsorships": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}

# ---- Payments / Stripe ----
# We support both TEST mode (development/sandbox) and LIVE mode (production).
# Which environment is active depends on STRIPE_LIVE_MODE.

# Mode toggle
#    - If STRIPE_LIVE_MODE=True → project uses LIVE Stripe environment (real payments).
#    - If STRIPE_LIVE_MODE=False → project uses TEST environment (fake payments).
STRIPE_LIVE_MODE = os.environ.get("STRIPE_LIVE_MODE", "False").lower() == "true"

# Secret keys (backend only)
#    - NEVER expose to frontend or commit to GitHub.
STRIPE_TEST_SECRET_KEY = os.environ.get("STRIPE_TEST_SECRET_KEY", "")  # sk_test_xxx
STRIPE_LIVE_SECRET_KEY = os.environ.get("STRIPE_LIVE_SECRET_KEY", "")  # sk_live_xxx

# Active secret key at runtime, chosen by STRIPE_LIVE_MODE.
STRIPE_SECRET_KEY = (
    STRIPE_LIVE_SECRET_KEY if STRIPE_LIVE_MODE else STRIPE_TEST_SECRET_KEY
)

# ---- Sponsorship billing lifecycle ----
# Resting thresholds and gateway behaviour for the pause / resume / auto-cancel
# reconciliation of recurring sponsorships.
#    - PAUSE_AFTER_DAYS: resting days before active subscriptions are paused.
#    - CANCEL_AFTER_DAYS: resting days before paused subscriptions are canceled.
#    - GATEWAY_TIMEOUT_SECONDS: per-request timeout for Stripe calls; a timeout
#      counts as a regular failure and is retried on the next pass.
#    - GATEWAY_MAX_RETRIES: Stripe SDK network retries per call.
#    - MATCH_ERROR_MESSAGES: also treat "No such subscription" / "canceled"
#      messages as already-terminal when Stripe sends no structured code.
SPONSORSHIP_BILLING = {
    "PAUSE_AFTER_DAYS": int(os.environ.get("SPONSORSHIP_PAUSE_AFTER_DAYS", "30")),
    "CANCEL_AFTER_DAYS": int(os.environ.get("SPONSORSHIP_CANCEL_AFTER_DAYS", "90")),
    "GATEWAY_TIMEOUT_SECONDS": int(
        os.environ.get("STRIPE_REQUEST_TIMEOUT_SECONDS", "20")
    ),
    "GATEWAY_MAX_RETRIES": int(os.environ.get("STRIPE_MAX_NETWORK_RETRIES", "0")),
    "MATCH_ERROR_MESSAGES": os.environ.get(
        "STRIPE_MATCH_ERROR_MESSAGES", "True"
    ).lower()
    == "true",
}
