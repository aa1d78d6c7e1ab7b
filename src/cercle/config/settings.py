"""Django settings for the cercle project.

Every deployment-specific value is read from the environment through
django-environ; the defaults are suitable for local development and tests.
"""

from pathlib import Path

import environ

env = environ.Env()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = env("SECRET_KEY", default="django-insecure-local-development-key")
DEBUG = env.bool("DEBUG", default=False)
ALLOWED_HOSTS: list[str] = env.list(
    "ALLOWED_HOSTS", default=["localhost", "127.0.0.1", "testserver"]
)

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "cercle.adapters.db.django.apps.DBMainConfig",
    "cercle.gates.web.django.apps.WebGatesConfig",
    "cercle.gates.cli.django.apps.CliGatesConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "cercle.inits.RepositoryInjectionMiddleware",
    "cercle.gates.web.django.middlewares.LocaleMiddleware",
    "cercle.gates.web.django.middlewares.SessionResolverMiddleware",
    "cercle.gates.web.django.middlewares.AuthErrorMiddleware",
    "cercle.gates.web.django.middlewares.RedirectErrorMiddleware",
]
MIDDLEWARE_SKIP_PREFIXES = ("/static/", "/media/", "/admin/jsi18n/")

ROOT_URLCONF = "cercle.config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ]
        },
    }
]

WSGI_APPLICATION = "cercle.config.wsgi.application"

DATABASES = {
    "default": env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}")
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_USER_MODEL = "db_main.User"
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {"min_length": 8},
    },
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]
LOGIN_URL = "web:login"
LOGIN_REDIRECT_URL = "web:index"

# Internationalization
LANGUAGE_CODE = env("LANGUAGE_CODE", default="fr")
LANGUAGES = [("fr", "Français"), ("en", "English")]
TIME_ZONE = env("TIME_ZONE", default="Europe/Paris")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "static"))
MEDIA_URL = env("MEDIA_URL", default="/media/")
MEDIA_ROOT = env("MEDIA_ROOT", default=str(BASE_DIR / "media"))

# Session & identity
AUTH_SESSION_TTL = env.int("AUTH_SESSION_TTL", default=60 * 60 * 24 * 14)
AUTH_VALIDATION_INTERVAL = env.int("AUTH_VALIDATION_INTERVAL", default=300)
AUTH_PUBLIC_PATHS = ("/connexion/", "/invitation/")
INVITATION_TTL_DAYS = env.int("INVITATION_TTL_DAYS", default=7)
APP_URL = env("APP_URL", default="http://localhost:8000")

# Privileged functions. The panel runs them in-process unless a base URL
# points it at a separate deployment.
FUNCTIONS_PREFIX = "/functions/"
FUNCTIONS_BASE_URL = env("FUNCTIONS_BASE_URL", default="")
FUNCTIONS_TIMEOUT = env.int("FUNCTIONS_TIMEOUT", default=30)

# Outbound email (Resend HTTP API)
RESEND_API_KEY = env("RESEND_API_KEY", default="")
RESEND_API_URL = env("RESEND_API_URL", default="https://api.resend.com/emails")
RESEND_TIMEOUT = env.int("RESEND_TIMEOUT", default=10)
EMAIL_FROM = env("EMAIL_FROM", default="Cercle Partages <contact@cerclepartages.org>")
CONTACT_EMAIL = env("CONTACT_EMAIL", default="contact@cerclepartages.org")

# Upload limits, in bytes
MAX_IMAGE_SIZE = env.int("MAX_IMAGE_SIZE", default=5 * 1024 * 1024)
MAX_VIDEO_SIZE = env.int("MAX_VIDEO_SIZE", default=500 * 1024 * 1024)
MAX_DOCUMENT_SIZE = env.int("MAX_DOCUMENT_SIZE", default=10 * 1024 * 1024)
DATA_UPLOAD_MAX_MEMORY_SIZE = MAX_DOCUMENT_SIZE

LOG_LEVEL = env("LOG_LEVEL", default="INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "{levelname} {asctime} {name} {message}", "style": "{"}
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "verbose"}},
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "cercle": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
