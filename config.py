import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.environ.get("CADDY_AUTH_CONFIG", os.path.join(ROOT_PATH, "env.yaml"))

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./caddy_auth.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    REDIS_SOCKET_TIMEOUT = float(data.get("REDIS_SOCKET_TIMEOUT", 2.0))
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    REQUEST_TIMEOUT_SECONDS = float(data.get("REQUEST_TIMEOUT_SECONDS", 10.0))
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))
    PUBLIC_BASE_URL = data.get("PUBLIC_BASE_URL", "http://localhost:8000")
    SUPPORT_EMAIL = data.get("SUPPORT_EMAIL", "support@example.com")
    EMAIL_ENABLED = bool(data.get("EMAIL_ENABLED", False))
    EMAIL_FROM = data.get("EMAIL_FROM", "no-reply@example.com")
    SMTP_HOST = data.get("SMTP_HOST", "localhost")
    SMTP_PORT = int(data.get("SMTP_PORT", 587))
    SMTP_USERNAME = data.get("SMTP_USERNAME", "")
    SMTP_PASSWORD = data.get("SMTP_PASSWORD", "")
    SMTP_STARTTLS = bool(data.get("SMTP_STARTTLS", True))
