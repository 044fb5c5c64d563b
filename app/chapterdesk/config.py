import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str

    api_base_url: str
    api_timeout_seconds: float
    api_read_retries: int

    cache_ttl_seconds: int
    cache_max_entries: int
    default_page_size: int
    banner_seconds: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _getfloat(name: str, default: float) -> float:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        api_base_url=_getenv("API_BASE_URL", "http://localhost:3000"),
        api_timeout_seconds=_getfloat("API_TIMEOUT_SECONDS", 15.0),
        api_read_retries=_getint("API_READ_RETRIES", 1),
        cache_ttl_seconds=_getint("CACHE_TTL_SECONDS", 60),
        cache_max_entries=_getint("CACHE_MAX_ENTRIES", 2048),
        default_page_size=_getint("DEFAULT_PAGE_SIZE", 10),
        banner_seconds=_getint("BANNER_SECONDS", 5),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "API_BASE_URL": s.api_base_url,
        "API_BASE_URL_EXPLICIT": bool(_getenv("API_BASE_URL")),
        "API_TIMEOUT_SECONDS": s.api_timeout_seconds,
        "API_READ_RETRIES": s.api_read_retries,
        "CACHE_TTL_SECONDS": s.cache_ttl_seconds,
        "CACHE_MAX_ENTRIES": s.cache_max_entries,
        "DEFAULT_PAGE_SIZE": s.default_page_size,
        "BANNER_SECONDS": s.banner_seconds,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # member photo uploads are forwarded to the backend (3 files per form)
        "MAX_CONTENT_LENGTH": 15 * 1024 * 1024,
    }
