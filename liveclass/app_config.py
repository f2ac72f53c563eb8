from pydantic import BaseModel

from liveclass.config import config


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class AppEnvironConfig(BaseModel):
    # Demo switch: when enabled, external integrations use stubs and avoid network calls.
    DEMO_MODE: bool = config.get("DEMO_MODE", "true").strip().lower() == "true"
    DEBUG: bool = config.get("DEBUG", "false").strip().lower() == "true"

    # API server
    API_HOST: str = config.get("API_HOST", "0.0.0.0").strip()
    API_PORT: int = int((config.get("API_PORT") or "").strip() or 8000)
    API_WORKERS: int = int((config.get("API_WORKERS") or "").strip() or 1)
    API_CORS_ORIGINS: list[str] = _csv(config.get("API_CORS_ORIGINS", "http://localhost:3000"))

    # Logging
    LOG_LEVEL: str = config.get("LOG_LEVEL", "INFO").strip().upper()
    LOG_JSON: bool = config.get("LOG_JSON", "false").strip().lower() == "true"
    LOGFIRE_ENABLE: bool = config.get("LOGFIRE_ENABLE", "false").strip().lower() == "true"
    LOGFIRE_TOKEN: str | None = (config.get("LOGFIRE_TOKEN") or "").strip() or None

    # Backends: memory|mongo, local|redis, memory|redis
    STORE_BACKEND: str = config.get("STORE_BACKEND", "memory").strip().lower()
    LOCK_BACKEND: str = config.get("LOCK_BACKEND", "local").strip().lower()
    EVENTS_BACKEND: str = config.get("EVENTS_BACKEND", "memory").strip().lower()
    EVENTS_STREAM: str = config.get("EVENTS_STREAM", "liveclass:events").strip()
    MONGO_DATABASE: str = config.get("MONGO_DATABASE", "liveclass").strip()

    # Lock tuning
    LOCK_TTL_SECONDS: int = int((config.get("LOCK_TTL_SECONDS") or "").strip() or 30)
    LOCK_BLOCKING_TIMEOUT: float = float((config.get("LOCK_BLOCKING_TIMEOUT") or "").strip() or 10)

    # Live class rules
    LIVE_CLASS_MIN_LEAD_MINUTES: int = int(
        (config.get("LIVE_CLASS_MIN_LEAD_MINUTES") or "").strip() or 30
    )
    LIVE_CLASS_MAX_PARTICIPANTS: int = int(
        (config.get("LIVE_CLASS_MAX_PARTICIPANTS") or "").strip() or 200
    )
    LIVE_CLASS_DURATIONS: list[int] = [
        int(x) for x in _csv(config.get("LIVE_CLASS_DURATIONS", "30,60,90,120,180"))
    ]
    LIVE_CLASS_TOKEN_GRACE_MINUTES: int = int(
        (config.get("LIVE_CLASS_TOKEN_GRACE_MINUTES") or "").strip() or 30
    )

    # LiveKit configuration (native rooms)
    LIVEKIT_URL: str | None = (config.get("LIVEKIT_URL") or "").strip() or None
    LIVEKIT_API_KEY: str | None = (config.get("LIVEKIT_API_KEY") or "").strip() or None
    LIVEKIT_API_SECRET: str | None = (config.get("LIVEKIT_API_SECRET") or "").strip() or None

    # Course catalog / enrollment collaborator
    COURSE_CATALOG_BASE_URL: str = config.get(
        "COURSE_CATALOG_BASE_URL", "http://localhost:5000/api"
    ).strip()
    COURSE_CATALOG_API_KEY: str | None = (config.get("COURSE_CATALOG_API_KEY") or "").strip() or None
    COURSE_CATALOG_TIMEOUT: float = float((config.get("COURSE_CATALOG_TIMEOUT") or "").strip() or 10)

    # Identity: bearer JWT verification
    AUTH_JWT_SECRET: str = config.get("AUTH_JWT_SECRET", "dev-secret").strip()
    AUTH_JWT_ALGORITHM: str = config.get("AUTH_JWT_ALGORITHM", "HS256").strip()


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
