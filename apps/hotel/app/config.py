import os


def _env_or(key: str, default: str) -> str:
    v = os.getenv(key)
    return v if v is not None else default


def _env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


DB_URL = _env_or("HOTEL_DB_URL", _env_or("DB_URL", "sqlite+pysqlite:////tmp/hotel.db"))
DEMO_SEED = _env_bool("HOTEL_DEMO_SEED", False)
AUDIT_RETENTION_DAYS = int(_env_or("HOTEL_AUDIT_RETENTION_DAYS", "90"))
PASSWORD_ITERATIONS = int(_env_or("HOTEL_PASSWORD_ITERATIONS", "260000"))
