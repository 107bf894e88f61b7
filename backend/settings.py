import os
from pathlib import Path

from dotenv import load_dotenv

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent
DATA_DIR = BACKEND_ROOT / "data"
# Shipped JSON catalogs live inside the services package so installs carry them
CATALOG_DIR = BACKEND_ROOT / "services" / "catalogs"

# Load backend/.env (optional) before any value below is read
load_dotenv(BACKEND_ROOT / ".env")


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self) -> None:
        self.PLACES_DATABASE_URL: str = os.getenv(
            "PLACES_DATABASE_URL", f"sqlite:///{DATA_DIR / 'places.sqlite'}"
        )
        self.RESOLVE_CANDIDATE_LIMIT: int = int(os.getenv("RESOLVE_CANDIDATE_LIMIT", "50"))
        self.RESOLVE_TIMEOUT_SECONDS: float = float(os.getenv("RESOLVE_TIMEOUT_SECONDS", "10.0"))
        # Should not exceed the connection pool of the spatial store
        self.STORE_MAX_WORKERS: int = int(os.getenv("STORE_MAX_WORKERS", "4"))
        self.RESOLVER_LOCALE: str = os.getenv("RESOLVER_LOCALE", "en")
        self.COUNTRY_CATALOG_DIR: str = os.getenv("COUNTRY_CATALOG_DIR", str(CATALOG_DIR / "countries"))
        self.FEATURE_CODE_CATALOG_DIR: str = os.getenv(
            "FEATURE_CODE_CATALOG_DIR", str(CATALOG_DIR / "feature_codes")
        )
        self.RESOLVER_VERBOSE: bool = _as_bool(os.getenv("RESOLVER_VERBOSE"), False)


settings = Settings()
