import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def resolver_settings(monkeypatch):
    """Pin settings a developer's .env could change."""
    from settings import settings

    monkeypatch.setattr(settings, "RESOLVE_CANDIDATE_LIMIT", 50)
    monkeypatch.setattr(settings, "RESOLVE_TIMEOUT_SECONDS", 10.0)
    monkeypatch.setattr(settings, "STORE_MAX_WORKERS", 4)
    monkeypatch.setattr(settings, "RESOLVER_VERBOSE", False)
    monkeypatch.setattr(settings, "RESOLVER_LOCALE", "en")
    catalogs = BACKEND_ROOT / "services" / "catalogs"
    monkeypatch.setattr(settings, "COUNTRY_CATALOG_DIR", str(catalogs / "countries"))
    monkeypatch.setattr(settings, "FEATURE_CODE_CATALOG_DIR", str(catalogs / "feature_codes"))
    return settings
