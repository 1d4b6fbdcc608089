import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient
from network_blocker import install_network_blocker

from core.http.circuit_breaker import nominatim_breaker  # noqa: E402
from core.mapping.factory import clear_provider_cache  # noqa: E402
from db.models import ALL_DOCUMENT_MODELS  # noqa: E402


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ROUTING_PROVIDER", raising=False)
    monkeypatch.delenv("STATIC_POSITION", raising=False)
    install_network_blocker(monkeypatch)
    nominatim_breaker.reset()
    clear_provider_cache()
    yield
    nominatim_breaker.reset()
    clear_provider_cache()


@pytest.fixture
async def beanie_db():
    client = AsyncMongoMockClient()
    database = client["test_db"]
    await init_beanie(database=database, document_models=ALL_DOCUMENT_MODELS)
    return database
