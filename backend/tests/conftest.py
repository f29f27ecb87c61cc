"""Master test fixtures.

Environment variables are set BEFORE any application imports so that
``config.Settings()`` initialises with test-safe values and never touches a
real data directory or Redis server.
"""

import os

# ── Set test env vars before any app import ──────────────────────────
os.environ.update({
    "DATA_DIR": "./test-data-unused",
    "TOKEN_BACKEND": "file",
    "REDIS_URL": "redis://localhost:6379/0",
    "FORWARDED_FOR_HEADER": "X-Forwarded-For",
    "CORS_ORIGINS": "*",
})

import pytest
import fakeredis

from httpx import ASGITransport, AsyncClient

# Now safe to import application code
from auth.authenticator import TokenAuthenticator
from auth.credentials import CredentialStore
from auth.token_store import FileTokenStore
from config import AppSettings, Settings
from geo.gate import GeoAccessGate
from geo.ip_table import IpRangeTable
from geo.policy import RegionPolicy
from services import Services
from storage.retention import RetentionPolicy
from storage.snapshots import SnapshotStore

# 1.0.0.0/24 → SG, 1.0.1.0 - 1.0.3.255 → US
IP_RANGES = "16777216,16777471,SG\r\n16777472,16778239,US\r\n"
SG_ADDRESS = "1.0.0.7"
US_ADDRESS = "1.0.2.1"

CREDENTIALS = "alice,secret\nbob,hunter2\n"


class FakeClock:
    """Callable wall clock the tests move by hand."""

    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(rotate_count=2, enable_region_block=True, white_region_code_list=["SG"])


@pytest.fixture
def test_settings(data_dir, monkeypatch) -> Settings:
    monkeypatch.setenv("DATA_DIR", str(data_dir))
    return Settings()


@pytest.fixture
def services(test_settings, app_settings, data_dir, clock) -> Services:
    """Core components wired against a temp data dir and a fake clock."""
    return Services(
        settings=test_settings,
        app_settings=app_settings,
        gate=GeoAccessGate(IpRangeTable.from_text(IP_RANGES), RegionPolicy.from_settings(app_settings)),
        authenticator=TokenAuthenticator(
            CredentialStore.from_text(CREDENTIALS),
            FileTokenStore(data_dir),
        ),
        store=SnapshotStore(
            data_dir,
            RetentionPolicy.from_settings(app_settings, clock=clock),
            clock=clock,
        ),
    )


@pytest.fixture
async def test_client(services):
    """HTTPX async client wired to a FastAPI app built around ``services``."""
    from main import create_app

    app = create_app(services=services)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sg_headers() -> dict[str, str]:
    """Forwarding header resolving to an allowed region."""
    return {"X-Forwarded-For": SG_ADDRESS}


@pytest.fixture
def fake_redis():
    server = fakeredis.FakeServer()
    return fakeredis.FakeRedis(server=server, decode_responses=True)


@pytest.fixture
def alice_token(services) -> str:
    """Log alice in directly through the authenticator."""
    return services.authenticator.login("alice", "secret")
