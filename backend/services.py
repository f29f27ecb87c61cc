"""Wiring of the core components for one running app.

Everything the request handlers need is built once here and handed to the
app through ``app.state.services``; nothing below is a module global.
"""

import logging
import time
from dataclasses import dataclass

from auth.authenticator import TokenAuthenticator
from auth.credentials import CredentialStore
from auth.token_store import FileTokenStore, RedisTokenStore, TokenStore
from config import AppSettings, Settings, load_app_settings
from geo.gate import GeoAccessGate
from geo.ip_table import IpRangeTable
from geo.policy import RegionPolicy
from storage.locks import KeyedLock
from storage.retention import Clock, RetentionPolicy
from storage.snapshots import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    app_settings: AppSettings
    gate: GeoAccessGate
    authenticator: TokenAuthenticator
    store: SnapshotStore


def build_token_store(settings: Settings, locks: KeyedLock | None = None) -> TokenStore:
    if settings.token_backend == "redis":
        logger.info("Using Redis token store")
        return RedisTokenStore.from_url(settings.redis_url)
    if settings.token_backend != "file":
        raise ValueError(f"Unknown TOKEN_BACKEND: {settings.token_backend}")
    return FileTokenStore(settings.data_dir, locks=locks)


def build_services(
    settings: Settings,
    app_settings: AppSettings | None = None,
    clock: Clock = time.time,
) -> Services:
    """Load every file-backed table and construct the components."""
    if app_settings is None:
        app_settings = load_app_settings(settings.app_settings_path)

    locks = KeyedLock()
    gate = GeoAccessGate(
        IpRangeTable.from_file(settings.ip_table_path),
        RegionPolicy.from_settings(app_settings),
    )
    authenticator = TokenAuthenticator(
        CredentialStore.from_file(settings.credentials_path),
        build_token_store(settings, locks=locks),
    )
    store = SnapshotStore(
        settings.data_dir,
        RetentionPolicy.from_settings(app_settings, clock=clock),
        clock=clock,
        locks=locks,
    )
    return Services(
        settings=settings,
        app_settings=app_settings,
        gate=gate,
        authenticator=authenticator,
        store=store,
    )
