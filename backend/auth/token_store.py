"""Session token records: one live token per username.

Two backends:
  - FileTokenStore: ``<data_dir>/tokens/<username>.txt`` holding the raw token
  - RedisTokenStore: key ``session_token:<username>`` holding the raw token

Neither sets an expiry; a record lives until the next login replaces it or
logout deletes it.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import redis

from errors import StorageError
from storage.files import validate_key, write_atomic
from storage.locks import KeyedLock

logger = logging.getLogger(__name__)

TOKEN_DIRNAME = "tokens"
TOKEN_SUFFIX = ".txt"
SESSION_PREFIX = "session_token:"


class TokenStore(ABC):
    @abstractmethod
    def save(self, username: str, token: str) -> None:
        """Store ``token`` as the only record for ``username``."""

    @abstractmethod
    def load(self, username: str) -> str | None:
        """Return the stored token, or None if there is no record."""

    @abstractmethod
    def delete(self, username: str) -> None:
        """Remove the record; a missing record is not an error."""


class FileTokenStore(TokenStore):
    def __init__(self, data_dir: str | Path, locks: KeyedLock | None = None):
        self.token_dir = Path(data_dir) / TOKEN_DIRNAME
        self._locks = locks if locks is not None else KeyedLock()

    def _path(self, username: str) -> Path:
        return self.token_dir / f"{validate_key(username)}{TOKEN_SUFFIX}"

    def save(self, username: str, token: str) -> None:
        path = self._path(username)
        with self._locks.hold(username):
            try:
                self.token_dir.mkdir(parents=True, exist_ok=True)
                write_atomic(path, token.encode("utf-8"))
            except OSError as e:
                raise StorageError(f"Failed to save token for {username}: {e}") from e

    def load(self, username: str) -> str | None:
        path = self._path(username)
        with self._locks.hold(username):
            try:
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except (OSError, UnicodeDecodeError) as e:
                raise StorageError(f"Failed to read token for {username}: {e}") from e

    def delete(self, username: str) -> None:
        path = self._path(username)
        with self._locks.hold(username):
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise StorageError(f"Failed to remove token for {username}: {e}") from e


class RedisTokenStore(TokenStore):
    def __init__(self, client: redis.Redis):
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisTokenStore":
        return cls(redis.from_url(url, decode_responses=True))

    def _key(self, username: str) -> str:
        return f"{SESSION_PREFIX}{validate_key(username)}"

    def save(self, username: str, token: str) -> None:
        try:
            self._redis.set(self._key(username), token)
        except redis.RedisError as e:
            raise StorageError(f"Failed to save token for {username}: {e}") from e

    def load(self, username: str) -> str | None:
        try:
            return self._redis.get(self._key(username))
        except redis.RedisError as e:
            raise StorageError(f"Failed to read token for {username}: {e}") from e

    def delete(self, username: str) -> None:
        try:
            self._redis.delete(self._key(username))
        except redis.RedisError as e:
            raise StorageError(f"Failed to remove token for {username}: {e}") from e
