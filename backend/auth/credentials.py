"""Username/password list consulted at login.

File format, one ``username,password`` pair per line. Blank lines and lines
without exactly two fields are skipped. The password field may hold a bcrypt
hash instead of plaintext.
"""

import hmac
import logging
from dataclasses import dataclass
from pathlib import Path

from passlib.hash import bcrypt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    username: str
    password: str

    def matches(self, username: str, password: str) -> bool:
        if self.username != username:
            return False
        if bcrypt.identify(self.password):
            try:
                return bcrypt.verify(password, self.password)
            except UnicodeEncodeError:
                return False
            except ValueError:
                logger.warning(f"Unusable password hash for {username}")
                return False
        return hmac.compare_digest(
            self.password.encode("utf-8", "surrogatepass"), password.encode("utf-8", "surrogatepass")
        )


class CredentialStore:
    """Immutable credential list, loaded once."""

    def __init__(self, credentials: list[Credential] | None = None):
        self._credentials = tuple(credentials or [])

    def __len__(self) -> int:
        return len(self._credentials)

    @classmethod
    def from_text(cls, text: str) -> "CredentialStore":
        credentials = []
        for line in text.splitlines():
            if not line:
                continue
            parts = line.split(",")
            if len(parts) != 2:
                continue
            credentials.append(Credential(username=parts[0], password=parts[1]))
        return cls(credentials)

    @classmethod
    def from_file(cls, path: str | Path) -> "CredentialStore":
        """Load a credential file. A missing or unreadable file gives an empty store."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Error reading credentials file {path}: {e}")
            return cls()
        store = cls.from_text(text)
        logger.info(f"Loaded {len(store)} credentials")
        return store

    def check(self, username: str, password: str) -> bool:
        return any(c.matches(username, password) for c in self._credentials)
