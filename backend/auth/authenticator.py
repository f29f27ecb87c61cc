"""Login, token verification and logout.

Tokens are 32-character alphanumeric strings from ``secrets``. Each login
replaces the user's previous token; there is no expiry.
"""

import hmac
import logging
import secrets
import string

from auth.credentials import CredentialStore
from auth.token_store import TokenStore
from errors import CredentialStoreUnavailable, InvalidCredentials, InvalidKey, StorageError

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 32
TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """Random token drawn from ``[A-Za-z0-9]``."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


class TokenAuthenticator:
    def __init__(self, credentials: CredentialStore, tokens: TokenStore, token_length: int = TOKEN_LENGTH):
        self._credentials = credentials
        self.tokens = tokens
        self.token_length = token_length

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    def reload_credentials(self, credentials: CredentialStore) -> None:
        self._credentials = credentials
        logger.info(f"Credentials reloaded: {len(credentials)} entries")

    def login(self, username: str, password: str) -> str:
        """Check the pair and issue a fresh token.

        Raises:
            CredentialStoreUnavailable: If no credentials are loaded.
            InvalidCredentials: If the pair does not match.
            StorageError: If the token cannot be persisted.
        """
        credentials = self._credentials
        if len(credentials) == 0:
            raise CredentialStoreUnavailable("No credentials loaded")
        if not credentials.check(username, password):
            logger.info(f"Login failed for {username}")
            raise InvalidCredentials(username)

        token = generate_token(self.token_length)
        self.tokens.save(username, token)
        logger.info(f"Issued token for {username}")
        return token

    def verify(self, username: str, token: str) -> bool:
        """True iff ``token`` equals the stored token for ``username``.

        Missing records, unreadable records and bad usernames are all False.
        """
        if not token:
            return False
        try:
            stored = self.tokens.load(username)
        except InvalidKey:
            return False
        except StorageError as e:
            logger.error(f"Token lookup failed for {username}: {e}")
            return False
        if stored is None:
            return False
        # surrogatepass keeps lone surrogates from a JSON body comparable
        return hmac.compare_digest(
            stored.encode("utf-8", "surrogatepass"), token.encode("utf-8", "surrogatepass")
        )

    def logout(self, username: str) -> None:
        """Drop the token record. Absent records are fine.

        Raises:
            StorageError: If the record exists but cannot be removed.
        """
        self.tokens.delete(username)
        logger.info(f"Logged out {username}")
