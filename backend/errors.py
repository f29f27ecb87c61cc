"""Exceptions raised by the data protection core.

The HTTP layer maps these onto status codes; nothing below ``api/`` knows
about HTTP.
"""


class TabsyncError(Exception):
    """Base class for every error raised by the core."""


class MalformedAddress(TabsyncError):
    """Raised when a source address is not a dotted-quad IPv4 string."""

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Malformed address {address!r}: {reason}")


class AccessDenied(TabsyncError):
    """Raised when the geo policy rejects a request."""

    def __init__(self, region: str):
        self.region = region
        super().__init__(f"Access denied for region {region}")


class InvalidCredentials(TabsyncError):
    """Raised when a username/password pair does not match."""


class CredentialStoreUnavailable(TabsyncError):
    """Raised when login is attempted with no credentials loaded."""


class InvalidKey(TabsyncError):
    """Raised when a username cannot be used as a storage key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid key: {key!r}")


class StorageError(TabsyncError):
    """Raised for any underlying filesystem or backend failure."""


class DocumentNotFound(TabsyncError):
    """Raised when a user has no stored document yet."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No document stored for {key}")


class ConfigParseError(TabsyncError):
    """Raised when the settings file cannot be parsed or validated."""
