"""Exceptions raised by the SigV4 authentication extension."""

from typing import Optional


class Sigv4AuthError(Exception):
    """Base class for all sigv4auth errors."""


class InvalidConfigError(Sigv4AuthError):
    """Raised when a configuration field is missing or malformed."""

    def __init__(self, field_name: str, message: str = "is required"):
        self.field_name = field_name
        super().__init__(f"sigv4auth config: {field_name} {message}")


class ConfigResolutionError(Sigv4AuthError):
    """Raised when no usable credentials provider can be built.

    Fatal at construction: the extension must not begin signing.
    """


class CredentialRetrievalError(Sigv4AuthError):
    """Raised when a credentials provider cannot return credentials."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"failed to retrieve credentials from {source}: {message}")


class BodyReadError(Sigv4AuthError):
    """Raised when the request body cannot be buffered for hashing."""

    def __init__(self, method: str, url: str, cause: Optional[BaseException] = None):
        self.method = method
        self.url = url
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to read body of {method} {url}{detail}")


class UnsupportedCapabilityError(Sigv4AuthError, NotImplementedError):
    """Raised for capabilities the extension deliberately does not provide."""

    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"{capability} is not implemented")
