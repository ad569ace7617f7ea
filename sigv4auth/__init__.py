"""sigv4auth - AWS SigV4 request signing for httpx clients."""

from .config import AssumeRoleConfig, Sigv4AuthConfig
from .credentials import (
    AssumeRoleCredentialsProvider,
    Credentials,
    CredentialsProvider,
    DefaultChainCredentialsProvider,
    StaticCredentialsProvider,
)
from .errors import (
    BodyReadError,
    ConfigResolutionError,
    CredentialRetrievalError,
    InvalidConfigError,
    Sigv4AuthError,
    UnsupportedCapabilityError,
)
from .extension import Sigv4AuthExtension, create_extension
from .resolver import (
    ACCESS_KEY_ENV_VAR,
    SECRET_KEY_ENV_VAR,
    resolve_credentials_provider,
)
from .signer import EMPTY_PAYLOAD_HASH, SigV4Signer, SigningResult, hash_payload
from .transport import AsyncSigningTransport, SigningTransport

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "AssumeRoleConfig",
    "Sigv4AuthConfig",
    # Credentials
    "AssumeRoleCredentialsProvider",
    "Credentials",
    "CredentialsProvider",
    "DefaultChainCredentialsProvider",
    "StaticCredentialsProvider",
    "ACCESS_KEY_ENV_VAR",
    "SECRET_KEY_ENV_VAR",
    "resolve_credentials_provider",
    # Signing
    "EMPTY_PAYLOAD_HASH",
    "SigV4Signer",
    "SigningResult",
    "hash_payload",
    "SigningTransport",
    "AsyncSigningTransport",
    # Extension
    "Sigv4AuthExtension",
    "create_extension",
    # Errors
    "Sigv4AuthError",
    "InvalidConfigError",
    "ConfigResolutionError",
    "CredentialRetrievalError",
    "BodyReadError",
    "UnsupportedCapabilityError",
]
