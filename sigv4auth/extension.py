"""
SigV4 authentication extension.

The extension is what a host (e.g. a telemetry exporter) holds on to. It
resolves credentials once at construction and then hands out signing
transports for HTTP clients. Signing of RPC channels is not supported.

Usage:
    from sigv4auth import Sigv4AuthConfig, create_extension

    extension = create_extension(
        Sigv4AuthConfig(region="us-east-1", service="execute-api")
    )
    client = httpx.Client(transport=extension.round_tripper(httpx.HTTPTransport()))
"""

import logging
from typing import Mapping, NoReturn, Optional

import httpx

from .config import Sigv4AuthConfig
from .credentials import CredentialsProvider
from .errors import UnsupportedCapabilityError
from .resolver import resolve_credentials_provider
from .transport import AsyncSigningTransport, SigningTransport, default_sdk_info

logger = logging.getLogger(__name__)


class Sigv4AuthExtension:
    """
    Client authenticator that signs HTTP requests with AWS SigV4.

    Attributes:
        config: Extension configuration
        credentials_provider: Provider shared by every transport handed out
        sdk_info: SDK identifier appended to User-Agent
    """

    def __init__(
        self,
        config: Sigv4AuthConfig,
        credentials_provider: CredentialsProvider,
    ):
        self.config = config
        self.credentials_provider = credentials_provider
        self.sdk_info = default_sdk_info()

    def start(self) -> None:
        """Nothing to start; credentials were resolved at construction."""

    def shutdown(self) -> None:
        """Nothing to release; wrapped transports belong to their clients."""

    def round_tripper(
        self, base: Optional[httpx.BaseTransport] = None
    ) -> SigningTransport:
        """
        Wrap a transport so every request it sends is signed.

        Args:
            base: Transport to delegate to (default: a new httpx.HTTPTransport)

        Returns:
            SigningTransport sharing this extension's credentials provider
        """
        return SigningTransport(
            base if base is not None else httpx.HTTPTransport(),
            region=self.config.region,
            service=self.config.service,
            credentials_provider=self.credentials_provider,
            sdk_info=self.sdk_info,
        )

    def async_round_tripper(
        self, base: Optional[httpx.AsyncBaseTransport] = None
    ) -> AsyncSigningTransport:
        """Async variant of round_tripper."""
        return AsyncSigningTransport(
            base if base is not None else httpx.AsyncHTTPTransport(),
            region=self.config.region,
            service=self.config.service,
            credentials_provider=self.credentials_provider,
            sdk_info=self.sdk_info,
        )

    def per_rpc_credentials(self) -> NoReturn:
        """
        Per-call credentials for RPC channels.

        Only HTTP signing is supported, so this always raises.

        Raises:
            UnsupportedCapabilityError: Always
        """
        raise UnsupportedCapabilityError("per-RPC credentials")


def create_extension(
    config: Sigv4AuthConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> Sigv4AuthExtension:
    """
    Validate the configuration, resolve credentials and build the extension.

    Args:
        config: Extension configuration
        environ: Environment for the static-credential override (default: os.environ)

    Returns:
        Sigv4AuthExtension ready to hand out signing transports

    Raises:
        InvalidConfigError: If region or service is missing
        ConfigResolutionError: If credentials cannot be obtained
    """
    config.validate()
    provider = resolve_credentials_provider(config, environ)
    logger.info(
        "SigV4 auth ready for service %s in %s",
        config.service,
        config.region,
    )
    return Sigv4AuthExtension(config, provider)
