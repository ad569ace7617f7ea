"""
Credential resolution for the SigV4 extension.

Resolution order, later steps overriding earlier ones:

1. The default credential chain, scoped to ``assume_role.sts_region``.
2. If ``assume_role.arn`` is set, an STS AssumeRole provider on top of it.
3. If both ``CUSTOM_AWS_ACCESS_KEY`` and ``CUSTOM_AWS_SECRET_ACCESS_KEY``
   are set and non-empty, a static key pair replaces whatever was built,
   even when an ARN is configured.
4. One eager ``retrieve()`` so that bad credentials fail at startup.
"""

import logging
import os
from typing import Mapping, Optional

from botocore.exceptions import BotoCoreError
from opentelemetry import trace

from .config import Sigv4AuthConfig
from .credentials import (
    AssumeRoleCredentialsProvider,
    CredentialsProvider,
    DefaultChainCredentialsProvider,
    StaticCredentialsProvider,
)
from .errors import ConfigResolutionError, CredentialRetrievalError
from .tracing import add_resolution_span_attributes, traced

logger = logging.getLogger(__name__)

ACCESS_KEY_ENV_VAR = "CUSTOM_AWS_ACCESS_KEY"
SECRET_KEY_ENV_VAR = "CUSTOM_AWS_SECRET_ACCESS_KEY"


@traced(name="sigv4auth.resolve_credentials")
def resolve_credentials_provider(
    config: Sigv4AuthConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> CredentialsProvider:
    """
    Build the credentials provider the signing transport will use.

    Args:
        config: Extension configuration
        environ: Environment to read the override keys from (default: os.environ)

    Returns:
        A provider that has already returned credentials once

    Raises:
        ConfigResolutionError: If no working provider can be built
    """
    if environ is None:
        environ = os.environ
    assume_role = config.assume_role
    span = trace.get_current_span()
    add_resolution_span_attributes(
        span,
        region=config.region,
        service=config.service,
        role_arn=assume_role.arn,
        sts_region=assume_role.sts_region,
    )

    try:
        chain = DefaultChainCredentialsProvider(region=assume_role.sts_region)
        provider: CredentialsProvider = chain
        if assume_role.arn:
            provider = AssumeRoleCredentialsProvider(
                role_arn=assume_role.arn,
                base=chain,
                sts_region=assume_role.sts_region,
                session_name=assume_role.session_name,
            )
    except BotoCoreError as e:
        raise ConfigResolutionError(f"failed to load AWS configuration: {e}") from e

    access_key = environ.get(ACCESS_KEY_ENV_VAR, "")
    secret_key = environ.get(SECRET_KEY_ENV_VAR, "")
    if access_key and secret_key:
        if assume_role.arn:
            logger.warning(
                "%s and %s are set; using static credentials instead of assuming %s",
                ACCESS_KEY_ENV_VAR,
                SECRET_KEY_ENV_VAR,
                assume_role.arn,
            )
        provider = StaticCredentialsProvider(access_key, secret_key)

    try:
        provider.retrieve()
    except CredentialRetrievalError as e:
        raise ConfigResolutionError(str(e)) from e

    add_resolution_span_attributes(span, credentials_source=provider.source)
    logger.info("Resolved AWS credentials from %s", provider.source)
    return provider
