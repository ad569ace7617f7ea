"""
AWS credentials providers for SigV4 signing.

Every source of credentials is exposed through the same capability,
``retrieve() -> Credentials``, so the signing path never needs to know where
the keys came from:

- StaticCredentialsProvider: a fixed access key pair
- DefaultChainCredentialsProvider: the botocore default chain (environment,
  shared config files, container and instance metadata)
- AssumeRoleCredentialsProvider: STS AssumeRole on top of another session,
  cached and refreshed before the assumed session expires

All providers are safe to call from many threads at once.
"""

import datetime
import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.credentials import RefreshableCredentials
from botocore.exceptions import BotoCoreError, ClientError

from .errors import CredentialRetrievalError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """A snapshot of AWS credentials used to sign one request."""
    access_key: str
    secret_key: str
    session_token: Optional[str] = None
    expiry: Optional[datetime.datetime] = None


class CredentialsProvider(Protocol):
    """Anything that can hand out credentials for signing."""

    source: str

    def retrieve(self) -> Credentials:
        ...


class StaticCredentialsProvider:
    """Provider that always returns the same key pair."""

    source = "static"

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        session_token: Optional[str] = None,
    ):
        self._credentials = Credentials(
            access_key=access_key,
            secret_key=secret_key,
            session_token=session_token or None,
        )

    def retrieve(self) -> Credentials:
        if not self._credentials.access_key or not self._credentials.secret_key:
            raise CredentialRetrievalError(self.source, "static credentials are empty")
        return self._credentials


class DefaultChainCredentialsProvider:
    """
    Provider backed by the botocore default credential chain.

    The chain is walked lazily on the first ``retrieve()`` so that building
    the provider never touches the network. botocore returns refreshable
    credentials for sources that expire (container, instance metadata, SSO),
    and ``get_frozen_credentials()`` gives an atomic snapshot of them.

    Attributes:
        session: The boto3 session the chain is resolved through
    """

    source = "default-chain"

    def __init__(
        self,
        region: Optional[str] = None,
        session: Optional[boto3.Session] = None,
    ):
        """
        Initialize the provider.

        Args:
            region: Region to scope the session to; ambient resolution if empty
            session: Optional pre-built boto3 session

        Raises:
            BotoCoreError: If the session cannot be created (e.g. unknown profile)
        """
        self.session = session or boto3.Session(region_name=region or None)
        self._credentials = None
        self._lock = threading.Lock()

    def _resolve(self):
        with self._lock:
            if self._credentials is None:
                try:
                    credentials = self.session.get_credentials()
                except BotoCoreError as e:
                    raise CredentialRetrievalError(self.source, str(e)) from e
                if credentials is None:
                    raise CredentialRetrievalError(self.source, "no AWS credentials found")
                logger.debug("Default chain resolved credentials via %s", credentials.method)
                self._credentials = credentials
            return self._credentials

    def retrieve(self) -> Credentials:
        credentials = self._resolve()
        try:
            frozen = credentials.get_frozen_credentials()
        except (BotoCoreError, ClientError) as e:
            raise CredentialRetrievalError(self.source, str(e)) from e
        return Credentials(
            access_key=frozen.access_key,
            secret_key=frozen.secret_key,
            session_token=frozen.token or None,
        )


def default_session_name() -> str:
    """Generate an STS RoleSessionName when none is configured."""
    return f"sigv4auth-{time.time_ns()}"


class AssumeRoleCredentialsProvider:
    """
    Provider that assumes an IAM role through STS.

    The STS client signs its own calls with the base provider's session, so
    the role is assumed on top of whatever the default chain found. The
    assumed session is held in botocore ``RefreshableCredentials``, which
    refreshes it ahead of expiry and serializes concurrent refreshes.

    Attributes:
        role_arn: ARN of the role to assume
        session_name: RoleSessionName sent to STS
    """

    source = "sts-assume-role"

    def __init__(
        self,
        role_arn: str,
        base: DefaultChainCredentialsProvider,
        sts_region: Optional[str] = None,
        session_name: Optional[str] = None,
    ):
        """
        Initialize the provider.

        Args:
            role_arn: ARN of the role to assume
            base: Provider whose session calls STS
            sts_region: Region of the STS endpoint
            session_name: Optional RoleSessionName

        Raises:
            BotoCoreError: If the STS client cannot be created
        """
        self.role_arn = role_arn
        self.session_name = session_name or default_session_name()
        self._sts = base.session.client("sts", region_name=sts_region or None)
        self._credentials: Optional[RefreshableCredentials] = None
        # Session token -> expiry for the current and previous assumed session
        self._expiries: dict[str, datetime.datetime] = {}
        self._latest_token: Optional[str] = None
        self._lock = threading.Lock()
        self._expiry_lock = threading.Lock()

    def _assume_role(self) -> dict:
        response = self._sts.assume_role(
            RoleArn=self.role_arn,
            RoleSessionName=self.session_name,
        )
        credentials = response["Credentials"]
        token = credentials["SessionToken"]
        expiry = credentials["Expiration"]
        with self._expiry_lock:
            expiries = {token: expiry}
            if self._latest_token in self._expiries:
                expiries[self._latest_token] = self._expiries[self._latest_token]
            self._expiries = expiries
            self._latest_token = token
        logger.info(
            "Assumed role %s (session expires %s)",
            self.role_arn,
            expiry.isoformat(),
        )
        return {
            "access_key": credentials["AccessKeyId"],
            "secret_key": credentials["SecretAccessKey"],
            "token": token,
            "expiry_time": expiry.isoformat(),
        }

    def _refreshable(self) -> RefreshableCredentials:
        with self._lock:
            if self._credentials is None:
                self._credentials = RefreshableCredentials.create_from_metadata(
                    metadata=self._assume_role(),
                    refresh_using=self._assume_role,
                    method=self.source,
                )
            return self._credentials

    def retrieve(self) -> Credentials:
        try:
            frozen = self._refreshable().get_frozen_credentials()
        except (BotoCoreError, ClientError) as e:
            raise CredentialRetrievalError(self.source, str(e)) from e
        with self._expiry_lock:
            expiry = self._expiries.get(frozen.token)
        return Credentials(
            access_key=frozen.access_key,
            secret_key=frozen.secret_key,
            session_token=frozen.token or None,
            expiry=expiry,
        )
