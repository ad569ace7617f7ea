"""Configuration for the SigV4 authentication extension."""

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from .errors import InvalidConfigError


@dataclass(frozen=True)
class AssumeRoleConfig:
    """Optional cross-account role to assume through STS."""

    # Role ARN; empty means no role is assumed
    arn: str = ""

    # Region of the STS endpoint; empty falls back to ambient resolution
    sts_region: str = ""

    # RoleSessionName sent to STS; generated when empty
    session_name: str = ""


@dataclass(frozen=True)
class Sigv4AuthConfig:
    """Configuration for the SigV4 authentication extension."""

    region: str = ""
    service: str = ""
    assume_role: AssumeRoleConfig = field(default_factory=AssumeRoleConfig)

    def validate(self) -> None:
        """Check that the fields needed for signing are present.

        Raises:
            InvalidConfigError: If region or service is empty
        """
        if not self.region:
            raise InvalidConfigError("region")
        if not self.service:
            raise InvalidConfigError("service")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Sigv4AuthConfig":
        """
        Build a configuration from a loader-produced mapping.

        The mapping uses the collector-style keys::

            region: us-east-1
            service: execute-api
            assume_role:
              arn: arn:aws:iam::123456789012:role/telemetry
              sts_region: us-east-1

        Args:
            data: Parsed configuration mapping

        Returns:
            Sigv4AuthConfig instance

        Raises:
            InvalidConfigError: If ``assume_role`` is present but not a mapping
        """
        assume_role = data.get("assume_role") or {}
        if not isinstance(assume_role, Mapping):
            raise InvalidConfigError("assume_role", "must be a mapping")
        return cls(
            region=data.get("region") or "",
            service=data.get("service") or "",
            assume_role=AssumeRoleConfig(
                arn=assume_role.get("arn") or "",
                sts_region=assume_role.get("sts_region") or "",
                session_name=assume_role.get("session_name") or "",
            ),
        )

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Sigv4AuthConfig":
        """Load configuration from environment variables (and a .env file)."""
        load_dotenv(env_file)
        return cls(
            region=os.getenv("SIGV4AUTH_REGION", ""),
            service=os.getenv("SIGV4AUTH_SERVICE", ""),
            assume_role=AssumeRoleConfig(
                arn=os.getenv("SIGV4AUTH_ASSUME_ROLE_ARN", ""),
                sts_region=os.getenv("SIGV4AUTH_ASSUME_ROLE_STS_REGION", ""),
                session_name=os.getenv("SIGV4AUTH_ASSUME_ROLE_SESSION_NAME", ""),
            ),
        )
