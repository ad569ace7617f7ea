"""
AWS Signature Version 4 request signing.

This module implements the SigV4 algorithm independently of any HTTP
library: it takes a method, URL, headers and payload hash and produces the
``Authorization``, ``X-Amz-Date`` and (for temporary credentials)
``X-Amz-Security-Token`` headers.

Usage:
    signer = SigV4Signer(region="us-east-1", service="execute-api")
    result = signer.sign(
        method="POST",
        url="https://abc123.execute-api.us-east-1.amazonaws.com/v1/traces",
        headers={"Content-Type": "application/x-protobuf"},
        payload_hash=hash_payload(body),
        credentials=credentials,
        signing_time=datetime.datetime.now(datetime.timezone.utc),
    )
    request_headers.update(result.headers)
"""

import datetime
import hashlib
import hmac
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union
from urllib.parse import quote, quote_from_bytes, unquote_to_bytes, urlsplit

from .credentials import Credentials

ALGORITHM = "AWS4-HMAC-SHA256"

EMPTY_PAYLOAD_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

# Headers that proxies and transports are free to rewrite
UNSIGNED_HEADERS = frozenset({
    "authorization",
    "user-agent",
    "x-amzn-trace-id",
    "expect",
    "transfer-encoding",
})

_UNRESERVED = "-_.~"

HeaderItems = Union[Mapping[str, str], Iterable[tuple[str, str]]]


def hash_payload(body: bytes) -> str:
    """Lowercase hex SHA-256 of the request body."""
    if not body:
        return EMPTY_PAYLOAD_HASH
    return hashlib.sha256(body).hexdigest()


def _trim(value: str) -> str:
    return " ".join(value.split())


def _requote(component: str) -> str:
    # Works on bytes so escapes that are not valid UTF-8 survive unchanged
    raw = unquote_to_bytes(component.replace("+", " "))
    return quote_from_bytes(raw, safe=_UNRESERVED)


@dataclass(frozen=True)
class SigningResult:
    """Output of one signing operation."""
    authorization: str
    amz_date: str
    signed_headers: str
    signature: str
    canonical_request: str
    string_to_sign: str
    session_token: Optional[str] = None

    @property
    def headers(self) -> dict[str, str]:
        """Headers to attach to the outgoing request."""
        headers = {
            "Authorization": self.authorization,
            "X-Amz-Date": self.amz_date,
        }
        if self.session_token:
            headers["X-Amz-Security-Token"] = self.session_token
        return headers


class SigV4Signer:
    """
    AWS Signature Version 4 signer bound to a region and service.

    The signer holds no per-request state and can be shared between threads.

    Attributes:
        region: AWS region (e.g., "us-east-1")
        service: AWS service name (e.g., "execute-api")
    """

    def __init__(self, region: str, service: str):
        self.region = region
        self.service = service

    def _sign(self, key: bytes, msg: str) -> bytes:
        """Create HMAC-SHA256 signature."""
        return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()

    def get_signature_key(self, secret_key: str, date_stamp: str) -> bytes:
        """
        Derive the signing key for SigV4.

        Args:
            secret_key: AWS secret access key
            date_stamp: Date in YYYYMMDD format

        Returns:
            Derived signing key
        """
        k_date = self._sign(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
        k_region = self._sign(k_date, self.region)
        k_service = self._sign(k_region, self.service)
        return self._sign(k_service, "aws4_request")

    def credential_scope(self, date_stamp: str) -> str:
        return f"{date_stamp}/{self.region}/{self.service}/aws4_request"

    @staticmethod
    def canonical_uri(path: str) -> str:
        """
        Encode an already-escaped URL path for the canonical request.

        Every segment is percent-encoded again, which is what non-S3
        services expect; "/" separators are kept.
        """
        if not path:
            return "/"
        return "/".join(quote(segment, safe=_UNRESERVED) for segment in path.split("/"))

    @staticmethod
    def canonical_query_string(query: str) -> str:
        """Re-encode query parameters and sort them by key, then value."""
        pairs = []
        for param in query.split("&"):
            if not param:
                continue
            key, _, value = param.partition("=")
            pairs.append((_requote(key), _requote(value)))
        pairs.sort()
        return "&".join(f"{key}={value}" for key, value in pairs)

    def create_canonical_request(
        self,
        method: str,
        url: str,
        canonical_headers: str,
        signed_headers: str,
        payload_hash: str,
    ) -> str:
        """
        Create the canonical request string for SigV4.

        Args:
            method: HTTP method
            url: Request URL, path already percent-escaped
            canonical_headers: Rendered ``name:value\\n`` block
            signed_headers: Semicolon-separated list of signed header names
            payload_hash: SHA256 hash of the request payload

        Returns:
            Canonical request string
        """
        parsed = urlsplit(url)
        return "\n".join([
            method.upper(),
            self.canonical_uri(parsed.path),
            self.canonical_query_string(parsed.query),
            canonical_headers,
            signed_headers,
            payload_hash,
        ])

    def create_string_to_sign(
        self,
        amz_date: str,
        date_stamp: str,
        canonical_request: str,
    ) -> str:
        """
        Create the string to sign for SigV4.

        Args:
            amz_date: Timestamp in ISO 8601 basic format
            date_stamp: Date in YYYYMMDD format
            canonical_request: The canonical request string

        Returns:
            String to sign
        """
        return "\n".join([
            ALGORITHM,
            amz_date,
            self.credential_scope(date_stamp),
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ])

    def sign(
        self,
        method: str,
        url: str,
        headers: HeaderItems,
        payload_hash: str,
        credentials: Credentials,
        signing_time: datetime.datetime,
    ) -> SigningResult:
        """
        Sign an HTTP request using AWS SigV4.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Full request URL
            headers: Request headers as a mapping or (name, value) pairs;
                repeated names are joined with commas
            payload_hash: Hex SHA-256 of the body (see ``hash_payload``)
            credentials: Credentials to sign with
            signing_time: Signing timestamp; naive values are taken as UTC

        Returns:
            SigningResult with the headers to attach
        """
        if signing_time.tzinfo is None:
            signing_time = signing_time.replace(tzinfo=datetime.timezone.utc)
        else:
            signing_time = signing_time.astimezone(datetime.timezone.utc)
        amz_date = signing_time.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = signing_time.strftime("%Y%m%d")

        items = headers.items() if isinstance(headers, Mapping) else headers
        values: dict[str, list[str]] = {}
        for name, value in items:
            key = name.strip().lower()
            if key in UNSIGNED_HEADERS or key in ("x-amz-date", "x-amz-security-token"):
                continue
            values.setdefault(key, []).append(_trim(value))

        if "host" not in values:
            values["host"] = [urlsplit(url).netloc.rpartition("@")[2]]
        values["x-amz-date"] = [amz_date]
        if credentials.session_token:
            values["x-amz-security-token"] = [credentials.session_token]

        names = sorted(values)
        canonical_headers = "".join(f"{name}:{','.join(values[name])}\n" for name in names)
        signed_headers = ";".join(names)

        canonical_request = self.create_canonical_request(
            method=method,
            url=url,
            canonical_headers=canonical_headers,
            signed_headers=signed_headers,
            payload_hash=payload_hash,
        )
        string_to_sign = self.create_string_to_sign(
            amz_date=amz_date,
            date_stamp=date_stamp,
            canonical_request=canonical_request,
        )

        signing_key = self.get_signature_key(credentials.secret_key, date_stamp)
        signature = hmac.new(
            signing_key,
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

        authorization = (
            f"{ALGORITHM} "
            f"Credential={credentials.access_key}/{self.credential_scope(date_stamp)}, "
            f"SignedHeaders={signed_headers}, "
            f"Signature={signature}"
        )

        return SigningResult(
            authorization=authorization,
            amz_date=amz_date,
            signed_headers=signed_headers,
            signature=signature,
            canonical_request=canonical_request,
            string_to_sign=string_to_sign,
            session_token=credentials.session_token,
        )
