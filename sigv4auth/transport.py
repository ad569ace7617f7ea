"""
httpx transports that sign every request with AWS SigV4.

The signing transports decorate an existing transport: each request is
buffered, hashed, signed with freshly retrieved credentials and handed to
the wrapped transport unchanged otherwise.

Usage:
    import httpx
    from sigv4auth import SigningTransport, StaticCredentialsProvider

    transport = SigningTransport(
        httpx.HTTPTransport(),
        region="us-east-1",
        service="execute-api",
        credentials_provider=StaticCredentialsProvider("AKIA...", "secret"),
    )
    with httpx.Client(transport=transport) as client:
        client.post("https://abc123.execute-api.us-east-1.amazonaws.com/v1/logs", content=payload)
"""

import asyncio
import datetime
import logging
from typing import Callable, Optional

import botocore
import httpx

from .credentials import Credentials, CredentialsProvider
from .errors import BodyReadError
from .signer import SigV4Signer, hash_payload

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime.datetime]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def default_sdk_info() -> str:
    """SDK identifier appended to the User-Agent of signed requests."""
    return f"botocore/{botocore.__version__}"


def _apply_signature(
    request: httpx.Request,
    body: bytes,
    credentials: Credentials,
    signer: SigV4Signer,
    signing_time: datetime.datetime,
    sdk_info: str,
) -> None:
    result = signer.sign(
        method=request.method,
        url=str(request.url),
        headers=request.headers.multi_items(),
        payload_hash=hash_payload(body),
        credentials=credentials,
        signing_time=signing_time,
    )

    request.headers.pop("X-Amz-Security-Token", None)
    request.headers.update(result.headers)

    user_agent = request.headers.get("User-Agent")
    request.headers["User-Agent"] = f"{user_agent} {sdk_info}" if user_agent else sdk_info

    logger.debug(
        "Signed %s %s (signed headers: %s)",
        request.method,
        request.url.host,
        result.signed_headers,
    )


class SigningTransport(httpx.BaseTransport):
    """
    Synchronous transport that signs requests before delegating.

    Attributes:
        transport: The wrapped transport that actually sends requests
        region: AWS region used in the credential scope
        service: AWS service name used in the credential scope
        credentials_provider: Shared provider queried on every request
    """

    def __init__(
        self,
        transport: httpx.BaseTransport,
        region: str,
        service: str,
        credentials_provider: CredentialsProvider,
        clock: Optional[Clock] = None,
        sdk_info: Optional[str] = None,
    ):
        self.transport = transport
        self.region = region
        self.service = service
        self.credentials_provider = credentials_provider
        self.signer = SigV4Signer(region=region, service=service)
        self.clock = clock or utc_now
        self.sdk_info = sdk_info or default_sdk_info()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        try:
            body = request.read()
        except Exception as e:
            raise BodyReadError(request.method, str(request.url), e) from e

        signing_time = self.clock()
        credentials = self.credentials_provider.retrieve()
        _apply_signature(request, body, credentials, self.signer, signing_time, self.sdk_info)

        return self.transport.handle_request(request)

    def close(self) -> None:
        self.transport.close()


class AsyncSigningTransport(httpx.AsyncBaseTransport):
    """
    Asynchronous counterpart of SigningTransport.

    Credential retrieval may call STS, so it runs in a worker thread to keep
    the event loop responsive.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        region: str,
        service: str,
        credentials_provider: CredentialsProvider,
        clock: Optional[Clock] = None,
        sdk_info: Optional[str] = None,
    ):
        self.transport = transport
        self.region = region
        self.service = service
        self.credentials_provider = credentials_provider
        self.signer = SigV4Signer(region=region, service=service)
        self.clock = clock or utc_now
        self.sdk_info = sdk_info or default_sdk_info()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        try:
            body = await request.aread()
        except Exception as e:
            raise BodyReadError(request.method, str(request.url), e) from e

        signing_time = self.clock()
        credentials = await asyncio.to_thread(self.credentials_provider.retrieve)
        _apply_signature(request, body, credentials, self.signer, signing_time, self.sdk_info)

        return await self.transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self.transport.aclose()
