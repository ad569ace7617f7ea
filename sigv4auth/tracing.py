"""OpenTelemetry tracing helpers for sigv4auth.

Only the OpenTelemetry API is used here. Whether spans are recorded and
where they are exported is decided by the host application's tracer
provider; without one the spans are no-ops.
"""

from functools import wraps
from typing import Callable, TypeVar, ParamSpec

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

P = ParamSpec("P")
T = TypeVar("T")

TRACER_NAME = "sigv4auth"


def get_tracer() -> trace.Tracer:
    """Get the sigv4auth tracer from the global tracer provider."""
    return trace.get_tracer(TRACER_NAME)


def traced(name: str | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Run the decorated function inside a span.

    The span ends with an OK status, or ERROR plus the recorded exception
    if the function raises. Attributes are added from inside the function
    through ``trace.get_current_span()``.

    Args:
        name: Span name (defaults to function name)
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        span_name = name or func.__name__

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with get_tracer().start_as_current_span(span_name) as span:
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_resolution_span_attributes(
    span: trace.Span,
    region: str | None = None,
    service: str | None = None,
    role_arn: str | None = None,
    sts_region: str | None = None,
    credentials_source: str | None = None,
) -> None:
    """Add credential-resolution attributes to a span.

    Args:
        span: The span to add attributes to
        region: Signing region
        service: Signing service name
        role_arn: Configured role ARN, if any
        sts_region: Region of the STS endpoint
        credentials_source: Source of the provider finally chosen
    """
    if region:
        span.set_attribute("aws.region", region)
    if service:
        span.set_attribute("aws.service", service)
    if role_arn:
        span.set_attribute("aws.assume_role.arn", role_arn)
    if sts_region:
        span.set_attribute("aws.assume_role.sts_region", sts_region)
    if credentials_source:
        span.set_attribute("sigv4auth.credentials_source", credentials_source)
