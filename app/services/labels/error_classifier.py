"""
Upstream error classification.

Turns a non-2xx response into an ErrorKind. The rules are explicit so they
can be tested in isolation.

Carrier responses (``classify_upstream_response``):

1. 404 with a structured body (a JSON object) means the carrier says the
   shipment does not exist.
2. 404 with anything else (empty, text, HTML) means the route itself is
   missing: a connectivity problem, not a business error.
3. Every other non-2xx is an upstream rejection.

Responses from this service's own proxy routes (``classify_proxy_response``):
every carrier failure they return carries an ``error_kind`` envelope, which
is authoritative. A non-2xx without a known ``error_kind`` never came from
the carrier, so a 404 is a missing proxy route (CONNECTIVITY_ERROR) and
anything else is UPSTREAM_ERROR.

Only SHIPMENT_NOT_FOUND may trigger the booking fallback.
"""

import json
from typing import Any

from app.domain.models.label_result import ErrorKind


def parse_structured_body(body: str | bytes | None) -> dict[str, Any] | None:
    """
    Parse a response body as a JSON object.

    Returns:
        dict | None: The object, or None when the body is empty, not JSON,
        or JSON that is not an object
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not body.strip():
        return None
    try:
        parsed = json.loads(body)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def classify_upstream_response(status: int, body: str | bytes | None) -> ErrorKind:
    """
    Classify a non-success upstream response.

    Args:
        status: HTTP status code
        body: Raw response body

    Returns:
        ErrorKind: Normalized failure kind

    Raises:
        ValueError: If called with a 2xx status
    """
    if 200 <= status < 300:
        raise ValueError(f"Status {status} is a success, nothing to classify")

    if status == 404:
        return ErrorKind.SHIPMENT_NOT_FOUND if parse_structured_body(body) is not None else ErrorKind.CONNECTIVITY_ERROR

    return ErrorKind.UPSTREAM_ERROR


def classify_proxy_response(status: int, body: str | bytes | None) -> ErrorKind:
    """
    Classify a non-success response from the label proxy routes.

    Args:
        status: HTTP status code
        body: Raw response body

    Returns:
        ErrorKind: The declared kind, or the proxy-route fallback
    """
    if 200 <= status < 300:
        raise ValueError(f"Status {status} is a success, nothing to classify")

    envelope = parse_structured_body(body)
    if envelope is not None:
        declared = ErrorKind.parse(envelope.get("error_kind"))
        if declared is not None:
            return declared

    # Without a known error_kind the structured-404 carrier rule does not apply
    return ErrorKind.CONNECTIVITY_ERROR if status == 404 else ErrorKind.UPSTREAM_ERROR


def body_excerpt(body: str | bytes | None, limit: int = 2000) -> str:
    """Raw body as text, truncated for diagnostics."""
    if body is None:
        return ""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return body if len(body) <= limit else f"{body[:limit]}... [truncated]"
