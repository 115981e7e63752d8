"""Standard API response helpers."""

# Standard Library
from typing import Any

# Third-Party
from starlette.responses import JSONResponse


def success(data: Any = None, **extra: Any) -> dict[str, Any]:
    """Create a success response envelope.

    Args:
        data: Optional response payload.
        **extra: Additional top-level fields.

    Returns:
        Dict with success flag, data when given, and extra fields.
    """

    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def failure(message: str, status_code: int = 400, **extra: Any) -> JSONResponse:
    """Create a failure response.

    Args:
        message: Human-readable error message.
        status_code: HTTP status code.
        **extra: Additional top-level fields (e.g. errors).

    Returns:
        JSONResponse with success false.
    """

    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


def rate_limited(message: str, retry_after: int) -> JSONResponse:
    """Create the 429 response sent when a caller is over its limit."""

    response = failure(message, 429, retryAfter=retry_after)
    response.headers["Retry-After"] = str(retry_after)
    return response
