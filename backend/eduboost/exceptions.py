"""
EduBoost Gateway — Error Type and Normalizer
=============================================

What:  Defines the single application error type and the function that turns
       any failure into the public error shape.
Why:   The browser client unwraps every failure with one routine, so every
       endpoint must answer with the same JSON shape regardless of cause.
How:   Services raise ApiError with a status and a symbolic code. Global
       exception handlers (registered in main.py) call normalize_error() and
       serialize the result.
Who:   Raised by services, dependencies and middleware; normalized in main.py.

Response shape (any failing call):
    {
        "error": {
            "code": "UPSTREAM_UNAVAILABLE",
            "message": "Upstream AI service is temporarily unavailable.",
            "details": {"upstreamMessage": "..."},
            "requestId": "req_abc123"
        }
    }

Error taxonomy:
    400  INVALID_INPUT, INPUT_TOO_LARGE, INVALID_JSON
    401  UNAUTHORIZED, INVALID_CREDENTIALS
    413  PAYLOAD_TOO_LARGE
    429  RATE_LIMITED, UPSTREAM_RATE_LIMIT
    500  MISSING_API_KEY, AUTH_NOT_CONFIGURED, PROF_AUTH_NOT_CONFIGURED, INTERNAL_ERROR
    502  UPSTREAM_AUTH_ERROR, UPSTREAM_UNAVAILABLE, UPSTREAM_ERROR, UPSTREAM_INVALID_RESPONSE

Design Decision:
    One exception class carrying status/code instead of a subclass per error.
    The HTTP status and code are data, so a hierarchy would only restate them.
    `requestId` is the upstream correlation id (x-request-id from the AI API),
    not our own X-Request-ID header.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

INTERNAL_ERROR_MESSAGE = "Unexpected server error."


class ApiError(Exception):
    """
    The one error type of the gateway.

    Attributes are read-only once constructed.

    Attributes:
        status:      HTTP status code returned to the client
        code:        Stable symbolic code (e.g. "RATE_LIMITED")
        message:     Human-readable, safe to show to the user
        details:     Optional structured payload (e.g. retry hints)
        request_id:  Upstream correlation id, when the failure came from upstream
    """

    def __init__(
        self,
        status: int,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self._status = status
        self._code = code
        self._message = message
        self._details = dict(details) if details else None
        self._request_id = request_id or None

    @property
    def status(self) -> int:
        return self._status

    @property
    def code(self) -> str:
        return self._code

    @property
    def message(self) -> str:
        return self._message

    @property
    def details(self) -> Optional[Dict[str, Any]]:
        # Copy so callers cannot mutate the error after the fact
        return dict(self._details) if self._details is not None else None

    @property
    def request_id(self) -> Optional[str]:
        return self._request_id

    def __repr__(self) -> str:
        return f"ApiError(status={self._status}, code={self._code!r}, message={self._message!r})"


@dataclass(frozen=True)
class NormalizedError:
    """HTTP status plus the JSON body to send."""

    status: int
    body: Dict[str, Any]


def normalize_error(error: Any) -> NormalizedError:
    """
    Map any failure value to {status, body:{error:{code,message,details,requestId}}}.

    Total: accepts ApiError, any other exception, or even a non-exception value
    and never raises. Unknown failures become a 500 INTERNAL_ERROR with a generic
    message so nothing internal reaches the client.
    """
    if isinstance(error, ApiError):
        return NormalizedError(
            status=error.status,
            body={
                "error": {
                    "code": error.code,
                    "message": error.message,
                    "details": error.details,
                    "requestId": error.request_id,
                }
            },
        )

    return NormalizedError(
        status=500,
        body={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": INTERNAL_ERROR_MESSAGE,
                "details": None,
                "requestId": None,
            }
        },
    )
