"""Error taxonomy for the OPA policy console.

Every failure the service raises derives from ConsoleError so the proxy
boundary can translate it into an `{"error": message}` response:

- ValidationError: bad or missing input, rejected before any network call (400)
- ParseError: malformed JSON from the UI (400)
- MalformedResponseError: OPA answered 2xx with an undecodable body (500)
- UnrecognizedShapeError: OPA returned a result shape the decoder does not know (500)
- UpstreamError: OPA unreachable, timed out, or answered non-2xx (500)
"""


class ConsoleError(Exception):
    """Base error for the policy console.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status associated with the failure (if available).
    """

    http_status: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize ConsoleError.

        Args:
            message: Error description.
            status_code: Optional HTTP status code.
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ConsoleError):
    """Raised when a caller supplies missing or invalid input."""

    http_status = 400

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class ParseError(ConsoleError):
    """Raised when a JSON document cannot be parsed or decoded."""

    http_status = 400


class MalformedResponseError(ParseError):
    """Raised when OPA answers 2xx with a body that cannot be decoded."""

    http_status = 500


class UnrecognizedShapeError(MalformedResponseError):
    """Raised when an OPA response matches none of the known result shapes."""


class UpstreamError(ConsoleError):
    """Raised when the OPA server fails a request.

    Attributes:
        status_code: Upstream HTTP status, or None when OPA was unreachable.
        body: Upstream response text (empty when there was no response).
    """

    http_status = 500

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message, status_code=status_code)
        self.body = body
