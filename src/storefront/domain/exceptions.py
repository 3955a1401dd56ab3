"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI and HTTP layers can catch them uniformly and map them to
user-facing messages and status codes.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransition(DomainException):
    """The requested status is not reachable from the current one."""


class NotReturnable(DomainException):
    """An order item cannot be returned."""

    def __init__(self, item_name: str, reason: str) -> None:
        super().__init__(f"'{item_name}' cannot be returned: {reason}")
        self.item_name = item_name
        self.reason = reason


# ---------------------------------------------------------------------------
# Digital downloads
# ---------------------------------------------------------------------------


class DownloadError(DomainException):
    """Base class for token redemption failures.

    ``public_message`` is what an untrusted caller gets to see; the
    exception text itself may carry more detail and is only logged.
    """

    status_code = 500
    public_message = "Download failed"


class TokenNotFound(DownloadError):
    status_code = 404
    public_message = "Download link not found"


class TokenExpired(DownloadError):
    # Shares status and message with TokenAlreadyConsumed so callers cannot
    # tell the two apart.
    status_code = 410
    public_message = "Download link is no longer valid"


class TokenAlreadyConsumed(DownloadError):
    status_code = 410
    public_message = "Download link is no longer valid"


class DownloadLimitExceeded(DownloadError):
    status_code = 429
    public_message = "Download limit exceeded for this purchase"


class UpstreamUnavailable(DownloadError):
    """The origin fetch failed after the token was consumed.

    Retryable by the caller; the redemption itself is not undone.
    """

    status_code = 503
    public_message = "File temporarily unavailable"
