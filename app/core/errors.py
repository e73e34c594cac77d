"""Error taxonomy for the subscription flow.

ValidationError is reported to the caller (4xx), SinkError is only logged,
InternalError becomes a generic 5xx.
"""


class TarotError(Exception):
    """Base class for application errors."""


class ValidationError(TarotError):
    """User input is malformed.

    ``reason`` is the stable machine-readable cause ("name required",
    "invalid email"); ``user_message`` is what the visitor sees.
    """

    def __init__(self, reason: str, user_message: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.user_message = user_message or reason


class SinkError(TarotError):
    """A downstream ledger/email delivery failed."""

    def __init__(self, sink: str, cause: BaseException | None = None):
        super().__init__(f"{sink} sink failed: {cause!r}")
        self.sink = sink
        self.cause = cause


class InternalError(TarotError):
    """Unexpected fault, e.g. a request body that is not a JSON object."""
