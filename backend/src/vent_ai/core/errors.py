"""Error taxonomy shared by the store, oracle and orchestrator layers."""

from typing import Any


class VentAIError(Exception):
    """Base class for all application errors.

    Attributes:
        code: Stable machine-readable error code (used in error events).
    """

    code = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or str(self.args[0])


class ValidationError(VentAIError):
    """Malformed caller input."""

    code = "validation_error"


class StoreError(VentAIError):
    """Message store failure."""

    code = "store_error"


class StoreWriteError(StoreError):
    """The message store rejected a write."""

    code = "store_write_error"


class StoreReadError(StoreError):
    """The message store could not be queried."""

    code = "store_read_error"


class OracleError(VentAIError):
    """The AI oracle did not produce a reply."""

    code = "oracle_error"


class OracleUnavailableError(OracleError):
    """The AI oracle could not be reached or timed out."""

    code = "oracle_unavailable"


class OracleRejectedError(OracleError):
    """The AI provider answered with an explicit error."""

    code = "oracle_rejected"

    def __init__(self, status_code: int, details: Any) -> None:
        self.status_code = status_code
        self.details = details
        super().__init__(f"AI service error ({status_code}): {details}")


class OracleEmptyReplyError(OracleError):
    """The AI provider answered without usable content."""

    code = "oracle_empty_reply"
