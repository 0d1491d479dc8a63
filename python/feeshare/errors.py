"""Error taxonomy for the fee-share engine.

Every error can carry the workflow stage and the operation index it
occurred at, so callers never get a bare failure.
"""

from typing import Any

from .constants import (
    ERR_API,
    ERR_CONFIG,
    ERR_DEADLINE_EXCEEDED,
    ERR_DEPENDENCY_NOT_CONFIRMED,
    ERR_DIRECTORY_UNAVAILABLE,
    ERR_DUPLICATE_RECIPIENT,
    ERR_INVALID_SPLIT,
    ERR_INVALID_TRANSITION,
    ERR_LEDGER_REJECTION,
    ERR_PARTNER_OVERLAY,
    ERR_SEQUENCE_CANCELLED,
    ERR_SETTLING_NOT_ELAPSED,
    ERR_TOO_MANY_RECIPIENTS,
    ERR_TRANSIENT_FAILURE,
    ERR_UNLINKED_IDENTITY,
)


class FeeShareError(Exception):
    """Base error for the fee-share engine."""

    code = "fee_share_error"
    default_stage: str | None = None

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        operation_index: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage
        self.operation_index = operation_index
        # Set by the sequencer so callers can resume a partial run
        self.sequence: Any = None

    def __str__(self) -> str:
        where = []
        if self.stage:
            where.append(f"stage={self.stage}")
        if self.operation_index is not None:
            where.append(f"operation={self.operation_index}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


# --- Validation ---


class InvalidSplit(FeeShareError):
    """The requested fee split is structurally invalid."""

    code = ERR_INVALID_SPLIT
    default_stage = "validate"

    def __init__(self, message: str, *, violations: list | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.violations = violations or []


class TooManyRecipients(InvalidSplit):
    code = ERR_TOO_MANY_RECIPIENTS


class DuplicateRecipient(InvalidSplit):
    code = ERR_DUPLICATE_RECIPIENT


# --- Resolution ---


class UnlinkedIdentity(FeeShareError):
    """The directory has no wallet linked to a social identity."""

    code = ERR_UNLINKED_IDENTITY
    default_stage = "resolve"

    def __init__(self, provider: str, username: str, **kwargs: Any):
        super().__init__(f"No wallet linked to {provider}:{username}", **kwargs)
        self.provider = provider
        self.username = username


# --- Transient infrastructure errors (retryable) ---


class TransientError(FeeShareError):
    """A single call failed for infrastructure reasons and may be retried."""

    code = ERR_TRANSIENT_FAILURE


class DirectoryUnavailable(TransientError):
    """Transient identity directory failure (timeout, 5xx)."""

    code = ERR_DIRECTORY_UNAVAILABLE
    default_stage = "resolve"


class ApiUnavailable(TransientError):
    """Bags API timeout, transport error, rate limit or 5xx."""

    default_stage = "api"


class TransientLedgerError(TransientError):
    """Solana RPC timeout or transport error."""

    default_stage = "submit"


# --- Ledger and sequencing ---


class TransientFailure(FeeShareError):
    """Retries for a transient error were exhausted."""

    code = ERR_TRANSIENT_FAILURE


class DeadlineExceeded(FeeShareError):
    code = ERR_DEADLINE_EXCEEDED


class LedgerRejection(FeeShareError):
    """The ledger rejected an operation; the reason is kept verbatim."""

    code = ERR_LEDGER_REJECTION
    default_stage = "submit"

    def __init__(self, reason: str, **kwargs: Any):
        super().__init__(f"Ledger rejected transaction: {reason}", **kwargs)
        self.reason = reason


class SettlingNotElapsed(FeeShareError):
    code = ERR_SETTLING_NOT_ELAPSED
    default_stage = "settle"


class DependencyNotConfirmed(FeeShareError):
    code = ERR_DEPENDENCY_NOT_CONFIRMED
    default_stage = "submit"


class SequenceCancelled(FeeShareError):
    code = ERR_SEQUENCE_CANCELLED


class InvalidTransition(FeeShareError):
    code = ERR_INVALID_TRANSITION


# --- Partner, API, configuration ---


class PartnerOverlayError(FeeShareError):
    code = ERR_PARTNER_OVERLAY
    default_stage = "overlay"


class ApiError(FeeShareError):
    """Non-retryable error response from the Bags API."""

    code = ERR_API

    def __init__(self, message: str, status_code: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class ConfigError(FeeShareError):
    code = ERR_CONFIG
    default_stage = "config"
