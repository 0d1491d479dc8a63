"""Structural validation of a requested fee split.

Rules are checked in order and the first violation wins; the full list
is attached to the raised error for callers that want diagnostics:

1. recipient count in [1, 100]
2. no duplicate identities
3. bps sum to exactly 10000 (no implicit remainder for the creator)
4. every bps is a positive integer
"""

from collections.abc import Sequence
from dataclasses import dataclass

from ..constants import MAX_RECIPIENTS, MIN_RECIPIENTS, TOTAL_BPS
from ..errors import DuplicateRecipient, InvalidSplit, TooManyRecipients
from ..types import FeeRecipientRequest


@dataclass(frozen=True)
class SplitViolation:
    rule: int
    error: type[InvalidSplit]
    message: str
    recipient_index: int | None = None


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def collect_split_violations(requests: Sequence[FeeRecipientRequest]) -> list[SplitViolation]:
    """Return every violation in rule order (empty when the split is valid)."""
    violations: list[SplitViolation] = []

    # 1. Count
    count = len(requests)
    if count < MIN_RECIPIENTS:
        violations.append(SplitViolation(1, InvalidSplit, "At least one recipient is required"))
    elif count > MAX_RECIPIENTS:
        violations.append(
            SplitViolation(
                1, TooManyRecipients, f"At most {MAX_RECIPIENTS} recipients allowed, got {count}"
            )
        )

    # 2. Duplicate identities
    seen: dict[tuple[str, ...], int] = {}
    for i, request in enumerate(requests):
        key = request.identity_key
        if key in seen:
            violations.append(
                SplitViolation(
                    2,
                    DuplicateRecipient,
                    f"Duplicate recipient {request.label} at positions {seen[key]} and {i}",
                    recipient_index=i,
                )
            )
        else:
            seen[key] = i

    # 3. Exact sum
    if all(isinstance(r.bps, int) for r in requests):
        total_bps = sum(r.bps for r in requests)
        if requests and total_bps != TOTAL_BPS:
            violations.append(
                SplitViolation(3, InvalidSplit, f"Recipient bps must sum to {TOTAL_BPS}, got {total_bps}")
            )

    # 4. Positive integer shares
    for i, request in enumerate(requests):
        if not _is_positive_int(request.bps):
            violations.append(
                SplitViolation(
                    4,
                    InvalidSplit,
                    f"bps must be a positive integer, got {request.bps!r} for {request.label}",
                    recipient_index=i,
                )
            )

    return violations


def validate_split(requests: Sequence[FeeRecipientRequest]) -> list[FeeRecipientRequest]:
    """Validate a requested split, returning it as a list.

    Raises:
        InvalidSplit: (or TooManyRecipients / DuplicateRecipient) for the
            first violated rule, with all violations in ``.violations``.
    """
    violations = collect_split_violations(requests)
    if violations:
        first = violations[0]
        raise first.error(first.message, violations=violations)
    return list(requests)
