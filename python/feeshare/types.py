"""Types for the fee-share configuration engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import (
    DEFAULT_PARTNER_BPS,
    MAX_RECIPIENTS,
    MIN_RECIPIENTS,
    TOTAL_BPS,
)
from .errors import (
    DuplicateRecipient,
    InvalidSplit,
    InvalidTransition,
    PartnerOverlayError,
    TooManyRecipients,
)


@dataclass(frozen=True)
class SocialIdentity:
    """A social account that may be linked to a launch wallet."""

    username: str
    provider: str  # twitter | kick | github

    @property
    def key(self) -> tuple[str, str]:
        return (self.provider.lower(), self.username.lower())

    def __str__(self) -> str:
        return f"{self.provider}:{self.username}"


@dataclass(frozen=True)
class FeeRecipientRequest:
    """A requested fee claimer, before identity resolution."""

    identity: str | SocialIdentity  # wallet address (base58) or social identity
    bps: int  # Basis points (1-10000)

    @property
    def is_wallet(self) -> bool:
        return isinstance(self.identity, str)

    @property
    def identity_key(self) -> tuple[str, ...]:
        if isinstance(self.identity, SocialIdentity):
            return ("social",) + self.identity.key
        return ("wallet", self.identity)

    @property
    def label(self) -> str:
        return str(self.identity)

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.identity, SocialIdentity):
            return {
                "username": self.identity.username,
                "provider": self.identity.provider,
                "bps": self.bps,
            }
        return {"wallet": self.identity, "bps": self.bps}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeeRecipientRequest":
        if data.get("wallet"):
            return cls(identity=data["wallet"], bps=data["bps"])
        if data.get("username") and data.get("provider"):
            return cls(
                identity=SocialIdentity(username=data["username"], provider=data["provider"]),
                bps=data["bps"],
            )
        raise ValueError("Fee claimer must have either wallet or username+provider")


@dataclass(frozen=True)
class ResolvedRecipient:
    """A fee claimer with a resolved wallet address."""

    address: str
    bps: int


@dataclass(frozen=True)
class PartnerOverlay:
    """A partner skim taken from gross fees, outside the recipients' 10000 bps."""

    partner: str
    partner_config: str
    bps: int = DEFAULT_PARTNER_BPS

    def validate(self) -> None:
        if not self.partner or not self.partner_config:
            raise PartnerOverlayError("Partner address and partner config are required")
        if isinstance(self.bps, bool) or not isinstance(self.bps, int):
            raise PartnerOverlayError(f"Partner bps must be an integer, got {self.bps!r}")
        if self.bps < 1 or self.bps > TOTAL_BPS:
            raise PartnerOverlayError(f"Partner bps must be 1-{TOTAL_BPS}, got {self.bps}")


class BatchState(str, Enum):
    PLANNED = "planned"
    CREATED = "created"
    SETTLING = "settling"
    EXTENDED = "extended"
    READY = "ready"


_BATCH_ORDER = list(BatchState)


@dataclass
class AddressBatch:
    """Addresses registered together in one lookup table.

    The handle is the lookup table address, known once the create
    transaction has been built.
    """

    index: int
    addresses: tuple[str, ...]
    handle: str | None = None
    state: BatchState = BatchState.PLANNED

    def advance(self, new_state: BatchState) -> None:
        current = _BATCH_ORDER.index(self.state)
        if _BATCH_ORDER.index(new_state) != current + 1:
            raise InvalidTransition(
                f"Illegal batch transition: {self.state.value} -> {new_state.value}",
                stage="batch",
            )
        self.state = new_state


@dataclass(frozen=True)
class BatchPlan:
    required: bool
    batches: tuple[AddressBatch, ...] = ()


@dataclass(frozen=True)
class FeeSplitPlan:
    """A validated, resolved fee split for one asset."""

    asset_id: str
    recipients: tuple[ResolvedRecipient, ...]
    partner_overlay: PartnerOverlay | None = None
    batch_plan: BatchPlan = field(default_factory=lambda: BatchPlan(required=False))

    def check_invariants(self) -> None:
        count = len(self.recipients)
        if count > MAX_RECIPIENTS:
            raise TooManyRecipients(f"At most {MAX_RECIPIENTS} recipients allowed, got {count}")
        if count < MIN_RECIPIENTS:
            raise InvalidSplit("At least one recipient is required")

        addresses = [r.address for r in self.recipients]
        if len(set(addresses)) != count:
            raise DuplicateRecipient("Recipient addresses must be unique")

        total_bps = sum(r.bps for r in self.recipients)
        if total_bps != TOTAL_BPS:
            raise InvalidSplit(f"Recipient bps must sum to {TOTAL_BPS}, got {total_bps}")


class OperationKind(str, Enum):
    CREATE_BATCH = "create_batch"
    EXTEND_BATCH = "extend_batch"
    REGISTER_CONFIG = "register_config"
    LAUNCH_ASSET = "launch_asset"
    CLAIM_FEES = "claim_fees"


class OperationStatus(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class SequenceState(str, Enum):
    PENDING = "pending"
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SETTLING = "settling"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class LedgerOperation:
    """One step of a registration workflow.

    Attributes:
        index: Position in the sequence.
        kind: Operation type.
        must_follow: Indexes whose confirmation this operation depends on.
        min_elapsed_slots: Slots that must pass after the dependencies
            confirmed before this operation may be submitted.
        batch_index: Address batch this operation acts on, if any.
        params: Operation parameters passed to the backend.
        commitment: Confirmation level to wait for (None = context default).
        transaction_count: Transactions in the last prepared attempt.
    """

    index: int
    kind: OperationKind
    must_follow: tuple[int, ...] = ()
    min_elapsed_slots: int = 0
    batch_index: int | None = None
    params: dict[str, Any] = field(default_factory=dict)
    commitment: str | None = None
    status: OperationStatus = OperationStatus.PENDING
    signatures: list[str] = field(default_factory=list)
    transaction_count: int = 0
    confirmed_slot: int | None = None
    handle: str | None = None
    error: str | None = None

    @property
    def confirmed(self) -> bool:
        return self.status == OperationStatus.CONFIRMED


@dataclass(frozen=True)
class SequenceFailure:
    operation_index: int | None
    stage: str | None
    reason: str
    code: str


@dataclass
class OperationSequence:
    """Ordered ledger operations realizing one fee split registration."""

    asset_id: str
    operations: list[LedgerOperation]
    batches: tuple[AddressBatch, ...] = ()
    state: SequenceState = SequenceState.PENDING
    current_index: int | None = None
    failure: SequenceFailure | None = None

    @property
    def is_complete(self) -> bool:
        return all(op.confirmed for op in self.operations)

    def first_unconfirmed(self) -> int | None:
        for op in self.operations:
            if not op.confirmed:
                return op.index
        return None

    def operation(self, index: int) -> LedgerOperation:
        return self.operations[index]

    def of_kind(self, kind: OperationKind) -> list[LedgerOperation]:
        return [op for op in self.operations if op.kind == kind]

    def result_handle(self, kind: OperationKind) -> str | None:
        for op in self.of_kind(kind):
            if op.confirmed and op.handle:
                return op.handle
        return None


class PoolSource(str, Enum):
    PRE_GRADUATION = "pre_graduation"  # virtual (bonding curve) pool
    POST_GRADUATION = "post_graduation"  # migrated DAMM v2 pool


@dataclass(frozen=True)
class ClaimablePosition:
    """Read-only snapshot of claimable fees for one asset."""

    asset_id: str
    source_pool: PoolSource
    amount: int  # lamports
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ClaimablePosition":
        amount = 0
        if data.get("virtualPoolClaimableAmount"):
            amount += int(data["virtualPoolClaimableAmount"])
        if data.get("dammPoolClaimableAmount"):
            amount += int(data["dammPoolClaimableAmount"])
        if (
            data.get("isCustomFeeVault")
            and data.get("customFeeVaultBalance")
            and data.get("customFeeVaultBps")
        ):
            amount += int(data["customFeeVaultBalance"]) * int(data["customFeeVaultBps"]) // TOTAL_BPS

        source = PoolSource.POST_GRADUATION if data.get("isMigrated") else PoolSource.PRE_GRADUATION
        return cls(asset_id=data["baseMint"], source_pool=source, amount=amount, raw=data)


@dataclass
class ClaimResult:
    position_index: int
    asset_id: str
    success: bool
    amount: int = 0
    signatures: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class ClaimReport:
    results: list[ClaimResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ClaimResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[ClaimResult]:
        return [r for r in self.results if not r.success]

    @property
    def total_claimed(self) -> int:
        return sum(r.amount for r in self.succeeded)


def calculate_split_amounts(
    total_amount: int,
    recipients: list[ResolvedRecipient] | tuple[ResolvedRecipient, ...],
) -> list[tuple[str, int]]:
    """Calculate per-recipient amounts from total and basis points.

    Uses floor division. Remainder (dust) goes to the last recipient.

    Returns:
        List of (address, amount) tuples.
    """
    splits: list[tuple[str, int]] = []
    allocated = 0

    for i, recipient in enumerate(recipients):
        if i == len(recipients) - 1:
            amount = total_amount - allocated
        else:
            amount = (total_amount * recipient.bps) // TOTAL_BPS
            allocated += amount

        splits.append((recipient.address, amount))

    return splits
