"""Assembles fee split plans and the ledger operations that register them."""

from collections.abc import Sequence
from dataclasses import dataclass

from ..constants import LAUNCH_COMMITMENT, LOOKUP_TABLE_SETTLING_SLOTS
from ..types import (
    BatchPlan,
    FeeSplitPlan,
    LedgerOperation,
    OperationKind,
    OperationSequence,
    PartnerOverlay,
    ResolvedRecipient,
)


@dataclass(frozen=True)
class AssetLaunch:
    """Launch parameters carried by the terminal LaunchAsset operation."""

    metadata_url: str
    initial_buy_lamports: int = 0
    launch_wallet: str | None = None


def build_fee_split_plan(
    asset_id: str,
    recipients: Sequence[ResolvedRecipient],
    batch_plan: BatchPlan | None = None,
    partner_overlay: PartnerOverlay | None = None,
) -> FeeSplitPlan:
    """Create a FeeSplitPlan, checking its invariants."""
    plan = FeeSplitPlan(
        asset_id=asset_id,
        recipients=tuple(recipients),
        partner_overlay=partner_overlay,
        batch_plan=batch_plan or BatchPlan(required=False),
    )
    plan.check_invariants()
    if partner_overlay is not None:
        partner_overlay.validate()
    return plan


def build_operation_sequence(
    plan: FeeSplitPlan, launch: AssetLaunch | None = None
) -> OperationSequence:
    """Emit the ordered operations realizing a plan.

    Batched:   CreateBatch* -> ExtendBatch* -> RegisterConfig [-> LaunchAsset]
    Unbatched: RegisterConfig [-> LaunchAsset]

    Each ExtendBatch follows its own CreateBatch and must wait out the
    lookup table settling window.
    """
    operations: list[LedgerOperation] = []

    def add(kind: OperationKind, **kwargs) -> LedgerOperation:
        op = LedgerOperation(index=len(operations), kind=kind, **kwargs)
        operations.append(op)
        return op

    batches = plan.batch_plan.batches if plan.batch_plan.required else ()

    creates = [add(OperationKind.CREATE_BATCH, batch_index=b.index) for b in batches]
    extends = [
        add(
            OperationKind.EXTEND_BATCH,
            batch_index=b.index,
            must_follow=(create.index,),
            min_elapsed_slots=LOOKUP_TABLE_SETTLING_SLOTS,
        )
        for b, create in zip(batches, creates)
    ]

    register = add(
        OperationKind.REGISTER_CONFIG,
        must_follow=tuple(op.index for op in extends),
        params={"recipients": plan.recipients, "partner": plan.partner_overlay},
    )

    if launch is not None:
        add(
            OperationKind.LAUNCH_ASSET,
            must_follow=(register.index,),
            commitment=LAUNCH_COMMITMENT,
            params={
                "metadata_url": launch.metadata_url,
                "initial_buy_lamports": launch.initial_buy_lamports,
                "launch_wallet": launch.launch_wallet,
            },
        )

    return OperationSequence(asset_id=plan.asset_id, operations=operations, batches=batches)
