"""Fee claim enumeration and submission.

Each position is claimed in its own single-operation sequence so that a
failure on one position never affects the others.
"""

import logging
from collections.abc import Sequence

from .api import BagsClient
from .constants import LAMPORTS_PER_SOL
from .errors import FeeShareError
from .ledger.backend import BagsOperationBackend, OperationBackend
from .ledger.client import LedgerContext
from .ledger.sequencer import Sequencer
from .types import (
    ClaimablePosition,
    ClaimReport,
    ClaimResult,
    LedgerOperation,
    OperationKind,
    OperationSequence,
)

logger = logging.getLogger(__name__)


def build_claim_sequence(position: ClaimablePosition) -> OperationSequence:
    return OperationSequence(
        asset_id=position.asset_id,
        operations=[
            LedgerOperation(index=0, kind=OperationKind.CLAIM_FEES, params={"position": position})
        ],
    )


async def list_claimable_positions(
    client: BagsClient, wallet: str
) -> list[ClaimablePosition]:
    positions = await client.get_claimable_positions(wallet)
    total = sum(p.amount for p in positions)
    logger.info(
        "%d claimable position(s) for %s, %.6f SOL total",
        len(positions),
        wallet,
        total / LAMPORTS_PER_SOL,
    )
    return positions


async def claim_positions(
    context: LedgerContext,
    backend: OperationBackend,
    positions: Sequence[ClaimablePosition],
) -> ClaimReport:
    """Claim every position, collecting a per-position report."""
    report = ClaimReport()

    for i, position in enumerate(positions):
        sequence = build_claim_sequence(position)
        op = sequence.operation(0)
        try:
            await Sequencer(context, backend).run(sequence)
        except FeeShareError as e:
            logger.warning(
                "[%d/%d] claim for %s failed: %s", i + 1, len(positions), position.asset_id, e
            )
            report.results.append(
                ClaimResult(
                    position_index=i,
                    asset_id=position.asset_id,
                    success=False,
                    signatures=list(op.signatures),
                    error=str(e),
                )
            )
            continue

        if not op.signatures:
            logger.info("[%d/%d] %s: no claim transactions", i + 1, len(positions), position.asset_id)
        else:
            logger.info("[%d/%d] %s: claimed", i + 1, len(positions), position.asset_id)
        report.results.append(
            ClaimResult(
                position_index=i,
                asset_id=position.asset_id,
                success=True,
                amount=position.amount if op.signatures else 0,
                signatures=list(op.signatures),
            )
        )

    logger.info(
        "Claim complete: %d succeeded, %d failed", len(report.succeeded), len(report.failed)
    )
    return report


async def claim_all(client: BagsClient, context: LedgerContext) -> ClaimReport:
    positions = await list_claimable_positions(client, context.signer.address)
    return await claim_positions(context, BagsOperationBackend(client, context), positions)


async def claim_for_asset(
    client: BagsClient, context: LedgerContext, asset_id: str
) -> ClaimReport:
    positions = [
        p
        for p in await list_claimable_positions(client, context.signer.address)
        if p.asset_id == asset_id
    ]
    return await claim_positions(context, BagsOperationBackend(client, context), positions)
