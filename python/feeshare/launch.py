"""Asset launch and fee-share registration workflows.

    validate -> (create token info) -> resolve -> plan batches
             -> partner overlay -> build operations -> sequence

Validation runs before any network call.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .api import BagsClient
from .constants import DEFAULT_PARTNER_BPS, TOTAL_BPS
from .errors import PartnerOverlayError
from .ledger.backend import BagsOperationBackend, OperationBackend
from .ledger.client import LedgerContext
from .ledger.sequencer import Sequencer
from .split.builder import AssetLaunch, build_fee_split_plan, build_operation_sequence
from .split.partner import PartnerDirectory, attach_partner_overlay
from .split.planner import plan_batches
from .split.resolver import IdentityDirectory, IdentityResolver
from .split.validator import validate_split
from .types import FeeRecipientRequest, FeeSplitPlan, OperationKind, OperationSequence

logger = logging.getLogger(__name__)


@dataclass
class LaunchParams:
    """Parameters for launching a token with fee sharing.

    ``fee_claimers`` must include the creator explicitly; there is no
    implicit remainder.
    """

    name: str
    symbol: str
    description: str
    image_url: str
    fee_claimers: list[FeeRecipientRequest] = field(default_factory=list)
    initial_buy_lamports: int = 0
    twitter: str | None = None
    website: str | None = None
    partner: str | None = None  # partner wallet with an existing partner config
    partner_bps: int = DEFAULT_PARTNER_BPS


@dataclass
class RegistrationResult:
    plan: FeeSplitPlan
    sequence: OperationSequence

    @property
    def config_key(self) -> str | None:
        return self.sequence.result_handle(OperationKind.REGISTER_CONFIG)


@dataclass
class LaunchResult(RegistrationResult):
    token_mint: str = ""
    metadata_url: str = ""

    @property
    def launch_signature(self) -> str | None:
        for op in self.sequence.of_kind(OperationKind.LAUNCH_ASSET):
            if op.signatures:
                return op.signatures[-1]
        return None


def _check_partner_bps(partner_bps: int) -> None:
    if isinstance(partner_bps, bool) or not isinstance(partner_bps, int):
        raise PartnerOverlayError(f"Partner bps must be an integer, got {partner_bps!r}")
    if partner_bps < 1 or partner_bps > TOTAL_BPS:
        raise PartnerOverlayError(f"Partner bps must be 1-{TOTAL_BPS}, got {partner_bps}")


async def _plan(
    client: BagsClient,
    asset_id: str,
    requests: Sequence[FeeRecipientRequest],
    directory: IdentityDirectory | None,
    partner: str | None,
    partner_bps: int,
) -> FeeSplitPlan:
    recipients = await IdentityResolver(directory or client).resolve(requests)
    batch_plan = plan_batches(recipients)
    if batch_plan.required:
        logger.info(
            "%d claimers exceed inline capacity, using %d lookup table(s)",
            len(recipients),
            len(batch_plan.batches),
        )
    plan = build_fee_split_plan(asset_id, recipients, batch_plan)

    if partner is not None:
        overlay = await PartnerDirectory(client).load(partner, partner_bps)
        existing = await client.get_fee_share_config(asset_id)
        plan = attach_partner_overlay(plan, overlay, existing)
    return plan


async def register_fee_split(
    client: BagsClient,
    context: LedgerContext,
    asset_id: str,
    fee_claimers: Sequence[FeeRecipientRequest],
    *,
    partner: str | None = None,
    partner_bps: int = DEFAULT_PARTNER_BPS,
    directory: IdentityDirectory | None = None,
    backend: OperationBackend | None = None,
    deadline: float | None = None,
) -> RegistrationResult:
    """Register a fee split for an existing mint.

    Re-registering an asset returns the existing config key.
    """
    requests = validate_split(fee_claimers)
    if partner is not None:
        _check_partner_bps(partner_bps)

    plan = await _plan(client, asset_id, requests, directory, partner, partner_bps)
    sequence = build_operation_sequence(plan)
    await Sequencer(context, backend or BagsOperationBackend(client, context)).run(
        sequence, deadline
    )
    return RegistrationResult(plan=plan, sequence=sequence)


async def launch_with_fee_share(
    client: BagsClient,
    context: LedgerContext,
    params: LaunchParams,
    *,
    directory: IdentityDirectory | None = None,
    backend: OperationBackend | None = None,
    deadline: float | None = None,
) -> LaunchResult:
    """Launch a token whose trading fees are split among fee claimers."""
    requests = validate_split(params.fee_claimers)
    if params.partner is not None:
        _check_partner_bps(params.partner_bps)

    logger.info("Launching $%s with %d fee claimers", params.symbol, len(requests))
    token = await client.create_token_info(
        name=params.name,
        symbol=params.symbol,
        description=params.description,
        image_url=params.image_url,
        twitter=params.twitter,
        website=params.website,
    )
    logger.info("Token mint: %s", token.mint)

    plan = await _plan(client, token.mint, requests, directory, params.partner, params.partner_bps)
    sequence = build_operation_sequence(
        plan,
        AssetLaunch(
            metadata_url=token.metadata_url,
            initial_buy_lamports=params.initial_buy_lamports,
            launch_wallet=context.signer.address,
        ),
    )
    await Sequencer(context, backend or BagsOperationBackend(client, context)).run(
        sequence, deadline
    )

    result = LaunchResult(
        plan=plan, sequence=sequence, token_mint=token.mint, metadata_url=token.metadata_url
    )
    logger.info("Launched %s with fee config %s", token.mint, result.config_key)
    return result
