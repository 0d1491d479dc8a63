"""Partner overlay: a fixed skim of gross fees for a platform partner.

The overlay is accounted outside the recipients' 10000 bps budget: at
claim time the partner takes its share of gross fees and the recipients
divide what remains. A partner registration is keyed one-to-one by the
partner wallet address.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from ..constants import DEFAULT_PARTNER_BPS, TOTAL_BPS
from ..errors import PartnerOverlayError
from ..types import FeeSplitPlan, PartnerOverlay, ResolvedRecipient, calculate_split_amounts

if TYPE_CHECKING:
    from ..api import BagsClient
    from ..ledger.client import LedgerContext

logger = logging.getLogger(__name__)


def attach_partner_overlay(
    plan: FeeSplitPlan,
    overlay: PartnerOverlay,
    existing_registration: dict[str, Any] | None = None,
) -> FeeSplitPlan:
    """Return a copy of the plan carrying the overlay.

    Recipient shares are never changed. An asset that is already registered
    accepts the overlay only if its registration carries the same partner,
    in which case registering again is a no-op.

    Args:
        plan: Plan for the asset.
        overlay: Partner overlay to attach.
        existing_registration: Fee share config already registered for the
            asset, if any.

    Raises:
        PartnerOverlayError: If the overlay is invalid, the plan already
            has one, or the asset is registered without this partner.
    """
    overlay.validate()
    if existing_registration:
        registered = existing_registration.get("partnerConfig") or existing_registration.get(
            "partner"
        )
        if registered is None:
            raise PartnerOverlayError(
                f"Asset {plan.asset_id} is already registered without a partner; "
                "partner overlay must be decided at registration time"
            )
        if registered not in (overlay.partner_config, overlay.partner):
            raise PartnerOverlayError(
                f"Asset {plan.asset_id} is already registered with partner {registered}"
            )
        logger.info("Asset %s already registered with partner %s", plan.asset_id, registered)
    if plan.partner_overlay is not None:
        raise PartnerOverlayError(f"Plan for {plan.asset_id} already has a partner overlay")
    return replace(plan, partner_overlay=overlay)


def overlay_amounts(
    gross_amount: int,
    recipients: list[ResolvedRecipient] | tuple[ResolvedRecipient, ...],
    overlay: PartnerOverlay | None = None,
) -> tuple[int, list[tuple[str, int]]]:
    """Split gross fees into the partner cut and per-recipient amounts.

    Returns:
        (partner_amount, [(address, amount), ...])
    """
    partner_amount = 0
    if overlay is not None:
        partner_amount = (gross_amount * overlay.bps) // TOTAL_BPS
    return partner_amount, calculate_split_amounts(gross_amount - partner_amount, recipients)


class PartnerDirectory:
    """Reads partner registrations through the Bags API."""

    def __init__(self, client: "BagsClient"):
        self._client = client

    async def load(self, partner: str, bps: int = DEFAULT_PARTNER_BPS) -> PartnerOverlay:
        """Build an overlay for an existing partner registration.

        Raises:
            PartnerOverlayError: If the partner has no registration.
        """
        config = await self._client.get_partner_config(partner)
        if config is None:
            raise PartnerOverlayError(f"No partner config registered for {partner}")
        overlay = PartnerOverlay(partner=partner, partner_config=config.partner_config, bps=bps)
        overlay.validate()
        return overlay


async def ensure_partner_config(client: "BagsClient", context: "LedgerContext") -> str:
    """Create the signer's partner registration unless it already exists.

    Returns:
        The partner config key.
    """
    partner = context.signer.address
    existing = await client.get_partner_config(partner)
    if existing is not None:
        logger.info("Partner config for %s already exists: %s", partner, existing.partner_config)
        return existing.partner_config

    tx, partner_config = await client.create_partner_config_transaction(partner)
    signature, slot = await context.send_and_confirm(tx)
    logger.info("Created partner config %s (tx %s, slot %d)", partner_config, signature, slot)
    return partner_config
