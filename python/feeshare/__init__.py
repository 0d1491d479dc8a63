"""Fee-share configuration engine for Bags token launches.

Splits a token's trading fees among up to 100 fee claimers (basis
points, 10000 = 100%), registering address lookup tables when the
claimer set is too large to inline, with an optional partner overlay.

Usage:
    from feeshare import (
        BagsClient, FeeRecipientRequest, LaunchParams, LedgerContext,
        Settings, SocialIdentity, SolanaLedger, launch_with_fee_share,
    )

    settings = Settings.from_env()
    async with BagsClient(settings.api_key) as client, SolanaLedger(settings.rpc_url) as ledger:
        context = LedgerContext(ledger, settings.signer())
        await launch_with_fee_share(client, context, LaunchParams(
            name="Shared Token",
            symbol="SHARE",
            description="A token with fee sharing",
            image_url="https://example.com/token.png",
            fee_claimers=[
                FeeRecipientRequest(context.signer.address, 5000),
                FeeRecipientRequest(SocialIdentity("influencer1", "twitter"), 2500),
                FeeRecipientRequest(SocialIdentity("influencer2", "twitter"), 2500),
            ],
        ))
"""

from .api import BagsClient, FeeShareConfigResult, PartnerConfig, TokenInfo
from .claims import claim_all, claim_for_asset, claim_positions, list_claimable_positions
from .config import Settings
from .constants import (
    DEFAULT_PARTNER_BPS,
    MAX_RECIPIENTS,
    NON_BATCHED_CAPACITY,
    TOTAL_BPS,
)
from .errors import (
    DuplicateRecipient,
    FeeShareError,
    InvalidSplit,
    LedgerRejection,
    PartnerOverlayError,
    TooManyRecipients,
    TransientFailure,
    UnlinkedIdentity,
)
from .launch import LaunchParams, LaunchResult, launch_with_fee_share, register_fee_split
from .ledger import LedgerContext, Sequencer, SolanaLedger
from .signers import KeypairSigner
from .types import (
    BatchPlan,
    ClaimablePosition,
    ClaimReport,
    FeeRecipientRequest,
    FeeSplitPlan,
    OperationSequence,
    PartnerOverlay,
    ResolvedRecipient,
    SocialIdentity,
)

__version__ = "0.1.0"

__all__ = [
    # Clients and config
    "BagsClient",
    "FeeShareConfigResult",
    "KeypairSigner",
    "LedgerContext",
    "PartnerConfig",
    "Sequencer",
    "Settings",
    "SolanaLedger",
    "TokenInfo",
    # Types
    "BatchPlan",
    "ClaimablePosition",
    "ClaimReport",
    "FeeRecipientRequest",
    "FeeSplitPlan",
    "OperationSequence",
    "PartnerOverlay",
    "ResolvedRecipient",
    "SocialIdentity",
    # Workflows
    "LaunchParams",
    "LaunchResult",
    "claim_all",
    "claim_for_asset",
    "claim_positions",
    "launch_with_fee_share",
    "list_claimable_positions",
    "register_fee_split",
    # Constants
    "DEFAULT_PARTNER_BPS",
    "MAX_RECIPIENTS",
    "NON_BATCHED_CAPACITY",
    "TOTAL_BPS",
    # Errors
    "DuplicateRecipient",
    "FeeShareError",
    "InvalidSplit",
    "LedgerRejection",
    "PartnerOverlayError",
    "TooManyRecipients",
    "TransientFailure",
    "UnlinkedIdentity",
]
