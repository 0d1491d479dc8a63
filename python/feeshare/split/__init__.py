"""Fee split planning: validation, identity resolution, batching,
partner overlay and operation building.

These stages are pure except identity resolution, which queries the
launch wallet directory.
"""

from .builder import AssetLaunch, build_fee_split_plan, build_operation_sequence
from .partner import (
    PartnerDirectory,
    attach_partner_overlay,
    ensure_partner_config,
    overlay_amounts,
)
from .planner import batching_required, plan_batches
from .resolver import IdentityDirectory, IdentityResolver
from .validator import SplitViolation, collect_split_violations, validate_split

__all__ = [
    # Validation
    "SplitViolation",
    "collect_split_violations",
    "validate_split",
    # Resolution
    "IdentityDirectory",
    "IdentityResolver",
    # Batching
    "batching_required",
    "plan_batches",
    # Partner overlay
    "PartnerDirectory",
    "attach_partner_overlay",
    "ensure_partner_config",
    "overlay_amounts",
    # Building
    "AssetLaunch",
    "build_fee_split_plan",
    "build_operation_sequence",
]
