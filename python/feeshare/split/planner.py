"""Address batching (lookup table) planning.

A fee-share config transaction can only carry so many raw addresses
before it overflows the transaction size limit. Above
NON_BATCHED_CAPACITY recipients the addresses are registered once in
lookup tables and referenced by handle instead.
"""

from collections.abc import Sequence

from ..constants import ADDRESS_BATCH_CAPACITY, NON_BATCHED_CAPACITY
from ..types import AddressBatch, BatchPlan, ResolvedRecipient


def batching_required(recipient_count: int, overhead: int = 0) -> bool:
    return recipient_count + overhead > NON_BATCHED_CAPACITY


def plan_batches(
    recipients: Sequence[ResolvedRecipient],
    capacity: int = ADDRESS_BATCH_CAPACITY,
    overhead: int = 0,
) -> BatchPlan:
    """Decide whether batching is needed and chunk the addresses.

    Args:
        recipients: Resolved recipients for one asset.
        capacity: Addresses per batch.
        overhead: Extra inline accounts competing for the same space.

    Returns:
        BatchPlan with batches in state ``planned`` (empty if not required).
    """
    if capacity < 1:
        raise ValueError(f"Batch capacity must be positive, got {capacity}")

    if not batching_required(len(recipients), overhead):
        return BatchPlan(required=False)

    addresses = [r.address for r in recipients]
    batches = tuple(
        AddressBatch(index=i, addresses=tuple(addresses[start : start + capacity]))
        for i, start in enumerate(range(0, len(addresses), capacity))
    )
    return BatchPlan(required=True, batches=batches)
