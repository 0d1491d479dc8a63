"""Turns ledger operations into unsigned transactions.

Lookup table steps are built locally; fee-share config, launch and claim
transactions come from the Bags API.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from solders.message import MessageV0  # type: ignore
from solders.pubkey import Pubkey  # type: ignore
from solders.signature import Signature  # type: ignore
from solders.transaction import VersionedTransaction  # type: ignore

from ..api import BagsClient
from ..constants import COMMITMENT_FINALIZED
from ..errors import DependencyNotConfirmed
from ..types import LedgerOperation, OperationKind, OperationSequence
from .client import LedgerContext
from .lookup_table import create_lookup_table, extend_lookup_table

logger = logging.getLogger(__name__)


@dataclass
class PreparedOperation:
    """Transactions realizing one operation.

    Attributes:
        transactions: Unsigned transactions, submitted in order.
        handle: Identifier produced by the operation (lookup table address,
            config key, mint).
        already_registered: The operation's effect already exists on the
            ledger; nothing needs to be submitted.
    """

    transactions: list[VersionedTransaction] = field(default_factory=list)
    handle: str | None = None
    already_registered: bool = False


class OperationBackend(Protocol):
    async def prepare(
        self, sequence: OperationSequence, op: LedgerOperation
    ) -> PreparedOperation:
        ...


class BagsOperationBackend:
    """OperationBackend using the Bags API and local lookup table instructions."""

    def __init__(self, client: BagsClient, context: LedgerContext):
        self._client = client
        self._context = context

    async def prepare(
        self, sequence: OperationSequence, op: LedgerOperation
    ) -> PreparedOperation:
        if op.kind == OperationKind.CREATE_BATCH:
            return await self._create_batch(sequence, op)
        if op.kind == OperationKind.EXTEND_BATCH:
            return await self._extend_batch(sequence, op)
        if op.kind == OperationKind.REGISTER_CONFIG:
            return await self._register_config(sequence, op)
        if op.kind == OperationKind.LAUNCH_ASSET:
            return await self._launch_asset(sequence, op)
        if op.kind == OperationKind.CLAIM_FEES:
            transactions = await self._client.get_claim_transactions(
                self._context.signer.address, op.params["position"]
            )
            return PreparedOperation(transactions=transactions)
        raise ValueError(f"Unsupported operation kind: {op.kind}")

    async def _unsigned(self, instructions: list) -> VersionedTransaction:
        payer = self._context.signer.pubkey
        blockhash = await self._context.latest_blockhash()
        message = MessageV0.try_compile(payer, instructions, [], blockhash)
        signatures = [Signature.default()] * message.header.num_required_signatures
        return VersionedTransaction.populate(message, signatures)

    async def _create_batch(
        self, sequence: OperationSequence, op: LedgerOperation
    ) -> PreparedOperation:
        authority = self._context.signer.pubkey
        recent_slot = await self._recent_slot(sequence, op)
        op.params["recent_slot"] = recent_slot
        ix, table = create_lookup_table(authority, authority, recent_slot)
        logger.info("Lookup table %s for batch %s (slot %d)", table, op.batch_index, recent_slot)
        return PreparedOperation(transactions=[await self._unsigned([ix])], handle=str(table))

    async def _recent_slot(self, sequence: OperationSequence, op: LedgerOperation) -> int:
        # The table address derives from (authority, recent_slot)
        used = {
            other.params["recent_slot"]
            for other in sequence.of_kind(OperationKind.CREATE_BATCH)
            if other is not op and "recent_slot" in other.params
        }
        while True:
            slot = await self._context.current_slot(COMMITMENT_FINALIZED)
            if all(slot > u for u in used):
                return slot
            await asyncio.sleep(self._context.poll_interval)

    async def _extend_batch(
        self, sequence: OperationSequence, op: LedgerOperation
    ) -> PreparedOperation:
        batch = sequence.batches[op.batch_index]
        if batch.handle is None:
            raise DependencyNotConfirmed(
                f"Batch {batch.index} has no lookup table yet", operation_index=op.index
            )
        authority = self._context.signer.pubkey
        ix = extend_lookup_table(
            Pubkey.from_string(batch.handle),
            authority,
            authority,
            [Pubkey.from_string(a) for a in batch.addresses],
        )
        return PreparedOperation(transactions=[await self._unsigned([ix])], handle=batch.handle)

    async def _register_config(
        self, sequence: OperationSequence, op: LedgerOperation
    ) -> PreparedOperation:
        existing = await self._client.get_fee_share_config(sequence.asset_id)
        if existing:
            config_key = existing.get("meteoraConfigKey") or existing.get("configKey")
            logger.info("Fee share config for %s already exists: %s", sequence.asset_id, config_key)
            return PreparedOperation(handle=config_key, already_registered=True)

        result = await self._client.create_fee_share_config(
            payer=self._context.signer.address,
            base_mint=sequence.asset_id,
            claimers=list(op.params["recipients"]),
            additional_lookup_tables=[b.handle for b in sequence.batches if b.handle] or None,
            partner=op.params.get("partner"),
        )
        return PreparedOperation(transactions=result.transactions, handle=result.config_key)

    async def _launch_asset(
        self, sequence: OperationSequence, op: LedgerOperation
    ) -> PreparedOperation:
        config_key = sequence.result_handle(OperationKind.REGISTER_CONFIG)
        if config_key is None:
            raise DependencyNotConfirmed(
                "Launch requires a registered fee share config", operation_index=op.index
            )
        tx = await self._client.create_launch_transaction(
            metadata_url=op.params["metadata_url"],
            token_mint=sequence.asset_id,
            launch_wallet=op.params.get("launch_wallet") or self._context.signer.address,
            initial_buy_lamports=op.params.get("initial_buy_lamports", 0),
            config_key=config_key,
        )
        return PreparedOperation(transactions=[tx], handle=sequence.asset_id)
