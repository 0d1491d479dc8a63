"""Sequencer/executor for fee-share registration operations.

One Sequencer instance drives one OperationSequence:

    pending -> submitting(op_i) -> awaiting_confirmation(op_i)
            -> [settling] -> submitting(op_i+1) -> ... -> complete

or ``failed`` on an unrecoverable error. Nothing is rolled back; a failed
sequence keeps its confirmed operations and ``run`` resumes from the first
unconfirmed one.
"""

import asyncio
import logging

from ..errors import (
    DeadlineExceeded,
    DependencyNotConfirmed,
    FeeShareError,
    SequenceCancelled,
    SettlingNotElapsed,
)
from ..types import (
    BatchState,
    LedgerOperation,
    OperationKind,
    OperationSequence,
    OperationStatus,
    SequenceFailure,
    SequenceState,
)
from .backend import OperationBackend
from .client import LedgerContext

logger = logging.getLogger(__name__)


class Sequencer:
    """Executes an OperationSequence against the ledger in dependency order."""

    def __init__(self, context: LedgerContext, backend: OperationBackend):
        self._context = context
        self._backend = backend
        self._cancelled = False

    def cancel(self) -> None:
        """Stop before the next submission. Submitted transactions stay submitted."""
        self._cancelled = True

    async def run(
        self, sequence: OperationSequence, deadline: float | None = None
    ) -> OperationSequence:
        """Execute every unconfirmed operation.

        Args:
            sequence: Sequence to execute or resume.
            deadline: Optional overall limit in seconds.

        Raises:
            FeeShareError: The failing stage/operation is on the error and
                ``error.sequence`` holds the partially completed sequence.
        """
        if deadline is None:
            return await self._run(sequence)
        try:
            return await asyncio.wait_for(self._run(sequence), timeout=deadline)
        except asyncio.TimeoutError as e:
            error = DeadlineExceeded(
                f"Sequence for {sequence.asset_id} exceeded its {deadline}s deadline",
                stage=sequence.state.value,
                operation_index=sequence.current_index,
            )
            current = sequence.current_index
            self._fail(sequence, error, sequence.operation(current) if current is not None else None)
            raise error from e

    async def _run(self, sequence: OperationSequence) -> OperationSequence:
        start = sequence.first_unconfirmed()
        total = len(sequence.operations)
        if start is not None:
            logger.info(
                "Running %s: %d operations, starting at %d",
                sequence.asset_id,
                total,
                start,
            )

        for op in sequence.operations[start if start is not None else total :]:
            if op.confirmed:
                continue
            if self._cancelled:
                sequence.state = SequenceState.CANCELLED
                error = SequenceCancelled(
                    f"Sequence for {sequence.asset_id} cancelled", operation_index=op.index
                )
                error.sequence = sequence
                raise error

            logger.info("[%d/%d] %s", op.index + 1, total, op.kind.value)
            await self._wait_settled(sequence, op)
            await self.submit(sequence, op.index)

        sequence.state = SequenceState.COMPLETE
        sequence.current_index = None
        return sequence

    async def _wait_settled(self, sequence: OperationSequence, op: LedgerOperation) -> None:
        if not op.min_elapsed_slots:
            return
        self._check_dependencies(sequence, op)
        sequence.state = SequenceState.SETTLING
        sequence.current_index = op.index
        self._enter_settling(sequence, op)
        while True:
            try:
                slot = await self._context.current_slot()
                self._check_settled(sequence, op, slot)
                return
            except SettlingNotElapsed:
                await asyncio.sleep(self._context.poll_interval)
            except FeeShareError as e:
                self._fail(sequence, e, op)
                raise

    async def submit(self, sequence: OperationSequence, index: int) -> LedgerOperation:
        """Submit one operation and wait for its confirmation.

        Preconditions (dependencies confirmed, settling window elapsed) are
        checked first; if they fail nothing is submitted.

        Raises:
            DependencyNotConfirmed, SettlingNotElapsed: Precondition failed.
            LedgerRejection: The ledger rejected the operation.
            TransientFailure: Retries exhausted.
        """
        op = sequence.operation(index)
        if op.confirmed:
            return op

        try:
            self._check_dependencies(sequence, op)
            if op.min_elapsed_slots:
                slot = await self._context.current_slot()
                self._check_settled(sequence, op, slot)
        except FeeShareError as e:
            e.sequence = sequence
            raise

        sequence.current_index = index
        sequence.failure = None

        try:
            if not await self._recover(sequence, op):
                op.status = OperationStatus.PENDING
                op.error = None
                op.signatures = []
                await self._execute(sequence, op)
        except FeeShareError as e:
            self._fail(sequence, e, op)
            raise
        return op

    async def _recover(self, sequence: OperationSequence, op: LedgerOperation) -> bool:
        """Confirm an operation whose earlier submission landed after all.

        Returns False when there is nothing to recover and the operation has
        to be prepared again.
        """
        if not op.signatures or len(op.signatures) != op.transaction_count:
            return False
        commitment = op.commitment or self._context.commitment
        sequence.state = SequenceState.AWAITING_CONFIRMATION
        slot = None
        for signature in op.signatures:
            slot = await self._context.landed_slot(signature, commitment)
            if slot is None:
                return False

        logger.info("%s landed at slot %d on an earlier attempt", op.kind.value, slot)
        if op.kind == OperationKind.EXTEND_BATCH:
            self._enter_settling(sequence, op)
        self._confirm(sequence, op, slot)
        return True

    async def _execute(self, sequence: OperationSequence, op: LedgerOperation) -> None:
        sequence.state = SequenceState.SUBMITTING
        prepared = await self._context.retry_transient(
            lambda: self._backend.prepare(sequence, op), f"Preparing {op.kind.value}"
        )
        op.transaction_count = len(prepared.transactions)
        if prepared.handle:
            op.handle = prepared.handle

        if prepared.already_registered:
            logger.info("%s already on ledger, reusing %s", op.kind.value, op.handle)
            self._confirm(sequence, op, slot=None)
            return

        if op.kind == OperationKind.EXTEND_BATCH:
            self._enter_settling(sequence, op)

        commitment = op.commitment or self._context.commitment
        slot = None
        for i, tx in enumerate(prepared.transactions, start=1):
            sequence.state = SequenceState.SUBMITTING
            signature = await self._context.send(tx, commitment)
            op.signatures.append(signature)
            op.status = OperationStatus.SUBMITTED

            sequence.state = SequenceState.AWAITING_CONFIRMATION
            slot = await self._context.wait_for_confirmation(signature, commitment)
            logger.info(
                "  tx %d/%d %s confirmed at slot %d",
                i,
                len(prepared.transactions),
                signature,
                slot,
            )

        self._confirm(sequence, op, slot)

    def _confirm(self, sequence: OperationSequence, op: LedgerOperation, slot: int | None) -> None:
        op.status = OperationStatus.CONFIRMED
        op.confirmed_slot = slot

        if op.kind == OperationKind.CREATE_BATCH:
            batch = sequence.batches[op.batch_index]
            batch.handle = op.handle
            batch.advance(BatchState.CREATED)
        elif op.kind == OperationKind.EXTEND_BATCH:
            sequence.batches[op.batch_index].advance(BatchState.EXTENDED)
        elif op.kind == OperationKind.REGISTER_CONFIG:
            for batch in sequence.batches:
                if batch.state == BatchState.EXTENDED:
                    batch.advance(BatchState.READY)

    def _enter_settling(self, sequence: OperationSequence, op: LedgerOperation) -> None:
        if op.batch_index is None:
            return
        batch = sequence.batches[op.batch_index]
        if batch.state == BatchState.CREATED:
            batch.advance(BatchState.SETTLING)

    def _check_dependencies(self, sequence: OperationSequence, op: LedgerOperation) -> None:
        for dep_index in op.must_follow:
            dep = sequence.operation(dep_index)
            if not dep.confirmed:
                raise DependencyNotConfirmed(
                    f"{op.kind.value} requires {dep.kind.value} (operation {dep_index}) "
                    "to be confirmed first",
                    operation_index=op.index,
                )

    def _check_settled(
        self, sequence: OperationSequence, op: LedgerOperation, current_slot: int
    ) -> None:
        confirmed_slots = [
            sequence.operation(i).confirmed_slot
            for i in op.must_follow
            if sequence.operation(i).confirmed_slot is not None
        ]
        if not confirmed_slots:
            return
        elapsed = current_slot - max(confirmed_slots)
        if elapsed < op.min_elapsed_slots:
            raise SettlingNotElapsed(
                f"{op.kind.value} needs {op.min_elapsed_slots} slot(s) after its "
                f"dependency confirmed, only {elapsed} elapsed",
                operation_index=op.index,
            )

    def _fail(
        self,
        sequence: OperationSequence,
        error: FeeShareError,
        op: LedgerOperation | None = None,
    ) -> None:
        if op is not None:
            if error.operation_index is None:
                error.operation_index = op.index
            op.status = OperationStatus.FAILED
            op.error = str(error)
        sequence.state = SequenceState.FAILED
        sequence.failure = SequenceFailure(
            operation_index=error.operation_index,
            stage=error.stage,
            reason=error.message,
            code=error.code,
        )
        error.sequence = sequence
        logger.error("Sequence for %s failed: %s", sequence.asset_id, error)
