"""Solana ledger access: submission, confirmation polling and signing context."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.hash import Hash  # type: ignore
from solders.signature import Signature  # type: ignore
from solders.transaction import VersionedTransaction  # type: ignore
from solders.transaction_status import TransactionConfirmationStatus  # type: ignore

from ..constants import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_COMMITMENT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
)
from ..errors import LedgerRejection, TransientError, TransientFailure, TransientLedgerError
from ..signers import KeypairSigner
from ..utils import backoff_delay, commitment_reached

logger = logging.getLogger(__name__)

_CONFIRMATION_STATUS = (
    (TransactionConfirmationStatus.Processed, "processed"),
    (TransactionConfirmationStatus.Confirmed, "confirmed"),
    (TransactionConfirmationStatus.Finalized, "finalized"),
)


def _confirmation_level(status: Any) -> str | None:
    for value, level in _CONFIRMATION_STATUS:
        if status == value:
            return level
    return None


@dataclass(frozen=True)
class SignatureStatus:
    slot: int
    confirmation_status: str | None
    err: str | None = None


class LedgerClient(Protocol):
    """Minimal ledger interface consumed by the engine."""

    async def get_slot(self, commitment: str) -> int:
        ...

    async def send_transaction(self, raw: bytes, commitment: str) -> str:
        """Submit a signed transaction, returning its signature.

        Raises:
            TransientLedgerError: Timeout or RPC unavailable.
            LedgerRejection: The ledger refused the transaction.
        """
        ...

    async def get_signature_status(self, signature: str) -> SignatureStatus | None:
        ...

    async def get_latest_blockhash(self) -> Hash:
        ...


class SolanaLedger:
    """LedgerClient over solana-py's AsyncClient."""

    def __init__(self, rpc_url: str, client: AsyncClient | None = None):
        self._client = client or AsyncClient(rpc_url)

    async def __aenter__(self) -> "SolanaLedger":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.close()

    async def get_slot(self, commitment: str) -> int:
        try:
            resp = await self._client.get_slot(Commitment(commitment))
        except (SolanaRpcException, RPCException, httpx.HTTPError) as e:
            raise TransientLedgerError(f"get_slot failed: {e}") from e
        return resp.value

    async def get_latest_blockhash(self) -> Hash:
        try:
            resp = await self._client.get_latest_blockhash()
        except (SolanaRpcException, RPCException, httpx.HTTPError) as e:
            raise TransientLedgerError(f"get_latest_blockhash failed: {e}") from e
        return resp.value.blockhash

    async def send_transaction(self, raw: bytes, commitment: str) -> str:
        opts = TxOpts(skip_preflight=False, preflight_commitment=Commitment(commitment))
        try:
            resp = await self._client.send_raw_transaction(raw, opts=opts)
        except RPCException as e:
            raise LedgerRejection(str(e)) from e
        except (SolanaRpcException, httpx.HTTPError) as e:
            raise TransientLedgerError(f"send_transaction failed: {e}") from e
        return str(resp.value)

    async def get_signature_status(self, signature: str) -> SignatureStatus | None:
        try:
            resp = await self._client.get_signature_statuses([Signature.from_string(signature)])
        except (SolanaRpcException, RPCException, httpx.HTTPError) as e:
            raise TransientLedgerError(f"get_signature_statuses failed: {e}") from e

        status = resp.value[0]
        if status is None:
            return None
        return SignatureStatus(
            slot=status.slot,
            confirmation_status=_confirmation_level(status.confirmation_status),
            err=str(status.err) if status.err is not None else None,
        )


@dataclass
class LedgerContext:
    """Signing and connection context owned by one operation sequence.

    Attributes:
        ledger: Ledger client used for submission and polling.
        signer: Payer / launch wallet signer.
        commitment: Commitment for intermediate steps.
        max_attempts: Submission attempts on transient errors.
        backoff_seconds: Base delay for exponential backoff.
        poll_interval: Delay between confirmation and slot polls.
    """

    ledger: LedgerClient
    signer: KeypairSigner
    commitment: str = DEFAULT_COMMITMENT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS

    async def retry_transient(self, call: Any, description: str) -> Any:
        """Await ``call()`` retrying TransientError with bounded backoff.

        Raises:
            TransientFailure: When every attempt failed transiently.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await call()
            except TransientError as e:
                if attempt == self.max_attempts:
                    raise TransientFailure(
                        f"{description} failed after {attempt} attempts: {e.message}",
                        stage=e.stage,
                    ) from e
                delay = backoff_delay(attempt, self.backoff_seconds)
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                    description,
                    attempt,
                    self.max_attempts,
                    delay,
                    e.message,
                )
                await asyncio.sleep(delay)

    async def send(self, tx: VersionedTransaction, commitment: str | None = None) -> str:
        """Sign and submit a transaction, retrying transient failures.

        Raises:
            LedgerRejection: The transaction cannot be signed by this signer.
            TransientFailure: Retries exhausted.
        """
        try:
            raw = bytes(self.signer.sign_transaction(tx))
        except ValueError as e:
            raise LedgerRejection(str(e), stage="sign") from e
        level = commitment or self.commitment
        return await self.retry_transient(
            lambda: self.ledger.send_transaction(raw, level), "Transaction submission"
        )

    async def current_slot(self, commitment: str | None = None) -> int:
        level = commitment or self.commitment
        return await self.retry_transient(lambda: self.ledger.get_slot(level), "Slot query")

    async def latest_blockhash(self) -> Hash:
        return await self.retry_transient(self.ledger.get_latest_blockhash, "Blockhash query")

    async def wait_for_confirmation(self, signature: str, commitment: str | None = None) -> int:
        """Poll until the signature reaches the commitment level.

        No timeout is applied here; callers bound the wait with a deadline.

        Returns:
            Slot the transaction landed in.

        Raises:
            LedgerRejection: The transaction executed with an error.
        """
        level = commitment or self.commitment
        while True:
            try:
                status = await self.ledger.get_signature_status(signature)
            except TransientError as e:
                logger.warning("Status poll for %s failed: %s", signature, e.message)
                status = None

            if status is not None:
                if status.err:
                    raise LedgerRejection(status.err, stage="confirm")
                if commitment_reached(status.confirmation_status, level):
                    return status.slot

            await asyncio.sleep(self.poll_interval)

    async def landed_slot(self, signature: str, commitment: str | None = None) -> int | None:
        """Slot of an earlier submission, or None unless it landed cleanly at the commitment."""
        level = commitment or self.commitment
        status = await self.retry_transient(
            lambda: self.ledger.get_signature_status(signature), "Status query"
        )
        if status is None or status.err:
            return None
        if not commitment_reached(status.confirmation_status, level):
            return None
        return status.slot

    async def send_and_confirm(
        self, tx: VersionedTransaction, commitment: str | None = None
    ) -> tuple[str, int]:
        signature = await self.send(tx, commitment)
        slot = await self.wait_for_confirmation(signature, commitment)
        return signature, slot
