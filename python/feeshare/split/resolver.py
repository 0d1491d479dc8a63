"""Resolution of fee claimer identities to wallet addresses."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from ..constants import DEFAULT_BACKOFF_SECONDS, DEFAULT_MAX_ATTEMPTS, SUPPORTED_SOCIAL_PROVIDERS
from ..errors import (
    DirectoryUnavailable,
    DuplicateRecipient,
    InvalidSplit,
    TransientFailure,
    UnlinkedIdentity,
)
from ..types import FeeRecipientRequest, ResolvedRecipient, SocialIdentity
from ..utils import backoff_delay, validate_svm_address

logger = logging.getLogger(__name__)


class IdentityDirectory(Protocol):
    """Directory mapping social identities to launch wallets."""

    async def resolve(self, provider: str, username: str) -> str | None:
        """Return the linked wallet address, or None if not linked.

        Raises:
            DirectoryUnavailable: On transient lookup failure.
        """
        ...


class IdentityResolver:
    """Resolves FeeRecipientRequests into ResolvedRecipients.

    Social lookups for one asset run concurrently; transient directory
    failures are retried with bounded backoff, "not linked" answers are not.
    """

    def __init__(
        self,
        directory: IdentityDirectory,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ):
        self._directory = directory
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds

    async def resolve(self, requests: Sequence[FeeRecipientRequest]) -> list[ResolvedRecipient]:
        """Resolve every request, preserving order.

        Wallet addresses and providers are checked before any lookup starts.
        On the first failed lookup the remaining ones are cancelled.

        Raises:
            InvalidSplit: A wallet identity is not a valid address or a
                social provider is unsupported.
            UnlinkedIdentity: A social identity has no linked wallet.
            TransientFailure: The directory stayed unavailable.
            DuplicateRecipient: Two identities resolved to the same address.
        """
        for request in requests:
            self._check(request)

        tasks = [asyncio.ensure_future(self._resolve_one(request)) for request in requests]
        try:
            addresses = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        seen: dict[str, int] = {}
        for i, address in enumerate(addresses):
            if address in seen:
                raise DuplicateRecipient(
                    f"{requests[seen[address]].label} and {requests[i].label} "
                    f"both resolve to {address}",
                    stage="resolve",
                )
            seen[address] = i

        return [
            ResolvedRecipient(address=address, bps=request.bps)
            for address, request in zip(addresses, requests)
        ]

    def _check(self, request: FeeRecipientRequest) -> None:
        identity = request.identity
        if not isinstance(identity, SocialIdentity):
            if not validate_svm_address(identity):
                raise InvalidSplit(f"Invalid recipient address: {identity}", stage="resolve")
        elif identity.provider.lower() not in SUPPORTED_SOCIAL_PROVIDERS:
            raise InvalidSplit(
                f"Unsupported social provider {identity.provider!r} for {identity.username}",
                stage="resolve",
            )

    async def _resolve_one(self, request: FeeRecipientRequest) -> str:
        identity = request.identity
        if not isinstance(identity, SocialIdentity):
            logger.debug("Direct wallet %s (%s bps)", identity, request.bps)
            return identity

        wallet = await self._lookup(identity)
        if wallet is None:
            raise UnlinkedIdentity(identity.provider, identity.username)
        logger.info("%s -> %s (%s bps)", identity, wallet, request.bps)
        return wallet

    async def _lookup(self, identity: SocialIdentity) -> str | None:
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._directory.resolve(identity.provider, identity.username)
            except DirectoryUnavailable as e:
                if attempt == self._max_attempts:
                    raise TransientFailure(
                        f"Identity directory unavailable for {identity} after "
                        f"{attempt} attempts: {e.message}",
                        stage="resolve",
                    ) from e
                delay = backoff_delay(attempt, self._backoff_seconds)
                logger.warning(
                    "Directory lookup for %s failed (attempt %d/%d), retrying in %.2fs: %s",
                    identity,
                    attempt,
                    self._max_attempts,
                    delay,
                    e.message,
                )
                await asyncio.sleep(delay)
        return None
