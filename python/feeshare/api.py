"""Async client for the Bags public API.

The API builds launch, fee-share config and claim transactions and hosts
the social launch wallet directory. Responses use the envelope
``{"success": bool, "response": ..., "error": str}``; transactions are
base58 serialized VersionedTransactions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from solders.transaction import VersionedTransaction  # type: ignore

from .constants import (
    DEFAULT_BAGS_API_URL,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    ENDPOINT_CLAIM_TXS,
    ENDPOINT_CLAIMABLE_POSITIONS,
    ENDPOINT_CREATE_LAUNCH_TX,
    ENDPOINT_CREATE_TOKEN_INFO,
    ENDPOINT_FEE_SHARE_CONFIG,
    ENDPOINT_LAUNCH_WALLET,
    ENDPOINT_PARTNER_CONFIG,
    ENDPOINT_PARTNER_CONFIG_CREATE,
)
from .errors import ApiError, ApiUnavailable, DirectoryUnavailable
from .types import ClaimablePosition, PartnerOverlay, ResolvedRecipient
from .utils import decode_transaction

logger = logging.getLogger(__name__)


def _decode(encoded: Any, source: str) -> VersionedTransaction:
    try:
        return decode_transaction(encoded)
    except ValueError as e:
        raise ApiError(f"{source} returned an undecodable transaction: {e}") from e


@dataclass(frozen=True)
class TokenInfo:
    mint: str
    metadata_url: str


@dataclass(frozen=True)
class FeeShareConfigResult:
    config_key: str
    transactions: list[VersionedTransaction] = field(default_factory=list)


@dataclass(frozen=True)
class PartnerConfig:
    partner: str
    partner_config: str
    bps: int
    total_claimed_fees: int = 0


class BagsClient:
    """Thin async wrapper over the Bags HTTP API.

    Example:
        ```python
        async with BagsClient(settings.api_key) as client:
            wallet = await client.resolve_launch_wallet("twitter", "alice")
        ```
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BAGS_API_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"x-api-key": api_key},
        )

    async def __aenter__(self) -> "BagsClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        allow_missing: bool = False,
    ) -> Any:
        try:
            response = await self._http.request(method, path, params=params, json=json)
        except httpx.TransportError as e:
            # Includes timeouts
            raise ApiUnavailable(f"{method} {path} failed: {e!r}") from e

        if allow_missing and response.status_code == 404:
            return None
        if response.status_code == 429 or response.status_code >= 500:
            raise ApiUnavailable(f"{method} {path} returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(
                f"{method} {path} returned non-JSON body", status_code=response.status_code
            ) from e

        if response.status_code >= 400 or not body.get("success", False):
            error = body.get("error") or body.get("message") or f"HTTP {response.status_code}"
            if allow_missing and "not found" in str(error).lower():
                return None
            raise ApiError(f"{method} {path}: {error}", status_code=response.status_code)

        return body.get("response")

    # --- Identity directory ---

    async def resolve(self, provider: str, username: str) -> str | None:
        """IdentityDirectory implementation."""
        return await self.resolve_launch_wallet(provider, username)

    async def resolve_launch_wallet(self, provider: str, username: str) -> str | None:
        try:
            result = await self._request(
                "GET",
                ENDPOINT_LAUNCH_WALLET,
                params={"provider": provider, "username": username},
                allow_missing=True,
            )
        except ApiUnavailable as e:
            raise DirectoryUnavailable(e.message) from e
        if not result:
            return None
        return result.get("wallet")

    # --- Fee share config ---

    async def get_fee_share_config(self, base_mint: str) -> dict[str, Any] | None:
        return await self._request(
            "GET",
            ENDPOINT_FEE_SHARE_CONFIG,
            params={"baseMint": base_mint},
            allow_missing=True,
        )

    async def create_fee_share_config(
        self,
        payer: str,
        base_mint: str,
        claimers: list[ResolvedRecipient],
        additional_lookup_tables: list[str] | None = None,
        partner: PartnerOverlay | None = None,
    ) -> FeeShareConfigResult:
        body: dict[str, Any] = {
            "payer": payer,
            "baseMint": base_mint,
            "claimersArray": [c.address for c in claimers],
            "basisPointsArray": [c.bps for c in claimers],
        }
        if additional_lookup_tables:
            body["additionalLookupTables"] = additional_lookup_tables
        if partner is not None:
            body["partner"] = partner.partner
            body["partnerConfig"] = partner.partner_config

        result = await self._request("POST", ENDPOINT_FEE_SHARE_CONFIG, json=body)

        # Bundles go first, then standalone transactions
        encoded: list[str] = []
        for bundle in result.get("bundles") or []:
            encoded.extend(bundle)
        encoded.extend(result.get("transactions") or [])

        return FeeShareConfigResult(
            config_key=result["meteoraConfigKey"],
            transactions=[_decode(tx, "POST fee share config") for tx in encoded],
        )

    # --- Partner config ---

    async def get_partner_config(self, partner: str) -> PartnerConfig | None:
        result = await self._request(
            "GET",
            ENDPOINT_PARTNER_CONFIG,
            params={"partner": partner},
            allow_missing=True,
        )
        if not result:
            return None
        return PartnerConfig(
            partner=result["partner"],
            partner_config=result["partnerConfig"],
            bps=int(result["bps"]),
            total_claimed_fees=int(result.get("totalClaimedFees", 0)),
        )

    async def create_partner_config_transaction(
        self, partner: str
    ) -> tuple[VersionedTransaction, str]:
        result = await self._request(
            "POST", ENDPOINT_PARTNER_CONFIG_CREATE, json={"partnerWallet": partner}
        )
        return _decode(result["transaction"], "POST partner config"), result["partnerConfig"]

    # --- Token launch ---

    async def create_token_info(
        self,
        name: str,
        symbol: str,
        description: str,
        image_url: str,
        twitter: str | None = None,
        website: str | None = None,
    ) -> TokenInfo:
        body: dict[str, Any] = {
            "name": name,
            "symbol": symbol.upper().replace("$", ""),
            "description": description,
            "imageUrl": image_url,
        }
        if twitter:
            body["twitter"] = twitter
        if website:
            body["website"] = website

        result = await self._request("POST", ENDPOINT_CREATE_TOKEN_INFO, json=body)
        return TokenInfo(mint=result["tokenMint"], metadata_url=result["tokenMetadata"])

    async def create_launch_transaction(
        self,
        metadata_url: str,
        token_mint: str,
        launch_wallet: str,
        initial_buy_lamports: int,
        config_key: str,
    ) -> VersionedTransaction:
        result = await self._request(
            "POST",
            ENDPOINT_CREATE_LAUNCH_TX,
            json={
                "ipfs": metadata_url,
                "tokenMint": token_mint,
                "wallet": launch_wallet,
                "initialBuyLamports": initial_buy_lamports,
                "configKey": config_key,
            },
        )
        return _decode(result, "POST launch transaction")

    # --- Claims ---

    async def get_claimable_positions(self, wallet: str) -> list[ClaimablePosition]:
        result = await self._request(
            "GET", ENDPOINT_CLAIMABLE_POSITIONS, params={"wallet": wallet}
        )
        return [ClaimablePosition.from_api(p) for p in result or []]

    async def get_claim_transactions(
        self, wallet: str, position: ClaimablePosition
    ) -> list[VersionedTransaction]:
        result = await self._request(
            "POST",
            ENDPOINT_CLAIM_TXS,
            json={"feeClaimer": wallet, "tokenMint": position.asset_id},
        )
        transactions = []
        for item in result or []:
            encoded = item["tx"] if isinstance(item, dict) else item
            transactions.append(_decode(encoded, f"Claim transactions for {position.asset_id}"))
        return transactions
