"""Tests for the Bags API client, against an httpx mock transport."""

import asyncio
import json

import httpx
import pytest

from feeshare.api import BagsClient
from feeshare.errors import ApiError, ApiUnavailable, DirectoryUnavailable
from feeshare.types import ClaimablePosition, PartnerOverlay, PoolSource, ResolvedRecipient
from feeshare.utils import encode_transaction


def _client(handler):
    http = httpx.AsyncClient(
        base_url="https://bags.test/api/v1", transport=httpx.MockTransport(handler)
    )
    return BagsClient("test-key", http_client=http)


def _ok(response):
    return httpx.Response(200, json={"success": True, "response": response})


def _call(handler, method, *args, **kwargs):
    async def run():
        async with _client(handler) as client:
            return await getattr(client, method)(*args, **kwargs)

    return asyncio.run(run())


class TestLaunchWallet:
    def test_resolved(self):
        def handler(request):
            assert request.url.path.endswith("/token-launch/fee-share/wallet/v2")
            assert request.url.params["provider"] == "twitter"
            assert request.url.params["username"] == "alice"
            return _ok({"wallet": "AliceWallet", "provider": "twitter"})

        assert _call(handler, "resolve_launch_wallet", "twitter", "alice") == "AliceWallet"

    def test_not_found_is_unlinked(self):
        def handler(request):
            return httpx.Response(404, json={"success": False, "error": "User not found"})

        assert _call(handler, "resolve", "twitter", "ghost") is None

    def test_not_found_error_body(self):
        def handler(request):
            return httpx.Response(400, json={"success": False, "error": "Wallet not found"})

        assert _call(handler, "resolve", "kick", "ghost") is None

    def test_server_error_is_transient(self):
        def handler(request):
            return httpx.Response(503, text="upstream unavailable")

        with pytest.raises(DirectoryUnavailable):
            _call(handler, "resolve", "twitter", "alice")

    def test_transport_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(DirectoryUnavailable):
            _call(handler, "resolve", "twitter", "alice")


class TestRequests:
    def test_api_key_header(self):
        client = BagsClient("secret", base_url="https://bags.test")
        assert client._http.headers["x-api-key"] == "secret"
        asyncio.run(client.close())

    def test_rate_limit_is_transient(self):
        def handler(request):
            return httpx.Response(429, json={"success": False, "error": "slow down"})

        with pytest.raises(ApiUnavailable):
            _call(handler, "get_fee_share_config", "Mint")

    def test_error_envelope(self):
        def handler(request):
            return httpx.Response(400, json={"success": False, "error": "Invalid baseMint"})

        with pytest.raises(ApiError, match="Invalid baseMint") as exc_info:
            _call(handler, "get_claimable_positions", "Wallet")
        assert exc_info.value.status_code == 400

    def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>")

        with pytest.raises(ApiError, match="non-JSON"):
            _call(handler, "get_claimable_positions", "Wallet")


class TestFeeShareConfig:
    def test_create_posts_claimers_and_flattens_bundles(self, unsigned_tx):
        txs = [unsigned_tx() for _ in range(3)]
        body = {}

        def handler(request):
            body.update(json.loads(request.content))
            return _ok(
                {
                    "meteoraConfigKey": "ConfigKey",
                    "bundles": [[encode_transaction(txs[0]), encode_transaction(txs[1])]],
                    "transactions": [encode_transaction(txs[2])],
                }
            )

        result = _call(
            handler,
            "create_fee_share_config",
            payer="Payer",
            base_mint="Mint",
            claimers=[ResolvedRecipient("A", 7000), ResolvedRecipient("B", 3000)],
            additional_lookup_tables=["Table1"],
            partner=PartnerOverlay(partner="Partner", partner_config="PartnerCfg"),
        )

        assert body["claimersArray"] == ["A", "B"]
        assert body["basisPointsArray"] == [7000, 3000]
        assert body["additionalLookupTables"] == ["Table1"]
        assert body["partner"] == "Partner"
        assert body["partnerConfig"] == "PartnerCfg"
        assert result.config_key == "ConfigKey"
        assert [bytes(t) for t in result.transactions] == [bytes(t) for t in txs]

    def test_missing_config(self):
        def handler(request):
            return httpx.Response(404, json={"success": False, "error": "Config not found"})

        assert _call(handler, "get_fee_share_config", "Mint") is None


class TestTokenLaunch:
    def test_create_token_info_normalizes_symbol(self):
        body = {}

        def handler(request):
            body.update(json.loads(request.content))
            return _ok({"tokenMint": "Mint", "tokenMetadata": "ipfs://meta"})

        info = _call(
            handler,
            "create_token_info",
            name="Test",
            symbol="$test",
            description="d",
            image_url="https://img",
        )
        assert body["symbol"] == "TEST"
        assert "twitter" not in body
        assert info.mint == "Mint"
        assert info.metadata_url == "ipfs://meta"

    def test_create_launch_transaction(self, unsigned_tx):
        tx = unsigned_tx()

        def handler(request):
            data = json.loads(request.content)
            assert data["configKey"] == "ConfigKey"
            assert data["initialBuyLamports"] == 1000
            return _ok(encode_transaction(tx))

        result = _call(
            handler,
            "create_launch_transaction",
            metadata_url="ipfs://meta",
            token_mint="Mint",
            launch_wallet="Wallet",
            initial_buy_lamports=1000,
            config_key="ConfigKey",
        )
        assert bytes(result) == bytes(tx)


class TestClaims:
    def test_positions(self):
        def handler(request):
            return _ok(
                [
                    {"baseMint": "Mint1", "virtualPoolClaimableAmount": "500"},
                    {"baseMint": "Mint2", "isMigrated": True, "dammPoolClaimableAmount": 700},
                ]
            )

        positions = _call(handler, "get_claimable_positions", "Wallet")
        assert [p.amount for p in positions] == [500, 700]
        assert positions[1].source_pool == PoolSource.POST_GRADUATION

    def test_claim_transactions_accept_both_shapes(self, unsigned_tx):
        txs = [unsigned_tx(), unsigned_tx()]

        def handler(request):
            return _ok([{"tx": encode_transaction(txs[0])}, encode_transaction(txs[1])])

        position = ClaimablePosition(
            asset_id="Mint1", source_pool=PoolSource.PRE_GRADUATION, amount=1
        )
        result = _call(handler, "get_claim_transactions", "Wallet", position)
        assert [bytes(t) for t in result] == [bytes(t) for t in txs]

    def test_undecodable_claim_transaction(self):
        def handler(request):
            return _ok([{"tx": "0OIl"}])

        position = ClaimablePosition(
            asset_id="Mint1", source_pool=PoolSource.PRE_GRADUATION, amount=1
        )
        with pytest.raises(ApiError, match="undecodable transaction"):
            _call(handler, "get_claim_transactions", "Wallet", position)
