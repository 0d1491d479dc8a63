"""In-memory fakes for the ledger, the Bags API and the identity directory."""

import itertools

import pytest
from solders.hash import Hash  # type: ignore
from solders.instruction import Instruction  # type: ignore
from solders.keypair import Keypair  # type: ignore
from solders.message import MessageV0, to_bytes_versioned  # type: ignore
from solders.pubkey import Pubkey  # type: ignore
from solders.signature import Signature  # type: ignore
from solders.transaction import VersionedTransaction  # type: ignore

from feeshare.api import FeeShareConfigResult, PartnerConfig, TokenInfo
from feeshare.errors import DirectoryUnavailable
from feeshare.ledger.client import LedgerContext, SignatureStatus
from feeshare.signers import KeypairSigner

_counter = itertools.count()


def build_unsigned_tx(payer: Pubkey) -> VersionedTransaction:
    """A unique, unsigned single-instruction transaction paid by ``payer``."""
    ix = Instruction(Pubkey.new_unique(), next(_counter).to_bytes(8, "little"), [])
    message = MessageV0.try_compile(payer, [ix], [], Hash.default())
    signatures = [Signature.default()] * message.header.num_required_signatures
    return VersionedTransaction.populate(message, signatures)


class FakeLedger:
    """Ledger where every accepted transaction lands in the current slot.

    ``get_slot`` advances the slot by ``tick`` after answering, so time
    passes while the sequencer polls.
    """

    def __init__(self, slot: int = 100, tick: int = 1):
        self.slot = slot
        self.tick = tick
        self.sent: list[VersionedTransaction] = []
        self.statuses: dict[str, SignatureStatus] = {}
        self.send_failures: list[Exception | None] = []
        self.tx_errors: list[str | None] = []
        self.confirm = True
        self.pending: dict[str, SignatureStatus] = {}

    async def get_slot(self, commitment: str) -> int:
        slot = self.slot
        self.slot += self.tick
        return slot

    async def get_latest_blockhash(self) -> Hash:
        return Hash.default()

    async def send_transaction(self, raw: bytes, commitment: str) -> str:
        if self.send_failures:
            failure = self.send_failures.pop(0)
            if failure is not None:
                raise failure
        tx = VersionedTransaction.from_bytes(raw)
        signature = str(tx.signatures[0])
        self.sent.append(tx)
        err = self.tx_errors.pop(0) if self.tx_errors else None
        status = SignatureStatus(slot=self.slot, confirmation_status="finalized", err=err)
        if self.confirm:
            self.statuses[signature] = status
        else:
            self.pending[signature] = status
        return signature

    def land_pending(self) -> None:
        """Let transactions sent while ``confirm`` was off reach the ledger."""
        self.statuses.update(self.pending)
        self.pending.clear()

    async def get_signature_status(self, signature: str) -> SignatureStatus | None:
        return self.statuses.get(signature)


class FakeBagsApi:
    """Stands in for BagsClient.

    A fee share config only exists once its transaction has landed on the
    fake ledger.
    """

    def __init__(self, payer: Pubkey, ledger: FakeLedger):
        self.payer = payer
        self.ledger = ledger
        self._pending_configs: dict[str, tuple[dict, VersionedTransaction]] = {}
        self.calls: list[str] = []
        self.directory: dict[tuple[str, str], str] = {}
        self.directory_failures = 0
        self.configs: dict[str, dict] = {}
        self.partners: dict[str, PartnerConfig] = {}
        self.config_requests: list[dict] = []
        self.claim_tx_count = 1
        self.foreign_claims: set[str] = set()

    async def resolve(self, provider: str, username: str) -> str | None:
        self.calls.append("resolve")
        if self.directory_failures:
            self.directory_failures -= 1
            raise DirectoryUnavailable("directory returned HTTP 503")
        return self.directory.get((provider, username))

    async def create_token_info(self, **kwargs) -> TokenInfo:
        self.calls.append("create_token_info")
        mint = str(Pubkey.new_unique())
        return TokenInfo(mint=mint, metadata_url=f"ipfs://{mint}")

    async def get_fee_share_config(self, base_mint: str) -> dict | None:
        self.calls.append("get_fee_share_config")
        if base_mint in self.configs:
            return self.configs[base_mint]
        pending = self._pending_configs.get(base_mint)
        if pending is not None and self._landed(pending[1]):
            return pending[0]
        return None

    def _landed(self, tx: VersionedTransaction) -> bool:
        target = to_bytes_versioned(tx.message)
        return any(to_bytes_versioned(sent.message) == target for sent in self.ledger.sent)

    async def create_fee_share_config(
        self, payer, base_mint, claimers, additional_lookup_tables=None, partner=None
    ) -> FeeShareConfigResult:
        self.calls.append("create_fee_share_config")
        self.config_requests.append(
            {
                "base_mint": base_mint,
                "claimers": claimers,
                "lookup_tables": additional_lookup_tables,
                "partner": partner,
            }
        )
        key = str(Pubkey.new_unique())
        tx = build_unsigned_tx(self.payer)
        registered = {"meteoraConfigKey": key}
        if partner is not None:
            registered["partner"] = partner.partner
            registered["partnerConfig"] = partner.partner_config
        self._pending_configs[base_mint] = (registered, tx)
        return FeeShareConfigResult(config_key=key, transactions=[tx])

    async def get_partner_config(self, partner: str) -> PartnerConfig | None:
        self.calls.append("get_partner_config")
        return self.partners.get(partner)

    async def create_partner_config_transaction(self, partner: str):
        self.calls.append("create_partner_config_transaction")
        key = str(Pubkey.new_unique())
        self.partners[partner] = PartnerConfig(partner=partner, partner_config=key, bps=2500)
        return build_unsigned_tx(self.payer), key

    async def create_launch_transaction(self, **kwargs) -> VersionedTransaction:
        self.calls.append("create_launch_transaction")
        self.launch_request = kwargs
        return build_unsigned_tx(self.payer)

    async def get_claim_transactions(self, wallet, position) -> list[VersionedTransaction]:
        self.calls.append("get_claim_transactions")
        payer = Pubkey.new_unique() if position.asset_id in self.foreign_claims else self.payer
        return [build_unsigned_tx(payer) for _ in range(self.claim_tx_count)]


@pytest.fixture
def signer() -> KeypairSigner:
    return KeypairSigner(Keypair())


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def context(ledger, signer) -> LedgerContext:
    return LedgerContext(ledger=ledger, signer=signer, poll_interval=0, backoff_seconds=0)


@pytest.fixture
def api(signer, ledger) -> FakeBagsApi:
    return FakeBagsApi(signer.pubkey, ledger)


@pytest.fixture
def wallets():
    """Factory for n distinct valid wallet addresses."""

    def make(n: int) -> list[str]:
        return [str(Keypair().pubkey()) for _ in range(n)]

    return make


@pytest.fixture
def unsigned_tx(signer):
    """Factory for unsigned transactions paid by the test signer."""
    return lambda: build_unsigned_tx(signer.pubkey)
