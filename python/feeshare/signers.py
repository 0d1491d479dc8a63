"""Keypair signer for fee-share transactions."""

import base58
from solders.keypair import Keypair  # type: ignore
from solders.message import to_bytes_versioned  # type: ignore
from solders.pubkey import Pubkey  # type: ignore
from solders.transaction import VersionedTransaction  # type: ignore


class KeypairSigner:
    """Signs transactions with a single Solana keypair.

    Transactions built by the Bags API may already carry other signatures
    (e.g. the mint keypair); only the slot belonging to this signer is
    filled in.
    """

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    @classmethod
    def from_base58(cls, secret: str) -> "KeypairSigner":
        return cls(Keypair.from_bytes(base58.b58decode(secret)))

    @classmethod
    def from_bytes(cls, secret: bytes) -> "KeypairSigner":
        return cls(Keypair.from_bytes(secret))

    @property
    def keypair(self) -> Keypair:
        return self._keypair

    @property
    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    @property
    def address(self) -> str:
        return str(self._keypair.pubkey())

    def sign_transaction(self, tx: VersionedTransaction) -> VersionedTransaction:
        """Return a copy of the transaction signed by this keypair.

        Raises:
            ValueError: If the signer is not a required signer of the message.
        """
        message = tx.message
        num_signers = message.header.num_required_signatures
        signer_keys = list(message.account_keys[:num_signers])
        pubkey = self._keypair.pubkey()
        if pubkey not in signer_keys:
            raise ValueError(f"No signature slot for signer {pubkey}")

        signatures = list(tx.signatures)
        signatures[signer_keys.index(pubkey)] = self._keypair.sign_message(
            to_bytes_versioned(message)
        )
        return VersionedTransaction.populate(message, signatures)
