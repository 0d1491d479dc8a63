"""Utility functions for the fee-share engine."""

import base58
from solders.pubkey import Pubkey  # type: ignore
from solders.transaction import VersionedTransaction  # type: ignore

from .constants import COMMITMENT_LEVELS, MAX_BACKOFF_SECONDS


def validate_svm_address(address: str) -> bool:
    """Check that a string is a valid base58 Solana public key."""
    if not address or not isinstance(address, str):
        return False
    try:
        Pubkey.from_string(address)
    except ValueError:
        return False
    return True


def normalize_commitment(commitment: str) -> str:
    """Return a lower-case commitment level, rejecting unknown ones."""
    level = commitment.strip().lower()
    if level not in COMMITMENT_LEVELS:
        raise ValueError(f"Unknown commitment level: {commitment}")
    return level


def commitment_reached(actual: str | None, required: str) -> bool:
    """Whether a reported confirmation status satisfies a required level."""
    if actual is None:
        return False
    return COMMITMENT_LEVELS.index(actual) >= COMMITMENT_LEVELS.index(required)


def backoff_delay(attempt: int, base_seconds: float) -> float:
    """Exponential backoff for a 1-based attempt number, capped."""
    return min(base_seconds * (2 ** (attempt - 1)), MAX_BACKOFF_SECONDS)


def decode_transaction(encoded: str) -> VersionedTransaction:
    """Decode a base58 serialized transaction returned by the Bags API."""
    return VersionedTransaction.from_bytes(base58.b58decode(encoded))


def encode_transaction(tx: VersionedTransaction) -> str:
    return base58.b58encode(bytes(tx)).decode()
