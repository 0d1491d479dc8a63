"""Environment configuration.

Reads the same variables as the launch scripts:

    BAGS_API_KEY        Bags public API key
    SOLANA_RPC_URL      Solana JSON-RPC endpoint
    PRIVATE_KEY         Base58 encoded payer/launch wallet secret key
    BAGS_API_URL        Optional API base URL override
    FEESHARE_COMMITMENT Optional commitment for intermediate steps
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .constants import DEFAULT_BAGS_API_URL, DEFAULT_COMMITMENT
from .errors import ConfigError
from .signers import KeypairSigner
from .utils import normalize_commitment

REQUIRED_ENV_VARS = ("BAGS_API_KEY", "SOLANA_RPC_URL", "PRIVATE_KEY")


@dataclass(frozen=True)
class Settings:
    api_key: str
    rpc_url: str
    private_key: str
    api_url: str = DEFAULT_BAGS_API_URL
    commitment: str = DEFAULT_COMMITMENT

    def __repr__(self) -> str:
        return (
            f"Settings(api_key='***', rpc_url={self.rpc_url!r}, private_key='***', "
            f"api_url={self.api_url!r}, commitment={self.commitment!r})"
        )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, dotenv: bool = True) -> "Settings":
        """Build settings from the environment (and a .env file if present).

        Raises:
            ConfigError: If required variables are missing or invalid.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = dict(os.environ)

        missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            commitment = normalize_commitment(environ.get("FEESHARE_COMMITMENT", DEFAULT_COMMITMENT))
        except ValueError as e:
            raise ConfigError(str(e)) from e

        return cls(
            api_key=environ["BAGS_API_KEY"],
            rpc_url=environ["SOLANA_RPC_URL"],
            private_key=environ["PRIVATE_KEY"],
            api_url=environ.get("BAGS_API_URL") or DEFAULT_BAGS_API_URL,
            commitment=commitment,
        )

    def signer(self) -> KeypairSigner:
        try:
            return KeypairSigner.from_base58(self.private_key)
        except ValueError as e:
            raise ConfigError(f"PRIVATE_KEY is not a valid base58 keypair: {e}") from e
