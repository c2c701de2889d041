"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from dotenv import load_dotenv

from shredwatch.model import Pubkey

__all__ = [
    "PUMPAMM_PROGRAM_ID",
    "DEFAULT_SERVER_URL",
    "DEFAULT_CREATE_ACCOUNT",
    "DEFAULT_SWAP_ACCOUNT",
    "Config",
]

PUMPAMM_PROGRAM_ID = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"
DEFAULT_SERVER_URL = "http://127.0.0.1:9999"
DEFAULT_CREATE_ACCOUNT = "TSLvdd1pWpHVjahSpsvCXUbgwsL3JAcvokwaKt1eokM"
DEFAULT_SWAP_ACCOUNT = "Ce6TQqeHC9p8KetsN6JsjHK7UTZk7nasjjnr7XxXp9F1"


def _parse_key(text: str) -> Pubkey | None:
    try:
        return Pubkey.from_base58(text)
    except ValueError:
        return None


@dataclass
class Config:
    """Stream server address and the accounts to watch."""

    server_url: str = DEFAULT_SERVER_URL
    target_accounts: list[Pubkey] = field(default_factory=list)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        """Build settings from a mapping, or from os.environ after loading .env.

        Addresses that do not parse are skipped.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ
        candidates = [
            environ.get("CREATE_ACCOUNT", DEFAULT_CREATE_ACCOUNT),
            environ.get("SWAP_ACCOUNT", DEFAULT_SWAP_ACCOUNT),
            PUMPAMM_PROGRAM_ID,
        ]
        extra = environ.get("TARGET_ACCOUNT")
        if extra is not None:
            candidates.append(extra)
        accounts = [key for key in map(_parse_key, candidates) if key is not None]
        return cls(
            server_url=environ.get("SHREDSTREAM_SERVER_URL", DEFAULT_SERVER_URL),
            target_accounts=accounts,
        )