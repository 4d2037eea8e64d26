"""Project-wide names and environment settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

PROJECT_NAME = "solarb"


def get_env(key: str) -> str:
    """Return the environment variable ``key``, or an empty string if unset."""
    return os.environ.get(key, "")


@dataclass(frozen=True)
class Env:
    """Endpoints and paths read from the environment.

    Each field is read from the environment variable of the same name in
    upper case.
    """

    block_engine_url: str = ""
    mainnet_rpc_url: str = ""
    rpc_url_tx: str = ""
    devnet_rpc_url: str = ""
    rpc_url: str = ""
    wss_rpc_url: str = ""
    geyser_url: str = ""
    geyser_access_token: str = ""
    simulator_url: str = ""
    ws_simulator_url: str = ""
    payer_keypair_path: str = ""
    database_name: str = ""

    @classmethod
    def from_environ(cls) -> Env:
        return cls(**{field.name: get_env(field.name.upper()) for field in fields(cls)})