"""Fetching fresh account state from a JSON-RPC node."""

from __future__ import annotations

import base64
import logging
from dataclasses import replace
from typing import Mapping, Protocol, Sequence

import requests

from .constants import Env
from .types import Market
from .utils import from_pubkey, from_str

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


class RpcClient:
    """A minimal JSON-RPC client for reading accounts."""

    def __init__(self, url: str, session: requests.Session | None = None, timeout: float = 30.0):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_multiple_accounts(self, pubkeys: Sequence[bytes | str]) -> list[bytes | None]:
        """Return the data of each account, or None where it does not exist."""
        keys = [key if isinstance(key, str) else from_pubkey(key) for key in pubkeys]
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getMultipleAccounts",
            "params": [keys, {"encoding": "base64"}],
        }
        response = self.session.post(self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        body = response.json()
        if "error" in body:
            raise RuntimeError(f"RPC error: {body['error']}")
        return [
            None if account is None else base64.b64decode(account["data"][0])
            for account in body["result"]["value"]
        ]


class _AccountSource(Protocol):
    def get_multiple_accounts(self, pubkeys: Sequence[bytes]) -> list[bytes | None]: ...


def get_fresh_accounts_states(
    accounts: Mapping[str, Market], rpc_client: _AccountSource | None = None
) -> dict[str, Market]:
    """Return a copy of ``accounts`` with each market's account data refreshed."""
    client = rpc_client if rpc_client is not None else RpcClient(Env.from_environ().rpc_url)
    items = list(accounts.items())
    fresh = dict(accounts)
    refreshed = 0

    for start in range(0, len(items), BATCH_SIZE):
        batch = items[start:start + BATCH_SIZE]
        datas = client.get_multiple_accounts([from_str(market.id) for _, market in batch])
        for (key, market), data in zip(batch, datas):
            if data is None:
                raise LookupError(f"account {market.id} not found")
            fresh[key] = replace(market, id=key, account_data=data)
            refreshed += 1

    logger.info("Fresh data for %d markets", refreshed)
    return fresh