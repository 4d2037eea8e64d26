"""Logging setup, file output, public key codec and token lookups."""

from __future__ import annotations

import json
import logging
import struct
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from .constants import PROJECT_NAME
from .types import SwapPathResult, TokenInArb, TokenInfos

logger = logging.getLogger(__name__)

MAX_BASE58_LEN = 44
PUBKEY_LEN = 32

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: value for value, char in enumerate(_ALPHABET)}

_LEVEL_COLOURS = {
    logging.DEBUG: "\x1b[35m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[31m",
    logging.ERROR: "\x1b[91m",
    logging.CRITICAL: "\x1b[91m",
}


class _ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        colour = _LEVEL_COLOURS.get(record.levelno, "")
        stamp = self.formatTime(record, "[%H:%M:%S]")
        return f"{stamp}[{colour}{record.levelname}\x1b[0m] {record.getMessage()}"


_FILE_FORMAT = logging.Formatter(
    "%(asctime)s [%(levelname)s][%(name)s] %(message)s",
    datefmt="[%H:%M:%S][%d/%m/%Y]",
)


def setup_logger(log_dir: str | Path = "logs") -> logging.Logger:
    """Log project messages at INFO and everything else at ERROR.

    Output goes to stdout, ``program.log`` and, for errors only, ``errors.log``.
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_ConsoleFormatter())

    program_file = logging.FileHandler(directory / "program.log", encoding="utf-8")
    program_file.setFormatter(_FILE_FORMAT)

    errors_file = logging.FileHandler(directory / "errors.log", encoding="utf-8")
    errors_file.setFormatter(_FILE_FORMAT)
    errors_file.setLevel(logging.ERROR)

    root = logging.getLogger()
    root.setLevel(logging.ERROR)
    for handler in (program_file, errors_file, console):
        root.addHandler(handler)

    project = logging.getLogger(PROJECT_NAME)
    project.setLevel(logging.INFO)
    return project


def write_file_swap_path_result(path: str | Path, content: SwapPathResult) -> None:
    """Write a swap path result as compact JSON to ``path``."""
    text = json.dumps(content.to_dict(), separators=(",", ":"), ensure_ascii=False)
    Path(path).write_text(text, encoding="utf-8")
    logger.info("Data written to '%s' successfully.", path)


class ParsePubkeyError(ValueError):
    """A string is not a valid base58-encoded public key."""

    WRONG_SIZE = "String is the wrong size"
    INVALID = "Invalid Base58 string"


def _b58decode(text: str) -> bytes:
    number = 0
    for char in text:
        try:
            number = number * 58 + _INDEX[char]
        except KeyError:
            raise ParsePubkeyError(ParsePubkeyError.INVALID) from None
    zeros = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * zeros + body


def _b58encode(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    zeros = len(data) - len(data.lstrip(b"\x00"))
    return "1" * zeros + "".join(reversed(digits))


def from_str(s: str) -> bytes:
    """Decode a base58 public key into its 32 bytes."""
    if len(s.encode("utf-8")) > MAX_BASE58_LEN:
        raise ParsePubkeyError(ParsePubkeyError.WRONG_SIZE)
    decoded = _b58decode(s)
    if len(decoded) != PUBKEY_LEN:
        raise ParsePubkeyError(ParsePubkeyError.WRONG_SIZE)
    return decoded


def from_pubkey(pubkey: bytes) -> str:
    """Encode 32 public key bytes as base58."""
    if len(pubkey) != PUBKEY_LEN:
        raise ValueError(f"public key must be {PUBKEY_LEN} bytes, got {len(pubkey)}")
    return _b58encode(bytes(pubkey))


_MINT_STRUCT = struct.Struct("<I32sQBBI32s")


@dataclass(frozen=True)
class MintLayout:
    """The on-chain layout of a token mint account."""

    mint_authority_option: int
    mint_authority: bytes
    supply: int
    decimals: int
    is_initialized: bool
    freeze_authority_option: int
    freeze_authority: bytes

    @classmethod
    def from_bytes(cls, data: bytes) -> MintLayout:
        if len(data) != _MINT_STRUCT.size:
            raise ValueError(
                f"mint account must be {_MINT_STRUCT.size} bytes, got {len(data)}"
            )
        (mint_opt, mint_auth, supply, decimals, initialized,
         freeze_opt, freeze_auth) = _MINT_STRUCT.unpack(data)
        if initialized not in (0, 1):
            raise ValueError(f"invalid bool value {initialized} for is_initialized")
        return cls(
            mint_authority_option=mint_opt,
            mint_authority=mint_auth,
            supply=supply,
            decimals=decimals,
            is_initialized=bool(initialized),
            freeze_authority_option=freeze_opt,
            freeze_authority=freeze_auth,
        )


class _AccountSource(Protocol):
    def get_multiple_accounts(self, pubkeys: Sequence[bytes]) -> list[bytes | None]: ...


def get_tokens_infos(
    tokens: Iterable[TokenInArb], rpc_client: _AccountSource
) -> dict[str, TokenInfos]:
    """Fetch mint accounts of ``tokens`` and return their decimals and symbols."""
    tokens = list(tokens)
    addresses = [token.address for token in tokens]
    accounts = rpc_client.get_multiple_accounts([from_str(address) for address in addresses])

    infos: dict[str, TokenInfos] = {}
    for address, data in zip(addresses, accounts):
        if data is None:
            raise LookupError(f"mint account {address} not found")
        layout = MintLayout.from_bytes(data)
        symbol = next(token.symbol for token in tokens if token.address == address)
        infos[address] = TokenInfos(address=address, decimals=layout.decimals, symbol=symbol)
    return infos