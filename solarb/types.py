"""Data types shared by market discovery, path generation and simulation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DexLabel(Enum):
    """Decentralised exchanges whose pools take part in arbitrage."""

    ORCA = "ORCA"
    ORCA_WHIRLPOOLS = "ORCA_WHIRLPOOLS"
    RAYDIUM_CLMM = "RAYDIUM_CLMM"
    RAYDIUM = "RAYDIUM"
    METEORA = "METEORA"


@dataclass
class Market:
    """A liquidity pool between two token mints."""

    id: str
    dex_label: DexLabel
    token_mint_a: str
    token_mint_b: str
    fee: int = 0
    liquidity: int | None = None
    account_data: bytes | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokenMintA": self.token_mint_a,
            "tokenMintB": self.token_mint_b,
            "fee": self.fee,
            "dexLabel": self.dex_label.value,
            "id": self.id,
            "account_data": None if self.account_data is None else list(self.account_data),
            "liquidity": self.liquidity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Market:
        raw = data.get("account_data")
        return cls(
            id=data["id"],
            dex_label=DexLabel(data["dexLabel"]),
            token_mint_a=data["tokenMintA"],
            token_mint_b=data["tokenMintB"],
            fee=data.get("fee", 0),
            liquidity=data.get("liquidity"),
            account_data=None if raw is None else bytes(raw),
        )


@dataclass
class Dex:
    """All known pools of one exchange, grouped by token pair."""

    label: DexLabel
    pair_to_markets: dict[str, list[Market]] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenInArb:
    """A token taking part in arbitrage; the first of a list is the base token."""

    address: str
    symbol: str

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "symbol": self.symbol}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenInArb:
        return cls(address=data["address"], symbol=data["symbol"])


@dataclass
class Route:
    """One directed swap through one pool."""

    id: int
    dex: DexLabel
    pool_address: str
    token_0to1: bool
    token_in: str
    token_out: str
    fee: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "dex": self.dex.value,
            "pool_address": self.pool_address,
            "token_0to1": self.token_0to1,
            "tokenIn": self.token_in,
            "tokenOut": self.token_out,
            "fee": self.fee,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Route:
        return cls(
            id=data["id"],
            dex=DexLabel(data["dex"]),
            pool_address=data["pool_address"],
            token_0to1=data["token_0to1"],
            token_in=data["tokenIn"],
            token_out=data["tokenOut"],
            fee=data["fee"],
        )


@dataclass
class SwapPath:
    """A cycle of routes starting and ending at the base token."""

    hops: int
    paths: list[Route]
    id_paths: list[int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "hops": self.hops,
            "paths": [route.to_dict() for route in self.paths],
            "id_paths": list(self.id_paths),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SwapPath:
        return cls(
            hops=data["hops"],
            paths=[Route.from_dict(route) for route in data["paths"]],
            id_paths=list(data["id_paths"]),
        )


@dataclass(frozen=True)
class TokenInfos:
    """On-chain facts about a token mint."""

    address: str
    decimals: int
    symbol: str


@dataclass
class SwapRouteSimulation:
    """Outcome of simulating one route with a given input amount."""

    id_route: int
    pool_address: str
    dex_label: DexLabel
    token_0to1: bool
    token_in: str
    token_out: str
    amount_in: int
    estimated_amount_out: str
    estimated_min_amount_out: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id_route": self.id_route,
            "pool_address": self.pool_address,
            "dex_label": self.dex_label.value,
            "token_0to1": self.token_0to1,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount_in": self.amount_in,
            "estimated_amount_out": self.estimated_amount_out,
            "estimated_min_amount_out": self.estimated_min_amount_out,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SwapRouteSimulation:
        return cls(
            id_route=data["id_route"],
            pool_address=data["pool_address"],
            dex_label=DexLabel(data["dex_label"]),
            token_0to1=data["token_0to1"],
            token_in=data["token_in"],
            token_out=data["token_out"],
            amount_in=data["amount_in"],
            estimated_amount_out=data["estimated_amount_out"],
            estimated_min_amount_out=data["estimated_min_amount_out"],
        )


@dataclass
class SwapPathResult:
    """Outcome of simulating a whole swap path."""

    path_id: int
    hops: int
    tokens_path: str
    route_simulations: list[SwapRouteSimulation]
    token_in: str
    token_in_symbol: str
    token_out: str
    token_out_symbol: str
    amount_in: int
    estimated_amount_out: str
    estimated_min_amount_out: str
    result: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "path_id": self.path_id,
            "hops": self.hops,
            "tokens_path": self.tokens_path,
            "route_simulations": [sim.to_dict() for sim in self.route_simulations],
            "token_in": self.token_in,
            "token_in_symbol": self.token_in_symbol,
            "token_out": self.token_out,
            "token_out_symbol": self.token_out_symbol,
            "amount_in": self.amount_in,
            "estimated_amount_out": self.estimated_amount_out,
            "estimated_min_amount_out": self.estimated_min_amount_out,
            "result": self.result,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SwapPathResult:
        return cls(
            path_id=data["path_id"],
            hops=data["hops"],
            tokens_path=data["tokens_path"],
            route_simulations=[
                SwapRouteSimulation.from_dict(sim) for sim in data["route_simulations"]
            ],
            token_in=data["token_in"],
            token_in_symbol=data["token_in_symbol"],
            token_out=data["token_out"],
            token_out_symbol=data["token_out_symbol"],
            amount_in=data["amount_in"],
            estimated_amount_out=data["estimated_amount_out"],
            estimated_min_amount_out=data["estimated_min_amount_out"],
            result=float(data["result"]),
        )


@dataclass
class VecSwapPathResult:
    """A batch of swap path results written to disk together."""

    result: list[SwapPathResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"result": [item.to_dict() for item in self.result]}


@dataclass
class SwapPathSelected:
    """A promising swap path together with the markets it goes through."""

    result: float
    path: SwapPath
    markets: list[Market]

    def to_dict(self) -> dict[str, Any]:
        return {
            "result": self.result,
            "path": self.path.to_dict(),
            "markets": [market.to_dict() for market in self.markets],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SwapPathSelected:
        return cls(
            result=float(data["result"]),
            path=SwapPath.from_dict(data["path"]),
            markets=[Market.from_dict(market) for market in data["markets"]],
        )


@dataclass
class VecSwapPathSelected:
    """The set of best paths chosen by a strategy run."""

    value: list[SwapPathSelected] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"value": [item.to_dict() for item in self.value]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VecSwapPathSelected:
        return cls(value=[SwapPathSelected.from_dict(item) for item in data["value"]])


@dataclass
class InputVec:
    """Settings for one arbitrage run over a group of tokens."""

    tokens_to_arb: list[TokenInArb]
    include_1hop: bool
    include_2hop: bool
    numbers_of_best_paths: int
    get_fresh_pools: bool