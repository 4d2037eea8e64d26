"""Market selection, route building and swap path generation."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Mapping, Sequence

from .types import Dex, DexLabel, Market, Route, SwapPath, TokenInArb

logger = logging.getLogger(__name__)

SOL_ADDRESS = "So11111111111111111111111111111111111111112"
USDC_ADDRESS = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

# Once this many SOL/USDC markets have been taken, further ones are skipped.
MAX_SOL_USDC_COUNT = 2

# Minimum liquidity for a market to be kept, by exchange. Exchanges absent
# from this table are always excluded.
LIQUIDITY_THRESHOLDS: dict[DexLabel, int] = {
    DexLabel.ORCA_WHIRLPOOLS: 2_000_000_000,
    DexLabel.RAYDIUM: 2000,
    DexLabel.METEORA: 2000,
}

_SOL_USDC = frozenset({SOL_ADDRESS, USDC_ADDRESS})


def _is_sol_usdc(market: Market) -> bool:
    return market.token_mint_a in _SOL_USDC and market.token_mint_b in _SOL_USDC


def get_markets_arb(
    restrict_sol_usdc: bool,
    dexs: Iterable[Dex],
    tokens: Sequence[TokenInArb],
    fresh_markets: Mapping[str, Market] | None = None,
) -> dict[str, Market]:
    """Collect the markets whose two mints are both among ``tokens``.

    Markets are keyed by pool address. ``fresh_markets`` holds newly found
    pools; they are added when not already known. With ``restrict_sol_usdc``
    the number of SOL/USDC markets is capped.
    """
    token_addresses = {token.address for token in tokens}
    markets_arb: dict[str, Market] = {}
    sol_usdc_count = 0

    def wanted(market: Market) -> bool:
        return market.token_mint_a in token_addresses and market.token_mint_b in token_addresses

    for dex in dexs:
        for markets in dex.pair_to_markets.values():
            for market in markets:
                if not wanted(market):
                    continue
                if restrict_sol_usdc and _is_sol_usdc(market):
                    if sol_usdc_count > MAX_SOL_USDC_COUNT:
                        continue
                    sol_usdc_count += 1
                markets_arb[market.id] = market

    if fresh_markets is not None:
        count_new_pools = 0
        for key, market in fresh_markets.items():
            if not wanted(market) or key in markets_arb:
                continue
            if restrict_sol_usdc and _is_sol_usdc(market):
                if sol_usdc_count > MAX_SOL_USDC_COUNT:
                    continue
                markets_arb[market.id] = market
                sol_usdc_count += 1
            markets_arb[key] = market
            count_new_pools += 1
        logger.info("%d new markets found", count_new_pools)

    return markets_arb


def calculate_arb(
    include_1hop: bool,
    include_2hop: bool,
    markets_arb: Mapping[str, Market],
    tokens: Sequence[TokenInArb],
) -> tuple[dict[str, Market], list[SwapPath]]:
    """Drop low-liquidity markets and build every swap path over the rest."""
    logger.warning("ORCA pools are not sorted")
    logger.warning("RAYDIUM_CLMM pools are not sorted")

    sorted_markets: dict[str, Market] = {}
    excluded: list[str] = []
    for key, market in markets_arb.items():
        threshold = LIQUIDITY_THRESHOLDS.get(market.dex_label)
        if threshold is None:
            excluded.append(key)
            continue
        if market.liquidity is None:
            raise ValueError(f"market {market.id} has no liquidity value")
        if market.liquidity >= threshold:
            sorted_markets[key] = market
        else:
            excluded.append(key)

    logger.info("Included markets: %d", len(sorted_markets))
    counts = Counter(market.dex_label for market in sorted_markets.values())
    for label in DexLabel:
        logger.info("Number of %s markets: %d", label.value, counts[label])
    logger.info("Excluded markets: %d", len(excluded))

    all_routes = compute_routes(sorted_markets)
    all_paths = generate_swap_paths(include_1hop, include_2hop, all_routes, tokens)
    return sorted_markets, all_paths


def compute_routes(markets_arb: Mapping[str, Market]) -> list[Route]:
    """Build both swap directions for every market, numbered consecutively."""
    routes: list[Route] = []
    for market in markets_arb.values():
        for token_0to1, token_in, token_out in (
            (True, market.token_mint_a, market.token_mint_b),
            (False, market.token_mint_b, market.token_mint_a),
        ):
            routes.append(
                Route(
                    id=len(routes),
                    dex=market.dex_label,
                    pool_address=market.id,
                    token_0to1=token_0to1,
                    token_in=token_in,
                    token_out=token_out,
                    fee=int(market.fee),
                )
            )
    return routes


def generate_swap_paths(
    include_1hop: bool,
    include_2hop: bool,
    all_routes: Sequence[Route],
    tokens: Sequence[TokenInArb],
) -> list[SwapPath]:
    """Enumerate cycles that start and end at the base token (``tokens[0]``).

    One hop: base -> token -> base. Two hops: base -> token1 -> token2 -> base.
    No pool is used twice in a path.
    """
    if not tokens:
        raise ValueError("at least one token (the base token) is required")
    base = tokens[0].address
    logger.info(
        "Hops settings | 1 hop: %s | 2 hops: %s",
        "on" if include_1hop else "off",
        "on" if include_2hop else "off",
    )

    starting = [route for route in all_routes if route.token_in == base]
    paths: list[SwapPath] = []

    if include_1hop:
        for first in starting:
            for second in all_routes:
                if (
                    second.token_out == base
                    and first.token_out == second.token_in
                    and first.pool_address != second.pool_address
                ):
                    paths.append(SwapPath(hops=1, paths=[first, second], id_paths=[first.id, second.id]))

    one_hop_count = len(paths)
    logger.info("1 hop swap paths: %d", one_hop_count)

    if include_2hop:
        for first in starting:
            middles = (
                route
                for route in all_routes
                if route.token_in == first.token_out
                and route.pool_address != first.pool_address
                and route.token_out != base
            )
            for second in middles:
                for third in all_routes:
                    if (
                        third.token_in == second.token_out
                        and third.pool_address != second.pool_address
                        and third.pool_address != first.pool_address
                        and third.token_out == base
                    ):
                        paths.append(
                            SwapPath(
                                hops=2,
                                paths=[first, second, third],
                                id_paths=[first.id, second.id, third.id],
                            )
                        )

    logger.info("2 hops swap paths: %d", len(paths) - one_hop_count)
    return paths