"""Simulating swap paths route by route through pool simulators."""

from __future__ import annotations

import logging
from typing import Mapping, Protocol, Sequence

from .types import DexLabel, Market, Route, SwapPath, SwapRouteSimulation, TokenInfos

logger = logging.getLogger(__name__)

DECIMALS = 9

# Exchanges whose pools are recognised but cannot be simulated yet.
UNSUPPORTED_DEXES = frozenset({DexLabel.ORCA, DexLabel.RAYDIUM_CLMM})

RouteCache = dict[tuple[int, ...], list[SwapRouteSimulation]]


class RouteSimulationError(Exception):
    """A pool simulator could not quote a swap."""


class Simulator(Protocol):
    def __call__(
        self,
        first_pass: bool,
        amount_in: int,
        route: Route,
        market: Market,
        tokens_infos: Mapping[str, TokenInfos],
    ) -> tuple[str, str]: ...


def _to_sol(amount: float) -> float:
    return amount / 10**DECIMALS


def _parse_amount(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"bad amount value {text!r}") from None


def _find_market(markets: Sequence[Market], pool_address: str) -> Market:
    for market in markets:
        if market.id == pool_address:
            return market
    raise LookupError(f"no market for pool {pool_address}")


def _simulate_route(
    first_pass: bool,
    amount_in: int,
    route: Route,
    markets: Sequence[Market],
    tokens_infos: Mapping[str, TokenInfos],
    simulators: Mapping[DexLabel, Simulator],
) -> SwapRouteSimulation:
    """Quote one route; raises RouteSimulationError when the simulator fails."""
    try:
        simulator = simulators[route.dex]
    except KeyError:
        raise LookupError(f"no simulator for {route.dex.value}") from None
    market = _find_market(markets, route.pool_address)
    amount_out, min_amount_out = simulator(first_pass, amount_in, route, market, tokens_infos)
    return SwapRouteSimulation(
        id_route=route.id,
        pool_address=route.pool_address,
        dex_label=route.dex,
        token_0to1=route.token_0to1,
        token_in=route.token_in,
        token_out=route.token_out,
        amount_in=amount_in,
        estimated_amount_out=amount_out,
        estimated_min_amount_out=min_amount_out,
    )


def _cached(path: SwapPath, index: int, cache: RouteCache) -> SwapRouteSimulation | None:
    ids = path.id_paths
    if path.hops in (1, 2) and index == 0:
        hit = cache.get((ids[0],))
        return hit[0] if hit else None
    if path.hops == 2 and index == 1:
        hit = cache.get((ids[0], ids[1]))
        return hit[1] if hit else None
    return None


def simulate_path(
    simulation_amount: int,
    path: SwapPath,
    markets: Sequence[Market],
    tokens_infos: Mapping[str, TokenInfos],
    route_simulation: Mapping[tuple[int, ...], list[SwapRouteSimulation]],
    simulators: Mapping[DexLabel, Simulator],
) -> tuple[RouteCache, list[SwapRouteSimulation], float]:
    """Simulate ``path`` with ``simulation_amount``, reusing cached route results.

    Returns the updated cache, the per-route simulations and the difference
    between the final and the starting amount. When a simulator fails the
    simulations are empty and the difference is 0.0.
    """
    logger.info("New path, hops: %d", path.hops)
    cache: RouteCache = dict(route_simulation)
    amount_in = simulation_amount
    results: list[SwapRouteSimulation] = []

    if path.hops not in (1, 2):
        logger.warning("Invalid number of hops: %d", path.hops)

    for index, route in enumerate(path.paths):
        hit = _cached(path, index, cache)
        if hit is not None:
            amount_in = _parse_amount(hit.estimated_amount_out)
            logger.info("No simulation for route id %d", hit.id_route)
            results.append(hit)
            continue

        if route.dex in UNSUPPORTED_DEXES:
            logger.warning("Skipping %s pool %s", route.dex.value, route.pool_address)
            continue

        logger.info("%s pool %s", route.dex.value, route.pool_address)
        try:
            sim = _simulate_route(True, amount_in, route, markets, tokens_infos, simulators)
        except RouteSimulationError as exc:
            logger.error("Error handled for route %s", path.id_paths)
            logger.error("%s pool %s", route.dex.value, route.pool_address)
            logger.error("Error: %s", exc)
            return cache, [], 0.0

        ids = path.id_paths
        if index == 0 and (ids[0],) not in cache:
            cache[(route.id,)] = [sim]
        if index == 1 and path.hops == 2 and (ids[0], ids[1]) not in cache:
            previous = cache[(ids[0],)]
            cache[(ids[0], ids[1])] = [previous[0], sim]

        results.append(sim)
        amount_in = _parse_amount(sim.estimated_amount_out)

    logger.info(
        "Simulation of swap path %s: amount in %s SOL, amount out %s SOL",
        path.id_paths,
        _to_sol(simulation_amount),
        _to_sol(amount_in),
    )
    difference = float(amount_in - simulation_amount)
    if difference > 0.0:
        logger.info("Path simulates a positive difference of %s SOL", _to_sol(difference))
    return cache, results, difference


def simulate_path_precision(
    amount_input: int,
    path: SwapPath,
    markets: Sequence[Market],
    tokens_infos: Mapping[str, TokenInfos],
    simulators: Mapping[DexLabel, Simulator],
) -> tuple[list[SwapRouteSimulation], float]:
    """Simulate every route of ``path`` afresh with ``amount_input``.

    Returns the per-route simulations and the final-minus-starting difference,
    or an empty list and 0.0 when a simulator fails.
    """
    amount_in = amount_input
    results: list[SwapRouteSimulation] = []

    for route in path.paths:
        if route.dex in UNSUPPORTED_DEXES:
            continue
        try:
            sim = _simulate_route(False, amount_in, route, markets, tokens_infos, simulators)
        except RouteSimulationError as exc:
            logger.error("Precision error handled for route %s", path.id_paths)
            logger.error("%s pool %s", route.dex.value, route.pool_address)
            logger.error("Error: %s", exc)
            return [], 0.0
        results.append(sim)
        amount_in = _parse_amount(sim.estimated_amount_out)

    logger.info(
        "Precision simulation: amount in %s SOL, amount out %s SOL",
        _to_sol(amount_input),
        _to_sol(amount_in),
    )
    difference = float(amount_in - amount_input)
    logger.info("Path simulates a difference of %s SOL", _to_sol(difference))
    return results, difference