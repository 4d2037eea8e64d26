"""Arbitrage strategies: scanning every path, refining and watching the best ones."""

from __future__ import annotations

import json
import logging
import socket
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

from tqdm import tqdm

from .calc_arb import calculate_arb, get_markets_arb
from .database import (
    insert_swap_path_result_collection,
    insert_vec_swap_path_selected_collection,
)
from .simulate import RouteCache, Simulator, simulate_path, simulate_path_precision
from .streams import get_fresh_accounts_states
from .types import (
    Dex,
    DexLabel,
    Market,
    SwapPath,
    SwapPathResult,
    SwapPathSelected,
    SwapRouteSimulation,
    TokenInArb,
    TokenInfos,
    VecSwapPathResult,
    VecSwapPathSelected,
)
from .utils import write_file_swap_path_result

logger = logging.getLogger(__name__)

# Address of the executor that receives the paths of transaction files.
EXECUTOR_ADDRESS = ("127.0.0.1", 8080)

# Database client handed to the insert functions; None lets them connect themselves.
DB_CLIENT: Any = None

# Pause between two simulations when watching selected paths, in seconds.
POLL_DELAY = 0.2

# A simulated profit above this many lamports is handed to the executor.
EXECUTION_THRESHOLD = 20_000_000.0

# Paths sharing their first two routes are skipped after this many failures.
MAX_CONSECUTIVE_ERRORS = 3

# Results are flushed to a new file every this many paths.
RESULTS_BATCH = 300

PRECISION_AMOUNTS = (
    5 * 10**8,
    1 * 10**9,
    5 * 10**9,
    10 * 10**9,
    20 * 10**9,
)


def build_swap_path_result(
    path_id: int,
    hops: int,
    swap_simulation_result: Sequence[SwapRouteSimulation],
    result_difference: float,
    tokens: Sequence[TokenInArb],
    tokens_infos: Mapping[str, TokenInfos],
) -> SwapPathResult:
    """Summarise the route simulations of one path, base token first and last."""
    if not swap_simulation_result:
        raise ValueError("cannot build a result from an empty simulation")
    if not tokens:
        raise ValueError("at least one token (the base token) is required")
    base = tokens[0]
    symbols = []
    for sim in swap_simulation_result:
        try:
            symbols.append(tokens_infos[sim.token_in].symbol)
        except KeyError:
            raise LookupError(f"no token infos for {sim.token_in}") from None
    tokens_path = "-".join([*symbols, base.symbol])
    return SwapPathResult(
        path_id=path_id,
        hops=hops,
        tokens_path=tokens_path,
        route_simulations=list(swap_simulation_result),
        token_in=base.address,
        token_in_symbol=base.symbol,
        token_out=base.address,
        token_out_symbol=base.symbol,
        amount_in=swap_simulation_result[0].amount_in,
        estimated_amount_out=swap_simulation_result[-1].estimated_amount_out,
        estimated_min_amount_out=swap_simulation_result[-1].estimated_min_amount_out,
        result=result_difference,
    )


def notify_executor(path: str | Path, host: str | None = None, port: int | None = None) -> bytes:
    """Send the path of a transaction file to the executor over TCP.

    Defaults to ``EXECUTOR_ADDRESS``. Returns the bytes sent.
    """
    default_host, default_port = EXECUTOR_ADDRESS
    message = str(path).encode("utf-8")
    with socket.create_connection((host or default_host, port or default_port)) as stream:
        stream.sendall(message)
    logger.info("Sent: %s tx to executor", message.decode("utf-8", errors="replace"))
    return message


def _optimism_file(output_dir: Path, tokens_path: str, counter: int) -> Path:
    now = datetime.now(timezone.utc)
    date = f"{now.day}-{now.month}-{now.year}"
    directory = output_dir / "optimism_transactions"
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"{date}-{tokens_path}-{counter}.json"


def _symbols(tokens: Sequence[TokenInArb]) -> str:
    return "-".join(token.symbol for token in tokens)


def run_arbitrage_strategy(
    simulation_amount: int,
    restrict_sol_usdc: bool,
    include_1hop: bool,
    include_2hop: bool,
    numbers_of_best_paths: int,
    dexs: Sequence[Dex],
    tokens: Sequence[TokenInArb],
    tokens_infos: Mapping[str, TokenInfos],
    rpc_client: Any,
    simulators: Mapping[DexLabel, Simulator],
    output_dir: str | Path = ".",
) -> tuple[str, VecSwapPathSelected]:
    """Simulate every swap path over the tokens' markets and keep the best ones.

    Results are written in batches under ``results/``; the best paths go to
    ``best_paths_selected/<symbols>.json`` and to the database. Returns that
    file's path and the selected paths.
    """
    logger.info("Run arbitrage strategies...")
    out = Path(output_dir)

    markets_arb = get_markets_arb(restrict_sol_usdc, dexs, tokens)
    sorted_markets, all_paths = calculate_arb(include_1hop, include_2hop, markets_arb, tokens)
    fresh_markets = get_fresh_accounts_states(sorted_markets, rpc_client)

    route_simulation: RouteCache = {}
    batch = VecSwapPathResult()
    failed = 0
    positive = 0
    error_paths: dict[tuple[int, ...], int] = {}
    best: list[SwapPathSelected] = []
    counter_sp_result = 0
    symbols = _symbols(tokens)

    with tqdm(total=len(all_paths)) as bar:
        for i, path in enumerate(all_paths):
            key = tuple(path.id_paths[:2])
            if error_paths.get(key, 0) >= MAX_CONSECUTIVE_ERRORS:
                logger.error("Skip the %s path because of previous errors", path.id_paths)
                failed += 1
                bar.update(1)
                bar.set_postfix(failed=failed, positive=positive)
                continue

            markets: list[Market] = [
                fresh_markets[route.pool_address]
                for route in path.paths
                if route.pool_address in fresh_markets
            ]
            cache, sims, difference = simulate_path(
                simulation_amount, path, markets, tokens_infos, route_simulation, simulators
            )

            if len(sims) >= path.hops:
                sp_result = build_swap_path_result(i, path.hops, sims, difference, tokens, tokens_infos)
                batch.result.append(sp_result)

                if difference > EXECUTION_THRESHOLD:
                    logger.info("Send transaction execution...")
                    target = _optimism_file(out, sp_result.tokens_path, counter_sp_result)
                    insert_swap_path_result_collection("optimism_transactions", sp_result, DB_CLIENT)
                    write_file_swap_path_result(target, sp_result)
                    counter_sp_result += 1
                    notify_executor(target)

                error_paths[key] = 0

                selected = SwapPathSelected(result=difference, path=path, markets=markets)
                if len(best) < numbers_of_best_paths:
                    best.append(selected)
                    if len(best) == numbers_of_best_paths:
                        best.sort(key=lambda item: item.result, reverse=True)
                elif numbers_of_best_paths and difference > best[-1].result:
                    index = next(idx for idx, item in enumerate(best) if difference >= item.result)
                    best[index] = selected

                if i % 10 == 0:
                    logger.info("Best paths results: %s", [item.result for item in best])
                if difference > 0.0:
                    positive += 1
            else:
                failed += 1
                if not sims:
                    error_paths[key] = error_paths.get(key, 0) + 1

            route_simulation = cache
            bar.update(1)
            bar.set_postfix(failed=failed, positive=positive)

            if (i != 0 and i % RESULTS_BATCH == 0) or i == len(all_paths) - 1:
                results_dir = out / "results"
                results_dir.mkdir(parents=True, exist_ok=True)
                target = results_dir / f"result_{i // RESULTS_BATCH}_{symbols}.json"
                try:
                    target.write_text(json.dumps(batch.to_dict(), indent=2), encoding="utf-8")
                except OSError as exc:
                    logger.error("Results not written: %s", exc)
                else:
                    logger.info("Results written")
                    batch = VecSwapPathResult()

    best_dir = out / "best_paths_selected"
    best_dir.mkdir(parents=True, exist_ok=True)
    best_file = best_dir / f"{symbols}.json"
    content = VecSwapPathSelected(value=list(best))
    best_file.write_text(json.dumps(content.to_dict(), separators=(",", ":")), encoding="utf-8")
    logger.info("Data written to '%s' successfully.", best_file)
    insert_vec_swap_path_selected_collection("best_paths_selected", content, DB_CLIENT)

    return str(best_file), VecSwapPathSelected(value=best)


def precision_strategy(
    path: SwapPath,
    markets: Sequence[Market],
    tokens: Sequence[TokenInArb],
    tokens_infos: Mapping[str, TokenInfos],
    simulators: Mapping[DexLabel, Simulator],
) -> SwapPathResult | None:
    """Simulate ``path`` at several amounts and return the most profitable result."""
    logger.info("Run a precision simulation on path %s", path.id_paths)
    best_amount = 0.0
    best_result: SwapPathResult | None = None

    for index, amount_in in enumerate(PRECISION_AMOUNTS):
        sims, difference = simulate_path_precision(amount_in, path, markets, tokens_infos, simulators)
        if len(sims) < path.hops:
            continue
        sp_result = build_swap_path_result(index, path.hops, sims, difference, tokens, tokens_infos)
        if difference > best_amount:
            best_amount = difference
            logger.info("Best precision result: %s", best_amount)
            best_result = sp_result

    return best_result


def sorted_interesting_path_strategy(
    simulation_amount: int,
    path: str | Path,
    tokens: Sequence[TokenInArb],
    tokens_infos: Mapping[str, TokenInfos],
    simulators: Mapping[DexLabel, Simulator],
    rounds: int | None = None,
) -> list[str]:
    """Keep re-simulating the selected paths stored in ``path``.

    Profitable results are written under ``optimism_transactions/`` in the
    working directory and sent to the executor. Runs ``rounds`` passes, or
    forever when ``rounds`` is None. Returns the files written.
    """
    selected = VecSwapPathSelected.from_dict(
        json.loads(Path(path).read_text(encoding="utf-8"))
    ).value
    out = Path(".")
    written: list[str] = []
    counter_sp_result = 0
    done = 0

    while rounds is None or done < rounds:
        for index, item in enumerate(selected):
            _, sims, difference = simulate_path(
                simulation_amount, item.path, item.markets, tokens_infos, {}, simulators
            )
            if len(sims) >= item.path.hops:
                sp_result = build_swap_path_result(
                    index, item.path.hops, sims, difference, tokens, tokens_infos
                )
                if difference > EXECUTION_THRESHOLD:
                    logger.info("Send transaction execution...")
                    target = _optimism_file(out, sp_result.tokens_path, counter_sp_result)
                    write_file_swap_path_result(target, sp_result)
                    counter_sp_result += 1
                    notify_executor(target)
                    written.append(str(target))
            if POLL_DELAY:
                time.sleep(POLL_DELAY)
        done += 1

    return written