# solarb

`solarb` looks for circular swap paths across Solana liquidity pools
(Orca Whirlpools, Raydium, Meteora), simulates them hop by hop through
pool simulators you supply, and keeps the most profitable ones.

A path always starts and ends in the base token (the first token in your
list, usually SOL):

- **1 hop**: base → token → base, through two different pools
- **2 hops**: base → token A → token B → base, through three different pools

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Data types

`solarb.types` holds the dataclasses everything else works with:
`DexLabel`, `Market`, `Dex`, `TokenInArb`, `Route`, `SwapPath`,
`TokenInfos`, `SwapRouteSimulation`, `SwapPathResult`, `VecSwapPathResult`,
`SwapPathSelected`, `VecSwapPathSelected` and `InputVec`. Most of them have
`to_dict()` and a `from_dict()` class method for JSON storage.

## Building paths

```python
from solarb.types import DexLabel, Market, TokenInArb
from solarb.calc_arb import calculate_arb

SOL = "So11111111111111111111111111111111111111112"
AMC = "9jaZhJM6nMHTo4hY9DGabQ1HNuUWhJtm7js1fmKMVpkN"

tokens = [TokenInArb(address=SOL, symbol="SOL"), TokenInArb(address=AMC, symbol="AMC")]

markets_arb = {
    "HZZofxusqKaA9JqaeXW8PtUALRXUwSLLwnt4eBFiyEdC": Market(
        id="HZZofxusqKaA9JqaeXW8PtUALRXUwSLLwnt4eBFiyEdC",
        dex_label=DexLabel.RAYDIUM, token_mint_a=SOL, token_mint_b=AMC, liquidity=50_000,
    ),
    "9kbAydmdxuqrJGvaCmmnJaGnaC96zAkBHZ9dQn3cm9PZ": Market(
        id="9kbAydmdxuqrJGvaCmmnJaGnaC96zAkBHZ9dQn3cm9PZ",
        dex_label=DexLabel.METEORA, token_mint_a=AMC, token_mint_b=SOL, liquidity=10_000,
    ),
}

sorted_markets, paths = calculate_arb(True, True, markets_arb, tokens)
for path in paths:
    print(path.hops, path.id_paths)
```

`calculate_arb` keeps Orca Whirlpools pools with liquidity of at least
2 000 000 000 and Raydium and Meteora pools with at least 2000; plain Orca
and Raydium CLMM pools are always left out, and a kept market without a
liquidity value raises `ValueError`. It then turns every remaining pool into
two directed routes with `compute_routes` and builds the swap paths with
`generate_swap_paths`.

`get_markets_arb(restrict_sol_usdc, dexs, tokens, fresh_markets=None)` picks,
from a list of `Dex` objects, the pools whose two mints are both among your
tokens, keyed by pool address. Pools in `fresh_markets` are added when not
already known. With `restrict_sol_usdc` the number of SOL/USDC pools taken
is capped.

## Simulating

Pool simulators are passed in as a mapping from `DexLabel` to a callable:

```python
def simulator(first_pass, amount_in, route, market, tokens_infos):
    ...
    return str(amount_out), str(min_amount_out)
```

A simulator that cannot quote a swap raises
`solarb.simulate.RouteSimulationError`.

`solarb.simulate.simulate_path` runs an amount through every route of a
`SwapPath` and returns the updated route-simulation cache, the per-route
`SwapRouteSimulation` results and the difference between the final and the
starting amount, in base units. First routes, and for 2-hop paths the first
two routes, are cached so that shared prefixes are only simulated once.
Routes through Orca and Raydium CLMM pools are skipped. If a simulator fails,
the path comes back with no results and a difference of 0.0.

`simulate_path_precision` does the same without the cache, for trying one
path with a given input amount.

## Strategies

`solarb.strategies` ties everything together:

- `run_arbitrage_strategy` selects the markets, builds every path, fetches
  fresh pool accounts, simulates each path and keeps the
  `numbers_of_best_paths` best ones. Batches of results go to
  `results/result_<n>_<symbols>.json` and the selection to
  `best_paths_selected/<symbols>.json`, both under `output_dir`; the
  selection is also inserted into MongoDB. A path whose simulated profit
  exceeds 20 000 000 is written to `optimism_transactions/`, inserted into
  MongoDB and sent to the executor. Paths whose first two routes failed three
  times in a row are skipped. Progress is shown with a progress bar.
- `sorted_interesting_path_strategy` re-simulates a saved selection of paths,
  `rounds` times or forever when `rounds` is `None`, pausing 0.2 s between
  simulations, and returns the result files it wrote.
- `precision_strategy` tries one path with 0.5, 1, 5, 10 and 20 SOL and
  returns the most profitable `SwapPathResult`, or `None`.
- `notify_executor` sends the path of a result file over TCP, by default to
  `127.0.0.1:8080`.
- `build_swap_path_result` turns a list of route simulations into a
  `SwapPathResult`.

## Storage

`solarb.database.insert_swap_path_result_collection` and
`insert_vec_swap_path_selected_collection` insert a document into a
collection of the `MEV_Bot` database and return its id. Without a client
they connect to `mongodb://localhost:27017`.

## Chain access and configuration

`solarb.streams.RpcClient` is a small JSON-RPC client whose
`get_multiple_accounts` returns each account's data, or `None` for a
missing account. `get_fresh_accounts_states` refreshes the account data of
markets in batches of 100.

Settings are read from the environment by
`solarb.constants.Env.from_environ()`; each field comes from the variable of
the same name in upper case (`RPC_URL`, `MAINNET_RPC_URL`, `DEVNET_RPC_URL`,
`WSS_RPC_URL`, `PAYER_KEYPAIR_PATH`, `DATABASE_NAME`, ...), and missing
variables come back as empty strings. `get_fresh_accounts_states` uses
`RPC_URL` when no client is given.

## Utilities

- `solarb.utils.from_str` / `from_pubkey` convert between base58 strings and
  32-byte public keys; `from_str` raises `ParsePubkeyError` on bad input.
- `solarb.utils.MintLayout.from_bytes` decodes an SPL token mint account.
- `solarb.utils.get_tokens_infos` fetches decimals for a list of tokens.
- `solarb.utils.write_file_swap_path_result` writes a result as JSON.
- `solarb.utils.setup_logger` logs to stdout, `program.log` and `errors.log`
  in a log directory.
- `solarb.maths.from_x64_orca_wp` turns an Orca Whirlpool square-root price
  in Q64.64 form into a `Decimal` price.
- `solarb.debug.print_json_segment` prints and returns a slice of a large
  file.

## What the package does not do

- It has no pool simulators of its own: quoting swaps on Orca Whirlpools,
  Raydium or Meteora pools is left to the callables you pass in.
- It does not load the list of pools of each exchange; you build the `Dex`
  objects yourself.
- It does not build, sign or send transactions; profitable paths are only
  written to files and announced to an executor over TCP.
- It has no command-line program.