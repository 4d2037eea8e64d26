import json
import socket
import threading
from pathlib import Path
from types import SimpleNamespace

import pytest

import solarb.strategies as strategies
from solarb.calc_arb import SOL_ADDRESS
from solarb.simulate import RouteSimulationError
from solarb.strategies import (
    PRECISION_AMOUNTS,
    build_swap_path_result,
    notify_executor,
    precision_strategy,
    run_arbitrage_strategy,
    sorted_interesting_path_strategy,
)
from solarb.types import (
    Dex,
    DexLabel,
    Market,
    Route,
    SwapPath,
    SwapPathResult,
    SwapPathSelected,
    SwapRouteSimulation,
    TokenInArb,
    TokenInfos,
    VecSwapPathSelected,
)
from solarb.utils import from_pubkey, from_str

MINT_X = from_pubkey(bytes([7]) * 32)
POOL_A = from_pubkey(bytes([1]) * 32)
POOL_B = from_pubkey(bytes([2]) * 32)

ARB_ENTRIES = [TokenInArb(SOL_ADDRESS, "SOL"), TokenInArb(MINT_X, "X")]
INFOS = {
    SOL_ADDRESS: TokenInfos(SOL_ADDRESS, 9, "SOL"),
    MINT_X: TokenInfos(MINT_X, 6, "X"),
}


def _markets():
    return [
        Market(id=POOL_A, dex_label=DexLabel.RAYDIUM, token_mint_a=SOL_ADDRESS,
               token_mint_b=MINT_X, fee=25, liquidity=5000),
        Market(id=POOL_B, dex_label=DexLabel.RAYDIUM, token_mint_a=SOL_ADDRESS,
               token_mint_b=MINT_X, fee=25, liquidity=5000),
    ]


def _dexs():
    return [Dex(label=DexLabel.RAYDIUM, pair_to_markets={"SOL-X": _markets()})]


class FakeRpc:
    def get_multiple_accounts(self, pubkeys):
        return [bytes(key) for key in pubkeys]


class FakeCollection:
    def __init__(self):
        self.docs = []

    def insert_one(self, doc):
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=len(self.docs))


class FakeDb(dict):
    def __missing__(self, name):
        self[name] = FakeCollection()
        return self[name]


class FakeClient:
    def __init__(self):
        self.db = FakeDb()

    def __getitem__(self, name):
        return self.db


@pytest.fixture
def db_client(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr(strategies, "DB_CLIENT", client)
    return client


def _adder(step):
    def simulate(first_pass, amount_in, route, market, tokens_infos):
        return str(amount_in + step), str(amount_in + step - 1)
    return simulate


def _failing(first_pass, amount_in, route, market, tokens_infos):
    raise RouteSimulationError("no quote")


def _serve(count):
    server = socket.create_server(("127.0.0.1", 0))
    server.settimeout(5)
    received = []

    def run():
        with server:
            for _ in range(count):
                conn, _ = server.accept()
                with conn:
                    chunks = []
                    while data := conn.recv(4096):
                        chunks.append(data)
                    received.append(b"".join(chunks).decode())

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return server.getsockname()[:2], received, thread


def _sim(route_id, mint_in, mint_out, amount_in, out):
    return SwapRouteSimulation(route_id, POOL_A, DexLabel.RAYDIUM, True, mint_in,
                               mint_out, amount_in, out, str(int(out) - 1))


def test_build_swap_path_result_joins_symbols_and_amounts():
    sims = [
        _sim(0, SOL_ADDRESS, MINT_X, 1000, "1500"),
        _sim(3, MINT_X, SOL_ADDRESS, 1500, "1100"),
    ]
    result = build_swap_path_result(4, 1, sims, 100.0, ARB_ENTRIES, INFOS)
    assert result.tokens_path == "SOL-X-SOL"
    assert result.amount_in == 1000
    assert result.estimated_amount_out == "1100"
    assert result.estimated_min_amount_out == "1099"
    assert result.token_in == result.token_out == SOL_ADDRESS
    assert result.path_id == 4


def test_build_swap_path_result_rejects_empty():
    with pytest.raises(ValueError):
        build_swap_path_result(0, 1, [], 0.0, ARB_ENTRIES, INFOS)


def test_build_swap_path_result_unknown_mint():
    sims = [_sim(0, SOL_ADDRESS, MINT_X, 1000, "1500")]
    with pytest.raises(LookupError):
        build_swap_path_result(0, 1, sims, 0.0, ARB_ENTRIES, {})


def test_notify_executor_sends_path():
    (host, port), received, thread = _serve(1)
    sent = notify_executor("optimism_transactions/a.json", host, port)
    thread.join(5)
    assert sent == b"optimism_transactions/a.json"
    assert received == ["optimism_transactions/a.json"]


def test_notify_executor_uses_configured_address(monkeypatch):
    (host, port), received, thread = _serve(1)
    monkeypatch.setattr(strategies, "EXECUTOR_ADDRESS", (host, port))
    sent = notify_executor("b.json")
    thread.join(5)
    assert sent == b"b.json"
    assert received == ["b.json"]


def test_run_arbitrage_strategy_writes_best_paths(tmp_path, db_client):
    best_file, selected = run_arbitrage_strategy(
        3_500_000_000, True, True, False, 4, _dexs(), ARB_ENTRIES, INFOS,
        FakeRpc(), {DexLabel.RAYDIUM: _adder(1)}, tmp_path,
    )
    assert Path(best_file) == tmp_path / "best_paths_selected" / "SOL-X.json"
    stored = VecSwapPathSelected.from_dict(json.loads(Path(best_file).read_text()))
    assert stored.to_dict() == selected.to_dict()
    assert len(selected.value) == 2
    assert all(item.result > 0 for item in selected.value)
    assert db_client.db["best_paths_selected"].docs == [selected.to_dict()]

    results = json.loads((tmp_path / "results" / "result_0_SOL-X.json").read_text())
    assert len(results["result"]) == 2
    assert {r["tokens_path"] for r in results["result"]} == {"SOL-X-SOL"}


def test_run_arbitrage_strategy_keeps_only_best(tmp_path, db_client):
    def simulate(first_pass, amount_in, route, market, tokens_infos):
        step = 100 if route.pool_address == POOL_B and not route.token_0to1 else 1
        return str(amount_in + step), str(amount_in)

    _, selected = run_arbitrage_strategy(
        1_000_000_000, False, True, False, 1, _dexs(), ARB_ENTRIES, INFOS,
        FakeRpc(), {DexLabel.RAYDIUM: simulate}, tmp_path,
    )
    results = json.loads((tmp_path / "results" / "result_0_SOL-X.json").read_text())
    assert len(selected.value) == 1
    assert selected.value[0].result == max(r["result"] for r in results["result"])
    assert selected.value[0].path.paths[-1].pool_address == POOL_B


def test_run_arbitrage_strategy_failing_simulator(tmp_path, db_client):
    best_file, selected = run_arbitrage_strategy(
        1_000_000_000, False, True, False, 4, _dexs(), ARB_ENTRIES, INFOS,
        FakeRpc(), {DexLabel.RAYDIUM: _failing}, tmp_path,
    )
    assert selected.value == []
    assert json.loads(Path(best_file).read_text()) == {"value": []}


def test_run_arbitrage_strategy_sends_profitable_paths(tmp_path, db_client, monkeypatch):
    (host, port), received, thread = _serve(2)
    monkeypatch.setattr(strategies, "EXECUTOR_ADDRESS", (host, port))
    run_arbitrage_strategy(
        1_000_000_000, False, True, False, 4, _dexs(), ARB_ENTRIES, INFOS,
        FakeRpc(), {DexLabel.RAYDIUM: _adder(30_000_000)}, tmp_path,
    )
    thread.join(5)
    assert len(received) == 2
    for sent in received:
        result = SwapPathResult.from_dict(json.loads(Path(sent).read_text()))
        assert result.result > 20_000_000
        assert Path(sent).parent == tmp_path / "optimism_transactions"
    assert len(db_client.db["optimism_transactions"].docs) == 2


def _one_hop_path():
    routes = [
        Route(0, DexLabel.RAYDIUM, POOL_A, True, SOL_ADDRESS, MINT_X, 25),
        Route(3, DexLabel.RAYDIUM, POOL_B, False, MINT_X, SOL_ADDRESS, 25),
    ]
    return SwapPath(hops=1, paths=routes, id_paths=[0, 3])


def test_precision_strategy_picks_most_profitable_amount():
    def simulate(first_pass, amount_in, route, market, tokens_infos):
        return str(amount_in + amount_in // 10), str(amount_in)

    best = precision_strategy(_one_hop_path(), _markets(), ARB_ENTRIES, INFOS,
                              {DexLabel.RAYDIUM: simulate})
    assert best.amount_in == max(PRECISION_AMOUNTS)
    assert best.path_id == len(PRECISION_AMOUNTS) - 1


def test_precision_strategy_failure_returns_none():
    best = precision_strategy(_one_hop_path(), _markets(), ARB_ENTRIES, INFOS,
                              {DexLabel.RAYDIUM: _failing})
    assert best is None


def test_sorted_interesting_path_strategy_one_round(tmp_path, monkeypatch):
    selected = VecSwapPathSelected(
        value=[SwapPathSelected(result=1.0, path=_one_hop_path(), markets=_markets())]
    )
    source = tmp_path / "best.json"
    source.write_text(json.dumps(selected.to_dict()))
    (host, port), received, thread = _serve(1)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(strategies, "EXECUTOR_ADDRESS", (host, port))
    monkeypatch.setattr(strategies, "POLL_DELAY", 0)

    written = sorted_interesting_path_strategy(
        1_000_000_000, source, ARB_ENTRIES, INFOS, {DexLabel.RAYDIUM: _adder(30_000_000)}, 1,
    )
    thread.join(5)
    assert received == written
    assert len(written) == 1
    result = SwapPathResult.from_dict(json.loads((tmp_path / written[0]).read_text()))
    assert result.tokens_path == "SOL-X-SOL"


def test_sorted_interesting_path_strategy_below_threshold(tmp_path, monkeypatch):
    selected = VecSwapPathSelected(
        value=[SwapPathSelected(result=1.0, path=_one_hop_path(), markets=_markets())]
    )
    source = tmp_path / "best.json"
    source.write_text(json.dumps(selected.to_dict()))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(strategies, "POLL_DELAY", 0)
    written = sorted_interesting_path_strategy(
        1_000_000_000, source, ARB_ENTRIES, INFOS, {DexLabel.RAYDIUM: _adder(1)}, 2,
    )
    assert written == []
    assert not (tmp_path / "optimism_transactions").exists()


def test_market_ids_are_valid_pubkeys():
    assert from_pubkey(from_str(POOL_A)) == POOL_A