from solarb.database import (
    DB_NAME,
    insert_swap_path_result_collection,
    insert_vec_swap_path_selected_collection,
)
from solarb.types import (
    DexLabel,
    Market,
    Route,
    SwapPath,
    SwapPathResult,
    SwapPathSelected,
    SwapRouteSimulation,
    VecSwapPathSelected,
)


class _Inserted:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class _Collection:
    def __init__(self):
        self.documents = []

    def insert_one(self, document):
        self.documents.append(document)
        return _Inserted(len(self.documents))


class _Client:
    def __init__(self):
        self.dbs = {}

    def __getitem__(self, name):
        return self.dbs.setdefault(name, _Database())


class _Database:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, _Collection())


def _result():
    sim = SwapRouteSimulation(
        id_route=17,
        pool_address="HZZofxusqKaA9JqaeXW8PtUALRXUwSLLwnt4eBFiyEdC",
        dex_label=DexLabel.RAYDIUM,
        token_0to1=False,
        token_in="So11111111111111111111111111111111111111112",
        token_out="9jaZhJM6nMHTo4hY9DGabQ1HNuUWhJtm7js1fmKMVpkN",
        amount_in=300000000,
        estimated_amount_out="8703355798604",
        estimated_min_amount_out="8617183959013",
    )
    return SwapPathResult(
        path_id=1, hops=2, tokens_path="SOL-AMC-GME-SOL", route_simulations=[sim],
        token_in="So11111111111111111111111111111111111111112", token_in_symbol="SOL",
        token_out="So11111111111111111111111111111111111111112", token_out_symbol="SOL",
        amount_in=300000000, estimated_amount_out="300776562",
        estimated_min_amount_out="297798576", result=776562.0,
    )


def test_insert_swap_path_result():
    client = _Client()
    sp = _result()
    inserted_id = insert_swap_path_result_collection("optimism_transactions", sp, client)
    docs = client[DB_NAME]["optimism_transactions"].documents
    assert inserted_id == 1
    assert len(docs) == 1
    assert SwapPathResult.from_dict(docs[0]) == sp


def test_insert_vec_swap_path_selected():
    client = _Client()
    route = Route(id=0, dex=DexLabel.METEORA, pool_address="p", token_0to1=True,
                  token_in="a", token_out="b", fee=3)
    market = Market(id="p", dex_label=DexLabel.METEORA, token_mint_a="a", token_mint_b="b",
                    liquidity=2500, account_data=b"\x01\x02")
    best = VecSwapPathSelected([
        SwapPathSelected(result=12.5, path=SwapPath(hops=1, paths=[route], id_paths=[0]),
                         markets=[market])
    ])
    insert_vec_swap_path_selected_collection("best_paths_selected", best, client)
    insert_vec_swap_path_selected_collection("best_paths_selected", best, client)
    docs = client[DB_NAME]["best_paths_selected"].documents
    assert len(docs) == 2
    assert VecSwapPathSelected.from_dict(docs[0]) == best
    assert "best_paths_selected" in client[DB_NAME].collections
    assert "ultra_strategies" not in client[DB_NAME].collections