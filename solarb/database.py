"""Storing strategy results in MongoDB."""

from __future__ import annotations

import logging
from typing import Any

from pymongo import MongoClient

from .types import SwapPathResult, VecSwapPathSelected

logger = logging.getLogger(__name__)

DB_NAME = "MEV_Bot"
DEFAULT_URI = "mongodb://localhost:27017"


def _collection(client: Any, collection_name: str) -> Any:
    if client is None:
        client = MongoClient(DEFAULT_URI)
    return client[DB_NAME][collection_name]


def insert_swap_path_result_collection(
    collection_name: str, sp_result: SwapPathResult, client: Any = None
) -> Any:
    """Insert one swap path result and return the new document id."""
    inserted = _collection(client, collection_name).insert_one(sp_result.to_dict())
    logger.info("%s written to database", collection_name)
    return inserted.inserted_id


def insert_vec_swap_path_selected_collection(
    collection_name: str, best_paths: VecSwapPathSelected, client: Any = None
) -> Any:
    """Insert a set of selected best paths and return the new document id."""
    inserted = _collection(client, collection_name).insert_one(best_paths.to_dict())
    logger.info("%s written to database", collection_name)
    return inserted.inserted_id