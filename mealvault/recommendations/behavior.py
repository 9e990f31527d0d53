from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .data_store import DataStore
from .models import BehaviorSnapshot

logger = logging.getLogger(__name__)


def _fetchers(
    store: DataStore, user_id: str, config: EngineConfig,
) -> dict[str, Callable[[], list[Any]]]:
    return {
        "viewed": lambda: store.fetch_viewed(user_id, config.viewed_limit),
        "liked": lambda: store.fetch_liked(user_id, config.liked_limit),
        "ingredient_preferences": lambda: store.fetch_ingredient_preferences(user_id),
        "category_preferences": lambda: store.fetch_category_preferences(user_id),
        "searches": lambda: store.fetch_searches(user_id, config.search_limit),
        "meal_plan": lambda: store.fetch_meal_plan(user_id, config.meal_plan_limit),
    }


def _normalise(name: str, records: list[Any], config: EngineConfig) -> list[Any]:
    """Validate one field and re-apply ordering and caps a store may have ignored."""
    records = getattr(BehaviorSnapshot.model_validate({name: records}), name)
    if name == "viewed":
        return sorted(records, key=lambda v: v.view_count, reverse=True)[: config.viewed_limit]
    if name in ("ingredient_preferences", "category_preferences"):
        return sorted(records, key=lambda p: p.score, reverse=True)
    caps = {
        "liked": config.liked_limit,
        "searches": config.search_limit,
        "meal_plan": config.meal_plan_limit,
    }
    return records[: caps[name]]


def get_user_behavior(
    store: DataStore,
    user_id: str,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> BehaviorSnapshot:
    """
    Fetch every behavior record for *user_id* concurrently.

    All fetches share one ``config.store_timeout`` deadline. Each field
    degrades to an empty list when its query fails, misses the deadline or
    returns malformed records; this function never raises because of the store.
    """
    fetchers = _fetchers(store, user_id, config)
    fields: dict[str, list[Any]] = {}

    pool = ThreadPoolExecutor(max_workers=len(fetchers), thread_name_prefix="behavior")
    try:
        futures = {name: pool.submit(fetch) for name, fetch in fetchers.items()}
        wait(futures.values(), timeout=config.store_timeout)
        for name, future in futures.items():
            if not future.done():
                logger.warning(
                    "Behavior fetch '%s' timed out for user %s, using empty list",
                    name, user_id,
                )
                fields[name] = []
                continue
            try:
                fields[name] = _normalise(name, list(future.result() or []), config)
            except Exception:
                logger.warning(
                    "Behavior fetch '%s' failed for user %s, using empty list",
                    name, user_id, exc_info=True,
                )
                fields[name] = []
    finally:
        # Don't hold the request open for a fetch that already timed out.
        pool.shutdown(wait=False, cancel_futures=True)

    snapshot = BehaviorSnapshot(**fields)
    logger.debug(
        "Behavior for %s: %d viewed, %d liked, %d ingredient prefs, %d category prefs",
        user_id,
        len(snapshot.viewed),
        len(snapshot.liked),
        len(snapshot.ingredient_preferences),
        len(snapshot.category_preferences),
    )
    return snapshot
