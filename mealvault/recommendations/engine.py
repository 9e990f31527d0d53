from __future__ import annotations

import logging
import time

from .behavior import get_user_behavior
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .data_store import DataStore, StoreUnavailableError
from .models import (
    BehaviorSnapshot,
    CatalogItem,
    Method,
    OracleContext,
    RecommendationItem,
    RecommendationResponse,
    ScoredCandidate,
    UserProfile,
)
from .oracle import (
    Oracle,
    accepted_matches,
    candidate_window,
    coerce_proposals,
    summarize_preferences,
    vet_proposals,
)
from .rules import score as rule_score
from .similarity import rank
from .vectorizer import FeatureSpace, build_user_vector

logger = logging.getLogger(__name__)


def _load_catalog(store: DataStore) -> list[CatalogItem]:
    """Read the catalog; the one store failure that aborts a request."""
    try:
        return store.list_items()
    except StoreUnavailableError:
        raise
    except Exception as exc:
        raise StoreUnavailableError("menu catalog could not be read") from exc


def _load_profile(store: DataStore, user_id: str) -> UserProfile:
    try:
        return store.get_profile(user_id)
    except Exception:
        logger.warning("Profile read failed for user %s, using empty profile", user_id, exc_info=True)
        return UserProfile()


def _merge(
    picked: list[ScoredCandidate], extra: list[ScoredCandidate], target: int,
) -> int:
    """Append *extra* to *picked* in place, skipping known ids, up to *target*."""
    seen = {c.item.id for c in picked}
    added = 0
    for candidate in extra:
        if len(picked) >= target:
            break
        if candidate.item.id in seen:
            continue
        seen.add(candidate.item.id)
        picked.append(candidate)
        added += 1
    return added


def _oracle_tier(
    oracle: Oracle,
    catalog: list[CatalogItem],
    snapshot: BehaviorSnapshot,
    profile: UserProfile,
    config: EngineConfig,
    target: int,
) -> list[ScoredCandidate]:
    window = candidate_window(catalog, profile, config)
    if not window:
        return []
    context = OracleContext(
        preferences=summarize_preferences(snapshot, profile),
        candidates=window,
        limit=target,
    )
    try:
        proposals = coerce_proposals(oracle.propose(context))
        matches = accepted_matches(vet_proposals(proposals, window))
    except Exception:
        logger.warning("Oracle failed, treating as zero proposals", exc_info=True)
        return []

    logger.info("Oracle proposed %d menus, accepted %d", len(proposals), len(matches))
    return [
        ScoredCandidate(item=m.item, score=None, reason=m.rationale, tier=Method.oracle_assisted)
        for m in matches
    ]


def _similarity_tier(
    catalog: list[CatalogItem],
    snapshot: BehaviorSnapshot,
    profile: UserProfile,
    config: EngineConfig,
    target: int,
) -> list[ScoredCandidate]:
    try:
        space = FeatureSpace.from_catalog(catalog, config.ingredient_vocabulary)
        user_vector = build_user_vector(snapshot, space, config)
        return rank(catalog, user_vector, snapshot, profile, space, config, limit=target)
    except Exception:
        logger.warning("Similarity ranking failed, falling back", exc_info=True)
        return []


def _rule_tier(
    catalog: list[CatalogItem],
    snapshot: BehaviorSnapshot,
    profile: UserProfile,
    config: EngineConfig,
    target: int,
) -> list[ScoredCandidate]:
    try:
        return rule_score(catalog, snapshot, profile, config, limit=target)
    except Exception:
        logger.warning("Rule-based scoring failed", exc_info=True)
        return []


def _to_item(candidate: ScoredCandidate) -> RecommendationItem:
    item = candidate.item
    return RecommendationItem(
        id=item.id,
        name=item.name,
        image=item.image,
        description=item.description,
        reason=candidate.reason,
        score=round(candidate.score, 3) if candidate.score is not None else None,
        exists_in_catalog=candidate.exists_in_catalog,
    )


def _resolve_method(tiers: list[Method], last_ran: Method) -> Method:
    if Method.oracle_assisted in tiers:
        return Method.oracle_assisted
    if tiers:
        return tiers[0]
    return last_ran


def get_recommendations(
    user_id: str,
    store: DataStore,
    oracle: Oracle | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    limit: int | None = None,
) -> RecommendationResponse:
    """
    Recommend menus for *user_id* through the oracle -> similarity -> rules chain.

    Raises ``StoreUnavailableError`` only when the catalog itself can't be
    read; every other failure shrinks the result instead.
    """
    start_time = time.time()
    target = config.max_recommendations if limit is None else min(limit, config.max_recommendations)

    catalog = _load_catalog(store)
    if not catalog:
        logger.warning("Menu catalog is empty, nothing to recommend")
        return RecommendationResponse(recommendations=[], method=Method.content_based)

    snapshot = get_user_behavior(store, user_id, config)
    if snapshot.is_empty():
        logger.info("No behavior history for user %s, cold start", user_id)
    profile = _load_profile(store, user_id)

    picked: list[ScoredCandidate] = []
    tiers: list[Method] = []
    last_ran = Method.content_based

    # --- Tier A: oracle ---
    if oracle is not None:
        last_ran = Method.oracle_assisted
        if _merge(picked, _oracle_tier(oracle, catalog, snapshot, profile, config, target), target):
            tiers.append(Method.oracle_assisted)

    # --- Tier B: content-based similarity ---
    if len(picked) < target:
        last_ran = Method.content_based
        if _merge(picked, _similarity_tier(catalog, snapshot, profile, config, target), target):
            tiers.append(Method.content_based)

    # --- Tier C: rules ---
    if len(picked) < config.similarity_min_results:
        last_ran = Method.rule_based
        if _merge(picked, _rule_tier(catalog, snapshot, profile, config, target), target):
            tiers.append(Method.rule_based)

    method = _resolve_method(tiers, last_ran)
    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.info(
        "Recommended %d menus for user %s via %s (tiers=%s, %.1f ms)",
        len(picked), user_id, method.value, [t.value for t in tiers], elapsed_ms,
    )
    return RecommendationResponse(
        recommendations=[_to_item(c) for c in picked[:target]],
        method=method,
        tiers=tiers,
    )


def get_meal_suggestions(
    user_id: str,
    store: DataStore,
    oracle: Oracle | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    count: int | None = None,
) -> RecommendationResponse:
    """Same engine as ``get_recommendations`` with a smaller cap."""
    count = config.meal_suggestion_count if count is None else count
    return get_recommendations(user_id, store, oracle=oracle, config=config, limit=count)
