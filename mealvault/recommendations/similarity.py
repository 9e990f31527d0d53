from __future__ import annotations

import logging

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .filters import exclude_allergens, parse_allergies
from .models import BehaviorSnapshot, CatalogItem, Method, ScoredCandidate, UserProfile
from .vectorizer import FeatureSpace, build_item_matrix, detect_ingredients

logger = logging.getLogger(__name__)

HIGH_MATCH_REASON = "High similarity to your preferences"
DEFAULT_REASON = "Based on similarity to your tastes"


def cosine_scores(user_vector: np.ndarray, item_matrix: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of *user_vector* against each row of *item_matrix*.

    Zero-norm vectors score 0. Results are clipped to [-1, 1] to absorb
    floating point overshoot.
    """
    if item_matrix.shape[0] == 0:
        return np.zeros(0, dtype=float)
    scores = cosine_similarity(user_vector.reshape(1, -1), item_matrix).ravel()
    return np.clip(scores, -1.0, 1.0)


def familiarity_penalty(
    item_id: str,
    viewed: set[str],
    liked: set[str],
    meal_plan: set[str],
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> float:
    penalty = 0.0
    if item_id in viewed:
        penalty += config.viewed_penalty
    if item_id in liked:
        penalty += config.liked_penalty
    if item_id in meal_plan:
        penalty += config.meal_plan_penalty
    return penalty


def _reason(
    item: CatalogItem,
    raw_similarity: float,
    liked_ingredients: set[str],
    space: FeatureSpace,
    config: EngineConfig,
) -> str:
    parts: list[str] = []
    if raw_similarity > config.high_match_threshold:
        parts.append(HIGH_MATCH_REASON)
    matching = [
        token for token in detect_ingredients(item.text, space.ingredients)
        if token.lower() in liked_ingredients
    ]
    if matching:
        parts.append(f"Contains: {', '.join(matching[: config.max_reason_ingredients])}")
    return " | ".join(parts) or DEFAULT_REASON


def rank(
    catalog: list[CatalogItem],
    user_vector: np.ndarray,
    snapshot: BehaviorSnapshot,
    profile: UserProfile,
    space: FeatureSpace,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    limit: int | None = None,
) -> list[ScoredCandidate]:
    """
    Rank *catalog* against *user_vector* by penalised cosine similarity.

    Items containing an allergy token are dropped before scoring. Scores are
    floored at 0 after penalties; ties keep the more popular item first.
    With no behavior history the list is ordered by popularity instead.
    """
    limit = config.max_recommendations if limit is None else limit
    eligible = exclude_allergens(catalog, parse_allergies(profile.allergies))
    if len(eligible) < len(catalog):
        logger.info("Excluded %d allergen menus", len(catalog) - len(eligible))
    if not eligible:
        return []

    raw = cosine_scores(user_vector, build_item_matrix(eligible, space, config))

    viewed = {v.item_id for v in snapshot.viewed}
    liked = set(snapshot.liked)
    meal_plan = set(snapshot.meal_plan)
    liked_ingredients = {
        p.ingredient.lower() for p in snapshot.ingredient_preferences if p.score > 0
    }

    candidates: list[ScoredCandidate] = []
    for item, similarity in zip(eligible, raw):
        similarity = float(similarity)
        adjusted = similarity - familiarity_penalty(item.id, viewed, liked, meal_plan, config)
        candidates.append(ScoredCandidate(
            item=item,
            score=max(0.0, adjusted),
            reason=_reason(item, similarity, liked_ingredients, space, config),
            tier=Method.content_based,
        ))

    if snapshot.is_empty():
        # Nothing to personalise on: popularity leads.
        candidates.sort(key=lambda c: (c.item.popularity, c.score), reverse=True)
    else:
        candidates.sort(key=lambda c: (c.score, c.item.popularity), reverse=True)
    return candidates[:limit]
