from __future__ import annotations

import logging

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .filters import exclude_allergens, parse_allergies
from .models import BehaviorSnapshot, CatalogItem, Method, ScoredCandidate, UserProfile

logger = logging.getLogger(__name__)

DEFAULT_REASON = "Based on general preferences"


def _score_item(
    item: CatalogItem,
    snapshot: BehaviorSnapshot,
    view_counts: dict[str, int],
    meal_plan: set[str],
    config: EngineConfig,
) -> tuple[float, list[str]]:
    """Additive heuristic score for a single menu, with the reasons behind it."""
    score = 0.0
    reasons: list[str] = []
    text = item.text.lower()

    for pref in snapshot.ingredient_preferences:
        if pref.ingredient and pref.ingredient.lower() in text:
            score += pref.score
            if pref.score > 0:
                reasons.append(f"Contains liked ingredient: {pref.ingredient}")

    category_pref = next(
        (p for p in snapshot.category_preferences if p.category_id == item.category_id),
        None,
    )
    if category_pref is not None:
        score += category_pref.score * config.category_weight
        reasons.append(f"Preferred category: {category_pref.category_name or category_pref.category_id}")

    if item.id in view_counts:
        score -= view_counts[item.id] * config.view_count_penalty

    if item.id in meal_plan:
        score -= config.rule_meal_plan_penalty

    return score, reasons


def score(
    catalog: list[CatalogItem],
    snapshot: BehaviorSnapshot,
    profile: UserProfile,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    limit: int | None = None,
) -> list[ScoredCandidate]:
    """
    Deterministic fallback ranking needing no vector math.

    Allergen menus are filtered out before scoring rather than pushed down.
    """
    limit = config.max_recommendations if limit is None else limit
    eligible = exclude_allergens(catalog, parse_allergies(profile.allergies))

    view_counts: dict[str, int] = {}
    for viewed in snapshot.viewed:
        view_counts.setdefault(viewed.item_id, viewed.view_count)
    meal_plan = set(snapshot.meal_plan)

    candidates: list[ScoredCandidate] = []
    for item in eligible:
        total, reasons = _score_item(item, snapshot, view_counts, meal_plan, config)
        candidates.append(ScoredCandidate(
            item=item,
            score=total,
            reason=", ".join(reasons) or DEFAULT_REASON,
            tier=Method.rule_based,
        ))

    candidates.sort(key=lambda c: c.score, reverse=True)
    logger.debug("Rule scorer ranked %d of %d menus", len(candidates), len(catalog))
    return candidates[:limit]
