"""
Feature vectors for menus and users.

Every vector has three contiguous segments over a ``FeatureSpace``:

    [ ingredient slots ... | category slots ... | scalar ]

Menus get binary ingredient presence, a one-hot category and a popularity
scalar. Users get preference scores rescaled into [0, 1] and an engagement
scalar. Item and user vectors compared against each other must come from the
same ``FeatureSpace`` instance.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from .config import DEFAULT_ENGINE_CONFIG, DEFAULT_INGREDIENT_VOCABULARY, EngineConfig
from .models import BehaviorSnapshot, CatalogItem


@dataclass(frozen=True)
class FeatureSpace:
    ingredients: tuple[str, ...]
    categories: tuple[str, ...]

    @classmethod
    def from_catalog(
        cls,
        catalog: Iterable[CatalogItem],
        vocabulary: Iterable[str] = DEFAULT_INGREDIENT_VOCABULARY,
    ) -> "FeatureSpace":
        ingredients = tuple(dict.fromkeys(t.strip() for t in vocabulary if t and t.strip()))
        categories = tuple(dict.fromkeys(item.category_id for item in catalog if item.category_id))
        return cls(ingredients=ingredients, categories=categories)

    @property
    def dimension(self) -> int:
        return len(self.ingredients) + len(self.categories) + 1


def detect_ingredients(text: str, vocabulary: Iterable[str]) -> list[str]:
    """Return vocabulary tokens found in *text* (case-insensitive substring)."""
    lower = text.lower()
    return [token for token in vocabulary if token.lower() in lower]


def rescale_preference(score: float, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> float:
    """Map a preference score from [-range, range] into [0, 1]."""
    span = config.preference_range
    return min(1.0, max(0.0, (score + span) / (2 * span)))


def build_item_vector(
    item: CatalogItem,
    space: FeatureSpace,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> np.ndarray:
    found = set(detect_ingredients(item.text, space.ingredients))
    vector = np.zeros(space.dimension, dtype=float)

    for i, token in enumerate(space.ingredients):
        if token in found:
            vector[i] = 1.0

    offset = len(space.ingredients)
    for j, category_id in enumerate(space.categories):
        if item.category_id == category_id:
            vector[offset + j] = 1.0

    vector[-1] = min(item.popularity / config.popularity_scale, 1.0)
    return vector


def build_item_matrix(
    items: list[CatalogItem],
    space: FeatureSpace,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> np.ndarray:
    if not items:
        return np.zeros((0, space.dimension), dtype=float)
    return np.vstack([build_item_vector(item, space, config) for item in items])


def engagement_score(snapshot: BehaviorSnapshot, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> float:
    raw = (
        config.view_weight * len(snapshot.viewed)
        + config.like_weight * len(snapshot.liked)
        + config.meal_plan_weight * len(snapshot.meal_plan)
    )
    return min(raw / config.engagement_scale, 1.0)


def build_user_vector(
    snapshot: BehaviorSnapshot,
    space: FeatureSpace,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> np.ndarray:
    ingredient_scores = {p.ingredient.lower(): p.score for p in snapshot.ingredient_preferences}
    category_scores = {p.category_id: p.score for p in snapshot.category_preferences}
    vector = np.zeros(space.dimension, dtype=float)

    # Unscored tokens and categories default to 0, i.e. the neutral 0.5.
    for i, token in enumerate(space.ingredients):
        vector[i] = rescale_preference(ingredient_scores.get(token.lower(), 0.0), config)

    offset = len(space.ingredients)
    for j, category_id in enumerate(space.categories):
        vector[offset + j] = rescale_preference(category_scores.get(category_id, 0.0), config)

    vector[-1] = engagement_score(snapshot, config)
    return vector
