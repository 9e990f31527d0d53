from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

# Ingredient tokens tracked by the feature space. Matched as case-insensitive
# substrings of a menu's recipe and description.
DEFAULT_INGREDIENT_VOCABULARY: tuple[str, ...] = (
    "pork", "chicken", "beef", "fish", "shrimp", "clam", "crab", "egg",
    "vegetable", "lettuce", "coriander", "cabbage", "tomato", "carrot", "onion", "garlic",
    "chili", "pepper", "ginger", "galangal", "lemongrass", "kaffir lime",
    "sugar", "salt", "fish sauce", "soy sauce", "oyster sauce",
    "rice", "noodle", "vermicelli", "rice noodle", "glass noodle",
    "lime", "eggplant", "bean", "tofu", "mushroom",
    "coconut milk", "shallot", "red chili", "bird's eye chili",
    "holy basil", "thai basil", "morning glory", "kale", "broccoli",
)


@dataclass(frozen=True)
class EngineConfig:
    max_recommendations: int = int(os.getenv("RECS_MAX_RECOMMENDATIONS", "10"))
    meal_suggestion_count: int = 3

    # Behavior fetch caps
    viewed_limit: int = 20
    liked_limit: int = 20
    search_limit: int = 10
    meal_plan_limit: int = 30
    store_timeout: float = float(os.getenv("RECS_STORE_TIMEOUT", "5.0"))

    # Oracle tier
    oracle_window: int = 150

    # Vector scales
    preference_range: float = 10.0
    popularity_scale: float = 100.0
    engagement_scale: float = 50.0
    view_weight: float = 1.0
    like_weight: float = 2.0
    meal_plan_weight: float = 3.0

    # Similarity tier
    viewed_penalty: float = 0.05
    liked_penalty: float = 0.03
    meal_plan_penalty: float = 0.10
    high_match_threshold: float = 0.3
    max_reason_ingredients: int = 3
    # Fewer combined results than this sends the request on to the rule tier.
    similarity_min_results: int = 1

    # Rule tier
    category_weight: float = 2.0
    view_count_penalty: float = 0.1
    rule_meal_plan_penalty: float = 0.5

    ingredient_vocabulary: tuple[str, ...] = field(default=DEFAULT_INGREDIENT_VOCABULARY)


DEFAULT_ENGINE_CONFIG = EngineConfig()
