from __future__ import annotations

import numpy as np
import pytest

from mealvault.recommendations.models import (
    BehaviorSnapshot,
    CategoryPreference,
    IngredientPreference,
    ViewedItem,
)
from mealvault.recommendations.vectorizer import (
    FeatureSpace,
    build_item_matrix,
    build_item_vector,
    build_user_vector,
    detect_ingredients,
    rescale_preference,
)
from mealvault.tests.conftest import make_item

VOCAB = ("pork", "ginger", "tofu")


@pytest.fixture
def space(soup_catalog) -> FeatureSpace:
    catalog = soup_catalog + [make_item("M3", recipe="rice", category_id="fried", popularity=0)]
    return FeatureSpace.from_catalog(catalog, VOCAB)


class TestFeatureSpace:
    def test_categories_distinct_in_catalog_order(self, space):
        assert space.ingredients == VOCAB
        assert space.categories == ("soup", "fried")
        assert space.dimension == 3 + 2 + 1

    def test_null_categories_skipped_and_vocab_deduplicated(self):
        catalog = [make_item("A", category_id=None), make_item("B", category_id="curry")]
        space = FeatureSpace.from_catalog(catalog, ["pork", "pork", " ", "garlic "])
        assert space.ingredients == ("pork", "garlic")
        assert space.categories == ("curry",)


class TestItemVector:
    def test_ingredient_category_and_popularity_segments(self, soup_catalog, space):
        vector = build_item_vector(soup_catalog[0], space)
        np.testing.assert_allclose(vector, [1, 1, 0, 1, 0, 0.5])

    def test_ingredient_detection_is_case_insensitive(self, space):
        item = make_item("X", recipe="Braised PORK", description="with Ginger")
        assert detect_ingredients(item.text, VOCAB) == ["pork", "ginger"]
        assert build_item_vector(item, space)[:3].tolist() == [1, 1, 0]

    def test_popularity_is_capped_at_one(self, space):
        vector = build_item_vector(make_item("X", popularity=450), space)
        assert vector[-1] == 1.0

    def test_matrix_shape(self, soup_catalog, space):
        assert build_item_matrix(soup_catalog, space).shape == (2, space.dimension)
        assert build_item_matrix([], space).shape == (0, space.dimension)


class TestUserVector:
    def test_empty_snapshot_is_neutral(self, space):
        vector = build_user_vector(BehaviorSnapshot(), space)
        np.testing.assert_allclose(vector, [0.5, 0.5, 0.5, 0.5, 0.5, 0.0])

    def test_preferences_rescaled_into_unit_range(self, space):
        snapshot = BehaviorSnapshot(
            ingredient_preferences=[
                IngredientPreference(ingredient="Pork", score=8),
                IngredientPreference(ingredient="tofu", score=-14),
            ],
            category_preferences=[CategoryPreference(category_id="fried", score=10)],
        )
        vector = build_user_vector(snapshot, space)
        np.testing.assert_allclose(vector[:5], [0.9, 0.5, 0.0, 0.5, 1.0])

    def test_engagement_weights_likes_and_meal_plans(self, space):
        snapshot = BehaviorSnapshot(
            viewed=[ViewedItem(item_id="M1", view_count=4)],
            liked=["M1", "M2"],
            meal_plan=["M2"],
        )
        # (1 + 2*2 + 3*1) / 50
        assert build_user_vector(snapshot, space)[-1] == pytest.approx(0.16)

    def test_engagement_is_capped_at_one(self, space):
        snapshot = BehaviorSnapshot(meal_plan=[f"M{i}" for i in range(30)])
        assert build_user_vector(snapshot, space)[-1] == 1.0


def test_rescale_preference_clamps():
    assert rescale_preference(0) == 0.5
    assert rescale_preference(-10) == 0.0
    assert rescale_preference(25) == 1.0
