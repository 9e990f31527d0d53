from __future__ import annotations

import pandas as pd
import pytest

from mealvault.recommendations.config import EngineConfig
from mealvault.recommendations.data_store import DataFrameStore
from mealvault.recommendations.models import CatalogItem

MENU_COLUMNS = [
    "menu_id",
    "menu_name",
    "menu_image",
    "menu_description",
    "menu_recipe",
    "category_id",
    "menu_like_count",
]

SOUP_MENUS = [
    {
        "menu_id": "M1",
        "menu_name": "Moo Tom Khing",
        "menu_image": "m1.jpg",
        "menu_description": "Clear soup",
        "menu_recipe": "pork, ginger",
        "category_id": "soup",
        "menu_like_count": 50,
    },
    {
        "menu_id": "M2",
        "menu_name": "Tao Hoo Soup",
        "menu_image": "m2.jpg",
        "menu_description": "Clear soup",
        "menu_recipe": "tofu",
        "category_id": "soup",
        "menu_like_count": 5,
    },
]

SMALL_VOCAB_CONFIG = EngineConfig(ingredient_vocabulary=("pork", "ginger", "tofu"))


def make_tables(user_id: str = "U1", **overrides) -> dict[str, pd.DataFrame]:
    """Full table set for one user with an empty history, patched by *overrides*."""
    tables = {
        "menus": pd.DataFrame(SOUP_MENUS, columns=MENU_COLUMNS),
        "categories": pd.DataFrame([{"category_id": "soup", "category_name": "Soup"}]),
        "users": pd.DataFrame([{
            "user_id": user_id, "allergies": "", "favorite_foods": "", "calorie_limit": None,
        }]),
        "menu_views": pd.DataFrame(columns=["user_id", "menu_id", "view_count", "last_viewed_at"]),
        "menu_likes": pd.DataFrame(columns=["user_id", "menu_id"]),
        "ingredient_preferences": pd.DataFrame(
            columns=["user_id", "ingredient_name", "preference_score"],
        ),
        "category_preferences": pd.DataFrame(
            columns=["user_id", "category_id", "preference_score"],
        ),
        "search_history": pd.DataFrame(
            columns=["user_id", "search_query", "search_type", "created_at"],
        ),
        "meal_plans": pd.DataFrame(columns=["user_id", "menu_id"]),
    }
    tables.update(overrides)
    return tables


def make_item(item_id: str, **fields) -> CatalogItem:
    return CatalogItem(id=item_id, name=fields.pop("name", f"Menu {item_id}"), **fields)


@pytest.fixture
def soup_catalog() -> list[CatalogItem]:
    return [
        make_item("M1", recipe="pork, ginger", description="Clear soup", category_id="soup", popularity=50),
        make_item("M2", recipe="tofu", description="Clear soup", category_id="soup", popularity=5),
    ]


@pytest.fixture
def store() -> DataFrameStore:
    return DataFrameStore(make_tables())


@pytest.fixture
def pork_lover_store() -> DataFrameStore:
    return DataFrameStore(make_tables(
        ingredient_preferences=pd.DataFrame([
            {"user_id": "U1", "ingredient_name": "pork", "preference_score": 8},
        ]),
    ))
