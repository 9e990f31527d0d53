"""
Tabular data store for menus, users and behavior records.

Two flavours share one query layer:

* ``DataFrameStore`` wraps DataFrames already in memory.
* ``CsvDataStore`` re-reads ``<table>.csv`` from a directory on every query,
  so each recommendation request sees current data.

Only a failure to read the menu catalog is fatal to a request; the engine
absorbs failures on every other table.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

import pandas as pd

from .models import (
    CatalogItem,
    Category,
    CategoryPreference,
    IngredientPreference,
    UserProfile,
    ViewedItem,
)

logger = logging.getLogger(__name__)

# Columns that hold identifiers; read as strings so "007" stays "007".
_ID_COLUMNS = ("menu_id", "user_id", "category_id")

TABLES = (
    "menus",
    "categories",
    "users",
    "menu_views",
    "menu_likes",
    "ingredient_preferences",
    "category_preferences",
    "search_history",
    "meal_plans",
)


class StoreUnavailableError(RuntimeError):
    """Raised when a table cannot be read at all."""


class DataStore(Protocol):
    def list_items(self) -> list[CatalogItem]: ...

    def list_categories(self) -> list[Category]: ...

    def get_profile(self, user_id: str) -> UserProfile: ...

    def fetch_viewed(self, user_id: str, limit: int) -> list[ViewedItem]: ...

    def fetch_liked(self, user_id: str, limit: int) -> list[str]: ...

    def fetch_ingredient_preferences(self, user_id: str) -> list[IngredientPreference]: ...

    def fetch_category_preferences(self, user_id: str) -> list[CategoryPreference]: ...

    def fetch_searches(self, user_id: str, limit: int) -> list[str]: ...

    def fetch_meal_plan(self, user_id: str, limit: int) -> list[str]: ...


def _records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a frame to dicts with NaN replaced by ``None``."""
    return df.astype(object).where(pd.notna(df), None).to_dict("records")


def _for_user(df: pd.DataFrame, user_id: str) -> pd.DataFrame:
    return df.loc[df["user_id"].astype(str) == str(user_id)]


class DataFrameStore:
    def __init__(self, tables: dict[str, pd.DataFrame] | None = None) -> None:
        self._tables = dict(tables or {})

    def _table(self, name: str) -> pd.DataFrame:
        try:
            return self._tables[name]
        except KeyError:
            raise StoreUnavailableError(f"table '{name}' is not available") from None

    # ── Catalog ──────────────────────────────────────────────────────────

    def list_items(self) -> list[CatalogItem]:
        df = self._table("menus")
        items: list[CatalogItem] = []
        for row in _records(df):
            if row.get("menu_id") is None:
                logger.warning("Skipping menu row without an id: %r", row.get("menu_name"))
                continue
            category_id = row.get("category_id")
            items.append(CatalogItem(
                id=str(row["menu_id"]),
                name=row.get("menu_name") or "",
                description=row.get("menu_description") or "",
                recipe=row.get("menu_recipe") or "",
                image=row.get("menu_image"),
                category_id=str(category_id) if category_id is not None else None,
                popularity=max(0, int(row.get("menu_like_count") or 0)),
            ))
        return items

    def list_categories(self) -> list[Category]:
        df = self._table("categories")
        return [
            Category(
                category_id=str(row["category_id"]),
                category_name=row.get("category_name") or "",
            )
            for row in _records(df)
        ]

    def _category_names(self) -> dict[str, str]:
        try:
            return {c.category_id: c.category_name for c in self.list_categories()}
        except StoreUnavailableError:
            return {}

    # ── Users ────────────────────────────────────────────────────────────

    def get_profile(self, user_id: str) -> UserProfile:
        rows = _records(_for_user(self._table("users"), user_id))
        if not rows:
            return UserProfile()
        row = rows[0]
        limit = row.get("calorie_limit")
        return UserProfile(
            allergies=row.get("allergies"),
            favorite_foods=row.get("favorite_foods"),
            calorie_limit=int(limit) if limit is not None else None,
        )

    # ── Behavior ─────────────────────────────────────────────────────────

    def fetch_viewed(self, user_id: str, limit: int) -> list[ViewedItem]:
        df = _for_user(self._table("menu_views"), user_id)
        df = df.sort_values("view_count", ascending=False, kind="stable").head(limit)
        return [
            ViewedItem(
                item_id=str(row["menu_id"]),
                view_count=int(row.get("view_count") or 0),
                last_viewed_at=row.get("last_viewed_at"),
            )
            for row in _records(df)
            if row.get("menu_id") is not None
        ]

    def fetch_liked(self, user_id: str, limit: int) -> list[str]:
        df = _for_user(self._table("menu_likes"), user_id).head(limit)
        return [str(menu_id) for menu_id in df["menu_id"].dropna()]

    def fetch_ingredient_preferences(self, user_id: str) -> list[IngredientPreference]:
        df = _for_user(self._table("ingredient_preferences"), user_id)
        df = df.sort_values("preference_score", ascending=False, kind="stable")
        return [
            IngredientPreference(
                ingredient=str(row["ingredient_name"]),
                score=float(row.get("preference_score") or 0.0),
            )
            for row in _records(df)
            if row.get("ingredient_name")
        ]

    def fetch_category_preferences(self, user_id: str) -> list[CategoryPreference]:
        df = _for_user(self._table("category_preferences"), user_id)
        df = df.sort_values("preference_score", ascending=False, kind="stable")
        names = self._category_names()
        return [
            CategoryPreference(
                category_id=str(row["category_id"]),
                score=float(row.get("preference_score") or 0.0),
                category_name=names.get(str(row["category_id"])),
            )
            for row in _records(df)
            if row.get("category_id") is not None
        ]

    def fetch_searches(self, user_id: str, limit: int) -> list[str]:
        df = _for_user(self._table("search_history"), user_id)
        if "created_at" in df.columns:
            df = df.assign(_ts=pd.to_datetime(df["created_at"], errors="coerce"))
            df = df.sort_values("_ts", ascending=False, kind="stable", na_position="last")
        df = df.head(limit)
        return [str(q) for q in df["search_query"].dropna()]

    def fetch_meal_plan(self, user_id: str, limit: int) -> list[str]:
        df = _for_user(self._table("meal_plans"), user_id).head(limit)
        return [str(menu_id) for menu_id in df["menu_id"].dropna()]


class CsvDataStore(DataFrameStore):
    """Store backed by a directory of CSV files, one per table."""

    def __init__(self, data_dir: Path | str) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)

    def _table(self, name: str) -> pd.DataFrame:
        path = self.data_dir / f"{name}.csv"
        try:
            return pd.read_csv(path, dtype={col: str for col in _ID_COLUMNS})
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            logger.debug("Could not read %s", path, exc_info=True)
            raise StoreUnavailableError(f"table '{name}' could not be read from {path}") from exc
