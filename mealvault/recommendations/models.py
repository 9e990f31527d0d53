from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator


class Method(str, Enum):
    oracle_assisted = "oracle_assisted"
    content_based = "content_based"
    rule_based = "rule_based"


# ── Store records ────────────────────────────────────────────────────────


class CatalogItem(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    recipe: str = ""
    image: str | None = None
    category_id: str | None = None
    popularity: int = Field(default=0, ge=0)

    @property
    def text(self) -> str:
        """Recipe and description, the text ingredient and allergy checks run against."""
        return f"{self.recipe} {self.description}"


class Category(BaseModel):
    category_id: str
    category_name: str = ""


class ViewedItem(BaseModel):
    item_id: str
    view_count: int = 0
    last_viewed_at: datetime | None = None


class IngredientPreference(BaseModel):
    ingredient: str
    score: float = 0.0


class CategoryPreference(BaseModel):
    category_id: str
    score: float = 0.0
    category_name: str | None = None


class BehaviorSnapshot(BaseModel):
    viewed: list[ViewedItem] = Field(default_factory=list)
    liked: list[str] = Field(default_factory=list)
    ingredient_preferences: list[IngredientPreference] = Field(default_factory=list)
    category_preferences: list[CategoryPreference] = Field(default_factory=list)
    searches: list[str] = Field(default_factory=list)
    meal_plan: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.viewed
            or self.liked
            or self.ingredient_preferences
            or self.category_preferences
            or self.searches
            or self.meal_plan
        )


class UserProfile(BaseModel):
    allergies: str = ""
    favorite_foods: str = ""
    calorie_limit: int | None = None

    @field_validator("allergies", "favorite_foods", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or ""


# ── Oracle records ───────────────────────────────────────────────────────


class PreferenceSummary(BaseModel):
    liked_ingredients: list[str] = Field(default_factory=list)
    avoided_ingredients: list[str] = Field(default_factory=list)
    preferred_categories: list[str] = Field(default_factory=list)
    recent_searches: list[str] = Field(default_factory=list)
    allergies: str = ""
    favorite_foods: str = ""
    calorie_limit: int | None = None


class OracleContext(BaseModel):
    preferences: PreferenceSummary
    candidates: list[CatalogItem]
    limit: int = 10


class OracleProposal(BaseModel):
    item_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("item_id", "itemId", "id", "menu_id"),
    )
    rationale: str = Field(
        default="", validation_alias=AliasChoices("rationale", "reason"),
    )

    @field_validator("item_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # Models often emit numeric ids as JSON numbers.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class CatalogMatch(BaseModel):
    kind: Literal["match"] = "match"
    item: CatalogItem
    rationale: str


class RejectedProposal(BaseModel):
    kind: Literal["rejected"] = "rejected"
    item_id: str
    rationale: str


OracleVerdict = Annotated[Union[CatalogMatch, RejectedProposal], Field(discriminator="kind")]


# ── Engine output ────────────────────────────────────────────────────────


class ScoredCandidate(BaseModel):
    item: CatalogItem
    score: float | None = None
    reason: str = ""
    exists_in_catalog: bool = True
    tier: Method


class RecommendationItem(BaseModel):
    id: str
    name: str
    image: str | None
    description: str
    reason: str
    score: float | None
    exists_in_catalog: bool


class RecommendationResponse(BaseModel):
    recommendations: list[RecommendationItem]
    method: Method
    tiers: list[Method] = Field(default_factory=list)


# ── HTTP bodies ──────────────────────────────────────────────────────────


class MealSuggestionRequest(BaseModel):
    meal_type: str | None = Field(default=None, description="breakfast / lunch / dinner")
    day_of_week: str | None = None
    count: int = Field(default=3, ge=1, le=10)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
