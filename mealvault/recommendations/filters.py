from __future__ import annotations

from .models import CatalogItem


def parse_allergies(allergies: str | None) -> list[str]:
    """Split a comma-separated allergy string into lowercase tokens."""
    if not allergies:
        return []
    return [token.strip().lower() for token in allergies.split(",") if token.strip()]


def contains_allergen(item: CatalogItem, allergies: list[str]) -> bool:
    if not allergies:
        return False
    text = item.text.lower()
    return any(token in text for token in allergies)


def exclude_allergens(items: list[CatalogItem], allergies: list[str]) -> list[CatalogItem]:
    return [item for item in items if not contains_allergen(item, allergies)]
