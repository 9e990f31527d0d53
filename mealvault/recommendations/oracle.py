from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import ValidationError

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .filters import exclude_allergens, parse_allergies
from .models import (
    BehaviorSnapshot,
    CatalogItem,
    CatalogMatch,
    OracleContext,
    OracleProposal,
    OracleVerdict,
    PreferenceSummary,
    RejectedProposal,
    UserProfile,
)

logger = logging.getLogger(__name__)

DEFAULT_RATIONALE = "Based on your preferences"


class Oracle(Protocol):
    """External ranker proposing menu ids. Its ids are never trusted."""

    def propose(self, context: OracleContext) -> list[OracleProposal]: ...


def summarize_preferences(snapshot: BehaviorSnapshot, profile: UserProfile) -> PreferenceSummary:
    liked = [p.ingredient for p in snapshot.ingredient_preferences if p.score > 0][:10]
    # Most disliked first
    avoided = [
        p.ingredient
        for p in sorted(snapshot.ingredient_preferences, key=lambda p: p.score)
        if p.score < 0
    ][:10]
    categories = [
        p.category_name for p in snapshot.category_preferences[:5] if p.category_name
    ]
    return PreferenceSummary(
        liked_ingredients=liked,
        avoided_ingredients=avoided,
        preferred_categories=categories,
        recent_searches=snapshot.searches[:5],
        allergies=profile.allergies,
        favorite_foods=profile.favorite_foods,
        calorie_limit=profile.calorie_limit,
    )


def candidate_window(
    catalog: list[CatalogItem],
    profile: UserProfile,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> list[CatalogItem]:
    """The most popular allergen-free menus, the only ids the oracle may pick from."""
    safe = exclude_allergens(catalog, parse_allergies(profile.allergies))
    ranked = sorted(safe, key=lambda item: item.popularity, reverse=True)
    return ranked[: config.oracle_window]


def coerce_proposals(raw: Any) -> list[OracleProposal]:
    """
    Schema-check whatever an oracle returned.

    A non-list result counts as no proposals. Entries that are neither an
    ``OracleProposal`` nor a dict that validates as one are dropped.
    """
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        logger.warning("Oracle returned %s instead of a list, ignoring it", type(raw).__name__)
        return []

    proposals: list[OracleProposal] = []
    for entry in raw:
        if isinstance(entry, OracleProposal):
            proposals.append(entry)
            continue
        if not isinstance(entry, dict):
            logger.warning("Dropping non-object oracle entry: %r", entry)
            continue
        try:
            proposals.append(OracleProposal.model_validate(entry))
        except ValidationError:
            logger.warning("Dropping malformed oracle entry: %r", entry)
    return proposals


def vet_proposals(
    proposals: list[OracleProposal],
    window: list[CatalogItem],
) -> list[OracleVerdict]:
    """Tag each proposal as a catalog match or a rejection; repeated ids are dropped."""
    by_id = {item.id: item for item in window}
    seen: set[str] = set()
    verdicts: list[OracleVerdict] = []
    for proposal in proposals:
        item_id = proposal.item_id.strip()
        if item_id in seen:
            continue
        seen.add(item_id)
        rationale = proposal.rationale.strip() or DEFAULT_RATIONALE
        item = by_id.get(item_id)
        if item is None:
            verdicts.append(RejectedProposal(item_id=item_id, rationale=rationale))
        else:
            verdicts.append(CatalogMatch(item=item, rationale=rationale))
    return verdicts


def accepted_matches(verdicts: list[OracleVerdict]) -> list[CatalogMatch]:
    matches: list[CatalogMatch] = []
    for verdict in verdicts:
        if isinstance(verdict, CatalogMatch):
            matches.append(verdict)
        else:
            logger.warning(
                "Oracle proposed menu id %r outside the candidate window, dropping it",
                verdict.item_id,
            )
    return matches
