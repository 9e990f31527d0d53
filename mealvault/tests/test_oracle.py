from __future__ import annotations

from mealvault.recommendations.config import EngineConfig
from mealvault.recommendations.models import (
    BehaviorSnapshot,
    CatalogMatch,
    CategoryPreference,
    IngredientPreference,
    OracleProposal,
    RejectedProposal,
    UserProfile,
)
from mealvault.recommendations.oracle import (
    DEFAULT_RATIONALE,
    accepted_matches,
    candidate_window,
    summarize_preferences,
    vet_proposals,
)
from mealvault.tests.conftest import make_item


def _proposal(item_id, rationale="Tasty"):
    return OracleProposal(item_id=item_id, rationale=rationale)


class TestVetProposals:
    def test_unknown_ids_are_rejected(self, soup_catalog):
        verdicts = vet_proposals(
            [_proposal("M2"), _proposal("M999", "Sounds delicious and fits perfectly")],
            soup_catalog,
        )
        assert isinstance(verdicts[0], CatalogMatch)
        assert verdicts[0].item.id == "M2"
        assert isinstance(verdicts[1], RejectedProposal)
        assert verdicts[1].kind == "rejected"
        assert [m.item.id for m in accepted_matches(verdicts)] == ["M2"]

    def test_ids_outside_window_are_rejected_even_if_in_catalog(self, soup_catalog):
        window = soup_catalog[:1]
        verdicts = vet_proposals([_proposal("M2")], window)
        assert accepted_matches(verdicts) == []

    def test_duplicates_dropped_and_blank_rationale_defaulted(self, soup_catalog):
        verdicts = vet_proposals(
            [_proposal(" M1 ", ""), _proposal("M1", "again")], soup_catalog,
        )
        assert len(verdicts) == 1
        assert verdicts[0].rationale == DEFAULT_RATIONALE


def test_proposal_accepts_alternate_field_names():
    proposal = OracleProposal.model_validate({"menu_id": 42, "reason": "Spicy"})
    assert proposal.item_id == "42"
    assert proposal.rationale == "Spicy"


def test_candidate_window_is_popular_and_allergen_free():
    catalog = [
        make_item("A", recipe="peanut sauce", popularity=99),
        make_item("B", recipe="pork", popularity=10),
        make_item("C", recipe="tofu", popularity=70),
        make_item("D", recipe="egg", popularity=40),
    ]
    window = candidate_window(catalog, UserProfile(allergies="Peanut"), EngineConfig(oracle_window=2))
    assert [i.id for i in window] == ["C", "D"]


def test_summarize_preferences():
    snapshot = BehaviorSnapshot(
        ingredient_preferences=[
            IngredientPreference(ingredient="pork", score=8),
            IngredientPreference(ingredient="chili", score=2),
            IngredientPreference(ingredient="coconut milk", score=-1),
            IngredientPreference(ingredient="fish sauce", score=-7),
        ],
        category_preferences=[
            CategoryPreference(category_id="C1", score=5, category_name="Curry"),
            CategoryPreference(category_id="C2", score=1),
        ],
        searches=["a", "b", "c", "d", "e", "f"],
    )
    summary = summarize_preferences(snapshot, UserProfile(allergies="crab", calorie_limit=1800))
    assert summary.liked_ingredients == ["pork", "chili"]
    assert summary.avoided_ingredients == ["fish sauce", "coconut milk"]
    assert summary.preferred_categories == ["Curry"]
    assert summary.recent_searches == ["a", "b", "c", "d", "e"]
    assert summary.allergies == "crab"
    assert summary.calorie_limit == 1800
