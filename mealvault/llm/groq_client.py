from __future__ import annotations

import json
import logging
from typing import Any

from groq import Groq

from ..recommendations.models import OracleContext, OracleProposal
from ..recommendations.oracle import coerce_proposals
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a Thai food recommendation engine. "
    "Given a user's taste profile and a list of candidate menus from the database, "
    "choose the menus that best fit this user and give a short, friendly "
    "one-sentence reason for each.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"recommendations": [{"id": "<menu_id>", "reason": "<one sentence>"}]}\n'
    "Rules:\n"
    "- Use ONLY ids from the candidate list, copied exactly. Never invent menus.\n"
    "- Avoid anything containing the user's allergies.\n"
    "- Prefer NEW menus similar to the user's tastes over ones they already know.\n"
    "- Mix categories where possible.\n"
    "Order from best match to worst."
)


def _build_user_message(context: OracleContext) -> str:
    prefs = context.preferences
    lines = [f"Choose up to {context.limit} menus.", "", "## User Profile"]
    lines.append(f"- Allergies: {prefs.allergies or 'None'}")
    lines.append(f"- Favorite foods: {prefs.favorite_foods or 'Not specified'}")
    if prefs.calorie_limit:
        lines.append(f"- Calorie limit: {prefs.calorie_limit}")

    lines.append("\n## Behavior Summary")
    lines.append(f"- Liked ingredients: {', '.join(prefs.liked_ingredients) or 'None'}")
    lines.append(f"- Avoided ingredients: {', '.join(prefs.avoided_ingredients) or 'None'}")
    lines.append(f"- Preferred categories: {', '.join(prefs.preferred_categories) or 'None'}")
    lines.append(f"- Recent searches: {', '.join(prefs.recent_searches) or 'None'}")

    lines.append("\n## Candidate Menus")
    lines.append("| ID | Name | Category | Likes | Description |")
    lines.append("|---|---|---|---|---|")
    for item in context.candidates:
        description = " ".join(item.description.split())[:160]
        lines.append(
            f"| {item.id} | {item.name} | {item.category_id or '-'} "
            f"| {item.popularity} | {description} |"
        )

    return "\n".join(lines)


def parse_proposals(content: str) -> list[OracleProposal]:
    """
    Parse raw model text into schema-valid proposals.

    Accepts either ``{"recommendations": [...]}`` or a bare JSON array.
    Entries that fail validation are dropped; ids are NOT checked against the
    catalog here.
    """
    parsed: Any = json.loads(content)
    if isinstance(parsed, dict):
        entries = parsed.get("recommendations", [])
    else:
        entries = parsed
    return coerce_proposals(entries)


class GroqOracle:
    """Oracle backed by Groq chat completions in JSON mode."""

    def __init__(self, config: LLMConfig = DEFAULT_LLM_CONFIG) -> None:
        self.config = config

    def propose(self, context: OracleContext) -> list[OracleProposal]:
        """
        Ask the LLM for menu proposals.

        Returns an empty list on any failure (timeout, bad JSON, API error).
        """
        config = self.config
        if not config.enabled or not config.api_key:
            return []

        if not context.candidates:
            return []

        try:
            client = Groq(api_key=config.api_key, timeout=config.timeout)
            response = client.chat.completions.create(
                model=config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": _build_user_message(context)},
                ],
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                response_format={"type": "json_object"},
            )

            content = response.choices[0].message.content or ""
            return parse_proposals(content)

        except Exception:
            logger.warning("Groq oracle call failed, continuing without it", exc_info=True)
            return []


def build_oracle(config: LLMConfig = DEFAULT_LLM_CONFIG) -> GroqOracle | None:
    """Return a Groq oracle when it is enabled and keyed, else ``None``."""
    if not config.enabled or not config.api_key:
        return None
    return GroqOracle(config)
