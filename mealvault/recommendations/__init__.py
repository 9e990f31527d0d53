"""
Menu recommendation engine.

Responsibilities:
- Aggregate a user's behavior records into a per-request snapshot.
- Encode menus and users as feature vectors over a shared feature space.
- Rank the catalog by cosine similarity with allergy exclusion and
  familiarity penalties, falling back to deterministic rule scoring.
- Drive the oracle -> similarity -> rules tier chain and return structured
  recommendations ready for API serialisation.
"""
