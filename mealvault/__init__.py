"""
MealVault menu recommendation service.

Responsibilities:
- Serve personalised menu recommendations and meal suggestions over HTTP.
- Rank the menu catalog from each user's views, likes, preferences, searches
  and meal plans, with an optional LLM oracle in front.
"""
