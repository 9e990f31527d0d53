from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import require_user
from .auth.users import authenticate
from .llm.groq_client import build_oracle
from .recommendations.data_store import CsvDataStore, DataStore, StoreUnavailableError
from .recommendations.engine import get_meal_suggestions, get_recommendations
from .recommendations.models import (
    LoginRequest,
    MealSuggestionRequest,
    RecommendationResponse,
)
from .recommendations.oracle import Oracle

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

_DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data" / "sample"

app = FastAPI(title="MealVault Recommendation API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "mealvault-secret-change-in-production"),
)


# ── Dependencies ─────────────────────────────────────────────────────────


@lru_cache()
def get_store() -> DataStore:
    data_dir = Path(os.environ.get("MEALVAULT_DATA_DIR", str(_DEFAULT_DATA_DIR)))
    logger.info("Reading recommendation data from %s", data_dir)
    return CsvDataStore(data_dir)


@lru_cache()
def get_oracle() -> Oracle | None:
    return build_oracle()


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.get("/ai/recommendations", response_model=RecommendationResponse)
def recommendations(
    user: dict = Depends(require_user),
    store: DataStore = Depends(get_store),
    oracle: Oracle | None = Depends(get_oracle),
) -> RecommendationResponse:
    try:
        return get_recommendations(user["user_id"], store, oracle=oracle)
    except StoreUnavailableError:
        logger.error("Recommendation data unavailable", exc_info=True)
        raise HTTPException(status_code=503, detail="Recommendation data is unavailable")


@app.post("/ai/meal-suggestions", response_model=RecommendationResponse)
def meal_suggestions(
    body: MealSuggestionRequest,
    user: dict = Depends(require_user),
    store: DataStore = Depends(get_store),
    oracle: Oracle | None = Depends(get_oracle),
) -> RecommendationResponse:
    logger.info(
        "Meal suggestions for %s (meal_type=%s, day=%s)",
        user["user_id"], body.meal_type, body.day_of_week,
    )
    try:
        return get_meal_suggestions(user["user_id"], store, oracle=oracle, count=body.count)
    except StoreUnavailableError:
        logger.error("Recommendation data unavailable", exc_info=True)
        raise HTTPException(status_code=503, detail="Recommendation data is unavailable")
