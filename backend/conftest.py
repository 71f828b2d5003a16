"""Shared pytest fixtures."""

import os
import random
from pathlib import Path

import pytest

# Tests run against the built-in fixture catalog, with rule-based explanations
os.environ["CATALOG_SOURCE"] = str(Path(__file__).resolve().parent / "no_such_catalog.json")
os.environ["USE_EXTERNAL_EXPLANATIONS"] = "false"
os.environ["SHUFFLE_SEED"] = "42"

from ecoscore.config import SearchConfig  # noqa: E402
from ecoscore.models.recipe import Category, Recipe  # noqa: E402
from ecoscore.services.catalog_service import CatalogService  # noqa: E402
from ecoscore.services.recipe_search import RecipeSearchEngine  # noqa: E402
from ecoscore.services.sustainability_scorer import SustainabilityScorer  # noqa: E402
from ecoscore.utils.constants import FALLBACK_RECIPES  # noqa: E402


@pytest.fixture
def scorer():
    return SustainabilityScorer()


@pytest.fixture
def catalog_service(scorer, tmp_path):
    return CatalogService(scorer, source=str(tmp_path / "missing.json"), timeout=1)


@pytest.fixture
def catalog(catalog_service):
    """The six fixture recipes, prepared (ids 1-6)."""
    return catalog_service.prepare(FALLBACK_RECIPES)


@pytest.fixture
def engine():
    return RecipeSearchEngine(SearchConfig(), rng=random.Random(7))


@pytest.fixture
def make_recipe(scorer):
    """Build a prepared recipe directly."""
    def _make(recipe_id, name, ingredients, category=Category.MAIN, env=50.0, nutri=50.0, low_confidence=False):
        return Recipe(
            id=recipe_id,
            name=name,
            ingredients_raw=", ".join(ingredients),
            ingredients=tuple(ingredients),
            category=category,
            env_score=env,
            nutri_score=nutri,
            sustainability_index=scorer.score(env, nutri, category),
            low_confidence=low_confidence
        )
    return _make
