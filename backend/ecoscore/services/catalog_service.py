"""
Recipe catalog loading and preparation.

Loads the raw recipe list once at startup from a URL or a local JSON file,
validates every record, normalizes ingredients, assigns categories and
recomputes sustainability indexes. The resulting catalog is read-only for
the rest of the session.

Fallback: when the source cannot be read (network error, missing file,
malformed JSON) or yields no usable recipe, a small built-in fixture
catalog is used and the catalog is flagged as degraded.
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Set

import requests

from ecoscore.config import settings
from ecoscore.models.recipe import Recipe
from ecoscore.services.category_classifier import CategoryClassifier
from ecoscore.services.sustainability_scorer import SustainabilityScorer
from ecoscore.utils.constants import FALLBACK_RECIPES
from ecoscore.utils.helpers import clamp, normalize_ingredients, to_float
from ecoscore.utils.validators import validate_recipe_record

# Configure logging
logger = logging.getLogger(__name__)


class CatalogUnavailableError(Exception):
    """Raised when the primary catalog source cannot be read."""


class RecipeCatalog:
    """
    Read-only collection of prepared recipes.

    Attributes:
        recipes: Recipes in source order
        degraded: True when built from the fixture catalog
    """

    def __init__(self, recipes: Iterable[Recipe], degraded: bool = False):
        self.recipes = tuple(recipes)
        self.degraded = degraded
        self._by_id: Dict[int, Recipe] = {recipe.id: recipe for recipe in self.recipes}

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self.recipes)

    def __len__(self) -> int:
        return len(self.recipes)

    def __bool__(self) -> bool:
        return bool(self.recipes)

    def get(self, recipe_id: int) -> Optional[Recipe]:
        """Look up a recipe by id."""
        return self._by_id.get(recipe_id)

    def top_sustainable(self, limit: int, exclude: Optional[Set[int]] = None) -> List[Recipe]:
        """
        Highest sustainability recipes, best first.

        Args:
            limit: Maximum number of recipes
            exclude: Recipe ids to skip

        Returns:
            List[Recipe]: Ordered by index desc, env score asc, id asc
        """
        exclude = exclude or set()
        ranked = sorted(
            (recipe for recipe in self.recipes if recipe.id not in exclude),
            key=lambda r: (-r.sustainability_index, r.env_score, r.id)
        )
        return ranked[:max(0, limit)]

    def category_counts(self) -> Dict[str, int]:
        """Number of recipes per category."""
        return dict(Counter(recipe.category.value for recipe in self.recipes))


class CatalogService:
    """
    Service for loading and preparing the recipe catalog.

    Attributes:
        source: URL or file path of the catalog JSON
        timeout: Download timeout in seconds
        classifier: Category classifier
        scorer: Sustainability scorer
        min_token_length: Shortest ingredient token kept
    """

    def __init__(
        self,
        scorer: SustainabilityScorer,
        classifier: Optional[CategoryClassifier] = None,
        source: Optional[str] = None,
        timeout: Optional[int] = None,
        min_token_length: int = 2
    ):
        self.scorer = scorer
        self.classifier = classifier or CategoryClassifier()
        self.source = source or settings.CATALOG_SOURCE
        self.timeout = timeout or settings.CATALOG_TIMEOUT
        self.min_token_length = min_token_length

        logger.info(f"CatalogService initialized with source: {self.source}")

    def load(self) -> RecipeCatalog:
        """
        Load and prepare the catalog, falling back to the fixture catalog.

        Returns:
            RecipeCatalog: Prepared catalog (degraded when the fixture is used)
        """
        logger.info("Loading recipe catalog")

        try:
            records = self.fetch_records()
        except CatalogUnavailableError as e:
            logger.warning(f"Recipe catalog unavailable: {e}")
            return self.load_fallback()

        catalog = self.prepare(records)
        if not catalog:
            logger.warning(f"Recipe catalog at {self.source} has no usable recipes")
            return self.load_fallback()

        logger.info(f"Recipe catalog loaded: {len(catalog)} recipes")
        return catalog

    def load_fallback(self) -> RecipeCatalog:
        """Prepare the built-in fixture catalog (degraded mode)."""
        logger.warning(
            f"[CATALOG FALLBACK] Using {len(FALLBACK_RECIPES)} built-in fixture recipes"
        )
        catalog = self.prepare(FALLBACK_RECIPES)
        return RecipeCatalog(catalog.recipes, degraded=True)

    def fetch_records(self) -> List[Dict]:
        """
        Read the raw record list from the configured source.

        Returns:
            List[Dict]: Raw records

        Raises:
            CatalogUnavailableError: If the source cannot be read or is not a JSON list
        """
        try:
            if self.source.startswith(("http://", "https://")):
                logger.info(f"Downloading catalog from {self.source}")
                response = requests.get(
                    self.source,
                    timeout=self.timeout,
                    headers={"Accept": "application/json"}
                )
                response.raise_for_status()
                data = response.json()
            else:
                path = Path(self.source)
                logger.info(f"Reading catalog from {path.resolve()}")
                data = json.loads(path.read_text(encoding="utf-8"))

        except requests.exceptions.RequestException as e:
            raise CatalogUnavailableError(f"request failed for {self.source}: {e}") from e
        except OSError as e:
            raise CatalogUnavailableError(f"cannot read {self.source}: {e}") from e
        except ValueError as e:
            raise CatalogUnavailableError(f"invalid JSON in {self.source}: {e}") from e

        if not isinstance(data, list):
            raise CatalogUnavailableError(
                f"catalog must be a JSON list, got {type(data).__name__}"
            )
        return data

    def prepare(self, records: Iterable) -> RecipeCatalog:
        """
        Validate and prepare raw records.

        Steps per record:
        1. Validate id and field types (invalid records are dropped)
        2. Drop duplicate ids
        3. Drop records where both env and nutri scores are missing or <= 0;
           a single missing score is taken as 0 and flagged low-confidence
        4. Default name and instructions
        5. Normalize ingredients and resolve the category
        6. Recompute the sustainability index

        Args:
            records: Raw catalog records

        Returns:
            RecipeCatalog: Prepared recipes in source order
        """
        prepared: List[Recipe] = []
        seen_ids: Set[int] = set()
        dropped = 0
        low_confidence = 0

        for index, record in enumerate(records):
            try:
                recipe = self._prepare_record(record, seen_ids)
            except ValueError as e:
                logger.warning(f"Recipe record #{index} dropped: {e}")
                dropped += 1
                continue

            seen_ids.add(recipe.id)
            prepared.append(recipe)
            if recipe.low_confidence:
                low_confidence += 1

        logger.info(
            f"Catalog prepared: {len(prepared)} valid, {dropped} dropped, "
            f"{low_confidence} low-confidence"
        )
        if prepared:
            indexes = [recipe.sustainability_index for recipe in prepared]
            logger.info(
                f"Sustainability index avg={sum(indexes) / len(indexes):.1f}, "
                f"min={min(indexes):.1f}, max={max(indexes):.1f}"
            )

        return RecipeCatalog(prepared)

    def _prepare_record(self, record, seen_ids: Set[int]) -> Recipe:
        """Turn one raw record into a Recipe or raise ValueError."""
        record = validate_recipe_record(record)
        recipe_id = record["id"]

        if recipe_id in seen_ids:
            raise ValueError(f"duplicate recipe id {recipe_id}")

        env = to_float(record.get("env_score"))
        nutri = to_float(record.get("nutri_score"))
        env_usable = env is not None and env > 0
        nutri_usable = nutri is not None and nutri > 0

        if not env_usable and not nutri_usable:
            raise ValueError(f"recipe {recipe_id} has neither an environmental nor a nutrition score")

        env = clamp(env) if env_usable else 0.0
        nutri = clamp(nutri) if nutri_usable else 0.0

        name = (record.get("name") or "").strip() or f"Recipe #{recipe_id}"
        ingredients_raw = record.get("ingredients") or ""
        category = self.classifier.resolve(record.get("category"), ingredients_raw, name)
        sustainability_index = self.scorer.score(env, nutri, category)

        supplied = to_float(record.get("sustainability_index"))
        if supplied is not None and abs(supplied - sustainability_index) > 10:
            logger.debug(
                f"Sustainability index of '{name[:30]}' recomputed: "
                f"{supplied:.1f} -> {sustainability_index:.1f}"
            )

        return Recipe(
            id=recipe_id,
            name=name,
            ingredients_raw=ingredients_raw,
            ingredients=tuple(normalize_ingredients(ingredients_raw, self.min_token_length)),
            category=category,
            env_score=env,
            nutri_score=nutri,
            sustainability_index=sustainability_index,
            instructions=(record.get("instructions") or "").strip(),
            low_confidence=not (env_usable and nutri_usable)
        )
