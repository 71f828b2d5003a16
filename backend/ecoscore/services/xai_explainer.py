"""
Explainable sustainability scores.

Explains why a recipe received its sustainability index by attributing the
score to environmental and nutritional factors, and suggests plant-based
improvements. The rule-based generator is deterministic and always
available. An external provider (Gemini) can be enabled; its calls are
retried with exponential backoff and any failure falls back to the rules.

Also provides more sustainable same-category alternatives, known
ingredient substitutions and rough environmental equivalents of a score
improvement.
"""

import json
import logging
import re
import time
from typing import Callable, Dict, Iterable, List, Optional

from google import genai
from google.genai import types

from ecoscore.config import settings
from ecoscore.models.explanation import (
    Explanation,
    Factor,
    Impact,
    ImpactEstimate,
    ScoreComparison,
    Substitution,
    SustainableAlternative,
)
from ecoscore.models.recipe import Recipe
from ecoscore.utils.constants import (
    CATEGORY_IMPACTS,
    CO2_KG_PER_POINT,
    DEFAULT_SUGGESTION,
    ENV_HIGH_IMPACT_THRESHOLD,
    ENV_LOW_IMPACT_THRESHOLD,
    FAT_KEYWORDS,
    HEALTHY_KEYWORDS,
    INGREDIENT_IMPACTS,
    KNOWN_SUBSTITUTIONS,
    LAND_M2_PER_POINT,
    MEAT_KEYWORDS,
    NUTRITION_HIGH_THRESHOLD,
    NUTRITION_LOW_THRESHOLD,
    PLANT_BASED_SUGGESTIONS,
    PROCESSED_KEYWORDS,
    PROTEIN_KEYWORDS,
    SEASONAL_KEYWORDS,
    SUGAR_KEYWORDS,
    VEGETABLE_KEYWORDS,
    WATER_LITERS_PER_POINT,
)
from ecoscore.utils.helpers import contains_any, round_half_up, retry_with_backoff

# Configure logging
logger = logging.getLogger(__name__)

RULE_BASED_CONFIDENCE = 0.82
LOW_CONFIDENCE = 0.6
FALLBACK_CONFIDENCE = 0.5


class ExplanationCache:
    """Per-session explanation store keyed by recipe id."""

    def __init__(self):
        self._items: Dict[int, Explanation] = {}

    def get(self, recipe_id: int) -> Optional[Explanation]:
        return self._items.get(recipe_id)

    def put(self, recipe_id: int, explanation: Explanation) -> None:
        self._items[recipe_id] = explanation

    def __contains__(self, recipe_id: int) -> bool:
        return recipe_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items.clear()


class ExplanationProvider:
    """
    External explanation source.

    Implementations return the raw explanation object (summary, factor
    lists, suggestions, confidence) and raise on any failure.
    """

    name = "external"

    def generate(self, recipe: Recipe) -> Dict:
        raise NotImplementedError


class GeminiExplanationProvider(ExplanationProvider):
    """
    Explanation provider backed by Google Gemini.

    Attributes:
        client: google-genai client with a per-request timeout
        model: Gemini model name
    """

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        timeout = timeout or settings.XAI_TIMEOUT
        self.model = model or settings.LLM_MODEL
        self.client = genai.Client(
            api_key=api_key or settings.GEMINI_API_KEY,
            http_options=types.HttpOptions(timeout=int(timeout * 1000))
        )

        logger.info(f"GeminiExplanationProvider initialized with model={self.model}")

    def generate(self, recipe: Recipe) -> Dict:
        """
        Ask Gemini for a structured explanation.

        Raises:
            ValueError: If the response carries no JSON object
        """
        response = self.client.models.generate_content(
            model=self.model,
            contents=self._build_prompt(recipe),
            config=types.GenerateContentConfig(
                temperature=0.2,
                response_mime_type="application/json",
            ),
        )
        text = response.text if response and response.text else ""
        json_str = self._extract_json(text)
        if not json_str:
            raise ValueError("Gemini response contained no JSON object")
        return json.loads(json_str)

    def _build_prompt(self, recipe: Recipe) -> str:
        return (
            "You are a food sustainability expert. Explain the sustainability "
            "score of the recipe below for a general audience.\n\n"
            f"Recipe: {recipe.name}\n"
            f"Category: {recipe.category.value}\n"
            f"Ingredients: {', '.join(recipe.ingredients)}\n"
            f"Environmental impact score (0-100, lower is better): {recipe.env_score:.1f}\n"
            f"Nutrition score (0-100, higher is better): {recipe.nutri_score:.1f}\n"
            f"Sustainability index (0-100): {recipe.sustainability_index:.1f}\n\n"
            "Return only a JSON object with the keys: summary (one sentence), "
            "environmental_factors and nutritional_factors (lists of objects with "
            "name, impact [positive|negative|neutral], explanation, importance [0-1]), "
            "suggestions (1 to 3 short sentences) and confidence (0-1)."
        )

    def _extract_json(self, text: str) -> Optional[str]:
        """Extract a JSON object from text, handling markdown fences."""
        stripped = text.strip()
        if stripped.startswith("{") and stripped.endswith("}"):
            return stripped

        match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
        if match:
            return match.group(1)

        first_brace = text.find("{")
        last_brace = text.rfind("}")
        if first_brace != -1 and last_brace > first_brace:
            return text[first_brace: last_brace + 1]

        return None


class XAIExplainer:
    """
    Service for explaining sustainability scores.

    Attributes:
        provider: Optional external provider tried before the rules
        max_retries: Maximum provider attempts
        retry_delay: Base delay for exponential backoff
        timeout: Per-request timeout; the retry deadline is derived from it
        cache: Explanation cache, None when caching is disabled
    """

    def __init__(
        self,
        provider: Optional[ExplanationProvider] = None,
        use_external: Optional[bool] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        cache: Optional[ExplanationCache] = None,
        use_cache: Optional[bool] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the explainer.

        Args:
            provider: External provider; built from settings when omitted
                and external explanations are enabled
            use_external: Enable the external provider (default: settings)
            timeout: Per-request timeout in seconds (default: settings)
            max_retries: Maximum provider attempts (default: settings)
            retry_delay: Base backoff delay in seconds (default: settings)
            cache: Explanation cache to use
            use_cache: Cache explanations (default: settings)
            sleep: Sleep function used between retries
        """
        use_external = settings.USE_EXTERNAL_EXPLANATIONS if use_external is None else use_external
        use_cache = settings.CACHE_EXPLANATIONS if use_cache is None else use_cache

        self.timeout = timeout or settings.XAI_TIMEOUT
        self.max_retries = max_retries or settings.XAI_MAX_RETRIES
        self.retry_delay = settings.XAI_RETRY_DELAY if retry_delay is None else retry_delay
        self.sleep = sleep
        self.cache = (cache if cache is not None else ExplanationCache()) if use_cache else None

        self.provider = provider
        if self.provider is None and use_external:
            if settings.GEMINI_API_KEY:
                self.provider = GeminiExplanationProvider(timeout=self.timeout)
            else:
                logger.warning("External explanations enabled but GEMINI_API_KEY is not set - using rules")

        self._impact_keywords = sorted(INGREDIENT_IMPACTS, key=len, reverse=True)
        self._substitution_keywords = sorted(KNOWN_SUBSTITUTIONS, key=len, reverse=True)

        logger.info(
            f"XAIExplainer initialized with "
            f"provider={getattr(self.provider, 'name', None)}, "
            f"cache={'on' if self.cache is not None else 'off'}"
        )

    def explain(self, recipe: Recipe) -> Explanation:
        """
        Explain the sustainability index of a recipe.

        Never raises: provider failures fall back to the rule-based
        explanation, and recipes without ingredients or scores get the
        minimal fallback explanation.

        Args:
            recipe: Prepared recipe

        Returns:
            Explanation: Factor attribution, summary and suggestions
        """
        if self.cache is not None and recipe.id in self.cache:
            logger.debug(f"Explanation cache hit for recipe {recipe.id}")
            return self.cache.get(recipe.id)

        if not recipe.ingredients or (recipe.env_score <= 0 and recipe.nutri_score <= 0):
            logger.warning(f"Not enough data to explain recipe {recipe.id}")
            explanation = self.fallback_explanation(recipe)
        else:
            explanation = None
            if self.provider is not None:
                explanation = self._explain_external(recipe)
            if explanation is None:
                explanation = self.rule_based(recipe)

        if self.cache is not None:
            self.cache.put(recipe.id, explanation)
        return explanation

    def _explain_external(self, recipe: Recipe) -> Optional[Explanation]:
        """Run the provider with retries; None when it ultimately fails."""
        try:
            data = retry_with_backoff(
                lambda: self.provider.generate(recipe),
                max_attempts=self.max_retries,
                base_delay=self.retry_delay,
                deadline=self.timeout * self.max_retries,
                sleep=self.sleep
            )
            if not isinstance(data, dict):
                raise ValueError(f"provider returned {type(data).__name__}, expected an object")
            data = dict(data)
            data["model"] = self.provider.name
            data["suggestions"] = list(data.get("suggestions") or [])[:3]
            explanation = Explanation.model_validate(data)
        except Exception as e:
            logger.warning(f"[XAI FALLBACK] External explanation failed for recipe {recipe.id}: {e}")
            return None

        logger.info(f"External explanation generated for recipe {recipe.id}")
        return explanation

    # ------------------------------------------------------------------
    # Rule-based generation
    # ------------------------------------------------------------------

    def rule_based(self, recipe: Recipe) -> Explanation:
        """
        Derive an explanation from the lookup tables.

        Args:
            recipe: Recipe with ingredients and scores

        Returns:
            Explanation: Deterministic explanation
        """
        ingredient_factors = self.ingredient_factors(recipe.ingredients)

        environmental = list(ingredient_factors)
        environmental.extend(self._category_factors(recipe))
        environmental.extend(self._environmental_composition(recipe, ingredient_factors))

        nutritional = self._nutrition_factors(recipe)

        environmental = self._sorted(environmental)
        nutritional = self._sorted(nutritional)

        return Explanation(
            summary=self._summary(recipe, environmental, nutritional),
            environmental_factors=environmental,
            nutritional_factors=nutritional,
            suggestions=self._suggestions(ingredient_factors),
            confidence=LOW_CONFIDENCE if recipe.low_confidence else RULE_BASED_CONFIDENCE,
            model="rule-based",
            success=True
        )

    def fallback_explanation(self, recipe: Recipe) -> Explanation:
        """Minimal explanation for recipes without usable data."""
        return Explanation(
            summary=(
                f"{recipe.name} has a sustainability index of "
                f"{recipe.sustainability_index:.1f}/100; there is not enough data for a detailed explanation."
            ),
            suggestions=["Prefer seasonal, plant-based recipes for a smaller footprint."],
            confidence=FALLBACK_CONFIDENCE,
            model="rule-based",
            success=False
        )

    def ingredient_factors(self, ingredients: Iterable[str]) -> List[Factor]:
        """
        Look up every ingredient in the impact table.

        The longest matching keyword wins and each ingredient matches at
        most one keyword. Repeated labels raise importance by 10% per extra
        occurrence (capped at 1).
        """
        found: Dict[str, Dict] = {}
        for ingredient in ingredients:
            for keyword in self._impact_keywords:
                if keyword in ingredient:
                    entry = INGREDIENT_IMPACTS[keyword]
                    label = entry["label"]
                    if label in found:
                        found[label]["count"] += 1
                    else:
                        found[label] = {"entry": entry, "ingredient": ingredient, "count": 1}
                    break

        factors = []
        for label, match in found.items():
            entry = match["entry"]
            importance = min(1.0, entry["importance"] * (1 + 0.1 * (match["count"] - 1)))
            factors.append(Factor(
                name=label,
                impact=Impact(entry["impact"]),
                explanation=f"Contains {match['ingredient']}. {entry['explanation']}",
                importance=round(importance, 3)
            ))
        return factors

    def _category_factors(self, recipe: Recipe) -> List[Factor]:
        entry = CATEGORY_IMPACTS.get(recipe.category)
        if not entry:
            return []
        return [Factor(
            name=f"{recipe.category.value} dish",
            impact=Impact(entry["impact"]),
            explanation=entry["explanation"],
            importance=entry["importance"]
        )]

    def _environmental_composition(self, recipe: Recipe, ingredient_factors: List[Factor]) -> List[Factor]:
        ingredients = recipe.ingredients
        factors = []

        if recipe.env_score <= ENV_LOW_IMPACT_THRESHOLD:
            factors.append(Factor(
                name="environmental score",
                impact=Impact.POSITIVE,
                explanation=f"Low environmental impact score ({recipe.env_score:.1f}/100).",
                importance=0.7
            ))
        elif recipe.env_score > ENV_HIGH_IMPACT_THRESHOLD:
            factors.append(Factor(
                name="environmental score",
                impact=Impact.NEGATIVE,
                explanation=f"High environmental impact score ({recipe.env_score:.1f}/100).",
                importance=0.7
            ))

        has_meat = contains_any(ingredients, MEAT_KEYWORDS)
        meat_explained = any(f.impact == Impact.NEGATIVE for f in ingredient_factors)
        if has_meat and not meat_explained:
            factors.append(Factor(
                name="meat",
                impact=Impact.NEGATIVE,
                explanation="Contains meat, which has a much larger footprint than plant ingredients.",
                importance=0.5
            ))
        elif not has_meat:
            factors.append(Factor(
                name="plant-based",
                impact=Impact.POSITIVE,
                explanation="Contains no meat; plant-based dishes have a much smaller footprint.",
                importance=0.5
            ))

        if contains_any(ingredients, PROCESSED_KEYWORDS):
            factors.append(Factor(
                name="processed ingredients",
                impact=Impact.NEGATIVE,
                explanation="Processed and canned products need extra energy and packaging.",
                importance=0.3
            ))

        if contains_any(ingredients, SEASONAL_KEYWORDS):
            factors.append(Factor(
                name="seasonal ingredients",
                impact=Impact.POSITIVE,
                explanation="Fresh, local and seasonal ingredients travel less and need less storage.",
                importance=0.25
            ))

        vegetable_count = sum(1 for i in ingredients if contains_any([i], VEGETABLE_KEYWORDS))
        if vegetable_count >= 3:
            factors.append(Factor(
                name="vegetable-rich",
                impact=Impact.POSITIVE,
                explanation=f"Contains {vegetable_count} vegetable ingredients.",
                importance=0.4
            ))

        return factors

    def _nutrition_factors(self, recipe: Recipe) -> List[Factor]:
        ingredients = recipe.ingredients
        factors = []

        if recipe.nutri_score >= NUTRITION_HIGH_THRESHOLD:
            factors.append(Factor(
                name="nutrition score",
                impact=Impact.POSITIVE,
                explanation=f"High nutrition score ({recipe.nutri_score:.1f}/100).",
                importance=0.7
            ))
        elif recipe.nutri_score < NUTRITION_LOW_THRESHOLD:
            factors.append(Factor(
                name="nutrition score",
                impact=Impact.NEGATIVE,
                explanation=f"Low nutrition score ({recipe.nutri_score:.1f}/100).",
                importance=0.7
            ))
        else:
            factors.append(Factor(
                name="nutrition score",
                impact=Impact.NEUTRAL,
                explanation=f"Moderate nutrition score ({recipe.nutri_score:.1f}/100).",
                importance=0.4
            ))

        if contains_any(ingredients, HEALTHY_KEYWORDS):
            factors.append(Factor(
                name="wholesome ingredients",
                impact=Impact.POSITIVE,
                explanation="Contains vegetables, fruit, legumes or whole grains.",
                importance=0.4
            ))

        if contains_any(ingredients, SUGAR_KEYWORDS):
            factors.append(Factor(
                name="added sugar",
                impact=Impact.NEGATIVE,
                explanation="Contains sugar or other sweeteners.",
                importance=0.4
            ))

        if contains_any(ingredients, PROTEIN_KEYWORDS):
            factors.append(Factor(
                name="protein source",
                impact=Impact.POSITIVE,
                explanation="Contains a good protein source.",
                importance=0.3
            ))

        if contains_any(ingredients, FAT_KEYWORDS):
            factors.append(Factor(
                name="added fat",
                impact=Impact.NEGATIVE,
                explanation="Contains added fat such as oil, butter or lard.",
                importance=0.25
            ))

        if len(ingredients) > 8:
            factors.append(Factor(
                name="ingredient variety",
                impact=Impact.POSITIVE,
                explanation=f"A varied recipe with {len(ingredients)} ingredients.",
                importance=0.2
            ))

        return factors

    @staticmethod
    def _sorted(factors: List[Factor]) -> List[Factor]:
        return sorted(factors, key=lambda f: (-f.importance, f.name))

    @staticmethod
    def _balance(factors: List[Factor]) -> float:
        total = 0.0
        for factor in factors:
            if factor.impact == Impact.POSITIVE:
                total += factor.importance
            elif factor.impact == Impact.NEGATIVE:
                total -= factor.importance
        return total

    def _summary(self, recipe: Recipe, environmental: List[Factor], nutritional: List[Factor]) -> str:
        env_good = self._balance(environmental) >= 0
        nutri_good = self._balance(nutritional) >= 0
        prefix = f"{recipe.name} (Eco-Score {recipe.sustainability_index:.1f}/100)"

        if env_good and nutri_good:
            return f"{prefix} is a sustainable choice with a low environmental impact and good nutritional value."
        if env_good:
            return f"{prefix} has a low environmental impact, but its nutritional value can be improved."
        if nutri_good:
            return f"{prefix} scores well for nutrition, but its environmental impact can be improved."
        return f"{prefix} has a high environmental impact and weak nutritional value."

    def _suggestions(self, ingredient_factors: List[Factor]) -> List[str]:
        suggestions = []
        for factor in self._sorted(ingredient_factors):
            if factor.impact != Impact.NEGATIVE:
                continue
            suggestion = PLANT_BASED_SUGGESTIONS.get(factor.name)
            if suggestion and suggestion not in suggestions:
                suggestions.append(suggestion)
            if len(suggestions) == 3:
                break
        return suggestions or [DEFAULT_SUGGESTION]

    # ------------------------------------------------------------------
    # Alternatives, substitutions, comparisons
    # ------------------------------------------------------------------

    def find_more_sustainable(
        self,
        recipe: Recipe,
        catalog: Iterable[Recipe],
        limit: int = 3
    ) -> List[SustainableAlternative]:
        """
        Same-category recipes with a higher sustainability index.

        Candidates are ranked by 70% ingredient similarity (Jaccard) and
        30% index gain (a 50 point gain counts as 1).

        Args:
            recipe: Reference recipe
            catalog: Recipes to search
            limit: Maximum number of alternatives

        Returns:
            List[SustainableAlternative]: Best alternatives first
        """
        own = set(recipe.ingredients)
        scored = []
        for candidate in catalog or []:
            if candidate.id == recipe.id or candidate.category != recipe.category:
                continue
            gain = candidate.sustainability_index - recipe.sustainability_index
            if gain <= 0:
                continue

            other = set(candidate.ingredients)
            union = own | other
            similarity = len(own & other) / len(union) if union else 0.0
            rank_score = similarity * 0.7 + (gain / 50) * 0.3
            scored.append((rank_score, similarity, gain, candidate))

        scored.sort(key=lambda item: (-item[0], item[3].id))

        alternatives = [
            SustainableAlternative(
                recipe=candidate,
                similarity=int(round_half_up(similarity * 100)),
                sustainability_improvement=int(round_half_up(gain))
            )
            for _, similarity, gain, candidate in scored[:max(0, limit)]
        ]
        logger.debug(f"{len(alternatives)} more sustainable alternatives for recipe {recipe.id}")
        return alternatives

    def suggest_substitutions(self, recipe: Recipe) -> List[Substitution]:
        """
        Known lower-impact replacements for the recipe's ingredients.

        Each ingredient gets at most one substitution (longest keyword wins).
        """
        substitutions = []
        for ingredient in recipe.ingredients:
            for keyword in self._substitution_keywords:
                if keyword in ingredient:
                    entry = KNOWN_SUBSTITUTIONS[keyword]
                    substitutions.append(Substitution(
                        original=ingredient,
                        substitute=entry["replace"],
                        improvement_percent=entry["improvement_percent"],
                        explanation=entry["explanation"]
                    ))
                    break
        return substitutions

    @staticmethod
    def _estimate(current_score: float, improved_score: float, per_point: float) -> ImpactEstimate:
        current = (100 - current_score) * per_point
        improved = (100 - improved_score) * per_point
        reduction = current - improved
        percent = int(round_half_up(reduction / current * 100)) if current > 0 else 0
        return ImpactEstimate(
            current=round(current, 2),
            improved=round(improved, 2),
            reduction=round(reduction, 2),
            percent_reduction=percent
        )

    def compare_scores(self, current_score: float, improved_score: float) -> ScoreComparison:
        """
        Rough environmental equivalents of a sustainability index change.

        Each missing index point is counted as 0.015 kg CO2e, 10 liters of
        water and 0.08 m2 of land per serving.

        Args:
            current_score: Current sustainability index
            improved_score: Index after the change

        Returns:
            ScoreComparison: Score difference and resource estimates
        """
        difference = improved_score - current_score
        percent = int(round_half_up(difference / current_score * 100)) if current_score > 0 else 0

        return ScoreComparison(
            current_score=current_score,
            improved_score=improved_score,
            difference=round(difference, 1),
            percent_improvement=percent,
            co2_kg=self._estimate(current_score, improved_score, CO2_KG_PER_POINT),
            water_liters=self._estimate(current_score, improved_score, WATER_LITERS_PER_POINT),
            land_m2=self._estimate(current_score, improved_score, LAND_M2_PER_POINT)
        )
