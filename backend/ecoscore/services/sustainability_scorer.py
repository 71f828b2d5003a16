"""
Rule-based sustainability scoring engine.

This module computes the Eco-Score (sustainability index) of a recipe and
maps scores to presentation bands. The scorer is the single source of
truth for the index: any value found in the raw catalog is overwritten.

Scoring:
- Environmental component: 100 - env_score (lower impact scores higher)
- Nutritional component: nutri_score
- Weighted sum: 60% environmental + 40% nutritional
- Category modifier: -3 (dessert) to +5 (salad)
- Result clamped to 0-100 and rounded to one decimal
"""

import logging
import math
from typing import Optional

from ecoscore.config import ScoringConfig
from ecoscore.models.recipe import (
    Category,
    EnvironmentalLabel,
    ScoreBreakdown,
    ScoreEvaluation,
)
from ecoscore.utils.helpers import clamp, round_half_up

# Configure logging
logger = logging.getLogger(__name__)


class SustainabilityScorer:
    """
    Deterministic sustainability scorer and score evaluator.

    Attributes:
        config: Canonical weights, category modifiers and band tables
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize the scorer.

        Args:
            config: Scoring configuration (defaults to the canonical tables)
        """
        self.config = config or ScoringConfig()

        logger.info(
            f"SustainabilityScorer initialized with weights: "
            f"environment={self.config.environment_weight}, "
            f"nutrition={self.config.nutrition_weight}"
        )

    def category_modifier(self, category: Optional[Category]) -> float:
        """Fixed bonus/penalty of a category; 0 for unknown categories."""
        if category is None:
            return 0.0
        return self.config.category_modifiers.get(category, 0.0)

    def breakdown(self, env: float, nutri: float, category: Optional[Category]) -> ScoreBreakdown:
        """
        Compute the sustainability score with all intermediate values.

        Algorithm:
        1. Clamp env and nutri to 0-100
        2. environmental component = 100 - env
        3. nutritional component = nutri
        4. weighted = env component * W_env + nutri component * W_nutri
        5. add the category modifier
        6. clamp to 0-100 and round to one decimal

        Args:
            env: Environmental score (higher is worse)
            nutri: Nutrition score (higher is better)
            category: Recipe category

        Returns:
            ScoreBreakdown: Components and final score
        """
        env = clamp(env)
        nutri = clamp(nutri)

        environmental_component = 100.0 - env
        nutritional_component = nutri
        weighted = (
            environmental_component * self.config.environment_weight
            + nutritional_component * self.config.nutrition_weight
        )
        modifier = self.category_modifier(category)
        final_score = round_half_up(clamp(weighted + modifier), 1)

        return ScoreBreakdown(
            environmental_component=round(environmental_component, 2),
            nutritional_component=round(nutritional_component, 2),
            weighted=round(weighted, 2),
            category_modifier=modifier,
            final_score=final_score
        )

    def score(self, env: float, nutri: float, category: Optional[Category]) -> float:
        """
        Compute the sustainability index of a recipe.

        Args:
            env: Environmental score (higher is worse)
            nutri: Nutrition score (higher is better)
            category: Recipe category

        Returns:
            float: Sustainability index (0-100, one decimal)

        Example:
            >>> SustainabilityScorer().score(25.5, 78.2, Category.SOUP)
            79.0
        """
        result = self.breakdown(env, nutri, category).final_score
        logger.debug(f"Sustainability score env={env}, nutri={nutri}, category={category}: {result}")
        return result

    def evaluate(self, score: float) -> ScoreEvaluation:
        """
        Map a sustainability index to its band.

        Bands are ordered by descending minimum; the first band whose
        minimum the score reaches wins. Scores below every band get the
        lowest band.

        Args:
            score: Sustainability index

        Returns:
            ScoreEvaluation: Label, icon and color of the band
        """
        if score is None or math.isnan(score):
            score = 0.0

        bands = self.config.eco_score_bands
        for band in bands:
            if score >= band.min:
                return ScoreEvaluation(label=band.label, icon=band.icon, color_band=band.color)

        lowest = bands[-1]
        return ScoreEvaluation(label=lowest.label, icon=lowest.icon, color_band=lowest.color)

    def environmental_label(self, env: float) -> EnvironmentalLabel:
        """
        Map an environmental score to its band.

        Bands are ordered by ascending maximum; the first band whose maximum
        the score does not exceed wins. Scores above every band get the
        highest-impact band.

        Args:
            env: Environmental score (higher is worse)

        Returns:
            EnvironmentalLabel: Label and color of the band
        """
        if env is None or math.isnan(env):
            env = 0.0

        bands = self.config.env_score_bands
        for band in bands:
            if env <= band.max:
                return EnvironmentalLabel(label=band.label, color=band.color)

        highest = bands[-1]
        return EnvironmentalLabel(label=highest.label, color=highest.color)
