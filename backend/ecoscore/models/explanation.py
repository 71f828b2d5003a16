"""
Pydantic models for sustainability explanations.

This module defines the factor attribution structure returned by the
explanation generator, and the supporting alternative, substitution and
score comparison models.
"""

from enum import Enum

from pydantic import BaseModel, Field
from typing import List

from ecoscore.models.recipe import Recipe


class Impact(str, Enum):
    """Direction of a factor's effect on the score."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Factor(BaseModel):
    """
    One factor contributing to a recipe's score.

    Attributes:
        name: Short factor name (e.g., "beef")
        impact: positive, negative or neutral
        explanation: One-sentence human-readable reason
        importance: Relative weight (0-1)
    """
    name: str = Field(..., min_length=1)
    impact: Impact
    explanation: str
    importance: float = Field(..., ge=0.0, le=1.0)


class Explanation(BaseModel):
    """
    Structured explanation of a sustainability score.

    Attributes:
        summary: One-sentence overall assessment
        environmental_factors: Environmental factors, most important first
        nutritional_factors: Nutritional factors, most important first
        suggestions: 1-3 actionable suggestions
        confidence: Confidence of the explanation (0-1)
        model: Which generator produced it
        success: False for the minimal fallback explanation
    """
    summary: str
    environmental_factors: List[Factor] = Field(default_factory=list)
    nutritional_factors: List[Factor] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list, max_length=3)
    confidence: float = Field(..., ge=0.0, le=1.0)
    model: str = Field(default="rule-based")
    success: bool = True

    model_config = {
        "json_schema_extra": {
            "example": {
                "summary": "The recipe scores well for nutrition, but its environmental impact can be improved.",
                "environmental_factors": [
                    {
                        "name": "beef",
                        "impact": "negative",
                        "explanation": "Contains marhahús. Beef production has the largest footprint of common foods.",
                        "importance": 0.9
                    }
                ],
                "nutritional_factors": [],
                "suggestions": ["Replace the beef with legumes such as lentils or beans."],
                "confidence": 0.82,
                "model": "rule-based",
                "success": True
            }
        }
    }


class SustainableAlternative(BaseModel):
    """A same-category recipe with a higher sustainability index."""
    recipe: Recipe
    similarity: int = Field(..., ge=0, le=100, description="Ingredient similarity percentage")
    sustainability_improvement: int = Field(..., description="Index points gained")


class Substitution(BaseModel):
    """A known lower-impact replacement for one ingredient."""
    original: str
    substitute: str
    improvement_percent: int = Field(..., ge=0, le=100)
    explanation: str


class ImpactEstimate(BaseModel):
    """Current/improved estimate of one environmental quantity."""
    current: float
    improved: float
    reduction: float
    percent_reduction: int


class ScoreComparison(BaseModel):
    """Rough environmental equivalents of a sustainability index improvement."""
    current_score: float
    improved_score: float
    difference: float
    percent_improvement: int
    co2_kg: ImpactEstimate
    water_liters: ImpactEstimate
    land_m2: ImpactEstimate
