"""
Pydantic models for recipe data.

This module defines the recipe catalog model and the request/response
schemas of the recipe and search endpoints. Recipes are frozen once
prepared: category and sustainability index never change within a session.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional, Tuple


class Category(str, Enum):
    """Fixed recipe category set."""
    SALAD = "salad"
    SOUP = "soup"
    MAIN = "main"
    DESSERT = "dessert"
    DRINK = "drink"
    BREAKFAST = "breakfast"
    SIDE = "side"
    OTHER = "other"


class Recipe(BaseModel):
    """
    Prepared catalog recipe.

    Attributes:
        id: Unique positive identifier
        name: Display name
        ingredients_raw: Ingredient text as found in the source
        ingredients: Normalized lowercase ingredient tokens in source order
        category: Assigned category
        env_score: Environmental impact (0-100, higher is worse)
        nutri_score: Nutrition score (0-100, higher is better)
        sustainability_index: Derived composite score (0-100, higher is better)
        instructions: Preparation text
        low_confidence: True when one of the two input scores was missing
    """
    id: int = Field(..., gt=0, description="Recipe identifier")
    name: str = Field(..., min_length=1, description="Recipe name")
    ingredients_raw: str = Field(default="", description="Raw ingredient text")
    ingredients: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Normalized ingredient tokens"
    )
    category: Category = Field(default=Category.OTHER, description="Recipe category")
    env_score: float = Field(..., ge=0.0, le=100.0, description="Environmental score")
    nutri_score: float = Field(..., ge=0.0, le=100.0, description="Nutrition score")
    sustainability_index: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Derived sustainability index"
    )
    instructions: str = Field(default="", description="Preparation instructions")
    low_confidence: bool = Field(
        default=False,
        description="One of the input scores was missing and defaulted"
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "id": 1,
                "name": "Egyszerű paradicsomleves",
                "ingredients_raw": "paradicsom, hagyma, só, bors, fokhagyma",
                "ingredients": ["paradicsom", "hagyma", "só", "bors", "fokhagyma"],
                "category": "soup",
                "env_score": 25.5,
                "nutri_score": 78.2,
                "sustainability_index": 79.0,
                "instructions": "",
                "low_confidence": False
            }
        }
    }


class ScoreEvaluation(BaseModel):
    """Discrete band for a sustainability index."""
    label: str = Field(..., description="Band label")
    icon: str = Field(..., description="Band icon")
    color_band: str = Field(..., description="Band color (hex)")


class EnvironmentalLabel(BaseModel):
    """Discrete band for an environmental score."""
    label: str = Field(..., description="Band label")
    color: str = Field(..., description="Band color (hex)")


class ScoreBreakdown(BaseModel):
    """
    Intermediate values of a sustainability score computation.

    Attributes:
        environmental_component: 100 minus the clamped environmental score
        nutritional_component: Clamped nutrition score
        weighted: Weighted sum of both components
        category_modifier: Category bonus/penalty
        final_score: Clamped and rounded result
    """
    environmental_component: float
    nutritional_component: float
    weighted: float
    category_modifier: float
    final_score: float = Field(..., ge=0.0, le=100.0)


class RecipeDetail(BaseModel):
    """Recipe with its presentation bands and score breakdown."""
    recipe: Recipe
    evaluation: ScoreEvaluation
    environmental_label: EnvironmentalLabel
    breakdown: ScoreBreakdown
    category_icon: str


class SearchRequest(BaseModel):
    """
    Request model for the search endpoint.

    Attributes:
        query: Free-text ingredient query
        test_group: Experimental group of the participant (A/B/C)
    """
    query: str = Field(
        ...,
        min_length=1,
        max_length=300,
        description="Ingredients to search for",
        examples=["marha, hagyma"]
    )
    test_group: str = Field(..., description="Test group (A/B/C)", examples=["C"])

    @field_validator('query')
    @classmethod
    def validate_query(cls, v: str) -> str:
        """Validate query is not empty or whitespace only."""
        if not v or not v.strip():
            raise ValueError('Search query cannot be empty')
        return v.strip()

    @field_validator('test_group')
    @classmethod
    def validate_test_group(cls, v: str) -> str:
        """Ensure test group is one of A, B, C."""
        v_upper = v.strip().upper()
        if v_upper not in ("A", "B", "C"):
            raise ValueError('Test group must be one of: A, B, C')
        return v_upper


class SearchResultItem(BaseModel):
    """
    One ranked search hit as shown to a participant.

    Score fields are omitted for the control group.
    """
    rank: int = Field(..., ge=1)
    id: int
    name: str
    category: Category
    category_icon: str
    ingredients: List[str]
    sustainability_index: Optional[float] = None
    env_score: Optional[float] = None
    nutri_score: Optional[float] = None
    evaluation: Optional[ScoreEvaluation] = None


class SearchStatistics(BaseModel):
    """Aggregate statistics of one result list."""
    total_results: int = 0
    avg_sustainability: Optional[float] = None
    avg_env_score: Optional[float] = None
    category_distribution: Dict[str, int] = Field(default_factory=dict)
    test_group: Optional[str] = None


class SearchResponse(BaseModel):
    """Response model for the search endpoint."""
    query: str
    test_group: str
    results: List[SearchResultItem] = Field(default_factory=list)
    statistics: SearchStatistics
    degraded_catalog: bool = Field(
        default=False,
        description="True when results come from the built-in fixture catalog"
    )


class SimilarRecipe(BaseModel):
    """A recipe similar to another one by shared ingredients."""
    recipe: Recipe
    similarity: float = Field(..., ge=0.0)
    common_ingredients: int = Field(..., ge=0)
