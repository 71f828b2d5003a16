"""
Application configuration.

This module defines the application settings using Pydantic models with
environment variable support and type validation, plus the canonical
scoring and search configuration shared by the service layer.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List, Optional
import os
from dotenv import load_dotenv

from ecoscore.models.recipe import Category
from ecoscore.utils.constants import (
    CATEGORY_MODIFIERS,
    ECO_SCORE_BANDS,
    ENV_SCORE_BANDS,
)

# Load .env from backend directory (works regardless of cwd when running uvicorn)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class EcoScoreBand(BaseModel):
    """One row of the sustainability score table (highest qualifying minimum wins)."""
    min: float
    label: str
    icon: str
    color: str


class EnvScoreBand(BaseModel):
    """One row of the environmental score table (lowest qualifying maximum wins)."""
    max: float
    label: str
    color: str


class ScoringConfig(BaseModel):
    """
    Canonical sustainability scoring configuration.

    Attributes:
        environment_weight: Weight of the inverted environmental component
        nutrition_weight: Weight of the nutrition component
        category_modifiers: Fixed bonus/penalty per category
        eco_score_bands: Sustainability bands, descending by minimum
        env_score_bands: Environmental bands, ascending by maximum
    """
    environment_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    nutrition_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    category_modifiers: Dict[Category, float] = Field(
        default_factory=lambda: dict(CATEGORY_MODIFIERS)
    )
    eco_score_bands: List[EcoScoreBand] = Field(
        default_factory=lambda: [EcoScoreBand(**band) for band in ECO_SCORE_BANDS]
    )
    env_score_bands: List[EnvScoreBand] = Field(
        default_factory=lambda: [EnvScoreBand(**band) for band in ENV_SCORE_BANDS]
    )

    @model_validator(mode='after')
    def validate_weights(self):
        """Weights must sum to 1 and band tables must be ordered."""
        if abs(self.environment_weight + self.nutrition_weight - 1.0) > 1e-9:
            raise ValueError("environment_weight + nutrition_weight must equal 1.0")
        if not self.eco_score_bands or not self.env_score_bands:
            raise ValueError("Score band tables cannot be empty")
        self.eco_score_bands = sorted(self.eco_score_bands, key=lambda b: b.min, reverse=True)
        self.env_score_bands = sorted(self.env_score_bands, key=lambda b: b.max)
        return self


class SearchConfig(BaseModel):
    """
    Search matching and ranking knobs.

    Attributes:
        max_results: Maximum number of recipes returned by a search
        min_candidates: Below this many matches the result set is broadened
        min_term_length: Shortest query/ingredient token kept
        fuzzy_threshold: Minimum Levenshtein similarity for a fuzzy match
        prefix_length: Characters of a term used for prefix broadening
        include_top_sustainable: Pad narrow results with top-scoring recipes
        relevance_weight: Relevance share of the group B composite score
    """
    max_results: int = Field(default=6, ge=1, le=50)
    min_candidates: int = Field(default=4, ge=0, le=50)
    min_term_length: int = Field(default=2, ge=1, le=10)
    fuzzy_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    prefix_length: int = Field(default=3, ge=1, le=10)
    include_top_sustainable: bool = True
    relevance_weight: float = Field(default=0.7, ge=0.0, le=1.0)


class Settings(BaseModel):
    """
    Application configuration settings.

    Can be configured via environment variables or the backend .env file.
    Environment variable names are uppercase (e.g., CATALOG_SOURCE).

    Attributes:
        CATALOG_SOURCE: URL or file path of the recipe catalog JSON
        CATALOG_TIMEOUT: Catalog download timeout in seconds
        MAX_SEARCH_RESULTS: Maximum number of search results
        MIN_SEARCH_CANDIDATES: Candidate count that triggers broadening
        MIN_TERM_LENGTH: Minimum search term length
        USE_EXTERNAL_EXPLANATIONS: Ask Gemini for explanations before the rule engine
        GEMINI_API_KEY: Google Gemini API key
        LLM_MODEL: Gemini model name
        XAI_TIMEOUT: Hard timeout for one provider call in seconds
        XAI_MAX_RETRIES: Maximum provider attempts
        XAI_RETRY_DELAY: Base delay for exponential backoff in seconds
        CACHE_EXPLANATIONS: Cache explanations per recipe id for the session
        SHUFFLE_SEED: Optional seed for the control group shuffle
        LOG_LEVEL: Logging level (DEBUG/INFO/WARNING/ERROR)
    """

    VERSION: str = Field(default="2025.06.20", description="Application version")

    # Catalog
    CATALOG_SOURCE: str = Field(
        default_factory=lambda: os.getenv("CATALOG_SOURCE", "data/recipes.json"),
        description="URL or local path of the recipe catalog JSON"
    )

    CATALOG_TIMEOUT: int = Field(
        default_factory=lambda: int(os.getenv("CATALOG_TIMEOUT", "10")),
        ge=1,
        le=60,
        description="Catalog download timeout in seconds"
    )

    # Search
    MAX_SEARCH_RESULTS: int = Field(
        default_factory=lambda: int(os.getenv("MAX_SEARCH_RESULTS", "6")),
        ge=1,
        le=50,
        description="Maximum number of recipes shown per search"
    )

    MIN_SEARCH_CANDIDATES: int = Field(
        default_factory=lambda: int(os.getenv("MIN_SEARCH_CANDIDATES", "4")),
        ge=0,
        le=50,
        description="Broaden the result set below this many matches"
    )

    MIN_TERM_LENGTH: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Minimum search term length"
    )

    # Explanations
    USE_EXTERNAL_EXPLANATIONS: bool = Field(
        default_factory=lambda: _env_bool("USE_EXTERNAL_EXPLANATIONS"),
        description="Use Gemini for explanations (rule-based fallback always available)"
    )

    GEMINI_API_KEY: Optional[str] = Field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY"),
        description="Google Gemini API key for the explanation provider"
    )

    LLM_MODEL: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used for explanations"
    )

    XAI_TIMEOUT: float = Field(
        default=30.0,
        gt=0.0,
        le=120.0,
        description="Hard timeout for one explanation provider call in seconds"
    )

    XAI_MAX_RETRIES: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum explanation provider attempts"
    )

    XAI_RETRY_DELAY: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Base delay for exponential backoff in seconds"
    )

    CACHE_EXPLANATIONS: bool = Field(
        default=True,
        description="Cache explanations per recipe id for the session"
    )

    SHUFFLE_SEED: Optional[int] = Field(
        default_factory=lambda: int(os.environ["SHUFFLE_SEED"]) if os.getenv("SHUFFLE_SEED") else None,
        description="Seed for the control group shuffle (unset in production)"
    )

    # Logging Configuration
    LOG_LEVEL: str = Field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"),
        description="Logging level (DEBUG/INFO/WARNING/ERROR)"
    )

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of: {', '.join(valid_levels)}"
            )
        return v_upper

    @field_validator('CATALOG_SOURCE')
    @classmethod
    def validate_catalog_source(cls, v):
        """Ensure the catalog source is not blank."""
        if not v or not v.strip():
            raise ValueError("CATALOG_SOURCE cannot be empty")
        return v.strip()

    def search_config(self) -> SearchConfig:
        """Build the search configuration from the flat settings."""
        return SearchConfig(
            max_results=self.MAX_SEARCH_RESULTS,
            min_candidates=self.MIN_SEARCH_CANDIDATES,
            min_term_length=self.MIN_TERM_LENGTH,
        )


# Create global settings instance
settings = Settings()


# Configure logging based on settings
def configure_logging():
    """Configure application logging based on settings."""
    import logging

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {settings.LOG_LEVEL} level")
    logger.info(f"Catalog source: {settings.CATALOG_SOURCE}")
    logger.info(
        f"External explanations: "
        f"{'Enabled' if settings.USE_EXTERNAL_EXPLANATIONS else 'Disabled (using rules)'}"
    )


# Initialize logging on import
configure_logging()
