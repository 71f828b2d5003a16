"""
Pydantic models for study participants and their recipe choices.

Participants are created once at registration; choices are append-only
event records that snapshot the recipe scores at selection time.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional

from ecoscore.models.recipe import Category


class TestGroup(str, Enum):
    """Experimental condition of a participant."""
    __test__ = False

    A = "A"  # control: no sustainability data, random order
    B = "B"  # scores shown, composite order
    C = "C"  # scores and explanations, sustainability-first order


class ChoiceSource(str, Enum):
    """Where in the interface the participant picked the recipe."""
    SEARCH = "search"
    DETAILS = "details"
    ALTERNATIVE = "alternative"
    AI_RECOMMENDATION = "ai-recommendation"


class Participant(BaseModel):
    """
    Registered study participant.

    Attributes:
        id: Unique identifier
        email: Contact e-mail address
        test_group: Assigned experimental group (never changes)
        registered_at: Registration timestamp
        session_count: Number of sessions started
        last_seen_at: Start of the most recent session
        version: Application version at registration
    """
    id: str = Field(..., min_length=1)
    email: str
    test_group: TestGroup
    registered_at: datetime
    session_count: int = Field(default=1, ge=1)
    last_seen_at: Optional[datetime] = None
    version: str


class RegistrationRequest(BaseModel):
    """Request model for participant registration."""
    email: str = Field(..., min_length=3, max_length=254, examples=["participant@example.org"])

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Require a plausible e-mail address."""
        v = v.strip()
        if '@' not in v:
            raise ValueError('Invalid e-mail address')
        return v


class ChoiceRequest(BaseModel):
    """Request model for recording a recipe choice."""
    participant_id: str = Field(..., min_length=1)
    recipe_id: int = Field(..., gt=0)
    rank: int = Field(..., ge=1, description="Position of the recipe in the list shown")
    query: str = Field(default="", max_length=300)
    decision_time: float = Field(..., ge=0.0, description="Seconds from results shown to choice")
    source: ChoiceSource = ChoiceSource.SEARCH


class Choice(BaseModel):
    """
    Immutable record of one recipe choice.

    Score fields are copied from the recipe at selection time.
    """
    participant_id: str
    test_group: TestGroup
    recipe_id: int
    recipe_name: str
    recipe_category: Category
    rank: int = Field(..., ge=1)
    query: str
    decision_time: float = Field(..., ge=0.0)
    sustainability_index: float
    env_score: float
    nutri_score: float
    source: ChoiceSource
    timestamp: datetime

    model_config = {"frozen": True}


class TimeDistribution(BaseModel):
    """Choice counts per hour of day, per day and per ISO week (UTC)."""
    hourly: Dict[int, int] = Field(default_factory=dict)
    daily: Dict[str, int] = Field(default_factory=dict, description="Keyed by YYYY-MM-DD")
    weekly: Dict[str, int] = Field(default_factory=dict, description="Keyed by YYYY-WW")


class TrendPoint(BaseModel):
    """Moving average of chosen sustainability over a window of choices."""
    timestamp: datetime = Field(..., description="Timestamp of the middle choice of the window")
    sustainability_index: float
    choice_count: int


class ChoiceStatistics(BaseModel):
    """Aggregated statistics over a set of choices."""
    total_choices: int = 0
    avg_decision_time: float = 0.0
    avg_sustainability_index: float = 0.0
    avg_env_score: float = 0.0
    avg_nutri_score: float = 0.0
    category_counts: Dict[str, int] = Field(default_factory=dict)
    test_group_counts: Dict[str, int] = Field(default_factory=dict)
    source_counts: Dict[str, int] = Field(default_factory=dict)
    time_distribution: TimeDistribution = Field(default_factory=TimeDistribution)
    sustainability_trend: List[TrendPoint] = Field(default_factory=list)
    first_choice: Optional[datetime] = None
    last_choice: Optional[datetime] = None


class SustainabilityImpact(BaseModel):
    """
    Effect of the choices on sustainability.

    Attributes:
        total_impact: Sum of chosen sustainability indexes
        avg_impact: Mean chosen sustainability index
        improvement_trend: Mean of the last 20% of choices minus mean of the first 20%
        carbon_saved_kg: Estimated CO2 saved against an average meal
        recommendation_acceptance: Percentage of choices taken from AI recommendations
    """
    total_impact: int = 0
    avg_impact: float = 0.0
    improvement_trend: float = 0.0
    carbon_saved_kg: float = 0.0
    recommendation_acceptance: float = 0.0


class Level(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CategoryPreference(BaseModel):
    category: str
    count: int
    percentage: int = Field(..., ge=0, le=100)


class DecisionPatterns(BaseModel):
    """Decision time profile; consistency is 1 - stddev / mean, floored at 0."""
    avg_time: float = 0.0
    quick_decisions: int = 0
    slow_decisions: int = 0
    consistency: float = Field(default=1.0, ge=0.0, le=1.0)


class BehaviorAnalysis(BaseModel):
    """Behavioural profile derived from a participant's choices."""
    preferred_categories: List[CategoryPreference] = Field(default_factory=list)
    decision_patterns: DecisionPatterns = Field(default_factory=DecisionPatterns)
    sustainability_awareness: Level = Level.LOW
    engagement_level: Level = Level.LOW
    total_interactions: int = 0


class GroupPerformance(BaseModel):
    """Per-group comparison of choice outcomes."""
    test_group: TestGroup
    choices: int = 0
    avg_sustainability: float = 0.0
    avg_decision_time: float = 0.0
