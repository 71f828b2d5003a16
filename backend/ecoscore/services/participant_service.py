"""
Study participant registration and choice recording.

Participants are assigned to a test group deterministically from their id,
so a participant always sees the same experimental condition. Choices are
append-only records that snapshot the recipe scores at selection time.
Storage goes through a small key-value interface; the default keeps
everything in memory for the lifetime of the process.
"""

import logging
import math
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ecoscore.config import settings
from ecoscore.models.participant import (
    BehaviorAnalysis,
    CategoryPreference,
    Choice,
    ChoiceSource,
    ChoiceStatistics,
    DecisionPatterns,
    GroupPerformance,
    Level,
    Participant,
    SustainabilityImpact,
    TestGroup,
    TimeDistribution,
    TrendPoint,
)
from ecoscore.models.recipe import Recipe
from ecoscore.utils.constants import (
    AWARENESS_HIGH_THRESHOLD,
    AWARENESS_MEDIUM_THRESHOLD,
    BASELINE_MEAL_CO2_KG,
    ENGAGEMENT_HIGH_CHOICES,
    ENGAGEMENT_MEDIUM_CHOICES,
    IMPROVEMENT_TREND_SHARE,
    NEUTRAL_SUSTAINABILITY,
    QUICK_DECISION_SECONDS,
    SLOW_DECISION_SECONDS,
    TREND_WINDOW,
)
from ecoscore.utils.helpers import round_half_up, simple_hash
from ecoscore.utils.validators import validate_email

# Configure logging
logger = logging.getLogger(__name__)

GROUP_ORDER = [TestGroup.A, TestGroup.B, TestGroup.C]

_PARTICIPANT_PREFIX = "participant:"
_CHOICES_KEY = "choices"


class ParticipantNotFoundError(Exception):
    """Raised when no participant is stored under the given id."""


class KeyValueStore:
    """Minimal storage interface used by the participant service."""

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError


class InMemoryStore(KeyValueStore):
    """Process-local dictionary store."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


def assign_test_group(participant_id: str) -> TestGroup:
    """
    Deterministic test group of a participant.

    Args:
        participant_id: Participant identifier

    Returns:
        TestGroup: A, B or C (hash of the id modulo 3)
    """
    return GROUP_ORDER[simple_hash(str(participant_id)) % 3]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def time_distribution(choices: List[Choice]) -> TimeDistribution:
    """Count choices per hour of day, calendar day and ISO week (UTC)."""
    hourly: Counter = Counter()
    daily: Counter = Counter()
    weekly: Counter = Counter()

    for choice in choices:
        moment = choice.timestamp.astimezone(timezone.utc)
        year, week, _ = moment.isocalendar()
        hourly[moment.hour] += 1
        daily[moment.date().isoformat()] += 1
        weekly[f"{year}-{week:02d}"] += 1

    return TimeDistribution(hourly=dict(hourly), daily=dict(daily), weekly=dict(weekly))


def sustainability_trend(choices: List[Choice], window: int = TREND_WINDOW) -> List[TrendPoint]:
    """
    Moving average of the chosen sustainability index in time order.

    Args:
        choices: Choices to analyse
        window: Number of consecutive choices averaged (shrinks for short histories)

    Returns:
        List[TrendPoint]: One point per window position; empty below two choices
    """
    if len(choices) < 2:
        return []

    ordered = sorted(choices, key=lambda c: c.timestamp)
    size = min(window, len(ordered))

    trend = []
    for start in range(len(ordered) - size + 1):
        chunk = ordered[start:start + size]
        trend.append(TrendPoint(
            timestamp=chunk[size // 2].timestamp,
            sustainability_index=round_half_up(sum(c.sustainability_index for c in chunk) / size, 1),
            choice_count=size
        ))
    return trend


def carbon_savings(choices: List[Choice]) -> float:
    """
    Estimated kg CO2 saved against an average meal.

    Each choice above the neutral index saves a linear share of the
    baseline meal emission; choices below it count as zero.
    """
    total = 0.0
    for choice in choices:
        saved = BASELINE_MEAL_CO2_KG * (choice.sustainability_index - NEUTRAL_SUSTAINABILITY) / 100
        total += max(0.0, saved)
    return total


def decision_consistency(decision_times: List[float]) -> float:
    """1 - coefficient of variation of the decision times, floored at 0."""
    if len(decision_times) < 2:
        return 1.0

    mean = sum(decision_times) / len(decision_times)
    if mean == 0:
        return 1.0
    variance = sum((t - mean) ** 2 for t in decision_times) / len(decision_times)
    return round_half_up(max(0.0, 1 - math.sqrt(variance) / mean), 2)


def _level(value: float, high: float, medium: float) -> Level:
    if value > high:
        return Level.HIGH
    if value > medium:
        return Level.MEDIUM
    return Level.LOW


class ParticipantService:
    """
    Service for participant sessions and recipe choices.

    Attributes:
        store: Key-value storage for participants and choices
        clock: Source of registration, session and choice timestamps
    """

    def __init__(self, store: Optional[KeyValueStore] = None, clock: Callable[[], datetime] = _now):
        self.store = store or InMemoryStore()
        self.clock = clock
        logger.info(f"ParticipantService initialized with {type(self.store).__name__}")

    def register(self, email: str) -> Participant:
        """
        Register a new participant.

        Args:
            email: Participant e-mail address

        Returns:
            Participant: Stored participant with its test group

        Raises:
            ValueError: If the e-mail address is invalid
        """
        email = validate_email(email)
        participant_id = uuid.uuid4().hex
        now = self.clock()

        participant = Participant(
            id=participant_id,
            email=email,
            test_group=assign_test_group(participant_id),
            registered_at=now,
            session_count=1,
            last_seen_at=now,
            version=settings.VERSION
        )
        self._save(participant)

        logger.info(f"Participant registered in group {participant.test_group.value}: {participant_id}")
        return participant

    def get(self, participant_id: str) -> Participant:
        """
        Look up a participant without starting a session.

        Raises:
            ParticipantNotFoundError: If the id is unknown
        """
        participant = self.store.get(_PARTICIPANT_PREFIX + participant_id)
        if participant is None:
            raise ParticipantNotFoundError(f"Participant not found: {participant_id}")
        return participant

    def load(self, participant_id: str) -> Participant:
        """
        Start a new session for a returning participant.

        The test group never changes; the session counter is incremented.

        Raises:
            ParticipantNotFoundError: If the id is unknown
        """
        participant = self.get(participant_id)
        participant = participant.model_copy(update={
            "session_count": participant.session_count + 1,
            "last_seen_at": self.clock()
        })
        self._save(participant)

        logger.info(f"Participant {participant_id} started session {participant.session_count}")
        return participant

    def _save(self, participant: Participant) -> None:
        self.store.set(_PARTICIPANT_PREFIX + participant.id, participant)

    def record_choice(
        self,
        participant: Participant,
        recipe: Recipe,
        rank: int,
        query: str = "",
        decision_time: float = 0.0,
        source: ChoiceSource = ChoiceSource.SEARCH
    ) -> Choice:
        """
        Record a recipe choice.

        Args:
            participant: Participant making the choice
            recipe: Chosen recipe
            rank: 1-based position of the recipe in the list shown
            query: Search query that produced the list
            decision_time: Seconds from results shown to choice
            source: Where the recipe was chosen

        Returns:
            Choice: The appended record
        """
        choice = Choice(
            participant_id=participant.id,
            test_group=participant.test_group,
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            recipe_category=recipe.category,
            rank=rank,
            query=query or "",
            decision_time=decision_time,
            sustainability_index=recipe.sustainability_index,
            env_score=recipe.env_score,
            nutri_score=recipe.nutri_score,
            source=source,
            timestamp=self.clock()
        )

        choices = list(self.store.get(_CHOICES_KEY, []))
        choices.append(choice)
        self.store.set(_CHOICES_KEY, choices)

        logger.info(
            f"Choice recorded ({source.value}): participant {participant.id} "
            f"picked '{recipe.name}' at rank {rank}"
        )
        return choice

    def choices(self, participant_id: Optional[str] = None) -> List[Choice]:
        """All recorded choices, optionally of one participant."""
        choices = self.store.get(_CHOICES_KEY, [])
        if participant_id is None:
            return list(choices)
        return [choice for choice in choices if choice.participant_id == participant_id]

    def choice_statistics(self, participant_id: Optional[str] = None) -> ChoiceStatistics:
        """
        Aggregate recorded choices.

        Args:
            participant_id: Restrict to one participant

        Returns:
            ChoiceStatistics: Totals, averages and distributions
        """
        choices = self.choices(participant_id)
        if not choices:
            return ChoiceStatistics()

        total = len(choices)

        def average(field: str) -> float:
            return round_half_up(sum(getattr(c, field) for c in choices) / total, 2)

        timestamps = [choice.timestamp for choice in choices]
        return ChoiceStatistics(
            total_choices=total,
            avg_decision_time=average("decision_time"),
            avg_sustainability_index=average("sustainability_index"),
            avg_env_score=average("env_score"),
            avg_nutri_score=average("nutri_score"),
            category_counts=dict(Counter(c.recipe_category.value for c in choices)),
            test_group_counts=dict(Counter(c.test_group.value for c in choices)),
            source_counts=dict(Counter(c.source.value for c in choices)),
            time_distribution=time_distribution(choices),
            sustainability_trend=sustainability_trend(choices),
            first_choice=min(timestamps),
            last_choice=max(timestamps)
        )

    def sustainability_impact(self, participant_id: Optional[str] = None) -> SustainabilityImpact:
        """
        Measure how sustainable the recorded choices were and how that changed.

        The improvement trend compares the mean index of the last 20% of
        choices with the first 20% (at least one choice each).

        Args:
            participant_id: Restrict to one participant

        Returns:
            SustainabilityImpact: Impact metrics; all zero without choices
        """
        choices = self.choices(participant_id)
        if not choices:
            return SustainabilityImpact()

        total = len(choices)
        indexes = [choice.sustainability_index for choice in choices]
        share = max(1, int(total * IMPROVEMENT_TREND_SHARE))
        first_avg = sum(indexes[:share]) / share
        last_avg = sum(indexes[-share:]) / share

        recommended = sum(1 for c in choices if c.source == ChoiceSource.AI_RECOMMENDATION)

        impact = SustainabilityImpact(
            total_impact=int(round_half_up(sum(indexes))),
            avg_impact=round_half_up(sum(indexes) / total, 1),
            improvement_trend=round_half_up(last_avg - first_avg, 1),
            carbon_saved_kg=round_half_up(carbon_savings(choices), 2),
            recommendation_acceptance=round_half_up(recommended / total * 100, 1)
        )
        logger.debug(f"Sustainability impact over {total} choices: {impact}")
        return impact

    def behavior_analysis(self, participant_id: Optional[str] = None) -> BehaviorAnalysis:
        """
        Derive preferred categories, decision patterns and engagement.

        Args:
            participant_id: Restrict to one participant

        Returns:
            BehaviorAnalysis: Behavioural profile; low levels without choices
        """
        choices = self.choices(participant_id)
        if not choices:
            return BehaviorAnalysis()

        total = len(choices)
        categories = Counter(c.recipe_category.value for c in choices)
        preferred = [
            CategoryPreference(
                category=category,
                count=count,
                percentage=int(round_half_up(count / total * 100))
            )
            for category, count in categories.most_common(3)
        ]

        times = [choice.decision_time for choice in choices]
        patterns = DecisionPatterns(
            avg_time=round_half_up(sum(times) / total, 1),
            quick_decisions=sum(1 for t in times if t < QUICK_DECISION_SECONDS),
            slow_decisions=sum(1 for t in times if t > SLOW_DECISION_SECONDS),
            consistency=decision_consistency(times)
        )

        avg_sustainability = sum(c.sustainability_index for c in choices) / total
        return BehaviorAnalysis(
            preferred_categories=preferred,
            decision_patterns=patterns,
            sustainability_awareness=_level(
                avg_sustainability, AWARENESS_HIGH_THRESHOLD, AWARENESS_MEDIUM_THRESHOLD
            ),
            engagement_level=_level(total, ENGAGEMENT_HIGH_CHOICES, ENGAGEMENT_MEDIUM_CHOICES),
            total_interactions=total
        )

    def group_performance(self) -> List[GroupPerformance]:
        """Average chosen sustainability and decision time per test group."""
        choices = self.choices()
        performance = []
        for group in GROUP_ORDER:
            group_choices = [c for c in choices if c.test_group == group]
            count = len(group_choices)
            if count == 0:
                performance.append(GroupPerformance(test_group=group))
                continue
            performance.append(GroupPerformance(
                test_group=group,
                choices=count,
                avg_sustainability=round_half_up(
                    sum(c.sustainability_index for c in group_choices) / count, 2
                ),
                avg_decision_time=round_half_up(
                    sum(c.decision_time for c in group_choices) / count, 2
                )
            ))
        return performance
