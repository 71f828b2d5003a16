from datetime import datetime, timedelta, timezone

import pytest

from ecoscore.models.participant import ChoiceSource, Level, TestGroup
from ecoscore.services.participant_service import (
    InMemoryStore,
    ParticipantNotFoundError,
    ParticipantService,
    assign_test_group,
    decision_consistency,
)
from ecoscore.utils.helpers import simple_hash


@pytest.fixture
def service():
    return ParticipantService(InMemoryStore())


def test_assign_test_group_is_deterministic():
    assert assign_test_group("abc") == TestGroup.A
    for participant_id in ("p-1", "p-2", "0f3c9a", "participant@example.org"):
        expected = [TestGroup.A, TestGroup.B, TestGroup.C][simple_hash(participant_id) % 3]
        assert assign_test_group(participant_id) == expected
        assert assign_test_group(participant_id) == assign_test_group(participant_id)


def test_assign_test_group_covers_all_groups():
    groups = {assign_test_group(f"user-{i}") for i in range(30)}
    assert groups == {TestGroup.A, TestGroup.B, TestGroup.C}


def test_register(service):
    participant = service.register(" Tester@Example.org ")
    assert participant.email == "tester@example.org"
    assert participant.test_group == assign_test_group(participant.id)
    assert participant.session_count == 1
    assert service.get(participant.id) == participant


def test_register_rejects_invalid_email(service):
    with pytest.raises(ValueError):
        service.register("not-an-email")


def test_load_starts_a_new_session(service):
    participant = service.register("tester@example.org")
    loaded = service.load(participant.id)
    assert loaded.session_count == 2
    assert loaded.test_group == participant.test_group
    assert service.load(participant.id).session_count == 3


def test_unknown_participant(service):
    with pytest.raises(ParticipantNotFoundError):
        service.load("missing")


def test_record_choice_snapshots_recipe(service, catalog):
    participant = service.register("tester@example.org")
    recipe = catalog.get(4)

    choice = service.record_choice(participant, recipe, rank=1, query="lencse", decision_time=4.2)
    assert choice.recipe_id == 4
    assert choice.test_group == participant.test_group
    assert choice.sustainability_index == recipe.sustainability_index
    assert choice.source == ChoiceSource.SEARCH
    assert service.choices(participant.id) == [choice]


def test_choice_statistics(service, catalog):
    first = service.register("first@example.org")
    second = service.register("second@example.org")
    service.record_choice(first, catalog.get(1), rank=1, query="hagyma", decision_time=2.0)
    service.record_choice(first, catalog.get(5), rank=3, query="marha", decision_time=4.0,
                          source=ChoiceSource.ALTERNATIVE)
    service.record_choice(second, catalog.get(3), rank=2, query="uborka", decision_time=6.0)

    stats = service.choice_statistics()
    assert stats.total_choices == 3
    assert stats.avg_decision_time == 4.0
    assert stats.category_counts == {"soup": 1, "main": 1, "salad": 1}
    assert stats.source_counts == {"search": 2, "alternative": 1}
    assert stats.first_choice <= stats.last_choice

    own = service.choice_statistics(first.id)
    assert own.total_choices == 2
    assert own.avg_sustainability_index == 52.0

    assert service.choice_statistics("nobody").total_choices == 0


def test_group_performance(service, catalog):
    participant = service.register("tester@example.org")
    service.record_choice(participant, catalog.get(4), rank=1, decision_time=3.0)

    performance = {p.test_group: p for p in service.group_performance()}
    assert set(performance) == {TestGroup.A, TestGroup.B, TestGroup.C}
    own = performance[participant.test_group]
    assert own.choices == 1
    assert own.avg_sustainability == 85.0
    assert sum(p.choices for p in performance.values()) == 1


class StepClock:
    """Returns start, start + step, start + 2 * step, ..."""

    def __init__(self, start, step):
        self.current = start
        self.step = step

    def __call__(self):
        value = self.current
        self.current += self.step
        return value


@pytest.fixture
def history(catalog):
    clock = StepClock(datetime(2025, 6, 20, 9, 0, tzinfo=timezone.utc), timedelta(hours=12))
    service = ParticipantService(InMemoryStore(), clock=clock)
    participant = service.register("tester@example.org")
    for recipe_id, decision_time, source in [
        (5, 5.0, ChoiceSource.SEARCH),
        (1, 12.0, ChoiceSource.SEARCH),
        (4, 40.0, ChoiceSource.AI_RECOMMENDATION),
        (3, 3.0, ChoiceSource.DETAILS),
    ]:
        service.record_choice(participant, catalog.get(recipe_id), rank=1,
                              decision_time=decision_time, source=source)
    return service, participant


def test_time_distribution_and_trend(history):
    service, participant = history
    stats = service.choice_statistics(participant.id)

    assert stats.time_distribution.hourly == {21: 2, 9: 2}
    assert stats.time_distribution.daily == {"2025-06-20": 1, "2025-06-21": 2, "2025-06-22": 1}
    assert stats.time_distribution.weekly == {"2025-25": 4}

    trend = stats.sustainability_trend
    assert [point.sustainability_index for point in trend] == [63.0, 83.0]
    assert [point.timestamp.day for point in trend] == [21, 21]
    assert all(point.choice_count == 3 for point in trend)


def test_trend_needs_two_choices(service, catalog):
    participant = service.register("tester@example.org")
    service.record_choice(participant, catalog.get(1), rank=1, decision_time=1.0)
    stats = service.choice_statistics(participant.id)
    assert stats.sustainability_trend == []
    assert sum(stats.time_distribution.hourly.values()) == 1


def test_sustainability_impact(history):
    service, participant = history
    impact = service.sustainability_impact(participant.id)

    assert impact.total_impact == 274
    assert impact.avg_impact == 68.5
    # last fifth (one choice) against first fifth
    assert impact.improvement_trend == 60.0
    # only choices above index 50 save carbon
    assert impact.carbon_saved_kg == pytest.approx(2.475, abs=0.006)
    assert impact.recommendation_acceptance == 25.0


def test_behavior_analysis(history):
    service, participant = history
    analysis = service.behavior_analysis(participant.id)

    assert [(p.category, p.count, p.percentage) for p in analysis.preferred_categories] == [
        ("main", 1, 25), ("soup", 1, 25), ("side", 1, 25)
    ]
    patterns = analysis.decision_patterns
    assert patterns.avg_time == 15.0
    assert patterns.quick_decisions == 2
    assert patterns.slow_decisions == 1
    assert patterns.consistency == 0.01
    assert analysis.sustainability_awareness == Level.MEDIUM
    assert analysis.engagement_level == Level.MEDIUM
    assert analysis.total_interactions == 4


def test_analytics_without_choices(service):
    impact = service.sustainability_impact("nobody")
    assert impact.total_impact == 0 and impact.carbon_saved_kg == 0.0

    analysis = service.behavior_analysis("nobody")
    assert analysis.preferred_categories == []
    assert analysis.sustainability_awareness == Level.LOW
    assert analysis.engagement_level == Level.LOW


def test_decision_consistency():
    assert decision_consistency([]) == 1.0
    assert decision_consistency([7.0]) == 1.0
    assert decision_consistency([4.0, 4.0, 4.0]) == 1.0
    assert decision_consistency([0.0, 0.0]) == 1.0
    assert decision_consistency([1.0, 100.0]) == 0.02
