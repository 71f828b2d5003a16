import pytest

from ecoscore.config import ScoringConfig
from ecoscore.models.recipe import Category
from ecoscore.services.sustainability_scorer import SustainabilityScorer


def test_reference_soup_score(scorer):
    # 0.6 * 74.5 + 0.4 * 78.2 + 3 = 78.98
    assert scorer.score(25.5, 78.2, Category.SOUP) == 79.0


def test_breakdown_components(scorer):
    breakdown = scorer.breakdown(25.5, 78.2, Category.SOUP)
    assert breakdown.environmental_component == 74.5
    assert breakdown.nutritional_component == 78.2
    assert breakdown.weighted == pytest.approx(75.98)
    assert breakdown.category_modifier == 3.0
    assert breakdown.final_score == 79.0


def test_score_is_bounded(scorer):
    assert scorer.score(0, 100, Category.SALAD) == 100.0
    assert scorer.score(100, 0, Category.DESSERT) == 0.0
    assert scorer.score(-50, 250, Category.SALAD) == 100.0
    assert 0.0 <= scorer.score(float("nan"), float("nan"), Category.MAIN) <= 100.0


def test_score_is_monotonic(scorer):
    for category in Category:
        previous = None
        for env in range(0, 101, 5):
            current = scorer.score(env, 60, category)
            if previous is not None:
                assert current <= previous
            previous = current

        previous = None
        for nutri in range(0, 101, 5):
            current = scorer.score(40, nutri, category)
            if previous is not None:
                assert current >= previous
            previous = current


def test_category_modifiers(scorer):
    assert scorer.category_modifier(Category.SALAD) == 5.0
    assert scorer.category_modifier(Category.DESSERT) == -3.0
    assert scorer.category_modifier(Category.OTHER) == 0.0
    assert scorer.category_modifier(None) == 0.0
    assert scorer.score(50, 50, None) == scorer.score(50, 50, Category.OTHER)


@pytest.mark.parametrize("score,label", [
    (100, "Excellent sustainable choice"),
    (75, "Excellent sustainable choice"),
    (74.9, "Good sustainable choice"),
    (60, "Good sustainable choice"),
    (40, "Moderately sustainable choice"),
    (39.9, "Less sustainable choice"),
    (0, "Less sustainable choice"),
    (-10, "Less sustainable choice"),
])
def test_evaluate_bands(scorer, score, label):
    assert scorer.evaluate(score).label == label


def test_evaluate_is_total(scorer):
    lowest = scorer.evaluate(0)
    assert scorer.evaluate(float("nan")) == lowest
    assert scorer.evaluate(-1e9) == lowest
    assert scorer.evaluate(1e9) == scorer.evaluate(100)


def test_environmental_label(scorer):
    assert scorer.environmental_label(10) == scorer.environmental_label(20)
    assert scorer.environmental_label(20) != scorer.environmental_label(20.1)
    assert scorer.environmental_label(150) == scorer.environmental_label(100)
    assert scorer.environmental_label(float("nan")) == scorer.environmental_label(0)


def test_custom_weights():
    scorer = SustainabilityScorer(ScoringConfig(environment_weight=1.0, nutrition_weight=0.0))
    assert scorer.score(30, 99, Category.SIDE) == 70.0


def test_weights_must_sum_to_one():
    with pytest.raises(ValueError):
        ScoringConfig(environment_weight=0.5, nutrition_weight=0.6)
