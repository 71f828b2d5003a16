import random

import pytest

from ecoscore.config import SearchConfig
from ecoscore.models.participant import TestGroup
from ecoscore.models.recipe import Category
from ecoscore.services.recipe_search import RecipeSearchEngine


def ids(recipes):
    return [recipe.id for recipe in recipes]


def test_match_scoring(engine, catalog):
    stew = catalog.get(5)
    match = engine.match_recipe(stew, ["marha", "hagyma", "paprika"])
    # marha in marhahús (+5), hagyma and paprika exact (+10 each), full coverage (+5)
    assert match.exact_matches == 2
    assert match.partial_matches == 1
    assert match.score == 30


def test_fuzzy_match(engine, catalog):
    match = engine.match_recipe(catalog.get(1), ["paradicsm"])
    # similarity 0.9 -> +3, coverage +5
    assert match.score == 8
    assert match.partial_matches == 1


def test_fuzzy_match_threshold(engine, make_recipe):
    recipe = make_recipe(9, "Leves", ["paradicsom"])
    # one substitution in ten letters is similar enough, three are not
    assert engine.match_recipe(recipe, ["paradixsom"]).score == 8
    assert engine.match_recipe(recipe, ["paradxxxom"]).score == 0


def test_name_match(engine, catalog):
    match = engine.match_recipe(catalog.get(6), ["palacsinta"])
    assert match.score == 7


def test_no_match(engine, catalog):
    assert engine.match_recipe(catalog.get(3), ["hagyma"]).score == 0


def test_group_c_ranks_sustainable_first(engine, catalog):
    results = engine.search(catalog, "marha, hagyma, paprika", "C")
    # lentils (85.0) and cucumber salad (85.0, added by broadening) before soup and stew
    assert ids(results) == [4, 3, 1, 5]
    assert results.index(catalog.get(4)) < results.index(catalog.get(5))


def test_group_b_blends_relevance_and_sustainability(engine, catalog):
    results = engine.search(catalog, "hagyma", TestGroup.B)
    assert ids(results) == [4, 1, 3, 5]


def test_all_groups_share_membership(catalog):
    for query in ("hagyma", "marha, hagyma, paprika", "lencse", "cukor"):
        memberships = []
        for group in ("A", "B", "C"):
            engine = RecipeSearchEngine(rng=random.Random(3))
            memberships.append(sorted(ids(engine.search(catalog, query, group))))
        assert memberships[0] == memberships[1] == memberships[2]


def test_group_a_is_a_seeded_shuffle(catalog):
    first = RecipeSearchEngine(rng=random.Random(11)).search(catalog, "hagyma", "A")
    second = RecipeSearchEngine(rng=random.Random(11)).search(catalog, "hagyma", "A")
    assert ids(first) == ids(second)
    assert sorted(ids(first)) == [1, 3, 4, 5]


def test_results_are_bounded(catalog):
    engine = RecipeSearchEngine(SearchConfig(max_results=2))
    assert len(engine.search(catalog, "hagyma", "C")) == 2


def test_broadening_pads_with_top_sustainable(engine, catalog):
    results = engine.search(catalog, "zzzz", "C")
    # nothing matches, the most sustainable recipes fill the minimum
    assert ids(results) == [4, 3, 1, 2]


def test_no_match_still_returns_candidates_without_minimum(catalog):
    engine = RecipeSearchEngine(SearchConfig(min_candidates=0))
    assert ids(engine.search(catalog, "zzzz", "C")) == [4]


def test_broadening_by_prefix(make_recipe):
    recipes = [
        make_recipe(1, "Lecsó", ["paprika", "paradicsom"]),
        make_recipe(2, "Paprikás krumpli", ["paprikás kolbász", "burgonya"]),
        make_recipe(3, "Tea", ["víz"], env=1, nutri=99),
    ]
    engine = RecipeSearchEngine(SearchConfig(min_candidates=3, include_top_sustainable=False))
    results = engine.search(recipes, "papi", "C")
    assert sorted(ids(results)) == [1, 2]


@pytest.mark.parametrize("query,group", [
    ("", "C"),
    ("   ", "B"),
    ("a", "C"),
    (None, "C"),
    (42, "C"),
    ("hagyma", "D"),
    ("hagyma", None),
])
def test_invalid_input_returns_empty(engine, catalog, query, group):
    assert engine.search(catalog, query, group) == []


def test_empty_catalog_returns_empty(engine):
    assert engine.search([], "hagyma", "C") == []
    assert engine.search(None, "hagyma", "C") == []


def test_group_is_case_insensitive(engine, catalog):
    assert ids(engine.search(catalog, "hagyma", "c")) == ids(engine.search(catalog, "hagyma", "C"))


def test_suggest(engine, catalog):
    suggestions = engine.suggest(catalog, "hag")
    assert suggestions[0] == "hagyma"
    assert "fokhagyma" in suggestions
    assert engine.suggest(catalog, "h") == []


def test_find_similar(engine, catalog):
    similar = engine.find_similar(catalog.get(1), catalog)
    # hagyma and só shared out of eight distinct ingredients
    assert similar[0].recipe.id == 5
    assert similar[0].similarity == 0.25
    assert all(item.recipe.id != 1 for item in similar)
    assert all(item.common_ingredients > 0 for item in similar)


def test_filters(engine, catalog):
    assert ids(engine.filter_by_category(catalog, Category.MAIN)) == [2, 5]
    assert len(engine.filter_by_category(catalog, None)) == 6
    assert ids(engine.filter_by_sustainability(catalog, 80)) == [3, 4]


def test_statistics(engine, catalog):
    stats = engine.statistics([catalog.get(1), catalog.get(5)], TestGroup.C)
    assert stats.total_results == 2
    assert stats.avg_sustainability == 52.0
    assert stats.category_distribution == {"soup": 1, "main": 1}
    assert stats.test_group == "C"

    empty = engine.statistics([], "A")
    assert empty.total_results == 0
    assert empty.avg_sustainability is None
