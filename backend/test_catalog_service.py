import json

import pytest
import requests

from ecoscore.models.recipe import Category
from ecoscore.services.catalog_service import (
    CatalogService,
    CatalogUnavailableError,
    RecipeCatalog,
)


def test_fixture_catalog_is_prepared(catalog):
    assert len(catalog) == 6
    assert not catalog.degraded

    soup = catalog.get(1)
    assert soup.category == Category.SOUP
    assert soup.sustainability_index == 79.0
    assert soup.ingredients == ("paradicsom", "hagyma", "só", "bors", "fokhagyma")

    lentils = catalog.get(4)
    assert lentils.category == Category.SIDE
    assert lentils.ingredients[0] == "lencse"
    assert lentils.sustainability_index == 85.0

    stew = catalog.get(5)
    assert stew.category == Category.MAIN
    assert stew.sustainability_index == 25.0


def test_catalog_lookup_and_ordering(catalog):
    assert catalog.get(999) is None
    assert [recipe.id for recipe in catalog] == [1, 2, 3, 4, 5, 6]
    # 3 and 4 tie at 85.0, the lower environmental score wins
    assert [r.id for r in catalog.top_sustainable(3)] == [4, 3, 1]
    assert [r.id for r in catalog.top_sustainable(2, exclude={4})] == [3, 1]
    assert catalog.category_counts()["main"] == 2


def test_prepare_drops_invalid_records(catalog_service):
    records = [
        {"id": 1, "name": "Jó", "ingredients": "lencse, hagyma", "env_score": 10, "nutri_score": 80},
        {"id": 1, "name": "Duplikált", "ingredients": "lencse", "env_score": 10, "nutri_score": 80},
        {"id": -3, "name": "Negatív", "env_score": 10, "nutri_score": 80},
        {"id": "abc", "name": "Szöveges", "env_score": 10, "nutri_score": 80},
        {"id": 4, "name": "Pontszám nélkül", "ingredients": "só"},
        {"id": 5, "name": "Nullás", "env_score": 0, "nutri_score": 0},
        "not a record",
    ]
    prepared = catalog_service.prepare(records)
    assert [recipe.id for recipe in prepared] == [1]
    assert prepared.get(1).name == "Jó"


def test_prepare_coerces_non_text_fields(catalog_service):
    prepared = catalog_service.prepare([
        {"id": 1, "name": "Lencse", "ingredients": ["lencse", "hagyma"], "env_score": 10, "nutri_score": 80},
        {"id": 2, "name": 12, "ingredients": {"lencse": 1}, "category": 3, "env_score": 10, "nutri_score": 80},
    ])
    assert len(prepared) == 2
    assert prepared.get(1).ingredients == ("lencse", "hagyma")
    assert prepared.get(1).ingredients_raw == "lencse, hagyma"

    garbled = prepared.get(2)
    assert garbled.name == "Recipe #2"
    assert garbled.ingredients == ()
    assert garbled.category == Category.OTHER


def test_prepare_single_missing_score_is_low_confidence(catalog_service):
    prepared = catalog_service.prepare([
        {"id": 1, "name": "Csak env", "ingredients": "hagyma", "env_score": 30},
        {"id": 2, "name": "Csak nutri", "ingredients": "hagyma", "nutri_score": "70"},
    ])
    only_env, only_nutri = prepared.get(1), prepared.get(2)
    assert only_env.low_confidence and only_nutri.low_confidence
    assert only_env.nutri_score == 0.0
    assert only_nutri.env_score == 0.0
    assert only_nutri.nutri_score == 70.0


def test_prepare_defaults_and_clamps(catalog_service):
    prepared = catalog_service.prepare([
        {"recipeid": "9", "ingredients": "uborka", "env_score": 140, "nutri_score": -5,
         "sustainability_index": 99},
    ])
    recipe = prepared.get(9)
    assert recipe.name == "Recipe #9"
    assert recipe.env_score == 100.0
    assert recipe.nutri_score == 0.0
    assert recipe.low_confidence
    # the supplied index is always recomputed
    assert recipe.sustainability_index == 5.0


def test_load_reads_local_file(scorer, tmp_path):
    path = tmp_path / "recipes.json"
    path.write_text(json.dumps([
        {"id": 10, "name": "Babgulyás", "ingredients": "bab, hagyma", "category": "leves",
         "env_score": 20, "nutri_score": 70}
    ]), encoding="utf-8")

    catalog = CatalogService(scorer, source=str(path)).load()
    assert not catalog.degraded
    assert [recipe.id for recipe in catalog] == [10]


@pytest.mark.parametrize("content", ["{not json", json.dumps({"recipes": []}), json.dumps([{"id": -1}])])
def test_load_falls_back_on_bad_content(scorer, tmp_path, content):
    path = tmp_path / "recipes.json"
    path.write_text(content, encoding="utf-8")

    catalog = CatalogService(scorer, source=str(path)).load()
    assert catalog.degraded
    assert len(catalog) == 6


def test_load_falls_back_on_missing_file(catalog_service):
    catalog = catalog_service.load()
    assert catalog.degraded
    assert catalog.get(5).name == "Marhapörkölt"


def test_fetch_records_wraps_network_errors(scorer, monkeypatch):
    def unreachable(*args, **kwargs):
        raise requests.exceptions.ConnectionError("no route to host")

    monkeypatch.setattr(requests, "get", unreachable)
    service = CatalogService(scorer, source="https://example.org/recipes.json", timeout=1)

    with pytest.raises(CatalogUnavailableError):
        service.fetch_records()
    assert service.load().degraded


def test_fetch_records_over_http(scorer, monkeypatch):
    class FakeResponse:
        def raise_for_status(self):
            pass

        def json(self):
            return [{"id": 3, "name": "Saláta", "ingredients": "uborka", "env_score": 10, "nutri_score": 60}]

    monkeypatch.setattr(requests, "get", lambda *args, **kwargs: FakeResponse())
    catalog = CatalogService(scorer, source="https://example.org/recipes.json").load()
    assert [recipe.category for recipe in catalog] == [Category.SALAD]


def test_empty_catalog_is_falsy():
    assert not RecipeCatalog([])
    assert len(RecipeCatalog([])) == 0
