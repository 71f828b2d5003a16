import math
import random

import pytest

from ecoscore.utils.helpers import (
    clamp,
    count_common_elements,
    normalize_ingredients,
    preprocess_query,
    retry_with_backoff,
    round_half_up,
    shuffled,
    simple_hash,
    to_float,
)
from ecoscore.utils.validators import validate_email, validate_recipe_id, validate_recipe_record


def test_normalize_ingredients_plain_list():
    assert normalize_ingredients("Marhahús, hagyma;  Só ") == ["marhahús", "hagyma", "só"]


def test_normalize_ingredients_r_list_literal():
    raw = 'c("lencse", "hagyma", "fokhagyma")'
    assert normalize_ingredients(raw) == ["lencse", "hagyma", "fokhagyma"]


def test_normalize_ingredients_drops_short_and_invalid():
    assert normalize_ingredients("a, bors, ,") == ["bors"]
    assert normalize_ingredients(None) == []
    assert normalize_ingredients(42) == []


def test_preprocess_query_dedupes_and_splits():
    assert preprocess_query("Marha, hagyma & marha + paprika") == ["marha", "hagyma", "paprika"]
    assert preprocess_query("a") == []
    assert preprocess_query(None) == []


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(78.98, 1) == 79.0
    assert round_half_up(1.25, 1) == 1.3


def test_clamp_and_to_float():
    assert clamp(120) == 100
    assert clamp(-5) == 0
    assert clamp(float("nan")) == 0
    assert to_float("12.5") == 12.5
    assert to_float(None) is None
    assert to_float("abc") is None
    assert to_float(True) is None
    assert to_float(math.inf) is None


def test_simple_hash_is_stable():
    assert simple_hash("abc") == 96354
    assert simple_hash("participant") == simple_hash("participant")
    assert simple_hash("") == 0


def test_shuffled_keeps_members():
    items = list(range(10))
    result = shuffled(items, random.Random(1))
    assert sorted(result) == items
    assert items == list(range(10))


def test_count_common_elements():
    assert count_common_elements(["Hagyma", "só"], ["hagyma", "bors", "só"]) == 2


def test_retry_with_backoff_retries_then_succeeds():
    calls = []
    delays = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("down")
        return "ok"

    assert retry_with_backoff(flaky, max_attempts=3, base_delay=1.0, sleep=delays.append) == "ok"
    assert delays == [1.0, 2.0]


def test_retry_with_backoff_gives_up():
    delays = []

    def broken():
        raise TimeoutError("slow")

    with pytest.raises(TimeoutError):
        retry_with_backoff(broken, max_attempts=2, base_delay=0.5, sleep=delays.append)
    assert delays == [0.5]


def test_retry_with_backoff_respects_deadline():
    delays = []
    now = [0.0]

    def fake_sleep(seconds):
        delays.append(seconds)
        now[0] += seconds

    def broken():
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        retry_with_backoff(
            broken,
            max_attempts=5,
            base_delay=1.0,
            deadline=2.5,
            sleep=fake_sleep,
            clock=lambda: now[0]
        )
    # 1s fits in the budget, the following 2s wait would exceed it
    assert delays == [1.0]


def test_validate_recipe_id():
    assert validate_recipe_id(5) == 5
    assert validate_recipe_id("12") == 12
    assert validate_recipe_id(3.0) == 3
    for bad in (None, 0, -1, "x1", 2.5, True, [1]):
        with pytest.raises(ValueError):
            validate_recipe_id(bad)


def test_validate_recipe_record():
    record = validate_recipe_record({"recipeid": "7", "name": "Leves"})
    assert record["id"] == 7
    assert validate_recipe_record({"id": 1, "name": 12})["name"] is None
    assert validate_recipe_record({"id": 2, "ingredients": ["lencse", 3, "hagyma"]})["ingredients"] == "lencse, hagyma"
    with pytest.raises(ValueError):
        validate_recipe_record(["not", "a", "record"])


def test_validate_email():
    assert validate_email("  Someone@Example.org ") == "someone@example.org"
    for bad in ("", "   ", "no-at-sign", "a@b", "a b@c.hu"):
        with pytest.raises(ValueError):
            validate_email(bad)
