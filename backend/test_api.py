import pytest
from fastapi.testclient import TestClient

from ecoscore.main import app


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "running"
    assert body["recipes"] == 6
    assert body["degraded_catalog"] is True


def test_list_recipes_with_filters(client):
    assert len(client.get("/recipes").json()) == 6
    mains = client.get("/recipes", params={"category": "main"}).json()
    assert [r["id"] for r in mains] == [2, 5]
    sustainable = client.get("/recipes", params={"min_sustainability": 80}).json()
    assert [r["id"] for r in sustainable] == [3, 4]
    assert client.get("/recipes", params={"category": "breakfast-ish"}).status_code == 422


def test_recipe_detail(client):
    response = client.get("/recipes/1")
    assert response.status_code == 200
    body = response.json()
    assert body["recipe"]["sustainability_index"] == 79.0
    assert body["evaluation"]["label"] == "Excellent sustainable choice"
    assert body["environmental_label"]["label"] == "Environmentally friendly"
    assert body["breakdown"]["category_modifier"] == 3.0


def test_unknown_recipe(client):
    assert client.get("/recipes/999").status_code == 404
    assert client.get("/recipes/999/alternatives").status_code == 404


def test_search_group_c(client):
    response = client.post("/search", json={"query": "marha, hagyma, paprika", "test_group": "c"})
    assert response.status_code == 200
    body = response.json()
    assert body["test_group"] == "C"
    assert [item["id"] for item in body["results"]] == [4, 3, 1, 5]
    assert [item["rank"] for item in body["results"]] == [1, 2, 3, 4]
    assert body["results"][0]["sustainability_index"] == 85.0
    assert body["results"][0]["evaluation"]["icon"]
    assert body["statistics"]["total_results"] == 4
    assert body["degraded_catalog"] is True


def test_search_group_a_hides_scores(client):
    body = client.post("/search", json={"query": "marha, hagyma, paprika", "test_group": "A"}).json()
    assert sorted(item["id"] for item in body["results"]) == [1, 3, 4, 5]
    for item in body["results"]:
        assert item["sustainability_index"] is None
        assert item["evaluation"] is None
    assert body["statistics"]["avg_sustainability"] is None


def test_search_validation(client):
    assert client.post("/search", json={"query": "  ", "test_group": "C"}).status_code == 422
    assert client.post("/search", json={"query": "hagyma", "test_group": "X"}).status_code == 422


def test_search_suggestions(client):
    suggestions = client.get("/search/suggestions", params={"q": "hag"}).json()
    assert suggestions[0] == "hagyma"


def participant_in(client, group):
    # groups follow the hash of a random id, so register until one lands in the group
    for attempt in range(200):
        participant = client.post("/participants", json={"email": f"group{group}-{attempt}@example.org"}).json()
        if participant["test_group"] == group:
            return participant
    raise AssertionError(f"no participant assigned to group {group}")


def test_explanation_only_for_group_c(client):
    for group in ("A", "B"):
        participant = participant_in(client, group)
        response = client.get("/recipes/5/explanation", params={"participant_id": participant["id"]})
        assert response.status_code == 403

    participant = participant_in(client, "C")
    response = client.get("/recipes/5/explanation", params={"participant_id": participant["id"]})
    assert response.status_code == 200
    body = response.json()
    names = [f["name"] for f in body["environmental_factors"]]
    assert "beef" in names
    assert 1 <= len(body["suggestions"]) <= 3


def test_explanation_requires_known_participant(client):
    assert client.get("/recipes/5/explanation", params={"participant_id": "missing"}).status_code == 404
    assert client.get("/recipes/5/explanation").status_code == 422
    participant = participant_in(client, "C")
    assert client.get("/recipes/999/explanation", params={"participant_id": participant["id"]}).status_code == 404


def test_alternative_comparison(client):
    response = client.get("/recipes/5/alternatives/2/comparison")
    assert response.status_code == 200
    body = response.json()
    assert body["current_score"] == 25.0
    assert body["improved_score"] == 49.1
    assert body["difference"] == 24.1
    assert body["water_liters"]["reduction"] == pytest.approx(241.0)
    assert client.get("/recipes/5/alternatives/999/comparison").status_code == 404


def test_similar_alternatives_and_substitutions(client):
    similar = client.get("/recipes/1/similar").json()
    assert similar and all(item["recipe"]["id"] != 1 for item in similar)

    alternatives = client.get("/recipes/5/alternatives").json()
    assert [a["recipe"]["id"] for a in alternatives] == [2]

    substitutions = client.get("/recipes/5/substitutions").json()
    assert substitutions[0]["original"] == "marhahús"


def test_participant_flow(client):
    response = client.post("/participants", json={"email": "flow@example.org"})
    assert response.status_code == 201
    participant = response.json()
    assert participant["test_group"] in ("A", "B", "C")

    session = client.get(f"/participants/{participant['id']}").json()
    assert session["session_count"] == 2

    choice = client.post("/choices", json={
        "participant_id": participant["id"],
        "recipe_id": 4,
        "rank": 1,
        "query": "lencse",
        "decision_time": 3.5
    })
    assert choice.status_code == 201
    assert choice.json()["recipe_name"] == "Lencsefőzelék"

    stats = client.get("/choices/stats", params={"participant_id": participant["id"]}).json()
    assert stats["total_choices"] == 1
    assert stats["time_distribution"]["daily"]
    assert stats["sustainability_trend"] == []

    impact = client.get("/choices/impact", params={"participant_id": participant["id"]}).json()
    assert impact["avg_impact"] == 85.0
    assert impact["carbon_saved_kg"] == 0.88

    behavior = client.get("/choices/behavior", params={"participant_id": participant["id"]}).json()
    assert behavior["preferred_categories"] == [{"category": "side", "count": 1, "percentage": 100}]
    assert behavior["sustainability_awareness"] == "high"
    assert behavior["engagement_level"] == "low"

    groups = client.get("/choices/groups").json()
    assert [g["test_group"] for g in groups] == ["A", "B", "C"]


def test_participant_errors(client):
    assert client.post("/participants", json={"email": "nobody"}).status_code == 422
    assert client.post("/participants", json={"email": "a@b"}).status_code == 400
    assert client.get("/participants/missing").status_code == 404
    assert client.post("/choices", json={
        "participant_id": "missing", "recipe_id": 1, "rank": 1, "decision_time": 1.0
    }).status_code == 404
