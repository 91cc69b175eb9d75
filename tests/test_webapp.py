"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from ttdraw.webapp.app import BRACKET_ROUNDS, create_app, match_filters


@pytest.fixture
def client(tmp_path):
    return TestClient(create_app(str(tmp_path / "api.sqlite")))


def add_player(client, firstname, affiliation, seed_rank="-"):
    response = client.post(
        "/users",
        json={
            "firstname": firstname,
            "lastname": "Test",
            "category": "U18",
            "affiliation": affiliation,
            "seed_rank": seed_rank,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def grouped_field(client):
    """Four paid players: two in group A, two in group B."""
    ids = [add_player(client, name, f"Club {name}")["id"] for name in ("Ana", "Ben", "Cal", "Dan")]
    for player_id in ids:
        client.patch(f"/users/{player_id}/approve")
    client.post(
        "/users/groups/assign",
        json={
            "assignments": [
                {"userId": ids[0], "groupName": "A"},
                {"userId": ids[1], "groupName": "A"},
                {"userId": ids[2], "groupName": "B"},
                {"userId": ids[3], "groupName": "B"},
            ]
        },
    )
    return ids


def test_registration_and_payments(client):
    ana = add_player(client, "Ana", "Club Norte", seed_rank="1")
    add_player(client, "Ben", "-")

    assert ana["seed_rank"] == 1
    assert ana["is_paid"] is False
    assert len(client.get("/users/unpaid").json()) == 2

    response = client.patch(f"/users/{ana['id']}/approve")
    assert response.status_code == 200
    assert response.json()["is_paid"] is True

    unpaid = client.get("/users/unpaid").json()
    assert [p["firstname"] for p in unpaid] == ["Ben"]
    assert unpaid[0]["affiliation"] is None

    search = client.get("/users/payments/search", params={"query": "an"}).json()
    assert search == [{"firstname": "Ana", "lastname": "Test", "is_paid": True}]


def test_group_assignment(client):
    ana = add_player(client, "Ana", "Club 1")
    ben = add_player(client, "Ben", "Club 2")
    client.patch(f"/users/{ana['id']}/approve")
    client.patch(f"/users/{ben['id']}/approve")

    available = client.get("/users/groups/available").json()
    assert [p["id"] for p in available] == [ana["id"], ben["id"]]

    response = client.post(
        "/users/groups/assign",
        json={"assignments": [{"userId": ana["id"], "groupName": "A"}, {"userId": ben["id"], "groupName": "B"}]},
    )
    assert response.json() == {"message": "Groups assigned successfully"}

    groups = client.get("/users/groups").json()
    assert list(groups["U18"].keys()) == ["A", "B"]
    assert groups["U18"]["A"][0]["firstname"] == "Ana"
    assert client.get("/users/groups/available").json() == []


def test_draw_scores_and_bracket(client, grouped_field):
    response = client.post("/users/tournament/create-draw")
    assert response.status_code == 200
    assert response.json()["categories"] == ["U18"]
    assert client.post("/users/tournament/create-draw").json()["categories"] == []

    group_a = client.get("/users/matches", params={"category": "U18", "round": "group", "group": "A"}).json()
    assert len(group_a) == 1
    assert group_a[0]["round"] == "group"

    bracket = client.get("/users/matches", params={"category": "U18", "round": "bracket"}).json()
    assert len(bracket) == 15
    assert bracket[0]["match_order"] == 1001

    finals = client.get("/users/matches", params=[("round", "semi"), ("round", "final")]).json()
    assert [m["round"] for m in finals] == ["semi", "semi", "final"]

    response = client.post("/users/tournament/U18/generate-bracket")
    assert response.json() == {"message": "Group stage not completed", "generated": False}

    for match in client.get("/users/matches", params={"category": "U18", "round": "group"}).json():
        response = client.patch(f"/users/matches/{match['id']}/score", json={"player1_score": 3, "player2_score": 1})
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["winner_id"] == match["player1_id"]

    response = client.post("/users/tournament/U18/generate-bracket")
    assert response.json() == {"message": "Bracket generated successfully", "generated": True}

    round16 = client.get("/users/matches", params={"category": "U18", "round": "round16"}).json()
    # Group winners sort first; the strict pass keeps same-group players apart
    ana, ben, cal, dan = grouped_field
    assert (round16[0]["player1_id"], round16[0]["player2_id"]) == (ana, cal)
    assert (round16[1]["player1_id"], round16[1]["player2_id"]) == (ben, dan)

    response = client.post("/users/tournament/U18/generate-bracket")
    assert response.json() == {"message": "Bracket already generated", "generated": False}


def test_error_responses(client):
    assert client.patch("/users/404/approve").status_code == 404
    assert client.patch("/users/matches/404/score", json={"player1_score": 1, "player2_score": 0}).status_code == 404

    response = client.post(
        "/users", json={"firstname": "Ana", "lastname": "Test", "category": "U18", "seed_rank": "first"}
    )
    assert response.status_code == 400
    assert "Seed rank" in response.json()["detail"]

    # Nothing to draw yet
    assert client.post("/users/tournament/create-draw").json()["categories"] == []
    response = client.post("/users/tournament/U18/generate-bracket")
    assert response.json() == {"message": "Tournament not found", "generated": False}


def test_bad_score_status(client, grouped_field):
    client.post("/users/tournament/create-draw")
    match = client.get("/users/matches", params={"round": "group"}).json()[0]

    response = client.patch(
        f"/users/matches/{match['id']}/score",
        json={"player1_score": 3, "player2_score": 0, "status": "abandoned"},
    )

    assert response.status_code == 400


def test_match_filters():
    assert match_filters("U18", "A", ["group"]) == {"category": "U18", "group_name": "A", "round": "group"}
    assert match_filters(None, None, ["bracket"]) == {"category": None, "rounds": BRACKET_ROUNDS}
    assert match_filters(None, None, ["semi", "final"]) == {"category": None, "rounds": ["semi", "final"]}
    assert match_filters("U18", "A", ["round16"]) == {"category": "U18", "round": "round16"}
    assert match_filters("U18", None, []) == {"category": "U18"}


def test_routes_under_users_prefix(client):
    paths = {route.path for route in client.app.routes if route.path.startswith("/users")}

    assert "/users" in paths
    assert "/users/matches" in paths
    assert "/users/tournament/{category}/generate-bracket" in paths
    assert client.get("/players/unpaid").status_code == 404
    assert client.get("/matches").status_code == 404
