"""
Tests for the HTTP surface: game creation, commands, rejections and queries.
"""

import pytest
from fastapi.testclient import TestClient

from uprising.api.main import app, games
from uprising.engine import DOMINION, LIBERATION, PHASE_COMMAND


@pytest.fixture
def client():
    games.clear()
    yield TestClient(app)
    games.clear()


@pytest.fixture
def game(client):
    response = client.post("/games", json={"game_id": "g1", "seed": 7})
    assert response.status_code == 200
    return "g1"


class TestGames:

    def test_create_game(self, client):
        response = client.post("/games", json={"game_id": "alpha", "seed": 1})
        body = response.json()
        assert body["game_id"] == "alpha"
        assert body["summary"]["turn"] == 1
        assert body["summary"]["active_player"] == LIBERATION
        assert body["summary"]["liberation_base"] is None
        assert "alpha" in games

    def test_generated_game_id(self, client):
        body = client.post("/games", json={}).json()
        assert len(body["game_id"]) == 8

    def test_seeded_games_match(self, client):
        first = client.post("/games", json={"game_id": "a", "seed": 3}).json()
        second = client.post("/games", json={"game_id": "b", "seed": 3}).json()
        assert first["state"] == second["state"]

    def test_duplicate_game_id(self, client, game):
        response = client.post("/games", json={"game_id": game})
        assert response.status_code == 400

    def test_unknown_game(self, client):
        assert client.get("/games/missing").status_code == 404
        assert client.post("/games/missing/pass-assignment").status_code == 404

    def test_unknown_setup(self, client):
        response = client.post("/games", json={"setup_id": "no_such_setup"})
        assert response.status_code == 404

    def test_setups_and_definitions(self, client):
        assert {"id": "standard", "display_name": "Galactic Uprising (standard)"} in client.get("/setups").json()["setups"]
        definitions = client.get("/definitions").json()
        assert definitions["setup_id"] == "standard"
        assert len(definitions["systems"]) == 32
        assert definitions["missions"]["lib_m9"]["effect"] == "guerrilla"


class TestCommands:

    def test_passing_through_a_turn(self, client, game):
        client.post(f"/games/{game}/pass-assignment")
        body = client.post(f"/games/{game}/pass-assignment").json()
        assert body["summary"]["phase"] == PHASE_COMMAND
        assert body["summary"]["active_player"] == LIBERATION

        body = client.post(f"/games/{game}/pass-command").json()

        assert body["summary"]["turn"] == 2
        assert "turn_started" in [e["type"] for e in body["events"]]

    def test_rejection_carries_reason(self, client, game):
        response = client.post(f"/games/{game}/pass-assignment", json={"faction": DOMINION})
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "not_your_turn"

    def test_invalid_assignment(self, client, game):
        response = client.post(f"/games/{game}/assign", json={"leader_id": "dom_l1", "mission_id": "lib_m2"})
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "invalid_leader_or_mission"

    def test_assign_from_eligible_list(self, client, game):
        actions = client.get(f"/games/{game}/available-actions").json()
        eligible = next(l for l in actions["eligible_leaders"] if l["missions"])

        response = client.post(f"/games/{game}/assign", json={
            "leader_id": eligible["leader_id"],
            "mission_id": eligible["missions"][0],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["active_player"] == DOMINION
        assert body["events"][0]["type"] == "leader_assigned"

    def test_combat_command_without_combat(self, client, game):
        client.post(f"/games/{game}/pass-assignment")
        client.post(f"/games/{game}/pass-assignment")
        response = client.post(f"/games/{game}/combat/round")
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "no_active_combat"

    def test_wrong_phase_move(self, client, game):
        response = client.post(f"/games/{game}/move", json={
            "from_system": "throne_world",
            "to_system": "nexus_prime",
            "unit_instance_ids": [],
        })
        assert response.json()["detail"]["reason"] == "wrong_phase"


class TestQueries:

    def test_available_actions(self, client, game):
        body = client.get(f"/games/{game}/available-actions").json()
        assert body["phase"] == "assignment"
        assert body["action_types"] == ["assign_leader", "pass_assignment"]
        assert body["tactic_cards"] == {}
        assert all(l["leader_id"].startswith("lib_") for l in body["eligible_leaders"])

    def test_adjacent(self, client, game):
        body = client.get(f"/games/{game}/systems/fern_haven/adjacent").json()
        assert body["adjacent"] == ["sylvan_prime", "emerald_gate", "azure_haven"]
        assert client.get(f"/games/{game}/systems/nowhere/adjacent").status_code == 404

    def test_units(self, client, game):
        body = client.get(f"/games/{game}/systems/throne_world/units", params={"faction": DOMINION}).json()
        assert len(body["units"]["space"]) == 6
        assert len(body["units"]["ground"]) == 4
        assert body["opposing_forces"] is False

    def test_units_unknown_system(self, client, game):
        response = client.get(f"/games/{game}/systems/nowhere/units", params={"faction": DOMINION})
        assert response.status_code == 404

    def test_leaders(self, client, game):
        body = client.get(f"/games/{game}/systems/throne_world/leaders", params={"faction": DOMINION}).json()
        assert [l["name"] for l in body["leaders"]] == ["Grand Regent Voss", "Admiral Krath"]

    def test_combat_cards_without_combat(self, client, game):
        body = client.get(f"/games/{game}/combat/cards", params={"faction": LIBERATION}).json()
        assert body["cards"] == []

    def test_log_limit(self, client, game):
        full = client.get(f"/games/{game}/log").json()["log"]
        assert full[0]["message"].startswith("The galaxy stands on the brink")
        recent = client.get(f"/games/{game}/log", params={"limit": 1}).json()["log"]
        assert recent == full[-1:]
        assert client.get(f"/games/{game}/log", params={"limit": 0}).json()["log"] == []
