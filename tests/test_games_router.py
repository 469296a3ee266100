"""Tests for the games REST endpoints, run against the in-memory store."""

import pytest
from fastapi.testclient import TestClient

from app.main import app

from .conftest import create_map_layout

GAMES = "/api/v1/games"


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _create(client: TestClient, slots: list[str], variant: str = "conquest") -> dict:
    response = client.post(
        GAMES,
        json={
            "variant": variant,
            "player_name": "Alice",
            "map_layout": create_map_layout().model_dump(mode="json"),
            "slots": slots,
            "max_turns": 10,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["game"]


def _active_game(client: TestClient) -> str:
    game_id = _create(client, ["human", "open"])["game_id"]
    response = client.post(f"{GAMES}/{game_id}/join", json={"player_name": "Bob", "slot_index": 1})
    assert response.status_code == 200, response.text
    return game_id


class TestLobbyEndpoints:
    """Test creating, listing and joining games over HTTP."""

    def test_create_game(self, client: TestClient):
        game = _create(client, ["human", "open", "off"])

        assert game["status"] == "pending"
        assert game["players"][0]["name"] == "Alice"
        assert game["state"] is None

    def test_invalid_configuration(self, client: TestClient):
        response = client.post(
            GAMES,
            json={
                "player_name": "Alice",
                "map_layout": create_map_layout().model_dump(mode="json"),
                "slots": ["human", "off"],
            },
        )
        assert response.status_code == 400

    def test_request_validation(self, client: TestClient):
        response = client.post(GAMES, json={"player_name": "", "slots": ["human"]})
        assert response.status_code == 422

    def test_list_open_games(self, client: TestClient):
        game_id = _create(client, ["human", "open"])["game_id"]

        response = client.get(GAMES)

        assert response.status_code == 200
        assert game_id in [g["game_id"] for g in response.json()["games"]]

    def test_join_starts_game(self, client: TestClient):
        game_id = _active_game(client)

        game = client.get(f"{GAMES}/{game_id}").json()["game"]
        assert game["status"] == "active"
        assert game["state"]["current_player_slot"] == 0

    def test_join_taken_name(self, client: TestClient):
        game_id = _create(client, ["human", "open"])["game_id"]
        response = client.post(
            f"{GAMES}/{game_id}/join", json={"player_name": "Alice", "slot_index": 1}
        )
        assert response.status_code == 400

    def test_start_fills_with_ai(self, client: TestClient):
        game_id = _create(client, ["human", "open", "open"])["game_id"]

        response = client.post(f"{GAMES}/{game_id}/start")

        assert response.status_code == 200
        game = response.json()["game"]
        assert game["status"] == "active"
        assert [p["is_ai"] for p in game["players"]] == [False, True, True]

    def test_quit_deletes_abandoned_game(self, client: TestClient):
        game_id = _create(client, ["human", "open"])["game_id"]

        response = client.post(f"{GAMES}/{game_id}/quit", json={"player_slot": 0})

        assert response.status_code == 200
        assert client.get(f"{GAMES}/{game_id}").status_code == 404

    def test_unknown_game(self, client: TestClient):
        assert client.get(f"{GAMES}/does-not-exist").status_code == 404


class TestCommandEndpoints:
    """Test in-game commands over HTTP."""

    def test_move_out_of_turn(self, client: TestClient):
        game_id = _active_game(client)
        before = client.get(f"{GAMES}/{game_id}").json()["game"]

        response = client.post(
            f"{GAMES}/{game_id}/move",
            json={"player_slot": 1, "source": 3, "destination": 2, "count": 1},
        )

        assert response.status_code == 400
        assert client.get(f"{GAMES}/{game_id}").json()["game"] == before

    def test_move_captures_empty_region(self, client: TestClient):
        game_id = _active_game(client)

        response = client.post(
            f"{GAMES}/{game_id}/move",
            json={"player_slot": 0, "source": 0, "destination": 1, "count": 2},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["game"]["state"]["owners_by_region"]["1"] == 0
        assert body["events"][0]["event_type"] == "army_moved"
        assert body["deferred"] is False

    def test_deferred_move(self, client: TestClient):
        game_id = _active_game(client)

        response = client.post(
            f"{GAMES}/{game_id}/move",
            json={"player_slot": 0, "source": 0, "destination": 1, "count": 2, "defer_write": True},
        )

        assert response.json()["deferred"] is True
        game = client.get(f"{GAMES}/{game_id}").json()["game"]
        assert game["state"]["owners_by_region"]["1"] == 0

    def test_build_without_resources(self, client: TestClient):
        game_id = _active_game(client)

        response = client.post(
            f"{GAMES}/{game_id}/build",
            json={"player_slot": 0, "region": 0, "upgrade": "fire"},
        )
        assert response.status_code == 400

    def test_end_turn(self, client: TestClient):
        game_id = _active_game(client)

        response = client.post(f"{GAMES}/{game_id}/end-turn", json={"player_slot": 0})

        assert response.status_code == 200
        assert response.json()["game"]["state"]["current_player_slot"] == 1

    def test_resign_completes_game(self, client: TestClient):
        game_id = _active_game(client)

        response = client.post(f"{GAMES}/{game_id}/resign", json={"player_slot": 1})

        assert response.status_code == 200
        game = response.json()["game"]
        assert game["status"] == "completed"
        assert game["state"]["end_result"]["winner_slot"] == 0

        again = client.post(f"{GAMES}/{game_id}/end-turn", json={"player_slot": 0})
        assert again.status_code == 400

    def test_command_on_pending_game(self, client: TestClient):
        game_id = _create(client, ["human", "open"])["game_id"]
        response = client.post(f"{GAMES}/{game_id}/end-turn", json={"player_slot": 0})
        assert response.status_code == 400


class TestHealth:
    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
