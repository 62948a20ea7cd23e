"""Tests for FastAPI server."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient
from server.main import app, games


@pytest.fixture(autouse=True)
def clear_games():
    """Clear games before each test."""
    games.clear()
    yield
    games.clear()


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def create(client, **options):
    response = client.post("/games", json=options)
    assert response.status_code == 200
    return response.json()["game_id"]


def hotseat(client):
    return create(client, player1_type="human", player2_type="human", seed=7)


class TestHealthEndpoint:
    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"


class TestCreateGame:
    def test_create_game_default(self, client):
        response = client.post("/games")
        assert response.status_code == 200
        data = response.json()
        assert "game_id" in data
        assert len(data["game_id"]) == 8

    def test_create_game_with_options(self, client):
        game_id = create(client, player1_type="ai", player2_type="human", search_depth=2, seed=1)
        data = client.get(f"/games/{game_id}").json()
        assert data["player_types"] == ["ai", "human"]

    def test_invalid_player_type(self, client):
        response = client.post("/games", json={"player1_type": "robot"})
        assert response.status_code == 400

    def test_invalid_depth(self, client):
        response = client.post("/games", json={"search_depth": 0})
        assert response.status_code == 422

    def test_create_multiple_games(self, client):
        r1 = client.post("/games")
        r2 = client.post("/games")
        assert r1.json()["game_id"] != r2.json()["game_id"]

    def test_seed_fixes_targets(self, client):
        first = client.get(f"/games/{create(client, seed=42)}").json()
        second = client.get(f"/games/{create(client, seed=42)}").json()
        assert first["targets"] == second["targets"]
        assert first["targets"]["1"] != first["targets"]["2"]


class TestGetGame:
    def test_get_game(self, client):
        game_id = create(client)

        response = client.get(f"/games/{game_id}")
        assert response.status_code == 200
        data = response.json()

        assert data["game_id"] == game_id
        assert data["turn"] == 1
        assert data["phase"] == "placement"
        assert data["move_count"] == 0
        assert data["status"] == "playing"
        assert data["winner"] is None
        assert data["ai_pending"] is False
        assert len(data["cells"]) == 16
        assert len(data["legal_moves"]) == 96
        assert data["stock"]["1"] == {"yellow_red": 3, "blue_yellow": 3, "red_blue": 3}

    def test_get_nonexistent_game(self, client):
        response = client.get("/games/nonexistent")
        assert response.status_code == 404


class TestHumanActions:
    def test_place(self, client):
        game_id = hotseat(client)
        response = client.post(f"/games/{game_id}/place", json={
            "cell": "b2", "pair_type": "yellow_red", "flipped": True
        })
        assert response.status_code == 200
        data = response.json()

        cell = next(c for c in data["cells"] if c["cell"] == "b2")
        assert cell["front"] == "red"
        assert cell["back"] == "yellow"
        assert cell["owner"] == 1
        assert data["turn"] == 2
        assert data["move_count"] == 1
        assert data["stock"]["1"]["yellow_red"] == 2

    def test_place_on_occupied_cell(self, client):
        game_id = hotseat(client)
        client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "YR"})

        response = client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "RB"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "occupied_cell"
        assert client.get(f"/games/{game_id}").json()["turn"] == 2

    def test_invalid_cell(self, client):
        game_id = hotseat(client)
        response = client.post(f"/games/{game_id}/place", json={"cell": "e9", "pair_type": "YR"})
        assert response.status_code == 400

    def test_invalid_pair_type(self, client):
        game_id = hotseat(client)
        response = client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "green"})
        assert response.status_code == 400

    def test_move_and_flip(self, client):
        game_id = hotseat(client)
        client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "blue_yellow"})

        response = client.post(f"/games/{game_id}/move", json={"src": "a1", "dst": "b1"})
        assert response.status_code == 200

        response = client.post(f"/games/{game_id}/flip", json={"cell": "b1"})
        assert response.status_code == 200
        data = response.json()
        cell = next(c for c in data["cells"] if c["cell"] == "b1")
        assert cell["front"] == "yellow"
        assert cell["owner"] == 1
        assert data["move_count"] == 1

    def test_move_from_empty_cell(self, client):
        game_id = hotseat(client)
        response = client.post(f"/games/{game_id}/move", json={"src": "c3", "dst": "c4"})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "empty_cell"

    def test_move_two_steps(self, client):
        game_id = hotseat(client)
        client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "YR"})
        response = client.post(f"/games/{game_id}/move", json={"src": "a1", "dst": "c1"})
        assert response.json()["detail"]["code"] == "illegal_adjacency"

    def test_not_human_turn(self, client):
        game_id = create(client, search_depth=1)
        client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "YR"})
        response = client.post(f"/games/{game_id}/place", json={"cell": "b1", "pair_type": "YR"})
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "not_human_turn"

    def test_move_on_nonexistent_game(self, client):
        response = client.post("/games/nonexistent/flip", json={"cell": "a1"})
        assert response.status_code == 404


class TestAIMove:
    def test_ai_move(self, client):
        game_id = create(client, search_depth=1)
        client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "YR"})

        response = client.post(f"/games/{game_id}/ai")
        assert response.status_code == 200
        data = response.json()

        assert data["move"] is not None
        assert data["passed"] is False
        assert data["depth"] == 1
        assert data["nodes"] > 0
        assert 0 < len(data["top_moves"]) <= 5
        assert data["top_moves"][0]["move"] == data["move"]
        assert data["game_state"]["turn"] == 1
        assert data["game_state"]["move_count"] == 2

    def test_ai_move_on_finished_game(self, client):
        game_id = create(client, search_depth=1)
        games[game_id].controller.state.winner = 1

        response = client.post(f"/games/{game_id}/ai")

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "game_already_won"

    def test_ai_passes_without_moves(self, client):
        game_id = create(client, player1_type="ai", search_depth=1)
        games[game_id].controller.state.stock[0, :] = 0

        response = client.post(f"/games/{game_id}/ai")

        assert response.status_code == 200
        data = response.json()
        assert data["passed"] is True
        assert data["move"] is None
        assert data["game_state"]["turn"] == 2

    def test_ai_move_on_nonexistent_game(self, client):
        response = client.post("/games/nonexistent/ai")
        assert response.status_code == 404


class TestReset:
    def test_reset(self, client):
        game_id = hotseat(client)
        client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "YR"})

        response = client.post(f"/games/{game_id}/reset")

        assert response.status_code == 200
        data = response.json()
        assert data["move_count"] == 0
        assert data["turn"] == 1
        assert all(c["owner"] is None for c in data["cells"])


class TestLegalMoves:
    def test_get_legal_moves(self, client):
        game_id = hotseat(client)
        client.post(f"/games/{game_id}/place", json={"cell": "a1", "pair_type": "YR"})
        client.post(f"/games/{game_id}/place", json={"cell": "d4", "pair_type": "RB"})

        response = client.get(f"/games/{game_id}/legal-moves")
        assert response.status_code == 200
        moves = response.json()["moves"]

        assert moves[0] == {"move": "YR@b1", "type": "place"}
        kinds = {m["type"] for m in moves}
        assert kinds == {"place", "move", "flip"}
        assert {"move": "~a1", "type": "flip"} in moves
        assert {"move": "a1-a2", "type": "move"} in moves

    def test_legal_moves_nonexistent_game(self, client):
        response = client.get("/games/nonexistent/legal-moves")
        assert response.status_code == 404


class TestMoveConversion:
    def test_convert_place(self, client):
        response = client.get("/util/move", params={"notation": "ry@c2"})
        assert response.status_code == 200
        data = response.json()

        assert data["notation"] == "RY@c2"
        assert data["type"] == "place"
        assert data["cell"] == "c2"
        assert data["pair_type"] == "yellow_red"
        assert data["flipped"] is True

    def test_convert_shift(self, client):
        data = client.get("/util/move", params={"notation": "a1-b1"}).json()
        assert data["type"] == "move"
        assert data["cell"] == "a1"
        assert data["target"] == "b1"

    def test_convert_invalid(self, client):
        response = client.get("/util/move", params={"notation": "invalid"})
        assert response.status_code == 400


class TestWebSocket:
    def test_websocket_connect(self, client):
        game_id = create(client)

        with client.websocket_connect(f"/games/{game_id}/ws") as ws:
            data = ws.receive_json()
            assert data["type"] == "state"
            assert data["data"]["game_id"] == game_id

    def test_websocket_place(self, client):
        game_id = hotseat(client)

        with client.websocket_connect(f"/games/{game_id}/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "place", "data": {"cell": "a1", "pair_type": "YR"}})

            update = ws.receive_json()
            assert update["type"] == "state"
            assert update["data"]["turn"] == 2

    def test_websocket_ai_replies(self, client):
        game_id = create(client, search_depth=1)

        with client.websocket_connect(f"/games/{game_id}/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "place", "data": {"notation": "YR@a1"}})

            after_human = ws.receive_json()
            assert after_human["data"]["move_count"] == 1

            after_ai = ws.receive_json()
            assert after_ai["type"] == "state"
            assert after_ai["data"]["move_count"] == 2
            assert after_ai["data"]["turn"] == 1

    def test_websocket_rejected_move(self, client):
        game_id = hotseat(client)

        with client.websocket_connect(f"/games/{game_id}/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "flip", "data": {"cell": "a1"}})

            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["data"]["code"] == "EMPTY_CELL"

    def test_websocket_unknown_message(self, client):
        game_id = create(client)

        with client.websocket_connect(f"/games/{game_id}/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "undo"})

            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["data"]["code"] == "INVALID_REQUEST"

    def test_websocket_nonexistent_game(self, client):
        with pytest.raises(Exception):
            with client.websocket_connect("/games/nonexistent/ws"):
                pass
