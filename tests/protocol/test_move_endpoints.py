from __future__ import annotations

from typing import Optional

from fastapi.testclient import TestClient

from knightmare.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def _new_game(client: TestClient, setup: Optional[str] = None) -> str:
    payload = {"setup": setup} if setup else None
    r = client.post("/api/games", json=payload)
    assert r.status_code == 200
    return r.json()["game_id"]


def test_moves_include_knight_offsets() -> None:
    client = _client()
    game_id = _new_game(client, "7k/8/8/8/8/8/8/R7 w -")
    r = client.get(f"/api/games/{game_id}/moves/a1")
    assert r.status_code == 200
    body = r.json()
    assert body["square"] == "a1"
    assert {"c2", "b3"} <= set(body["destinations"])
    assert len(body["destinations"]) == 16


def test_moves_for_side_not_to_move_need_analysis() -> None:
    client = _client()
    game_id = _new_game(client)
    assert client.get(f"/api/games/{game_id}/moves/e7").json()["destinations"] == []
    r = client.get(f"/api/games/{game_id}/moves/e7", params={"analysis": "true"})
    assert set(r.json()["destinations"]) == {"e6", "e5"}


def test_moves_bad_square_is_400() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.get(f"/api/games/{game_id}/moves/z9")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"


def test_move_updates_state() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"origin": "b1", "destination": "c3"})
    assert r.status_code == 200
    state = r.json()
    assert state["side_to_move"] == "black"
    assert state["last_move"] == "b1c3"
    assert state["move_history"] == ["b1c3"]


def test_illegal_move_is_400_and_changes_nothing() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"origin": "e2", "destination": "e5"})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "bad_request"
    assert err["message"] == "illegal move"
    assert client.get(f"/api/games/{game_id}/state").json()["move_history"] == []


def test_move_missing_field_is_422() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"origin": "e2"})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "unprocessable_entity"
    assert any(fe["field"].endswith("destination") for fe in err["field_errors"])


def test_checkmate_reported_in_state() -> None:
    client = _client()
    game_id = _new_game(client, "7k/8/8/6B1/8/8/8/K7 w -")
    r = client.post(f"/api/games/{game_id}/move", json={"origin": "g5", "destination": "f6"})
    assert r.status_code == 200
    state = r.json()
    assert state["status"] == "checkmate"
    assert state["in_check"] is True


def test_promotion_query_and_choice() -> None:
    client = _client()
    game_id = _new_game(client, "8/4P3/8/8/8/8/8/k3K3 w -")
    r = client.get(
        f"/api/games/{game_id}/promotion", params={"origin": "e7", "destination": "e8"}
    )
    assert r.status_code == 200
    assert r.json() == {"needs_promotion": True}

    r_king = client.post(
        f"/api/games/{game_id}/move",
        json={"origin": "e7", "destination": "e8", "promotion": "king"},
    )
    assert r_king.status_code == 400

    r_ok = client.post(
        f"/api/games/{game_id}/move",
        json={"origin": "e7", "destination": "e8", "promotion": "knight"},
    )
    assert r_ok.status_code == 200
    assert r_ok.json()["setup"].startswith("4N3/")
    assert r_ok.json()["last_move"] == "e7e8n"


def test_capture_listed_in_state() -> None:
    client = _client()
    game_id = _new_game(client)
    for origin, dest in (("e2", "e4"), ("d7", "d5"), ("e4", "d5")):
        r = client.post(f"/api/games/{game_id}/move", json={"origin": origin, "destination": dest})
        assert r.status_code == 200
    assert r.json()["captured"] == {"white": [], "black": ["pawn"]}


def test_perft_endpoint() -> None:
    client = _client()
    r = client.post("/api/perft", json={"depth": 1})
    assert r.status_code == 200
    assert r.json() == {"nodes": 28}

    r_bad = client.post("/api/perft", json={"setup": "nope w", "depth": 1})
    assert r_bad.status_code == 400

    r_deep = client.post("/api/perft", json={"depth": 9})
    assert r_deep.status_code == 422
