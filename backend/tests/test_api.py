import pytest
from fastapi.testclient import TestClient

from pgnbase.api import imports as imports_api
from pgnbase.api.auth import create_token
from pgnbase.config import settings
from pgnbase.main import app
from pgnbase.store import SqlGameStorage, StorageError

API = settings.api_prefix

TWO_GAMES = """[Event "Spring Open"]
[White "Magnus"]
[Black "Hikaru"]
[Result "1-0"]

1. e4 c5 2. Nf3 d6 1-0

[Event "Club Night"]
[White "Anna"]
[Black "Magnus"]
[Result "*"]

1. d4 d5 *
"""


@pytest.fixture
def client():
    return TestClient(app)


def _auth(owner):
    return {"Authorization": f"Bearer {create_token(owner)}"}


@pytest.fixture
def alice():
    return _auth("alice")


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_auth_feature(client):
    assert client.get(f"{API}/auth/feature").json() == {"enabled": True}


def test_game_routes_require_token(client):
    assert client.get(f"{API}/pgn/games").status_code == 401
    response = client.get(f"{API}/pgn/games", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_import_list_filter_and_export(client, alice):
    response = client.post(f"{API}/pgn/games/import-pgn", json={"pgn": TWO_GAMES, "tags": ["club"]}, headers=alice)
    assert response.status_code == 201
    assert response.json()["imported"] == 2

    games = client.get(f"{API}/pgn/games", headers=alice).json()
    assert sorted(g["event"] for g in games) == ["Club Night", "Spring Open"]
    assert all(g["tags"] == ["club"] for g in games)

    filtered = client.get(f"{API}/pgn/games", params={"search_text": "anna"}, headers=alice).json()
    assert [g["white"] for g in filtered] == ["Anna"]
    by_result = client.get(f"{API}/pgn/games", params={"result": "1-0", "tags": ["club"]}, headers=alice).json()
    assert [g["event"] for g in by_result] == ["Spring Open"]

    assert client.get(f"{API}/pgn/games/tags", headers=alice).json() == ["club"]

    exported = client.get(f"{API}/pgn/games/export", headers=alice)
    assert exported.status_code == 200
    assert "1. e4 c5" in exported.text and "1. d4 d5" in exported.text


def test_game_crud(client, alice):
    created = client.post(
        f"{API}/pgn/games",
        json={"white": "Ann", "black": "Ben", "pgn": "1. e4 e5 *", "opening": "King's Pawn Game"},
        headers=alice,
    )
    assert created.status_code == 201
    game = created.json()

    fetched = client.get(f"{API}/pgn/games/{game['id']}", headers=alice)
    assert fetched.json()["white"] == "Ann"
    assert client.get(f"{API}/pgn/games/openings", headers=alice).json() == ["King's Pawn Game"]

    download = client.get(f"{API}/pgn/games/{game['id']}/pgn", headers=alice)
    assert download.text == "1. e4 e5 *"
    assert "Ann_vs_Ben" in download.headers["content-disposition"]

    game["notes"] = "Prepared line"
    updated = client.put(f"{API}/pgn/games/{game['id']}", json=game, headers=alice)
    assert updated.status_code == 200
    assert updated.json()["notes"] == "Prepared line"

    assert client.get(f"{API}/pgn/games/{game['id']}", headers=_auth("bob")).status_code == 404

    assert client.delete(f"{API}/pgn/games/{game['id']}", headers=alice).json() == {"deleted": 1}
    assert client.get(f"{API}/pgn/games/{game['id']}", headers=alice).status_code == 404
    assert client.delete(f"{API}/pgn/games/{game['id']}", headers=alice).status_code == 404


def test_clear_database(client, alice):
    client.post(f"{API}/pgn/games/import-pgn", json={"pgn": TWO_GAMES}, headers=alice)
    assert client.delete(f"{API}/pgn/games", headers=alice).json() == {"deleted": 2}
    assert client.get(f"{API}/pgn/games", headers=alice).json() == []
    assert client.get(f"{API}/pgn/games/export", headers=alice).status_code == 404


def test_storage_quota(client, alice, monkeypatch):
    monkeypatch.setattr(settings, "max_storage_bytes", 10)
    payload = {"pgn": "1. e4 e5 *"}
    assert client.post(f"{API}/pgn/games", json=payload, headers=alice).status_code == 201
    response = client.post(f"{API}/pgn/games", json=payload, headers=alice)
    assert response.status_code == 413
    detail = response.json()["detail"]
    assert detail["max_bytes"] == 10
    assert detail["used_bytes"] >= 10

    usage = client.get(f"{API}/pgn/user/storage", headers=alice).json()
    assert usage["max_bytes"] == 10


def test_sanitize_endpoint(client):
    response = client.post(f"{API}/pgn/sanitize", json={"pgn": "1. e4 e5 2. Nf3 ;comment\nNc6"})
    assert response.json() == {"pgn": "1. e4 e5 2. Nf3 {comment} Nc6", "comments": ["comment"]}


def test_split_endpoint(client):
    response = client.post(f"{API}/pgn/split", json={"pgn": '[Event "A"]\n\n1. e4 *\n\n[Event "B"]\n\n1. d4 *'})
    assert [g["event"] for g in response.json()] == ["A", "B"]


def test_parse_endpoint(client):
    response = client.post(f"{API}/pgn/parse", json={"pgn": TWO_GAMES})
    assert response.status_code == 200
    body = response.json()
    assert body["headers"]["White"] == "Magnus"
    assert [m["san"] for m in body["moves"]] == ["e4", "c5", "Nf3", "d6"]
    assert body["moves"][0]["ply"] == 1
    assert body["opening"]["eco"] == "B50"
    assert body["opening"]["source"] == "eco"


def test_parse_rejects_invalid_pgn(client):
    response = client.post(f"{API}/pgn/parse", json={"pgn": "1. e4 e5 2. Ke3"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid PGN"


def test_opening_lookup(client):
    response = client.post(f"{API}/openings/lookup", json={"moves": ["e4", "c5", "Nc3"], "up_to_index": 1})
    body = response.json()
    assert body["result"]["name"] == "Sicilian Defense"
    assert body["result"]["source"] == "eco"
    assert body["editable"] is False

    header_only = client.post(
        f"{API}/openings/lookup", json={"moves": ["a3"], "hint": {"opening": "Anderssen Opening", "eco": "A00"}}
    ).json()
    assert header_only["result"]["source"] == "pgn-header"

    assert client.post(f"{API}/openings/lookup", json={"moves": ["a3"]}).json() == {"result": None, "editable": False}


def test_opening_status_and_names_without_tree(client):
    status = client.get(f"{API}/openings/status").json()
    assert status["tree_available"] is False
    assert status["eco_positions"] > 0

    response = client.post(f"{API}/openings/names", json={"moves": ["e4"], "name": "Best by test"})
    assert response.status_code == 503


def test_enrich_is_accepted(client, alice):
    response = client.post(f"{API}/openings/enrich", headers=alice)
    assert response.status_code == 202
    assert response.json() == {"queued": True, "owner_id": "alice"}


def test_lichess_import(client, alice, monkeypatch):
    async def fake_fetch(username):
        assert username == "hikaru"
        return TWO_GAMES

    monkeypatch.setattr(imports_api, "fetch_lichess_pgn", fake_fetch)
    response = client.post(f"{API}/imports/lichess", json={"username": "hikaru"}, headers=alice)
    assert response.status_code == 201
    assert response.json()["imported"] == 2
    games = client.get(f"{API}/pgn/games", headers=alice).json()
    assert all(g["tags"] == ["lichess"] for g in games)


def test_chesscom_import_unknown_user(client, alice, monkeypatch):
    async def fake_fetch(username):
        raise imports_api.ImportSourceError("Chess.com user 'ghost' not found", status_code=404)

    monkeypatch.setattr(imports_api, "fetch_chesscom_pgn", fake_fetch)
    response = client.post(f"{API}/imports/chesscom", json={"username": "ghost"}, headers=alice)
    assert response.status_code == 404


def test_storage_failures_map_to_503(client, alice, monkeypatch):
    def broken(*args, **kwargs):
        raise StorageError("database is locked")

    for method in ("get_all_games", "get_game", "delete_game", "clear_database", "storage_info"):
        monkeypatch.setattr(SqlGameStorage, method, broken)

    assert client.get(f"{API}/pgn/games", headers=alice).status_code == 503
    assert client.get(f"{API}/pgn/games/openings", headers=alice).status_code == 503
    assert client.get(f"{API}/pgn/games/tags", headers=alice).status_code == 503
    assert client.get(f"{API}/pgn/games/export", headers=alice).status_code == 503
    assert client.get(f"{API}/pgn/games/1", headers=alice).status_code == 503
    assert client.get(f"{API}/pgn/games/1/pgn", headers=alice).status_code == 503
    assert client.delete(f"{API}/pgn/games/1", headers=alice).status_code == 503
    assert client.delete(f"{API}/pgn/games", headers=alice).status_code == 503
    response = client.get(f"{API}/pgn/user/storage", headers=alice)
    assert response.status_code == 503
    assert response.json()["detail"] == "database is locked"
