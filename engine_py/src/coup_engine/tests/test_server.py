"""
Tests for the WebSocket message handlers, driven without a network.
"""

import asyncio
import time

import orjson
import pytest
from coup_engine.rooms import RoomDirectory
from coup_engine.session import GameSessionManager
from coup_engine.ws import server


class FakeWebSocket:
    """Collects everything the server sends."""

    def __init__(self):
        self.sent = []

    async def send_text(self, text):
        self.sent.append(orjson.loads(text))

    def of_type(self, event_type):
        return [e for e in self.sent if e["type"] == event_type]

    def last(self, event_type):
        events = self.of_type(event_type)
        assert events, f"no {event_type} event received"
        return events[-1]


@pytest.fixture
def hub(monkeypatch):
    monkeypatch.setattr(server, "directory", RoomDirectory())
    monkeypatch.setattr(server, "sessions", GameSessionManager())
    monkeypatch.setattr(server, "manager", server.ConnectionManager())
    return server


def send(ws, **event):
    asyncio.run(server.process_message(ws, orjson.dumps(event).decode()))


def connect(hub):
    ws = FakeWebSocket()
    hub.manager.connect(ws)
    return ws


@pytest.fixture
def table(hub):
    """Alice hosts a room that Bob has joined."""
    alice, bob = connect(hub), connect(hub)
    send(alice, type="create_room", room_name="Table", player_name="Alice")
    joined = alice.last("room_joined")
    room_id = joined["room"]["room_id"]
    send(bob, type="join_room", room_id=room_id, player_name="Bob")
    return room_id, alice, bob


def test_create_room(hub):
    ws = connect(hub)
    send(ws, type="create_room", room_name="Table", player_name="Alice")

    joined = ws.last("room_joined")
    assert joined["player"]["name"] == "Alice"
    assert joined["player"]["is_host"]
    assert ws.last("rooms_update")["rooms"][0]["name"] == "Table"
    assert ws.last("players_update")["players"][0]["name"] == "Alice"


def test_join_broadcasts_players(table):
    room_id, alice, bob = table
    players = alice.last("players_update")["players"]
    assert [p["name"] for p in players] == ["Alice", "Bob"]
    assert not bob.last("room_joined")["player"]["is_host"]


def test_only_host_starts_game(table):
    room_id, alice, bob = table
    send(bob, type="game_start")
    assert bob.last("error")["code"] == "NOT_HOST"
    assert not server.sessions.is_game_active(room_id)


def test_game_state_is_sanitized_per_viewer(table):
    room_id, alice, bob = table
    send(alice, type="game_start", seed=3)

    alice_view = alice.last("game_state")["state"]
    bob_view = bob.last("game_state")["state"]
    alice_id = alice.last("room_joined")["player"]["id"]

    mine = next(p for p in alice_view["players"] if p["id"] == alice_id)
    theirs = next(p for p in bob_view["players"] if p["id"] == alice_id)
    assert len(mine["hidden"]) == 2
    assert "hidden" not in theirs
    assert theirs["hidden_count"] == 2
    assert alice_view["turn"] == alice_id


def test_game_action_flow(table):
    room_id, alice, bob = table
    send(alice, type="game_start", seed=3)
    alice_id = alice.last("room_joined")["player"]["id"]
    bob_id = bob.last("room_joined")["player"]["id"]

    send(bob, type="game_action", action_type="INCOME")
    assert bob.last("error")["code"] == "NOT_YOUR_TURN"

    send(alice, type="game_action", action_type="INCOME")
    state = bob.last("game_state")["state"]
    assert state["turn"] == bob_id
    assert next(p for p in state["players"] if p["id"] == alice_id)["coins"] == 3

    send(bob, type="game_action", action_type="STEAL", payload={"target_id": alice_id})
    state = alice.last("game_state")["state"]
    assert state["phase"] == "awaiting_response"
    assert state["pending_action"]["awaiting"] == [alice_id]


def test_starting_twice_is_rejected(table):
    room_id, alice, bob = table
    send(alice, type="game_start")
    send(alice, type="game_start")
    assert alice.last("error")["code"] == "GAME_ALREADY_ACTIVE"


def test_request_state(table):
    room_id, alice, bob = table
    send(bob, type="request_state")
    assert bob.last("error")["code"] == "NO_ACTIVE_GAME"

    send(alice, type="game_start")
    bob.sent.clear()
    send(bob, type="request_state")
    assert len(bob.of_type("game_state")) == 1


def test_invalid_events(hub):
    ws = connect(hub)
    asyncio.run(server.process_message(ws, "not json"))
    assert ws.last("error")["code"] == "INVALID_EVENT"

    send(ws, type="dance")
    assert ws.last("error")["code"] == "INVALID_EVENT"

    send(ws, type="create_room", room_name="", player_name="Alice")
    assert ws.last("error")["code"] == "INVALID_EVENT"


def test_unknown_action_type(table):
    room_id, alice, bob = table
    send(alice, type="game_start")
    send(alice, type="game_action", action_type="SHRUG")
    assert alice.last("error")["code"] == "INVALID_ACTION"


def test_events_outside_a_room(hub):
    ws = connect(hub)
    for event_type in ("chat", "game_start", "game_action", "request_state", "leave_room"):
        ws.sent.clear()
        payload = {"text": "hi"} if event_type == "chat" else {}
        if event_type == "game_action":
            payload = {"action_type": "INCOME"}
        send(ws, type=event_type, **payload)
        assert ws.last("error")["code"] == "NOT_IN_ROOM"


def test_join_errors(hub):
    ws = connect(hub)
    send(ws, type="join_room", room_id="NOPE", player_name="Bob")
    assert ws.last("error")["code"] == "ROOM_NOT_FOUND"

    room = server.directory.create_room("Secret", is_private=True, password="pw")
    send(ws, type="join_room", room_id=room.id, player_name="Bob", password="guess")
    assert ws.last("error")["code"] == "INVALID_PASSWORD"


def test_reconnect_restores_seat_and_state(table):
    room_id, alice, bob = table
    bob_id = bob.last("room_joined")["player"]["id"]
    send(alice, type="game_start")

    server.manager.disconnect(bob)
    server.directory.mark_disconnected(room_id, bob_id)

    again = connect(server)
    send(again, type="reconnect", room_id=room_id, player_id=bob_id)
    assert again.last("room_joined")["player"]["id"] == bob_id
    view = again.last("game_state")["state"]
    assert len(next(p for p in view["players"] if p["id"] == bob_id)["hidden"]) == 2

    stranger = connect(server)
    send(stranger, type="reconnect", room_id=room_id, player_id="ghost")
    assert stranger.last("error")["code"] == "UNKNOWN_PLAYER"


def test_chat(table):
    room_id, alice, bob = table
    send(bob, type="chat", text="hello")
    message = alice.last("chat")
    assert message["player_name"] == "Bob"
    assert message["text"] == "hello"


def test_leave_room_hands_over_host(table):
    room_id, alice, bob = table
    send(alice, type="leave_room")
    players = bob.last("players_update")["players"]
    assert [p["name"] for p in players] == ["Bob"]
    assert players[0]["is_host"]


def test_leaving_mid_game_ends_it(table):
    room_id, alice, bob = table
    send(alice, type="game_start")
    send(alice, type="leave_room")

    ended = bob.last("game_ended")
    assert ended["reason"] == "player_left"
    assert not server.sessions.is_game_active(room_id)


def test_expired_seat_ends_game(table):
    room_id, alice, bob = table
    bob_id = bob.last("room_joined")["player"]["id"]
    send(alice, type="game_start")

    server.manager.disconnect(bob)
    server.directory.mark_disconnected(room_id, bob_id)
    asyncio.run(server.cleanup_once(now=time.time() + server.directory.disconnect_grace + 1))

    assert alice.last("game_ended")["reason"] == "player_left"
    assert not server.sessions.is_game_active(room_id)
    assert [p["name"] for p in alice.last("players_update")["players"]] == ["Alice"]


def test_cleanup_ends_idle_games(table):
    room_id, alice, bob = table
    send(alice, type="game_start")

    asyncio.run(server.cleanup_once(now=10 ** 12))
    ended = bob.last("game_ended")
    assert ended["reason"] == "timeout"
    assert ended["winner_id"] is None
    assert not server.sessions.is_game_active(room_id)
