# engine_py/src/coup_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    code = "GAME_ERROR"

    def __init__(self, message: str, code: str = None):
        self.code = code or self.code
        self.message = message
        super().__init__(f"[{self.code}] {message}")

# Specific error codes
INVALID_ACTION = "INVALID_ACTION"
UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
ILLEGAL_TARGET = "ILLEGAL_TARGET"
DECK_EXHAUSTED = "DECK_EXHAUSTED"
TERMINAL_STATE = "TERMINAL_STATE"
INVALID_PLAYER_COUNT = "INVALID_PLAYER_COUNT"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
EFFECT_PENDING = "EFFECT_PENDING"
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
ROOM_FULL = "ROOM_FULL"
INVALID_PASSWORD = "INVALID_PASSWORD"
NO_ACTIVE_GAME = "NO_ACTIVE_GAME"
GAME_ALREADY_ACTIVE = "GAME_ALREADY_ACTIVE"
UNKNOWN_GAME = "UNKNOWN_GAME"


# Engine errors

class InvalidAction(GameError):
    code = INVALID_ACTION


class UnknownPlayer(GameError):
    code = UNKNOWN_PLAYER


class IllegalTarget(GameError):
    code = ILLEGAL_TARGET


class DeckExhausted(GameError):
    """Raised when more cards are drawn than the deck holds."""
    code = DECK_EXHAUSTED


class TerminalState(GameError):
    code = TERMINAL_STATE


class InvalidPlayerCount(GameError):
    code = INVALID_PLAYER_COUNT


class NotYourTurn(GameError):
    code = NOT_YOUR_TURN


class EffectPending(GameError):
    code = EFFECT_PENDING


# Lobby / session errors

class RoomNotFound(GameError):
    code = ROOM_NOT_FOUND

    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class RoomFull(GameError):
    code = ROOM_FULL


class InvalidPassword(GameError):
    code = INVALID_PASSWORD


class GameNotFound(GameError):
    code = NO_ACTIVE_GAME

    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"No active game in room {room_id}")


class GameAlreadyActive(GameError):
    code = GAME_ALREADY_ACTIVE

    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(f"Game already active in room {room_id}")


class UnknownGame(GameError):
    code = UNKNOWN_GAME


# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(message, code)
