# engine_py/src/triple_seven/errors.py

class GameError(Exception):
    """Base exception for room and session errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Room / session error codes
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
ROOM_FULL = "ROOM_FULL"
GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
NOT_HOST = "NOT_HOST"
NO_HUMAN_PLAYERS = "NO_HUMAN_PLAYERS"
NOT_IN_ROOM = "NOT_IN_ROOM"
ALREADY_IN_ROOM = "ALREADY_IN_ROOM"
GAME_NOT_STARTED = "GAME_NOT_STARTED"
INVALID_EVENT = "INVALID_EVENT"
INTERNAL_ERROR = "INTERNAL_ERROR"

# Engine rejection codes (returned on EngineResult, never raised)
NOT_YOUR_TURN = "NOT_YOUR_TURN"
WRONG_PHASE = "WRONG_PHASE"
DISCARD_EMPTY = "DISCARD_EMPTY"
DISCARD_BURNED = "DISCARD_BURNED"
CARD_LOCKED = "CARD_LOCKED"
CARD_NOT_LOCKED = "CARD_NOT_LOCKED"
ALREADY_PEEKING = "ALREADY_PEEKING"
SAME_CARD = "SAME_CARD"
INVALID_TARGET = "INVALID_TARGET"
NOT_AI_SEAT = "NOT_AI_SEAT"
