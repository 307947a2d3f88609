"""
WebSocket event models and validation.

Field names are snake_case in Python and camelCase on the wire.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..constants import DIFFICULTIES, DIFFICULTY_INTERMEDIATE


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    START_GAME = "start_game"
    DRAW_FROM_DECK = "draw_from_deck"
    DRAW_FROM_DISCARD = "draw_from_discard"
    SWAP_WITH_HAND = "swap_with_hand"
    DISCARD_DRAWN = "discard_drawn"
    SELECT_POWER_TARGET = "select_power_target"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    ROOM_CREATED = "room_created"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    GAME_STARTED = "game_started"
    STATE_UPDATE = "state_update"
    TOAST = "toast"
    GAME_OVER = "game_over"
    ERROR = "error"


# Events that the room forwards to the engine as game actions
GAME_ACTIONS = {
    EventType.DRAW_FROM_DECK,
    EventType.DRAW_FROM_DISCARD,
    EventType.SWAP_WITH_HAND,
    EventType.DISCARD_DRAWN,
    EventType.SELECT_POWER_TARGET,
}


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# Inbound event models
class BaseEvent(WireModel):
    """Base event model."""
    type: EventType


class CreateRoomEvent(BaseEvent):
    """Create a room and take seat 0."""
    type: EventType = EventType.CREATE_ROOM
    player_name: str = Field(..., min_length=1, max_length=30)
    difficulty: str = DIFFICULTY_INTERMEDIATE

    @field_validator('difficulty')
    @classmethod
    def validate_difficulty(cls, v):
        if v not in DIFFICULTIES:
            raise ValueError(f"difficulty must be one of {DIFFICULTIES}")
        return v


class JoinRoomEvent(BaseEvent):
    """Join an existing room by code."""
    type: EventType = EventType.JOIN_ROOM
    room_id: str = Field(..., min_length=1, max_length=12)
    player_name: str = Field(..., min_length=1, max_length=30)

    @field_validator('room_id')
    @classmethod
    def normalize_room_id(cls, v):
        return v.strip().upper()


class StartGameEvent(BaseEvent):
    """Start (or restart) the game. Host only."""
    type: EventType = EventType.START_GAME
    seed: Optional[int] = None


class DrawFromDeckEvent(BaseEvent):
    type: EventType = EventType.DRAW_FROM_DECK


class DrawFromDiscardEvent(BaseEvent):
    type: EventType = EventType.DRAW_FROM_DISCARD


class SwapWithHandEvent(BaseEvent):
    type: EventType = EventType.SWAP_WITH_HAND
    hand_index: int = Field(..., ge=0)


class DiscardDrawnEvent(BaseEvent):
    type: EventType = EventType.DISCARD_DRAWN


class SelectPowerTargetEvent(BaseEvent):
    """Pick a card for the active power. Mass swap only reads target_seat."""
    type: EventType = EventType.SELECT_POWER_TARGET
    target_seat: int = Field(..., ge=0)
    target_index: int = Field(0, ge=0)


class RequestStateEvent(BaseEvent):
    """Request the caller's current view."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    CreateRoomEvent,
    JoinRoomEvent,
    StartGameEvent,
    DrawFromDeckEvent,
    DrawFromDiscardEvent,
    SwapWithHandEvent,
    DiscardDrawnEvent,
    SelectPowerTargetEvent,
    RequestStateEvent,
]

EVENT_MAP = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.START_GAME: StartGameEvent,
    EventType.DRAW_FROM_DECK: DrawFromDeckEvent,
    EventType.DRAW_FROM_DISCARD: DrawFromDiscardEvent,
    EventType.SWAP_WITH_HAND: SwapWithHandEvent,
    EventType.DISCARD_DRAWN: DiscardDrawnEvent,
    EventType.SELECT_POWER_TARGET: SelectPowerTargetEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


# Outbound event models
class OutboundEvent(WireModel):
    timestamp: float = Field(default_factory=time.time)


class RoomCreatedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ROOM_CREATED
    room_id: str
    seat: int


class PlayerJoinedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.PLAYER_JOINED
    player_name: str
    seat: int
    seats: List[Dict[str, Any]]


class PlayerLeftEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.PLAYER_LEFT
    seat: int
    seats: List[Dict[str, Any]]


class GameStartedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.GAME_STARTED
    state: Dict[str, Any]


class StateUpdateEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.STATE_UPDATE
    state: Dict[str, Any]


class GameOverEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.GAME_OVER
    state: Dict[str, Any]


class ToastEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.TOAST
    message: str
    severity: str = "info"


class ErrorEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ERROR
    code: str
    message: str


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Decoded JSON object from the WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    try:
        return EVENT_MAP[event_type].model_validate(data)
    except Exception as e:
        raise ValueError(f"Invalid event data: {str(e)}")


def create_error_event(code: str, message: str) -> ErrorEvent:
    return ErrorEvent(code=code, message=message)


def create_toast_event(message: str, severity: str = "info") -> ToastEvent:
    return ToastEvent(message=message, severity=severity)


def create_room_created_event(room_id: str, seat: int) -> RoomCreatedEvent:
    return RoomCreatedEvent(room_id=room_id, seat=seat)


def create_player_joined_event(player_name: str, seat: int, seats: List[Dict[str, Any]]) -> PlayerJoinedEvent:
    return PlayerJoinedEvent(player_name=player_name, seat=seat, seats=seats)


def create_player_left_event(seat: int, seats: List[Dict[str, Any]]) -> PlayerLeftEvent:
    return PlayerLeftEvent(seat=seat, seats=seats)


def create_state_event(state: Dict[str, Any], game_over: bool = False, started: bool = False) -> OutboundEvent:
    """Wrap a filtered view in the right envelope."""
    if started:
        return GameStartedEvent(state=state)
    if game_over:
        return GameOverEvent(state=state)
    return StateUpdateEvent(state=state)
