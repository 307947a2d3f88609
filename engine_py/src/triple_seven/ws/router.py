"""
Inbound message routing: one raw text frame in, exactly one room operation out.
"""

import logging
from typing import Any

import orjson

from .. import errors
from ..errors import GameError
from ..room import RoomRegistry
from .events import (
    GAME_ACTIONS, CreateRoomEvent, EventType, JoinRoomEvent, RequestStateEvent,
    StartGameEvent, create_error_event, parse_inbound_event
)

logger = logging.getLogger(__name__)


class MessageRouter:
    """Turns client messages into room calls and failures into error messages."""

    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    async def handle_message(self, connection_id: str, channel: Any, raw: str):
        try:
            try:
                data = orjson.loads(raw)
            except orjson.JSONDecodeError:
                raise ValueError("Malformed JSON")
            event = parse_inbound_event(data)
            await self._dispatch(connection_id, channel, event)
        except ValueError as e:
            logger.debug(f"Invalid event from {connection_id}: {e}")
            await self._send_error(channel, errors.INVALID_EVENT, str(e))
        except GameError as e:
            logger.info(f"Rejected {connection_id}: {e.code} {e.message}")
            await self._send_error(channel, e.code, e.message)
        except Exception as e:
            logger.exception(f"Error handling event from {connection_id}: {e}")
            await self._send_error(channel, errors.INTERNAL_ERROR, "Internal server error")

    async def handle_disconnect(self, connection_id: str):
        try:
            await self.registry.disconnect(connection_id)
        except Exception as e:
            logger.exception(f"Error cleaning up connection {connection_id}: {e}")

    async def _dispatch(self, connection_id: str, channel: Any, event):
        if isinstance(event, CreateRoomEvent):
            await self.registry.create_room(connection_id, channel, event.player_name, event.difficulty)
            return
        if isinstance(event, JoinRoomEvent):
            await self.registry.join_room(event.room_id, connection_id, channel, event.player_name)
            return

        room = self.registry.room_for(connection_id)
        if room is None:
            raise GameError(errors.NOT_IN_ROOM, "Not in a room")

        if isinstance(event, StartGameEvent):
            await room.start(connection_id, event.seed)
        elif isinstance(event, RequestStateEvent):
            await room.send_state(connection_id)
        elif event.type in GAME_ACTIONS:
            payload = event.model_dump(exclude={'type'})
            await room.process_action(connection_id, event.type.value, payload)
        else:
            raise ValueError(f"Unhandled event type: {event.type}")

    async def _send_error(self, channel: Any, code: str, message: str):
        try:
            await channel.send_text(create_error_event(code, message).to_json())
        except Exception as e:
            logger.error(f"Error sending error event: {e}")
