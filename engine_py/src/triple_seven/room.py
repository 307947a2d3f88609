"""
Game rooms: seats, connections, timers and the authoritative state.

A room owns one ServerGameState and replaces it with whatever the engine
returns. Every entry point, timer callbacks included, runs under the room's
asyncio.Lock so actions are applied one at a time.
"""

import asyncio
import logging
import random
import secrets
import string
from typing import Any, Callable, Dict, List, Optional

from . import engine, errors
from .constants import (
    KIND_AI, KIND_EMPTY, KIND_HUMAN, PHASE_GAME_OVER, PHASE_TURN_DRAW, SEVERITY_WARNING
)
from .errors import GameError
from .models import EngineResult, GameEvent, SeatConfig, ServerGameState, Slot
from .rules import RuleConfig, default_rules
from .serialization import sanitize_state, serialize_seat
from .ws.events import (
    OutboundEvent, create_player_joined_event, create_player_left_event,
    create_room_created_event, create_state_event, create_toast_event
)

logger = logging.getLogger(__name__)

ROOM_LOBBY = 'lobby'
ROOM_IN_PROGRESS = 'in_progress'
ROOM_GAME_OVER = 'game_over'
ROOM_TORN_DOWN = 'torn_down'

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 6


def ai_seat_name(seat: int) -> str:
    return f"AI {seat + 1}"


class GameRoom:
    """One table of four seats and the connections watching it."""

    def __init__(
        self,
        code: str,
        difficulty: str,
        rules: Optional[RuleConfig] = None,
        on_close: Optional[Callable[[str], None]] = None,
    ):
        self.code = code
        self.difficulty = difficulty
        self.rules = rules or default_rules
        self.seats: List[SeatConfig] = [SeatConfig(kind=KIND_EMPTY, name="") for _ in range(self.rules.seat_count)]
        self.channels: Dict[str, Any] = {}  # connection_id -> channel with async send_text
        self.host_connection_id: Optional[str] = None
        self.state: Optional[ServerGameState] = None
        self.status = ROOM_LOBBY
        self.closed = False
        self.lock = asyncio.Lock()
        self.rng = random.Random()

        self._on_close = on_close
        self._ai_task: Optional[asyncio.Task] = None
        self._turn_task: Optional[asyncio.Task] = None
        self._peek_tasks: Dict[Slot, asyncio.Task] = {}

    # Seats

    def seat_of(self, connection_id: str) -> Optional[int]:
        for index, seat in enumerate(self.seats):
            if seat.kind == KIND_HUMAN and seat.connection_id == connection_id:
                return index
        return None

    def seat_list(self) -> List[Dict[str, Any]]:
        return [serialize_seat(seat) for seat in self.seats]

    def build_view(self, seat: Optional[int]) -> Dict[str, Any]:
        return sanitize_state(self.state, seat, self.rules.turn_timeout)

    def is_host(self, connection_id: str) -> bool:
        return self.host_connection_id == connection_id

    # Entry points

    async def join(self, connection_id: str, channel: Any, name: str) -> int:
        """Seat a new connection at the lowest empty seat."""
        async with self.lock:
            self._ensure_open()
            if connection_id in self.channels:
                raise GameError(errors.ALREADY_IN_ROOM, "Already in a room")
            if self.status != ROOM_LOBBY:
                raise GameError(errors.GAME_ALREADY_STARTED, "Room is full or game already started")

            seat = next((i for i, s in enumerate(self.seats) if s.kind == KIND_EMPTY), None)
            if seat is None:
                raise GameError(errors.ROOM_FULL, "Room is full or game already started")

            self.seats[seat] = SeatConfig(kind=KIND_HUMAN, name=name, connection_id=connection_id)
            self.channels[connection_id] = channel
            if self.host_connection_id is None:
                self.host_connection_id = connection_id
            logger.info(f"{name} ({connection_id}) took seat {seat} in room {self.code}")

            await self._send(connection_id, create_room_created_event(self.code, seat))
            await self._broadcast(create_player_joined_event(name, seat, self.seat_list()))
            return seat

    async def start(self, connection_id: str, seed: Optional[int] = None):
        """Fill empty seats with AI and deal. After game over this starts a rematch."""
        async with self.lock:
            self._ensure_open()
            if not self.is_host(connection_id):
                raise GameError(errors.NOT_HOST, "Only the host can start the game")
            if self.status == ROOM_IN_PROGRESS:
                raise GameError(errors.GAME_ALREADY_STARTED, "Cannot start game")
            if not any(seat.kind == KIND_HUMAN for seat in self.seats):
                raise GameError(errors.NO_HUMAN_PLAYERS, "Cannot start game")

            for index, seat in enumerate(self.seats):
                if seat.kind == KIND_EMPTY:
                    self.seats[index] = SeatConfig(kind=KIND_AI, name=ai_seat_name(index))

            self._cancel_timers()
            self.rng = random.Random(seed)
            self.state = engine.create_initial_state(self.seats, self.difficulty, self.rules, seed)
            self.status = ROOM_IN_PROGRESS
            logger.info(f"Game started in room {self.code}: {[s.kind for s in self.seats]}, difficulty={self.difficulty}")

            await self._broadcast_state(started=True)
            self._schedule_next()

    async def process_action(self, connection_id: str, action: str, payload: Optional[Dict[str, Any]] = None) -> EngineResult:
        """Run one player action through the engine and publish the outcome."""
        payload = payload or {}
        async with self.lock:
            self._ensure_open()
            seat = self.seat_of(connection_id)
            if seat is None:
                raise GameError(errors.NOT_IN_ROOM, "Not in a room")
            if self.state is None or self.status != ROOM_IN_PROGRESS:
                raise GameError(errors.GAME_NOT_STARTED, "Game has not started")

            result = self._dispatch(seat, action, payload)
            if not result.success:
                logger.debug(f"Room {self.code} seat {seat} {action} rejected: {result.error_code}")
                await self._send(connection_id, create_toast_event(result.error_message, SEVERITY_WARNING))
                return result

            await self._apply(result)
            self._schedule_next()
            return result

    async def send_state(self, connection_id: str):
        """Resend the caller's current view."""
        async with self.lock:
            self._ensure_open()
            seat = self.seat_of(connection_id)
            if seat is None:
                raise GameError(errors.NOT_IN_ROOM, "Not in a room")
            if self.state is None:
                raise GameError(errors.GAME_NOT_STARTED, "Game has not started")
            game_over = self.state.phase == PHASE_GAME_OVER
            await self._send(connection_id, create_state_event(self.build_view(seat), game_over=game_over))

    async def remove_connection(self, connection_id: str) -> bool:
        """
        Drop a connection. Mid-game the seat is handed to the AI for good;
        in the lobby it becomes empty again. Returns True once the room has
        been torn down.
        """
        async with self.lock:
            if self.closed:
                return True
            seat = self.seat_of(connection_id)
            self.channels.pop(connection_id, None)

            forced = None
            if seat is not None:
                if self.state is not None:
                    name = ai_seat_name(seat)
                    self.seats[seat] = SeatConfig(kind=KIND_AI, name=name)
                    self.state = engine.convert_to_ai(self.state, seat, name)
                    logger.info(f"Seat {seat} in room {self.code} handed to {name}")
                    if (self.status == ROOM_IN_PROGRESS
                            and self.state.current_turn_seat == seat
                            and self.state.phase != PHASE_TURN_DRAW):
                        forced = engine.force_timeout(self.state, seat)
                else:
                    self.seats[seat] = SeatConfig(kind=KIND_EMPTY, name="")
                    logger.info(f"Seat {seat} in room {self.code} is free again")

            if self.is_host(connection_id):
                self.host_connection_id = next(
                    (s.connection_id for s in self.seats if s.kind == KIND_HUMAN), None
                )

            if not self.channels:
                self._teardown()
                return True

            if seat is not None:
                await self._broadcast(create_player_left_event(seat, self.seat_list()))
            if self.state is not None:
                if forced is not None and forced.success:
                    await self._apply(forced)
                else:
                    await self._broadcast_state()
                self._schedule_next()
            return False

    async def close(self):
        async with self.lock:
            self._teardown()

    # Engine dispatch

    def _dispatch(self, seat: int, action: str, payload: Dict[str, Any]) -> EngineResult:
        state = self.state
        if action == 'draw_from_deck':
            return engine.draw_from_deck(state, seat)
        if action == 'draw_from_discard':
            return engine.draw_from_discard(state, seat)
        if action == 'swap_with_hand':
            return engine.swap_with_hand(state, seat, payload.get('hand_index'))
        if action == 'discard_drawn':
            return engine.discard_drawn(state, seat)
        if action == 'select_power_target':
            return engine.select_power_target(
                state, seat, payload.get('target_seat'), payload.get('target_index', 0)
            )
        raise GameError(errors.INVALID_EVENT, f"Unknown action: {action}")

    async def _apply(self, result: EngineResult):
        self.state = result.state
        await self._broadcast_events(result.events)
        await self._broadcast_state()
        self._arm_peek_timers(result.events)
        if self.state.phase == PHASE_GAME_OVER:
            self.status = ROOM_GAME_OVER
            self._cancel_timers()
            logger.info(f"Room {self.code} finished, winner seat {self.state.winner_seat}")

    def _schedule_next(self):
        """Arm the AI scheduler or the human turn timer for whoever is on turn."""
        if self.closed or self.state is None or self.state.phase == PHASE_GAME_OVER:
            self._cancel_turn_timer()
            return
        current = self.state.current_player
        if current.kind == KIND_AI:
            self._cancel_turn_timer()
            if self.state.phase == PHASE_TURN_DRAW:
                self._schedule_ai_turn()
        else:
            self._start_turn_timer()

    # Sending

    async def _send(self, connection_id: str, event: OutboundEvent):
        channel = self.channels.get(connection_id)
        if channel is None:
            return
        try:
            await channel.send_text(event.to_json())
        except Exception as e:
            logger.error(f"Error sending to {connection_id} in room {self.code}: {e}")

    async def _broadcast(self, event: OutboundEvent):
        for connection_id in list(self.channels):
            await self._send(connection_id, event)

    async def _broadcast_events(self, events: List[GameEvent]):
        for event in events:
            await self._broadcast(create_toast_event(event.message, event.severity))

    async def _broadcast_state(self, started: bool = False):
        if self.state is None:
            return
        game_over = self.state.phase == PHASE_GAME_OVER
        for connection_id in list(self.channels):
            view = self.build_view(self.seat_of(connection_id))
            await self._send(connection_id, create_state_event(view, game_over=game_over, started=started))

    # Timers

    def _schedule_ai_turn(self):
        self._cancel_ai_task()
        self._ai_task = asyncio.create_task(self._run_ai_turn())

    async def _run_ai_turn(self):
        try:
            await asyncio.sleep(self.rules.ai_turn_delay)
        except asyncio.CancelledError:
            return

        async with self.lock:
            self._ai_task = None
            if self.closed or self.state is None or self.state.phase != PHASE_TURN_DRAW:
                return
            if self.state.current_player.kind != KIND_AI:
                return
            seat = self.state.current_turn_seat
            try:
                result = engine.execute_ai_turn(self.state, self.rng, self.rules)
                if not result.success:
                    logger.warning(f"AI turn for seat {seat} in room {self.code} rejected: {result.error_code}")
                    return
                logger.info(f"AI seat {seat} played in room {self.code}")
                await self._apply(result)
                self._schedule_next()
            except Exception as e:
                logger.exception(f"AI turn error in room {self.code}: {e}")

    def _start_turn_timer(self):
        self._cancel_turn_timer()
        self._turn_task = asyncio.create_task(self._run_turn_timer(self.state.current_turn_seat))

    async def _run_turn_timer(self, seat: int):
        try:
            await asyncio.sleep(self.rules.turn_timeout)
        except asyncio.CancelledError:
            return

        async with self.lock:
            self._turn_task = None
            if self.closed or self.state is None or self.state.phase == PHASE_GAME_OVER:
                return
            if self.state.current_turn_seat != seat or self.state.current_player.kind != KIND_HUMAN:
                return
            try:
                name = self.state.current_player.name
                logger.info(f"Seat {seat} in room {self.code} timed out in {self.state.phase}")
                result = engine.force_timeout(self.state, seat)
                await self._broadcast(create_toast_event(f"{name}'s time ran out! Auto-playing...", SEVERITY_WARNING))
                if result.success:
                    await self._apply(result)
                self._schedule_next()
            except Exception as e:
                logger.exception(f"Turn timer error in room {self.code}: {e}")

    def _arm_peek_timers(self, events: List[GameEvent]):
        for event in events:
            if event.kind != 'peek':
                continue
            slot = (event.data['seat'], event.data['index'])
            previous = self._peek_tasks.pop(slot, None)
            if previous is not None:
                previous.cancel()
            self._peek_tasks[slot] = asyncio.create_task(self._run_peek_timer(slot))

    async def _run_peek_timer(self, slot: Slot):
        try:
            await asyncio.sleep(self.rules.peek_duration)
        except asyncio.CancelledError:
            return

        async with self.lock:
            self._peek_tasks.pop(slot, None)
            if self.closed or self.state is None:
                return
            result = engine.clear_peek(self.state, *slot)
            if result.success:
                self.state = result.state
                await self._broadcast_state()

    def _cancel_ai_task(self):
        if self._ai_task is not None:
            self._ai_task.cancel()
            self._ai_task = None

    def _cancel_turn_timer(self):
        if self._turn_task is not None:
            self._turn_task.cancel()
            self._turn_task = None

    def _cancel_timers(self):
        self._cancel_ai_task()
        self._cancel_turn_timer()
        for task in self._peek_tasks.values():
            task.cancel()
        self._peek_tasks.clear()

    def _ensure_open(self):
        if self.closed:
            raise GameError(errors.ROOM_NOT_FOUND, "Room not found")

    def _teardown(self):
        if self.closed:
            return
        self.closed = True
        self.status = ROOM_TORN_DOWN
        self._cancel_timers()
        logger.info(f"Room {self.code} torn down")
        if self._on_close is not None:
            self._on_close(self.code)


class RoomRegistry:
    """Live rooms by code, and the room each connection sits in."""

    def __init__(self, rules: Optional[RuleConfig] = None):
        self.rules = rules or default_rules
        self.rooms: Dict[str, GameRoom] = {}
        self.connection_rooms: Dict[str, str] = {}

    def generate_code(self) -> str:
        while True:
            code = ''.join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self.rooms:
                return code

    def get_room(self, room_id: str) -> Optional[GameRoom]:
        return self.rooms.get(room_id.strip().upper())

    def room_for(self, connection_id: str) -> Optional[GameRoom]:
        code = self.connection_rooms.get(connection_id)
        return self.rooms.get(code) if code else None

    def connection_count(self) -> int:
        return len(self.connection_rooms)

    async def create_room(self, connection_id: str, channel: Any, host_name: str,
                          difficulty: Optional[str] = None) -> GameRoom:
        if connection_id in self.connection_rooms:
            raise GameError(errors.ALREADY_IN_ROOM, "Already in a room")
        room = GameRoom(
            self.generate_code(),
            difficulty or self.rules.default_difficulty,
            rules=self.rules,
            on_close=self._remove_room,
        )
        self.rooms[room.code] = room
        logger.info(f"Room {room.code} created by {host_name} ({room.difficulty})")
        await room.join(connection_id, channel, host_name)
        self.connection_rooms[connection_id] = room.code
        return room

    async def join_room(self, room_id: str, connection_id: str, channel: Any, name: str) -> GameRoom:
        if connection_id in self.connection_rooms:
            raise GameError(errors.ALREADY_IN_ROOM, "Already in a room")
        room = self.get_room(room_id)
        if room is None:
            raise GameError(errors.ROOM_NOT_FOUND, "Room not found")
        await room.join(connection_id, channel, name)
        self.connection_rooms[connection_id] = room.code
        return room

    async def disconnect(self, connection_id: str):
        code = self.connection_rooms.pop(connection_id, None)
        room = self.rooms.get(code) if code else None
        if room is not None:
            await room.remove_connection(connection_id)

    async def close_all(self):
        for room in list(self.rooms.values()):
            await room.close()

    def _remove_room(self, code: str):
        self.rooms.pop(code, None)
        for connection_id in [c for c, r in self.connection_rooms.items() if r == code]:
            del self.connection_rooms[connection_id]
