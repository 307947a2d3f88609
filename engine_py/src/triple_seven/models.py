"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

Suit = Literal['hearts', 'diamonds', 'clubs', 'spades']
Rank = Literal['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K']
JokerColor = Literal['red', 'black']
PlayerKind = Literal['human', 'ai']
SeatKind = Literal['human', 'ai', 'empty']
DrawSource = Literal['deck', 'discard']

Slot = Tuple[int, int]  # (seat, hand index)


@dataclass
class Card:
    id: str
    suit: Optional[Suit] = None
    rank: Optional[Rank] = None
    is_joker: bool = False
    joker_color: Optional[JokerColor] = None
    is_face_up: bool = False
    is_locked: bool = False
    power_used: bool = False
    # UI hints; is_peeking also blocks a second peek on the same card
    is_selected: bool = False
    is_peeking: bool = False


@dataclass
class Player:
    seat: int
    kind: PlayerKind
    name: str
    hand: List[Card] = field(default_factory=list)
    score: int = 0
    connection_id: Optional[str] = None


@dataclass
class AIMemory:
    """What one AI seat believes about the board."""
    known: Dict[Slot, Card] = field(default_factory=dict)
    discarded: List[Card] = field(default_factory=list)

    def known_for_seat(self, seat: int) -> Dict[int, Card]:
        return {index: card for (s, index), card in self.known.items() if s == seat}


@dataclass
class SeatConfig:
    kind: SeatKind
    name: str
    connection_id: Optional[str] = None


@dataclass
class ServerGameState:
    deck: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)  # top = last
    players: List[Player] = field(default_factory=list)
    current_turn_seat: int = 0
    drawn_card: Optional[Card] = None
    drawn_from: Optional[DrawSource] = None
    active_power: Optional[str] = None
    power_source_seat: Optional[int] = None
    ai_memories: Dict[int, AIMemory] = field(default_factory=dict)
    winner_seat: Optional[int] = None
    turn_count: int = 0
    difficulty: str = 'intermediate'
    phase: str = 'turn_draw'  # turn_draw|turn_decision|power_target|game_over
    swap_source: Optional[Slot] = None
    discard_burned: bool = False

    @property
    def discard_top(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    @property
    def current_player(self) -> Player:
        return self.players[self.current_turn_seat]

    def card_at(self, seat: int, index: int) -> Card:
        return self.players[seat].hand[index]


@dataclass
class GameEvent:
    """Something the room should announce. Engine functions never render anything."""
    message: str
    severity: str = 'info'  # info|power|warning|success
    kind: str = 'toast'  # toast|peek|power|swap_source|game_over
    data: Dict = field(default_factory=dict)


@dataclass
class EngineResult:
    state: ServerGameState
    events: List[GameEvent] = field(default_factory=list)
    success: bool = True
    error_code: Optional[str] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.success or not self.events:
            return None
        return self.events[0].message
