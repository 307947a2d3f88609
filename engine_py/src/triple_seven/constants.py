"""Game constants and utilities"""

from typing import List, Optional

from .models import Card

SUITS = ['hearts', 'diamonds', 'clubs', 'spades']
RANKS = ['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K']
JOKER_COLORS = ['red', 'black']

SEAT_COUNT = 4
HAND_SIZE = 4
SEAT_POSITIONS = ['south', 'west', 'north', 'east']

# Phases
PHASE_TURN_DRAW = 'turn_draw'
PHASE_TURN_DECISION = 'turn_decision'
PHASE_POWER_TARGET = 'power_target'
PHASE_GAME_OVER = 'game_over'

# Powers
POWER_UNLOCK = 'unlock'
POWER_SWAP = 'swap'
POWER_PEEK = 'peek'
POWER_LOCK = 'lock'
POWER_MASS_SWAP = 'mass_swap'

POWER_BY_RANK = {
    '10': POWER_UNLOCK,
    'J': POWER_SWAP,
    'Q': POWER_PEEK,
    'K': POWER_LOCK,
}

POWER_NAMES = {
    POWER_UNLOCK: 'Unlock',
    POWER_SWAP: 'Swap',
    POWER_PEEK: 'Peek',
    POWER_LOCK: 'Lock',
    POWER_MASS_SWAP: 'Mass Swap',
}

# Draw sources
DRAW_DECK = 'deck'
DRAW_DISCARD = 'discard'

# Player kinds
KIND_HUMAN = 'human'
KIND_AI = 'ai'
KIND_EMPTY = 'empty'

# Difficulties
DIFFICULTY_BEGINNER = 'beginner'
DIFFICULTY_INTERMEDIATE = 'intermediate'
DIFFICULTY_HARDCORE = 'hardcore'
DIFFICULTIES = [DIFFICULTY_BEGINNER, DIFFICULTY_INTERMEDIATE, DIFFICULTY_HARDCORE]

# Toast severities
SEVERITY_INFO = 'info'
SEVERITY_POWER = 'power'
SEVERITY_WARNING = 'warning'
SEVERITY_SUCCESS = 'success'

# Hardcore AI guess for a face-down card it has never seen
UNKNOWN_CARD_VALUE = 6


def card_value(card: Card) -> int:
    if card.is_joker:
        return 10
    if card.rank == '7':
        return 0
    if card.rank == 'A':
        return 1
    if card.rank in ('10', 'J', 'Q', 'K'):
        return 10
    return int(card.rank)


def card_power(card: Card) -> Optional[str]:
    if card.power_used:
        return None
    if card.is_joker:
        return POWER_MASS_SWAP
    return POWER_BY_RANK.get(card.rank)


def hand_score(hand: List[Card]) -> int:
    return sum(card_value(card) for card in hand)


def next_seat(current: int, total: int = SEAT_COUNT) -> int:
    return (current + 1) % total


def seat_position(seat: int, viewer_seat: int = 0) -> str:
    """Compass position of a seat as seen from the viewer (viewer is always south)."""
    return SEAT_POSITIONS[(seat - viewer_seat) % SEAT_COUNT]


def power_name(power: str) -> str:
    return POWER_NAMES.get(power, power)


def card_label(card: Card) -> str:
    return 'Joker' if card.is_joker else card.rank
