"""
Base bot interface and utilities.
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..constants import UNKNOWN_CARD_VALUE, card_value
from ..models import AIMemory, Card


class BotAction:
    """Represents a keep-or-discard decision for the drawn card."""

    def __init__(self, action_type: str, **kwargs):
        self.type = action_type
        self.data = kwargs

    @classmethod
    def swap(cls, index: int) -> 'BotAction':
        """Put the drawn card into hand slot `index`."""
        return cls('swap', index=index)

    @classmethod
    def discard(cls) -> 'BotAction':
        """Throw the drawn card away."""
        return cls('discard')

    @property
    def swap_index(self) -> Optional[int]:
        return self.data.get('index')

    def __eq__(self, other):
        return isinstance(other, BotAction) and self.type == other.type and self.data == other.data

    def __repr__(self):
        return f"BotAction({self.type!r}, {self.data!r})"


@dataclass
class Opponent:
    seat: int
    hand: List[Card]


@dataclass
class PowerDecision:
    power: str
    target_seat: int
    target_index: int
    swap_own_index: Optional[int] = None  # swap power only


class BaseBot(ABC):
    """Abstract base class for AI strategies. Bots hold no game state."""

    def __init__(self, rng: Optional[random.Random] = None,
                 unknown_estimate: int = UNKNOWN_CARD_VALUE):
        self.rng = rng or random.Random()
        self.unknown_estimate = unknown_estimate

    @abstractmethod
    def choose_draw_source(self, discard_top: Optional[Card]) -> str:
        """
        Pick where to draw from.

        Args:
            discard_top: Top of the discard pile, or None when it cannot be drawn

        Returns:
            'deck' or 'discard'
        """

    @abstractmethod
    def decide(self, drawn_card: Card, hand: List[Card], memory: AIMemory, own_seat: int) -> BotAction:
        """Keep the drawn card (swap into a slot) or discard it."""

    @abstractmethod
    def power_target(
        self,
        power: str,
        own_seat: int,
        own_hand: List[Card],
        opponents: List[Opponent],
        memory: AIMemory,
    ) -> Optional[PowerDecision]:
        """Aim a triggered power, or None when there is nothing legal to aim at."""

    # Shared helpers

    def pick(self, items):
        return items[self.rng.randrange(len(items))]

    @staticmethod
    def unlocked_slots(hand: List[Card]) -> List[int]:
        return [i for i, card in enumerate(hand) if not card.is_locked]

    @staticmethod
    def locked_slots(hand: List[Card]) -> List[int]:
        return [i for i, card in enumerate(hand) if card.is_locked]

    @staticmethod
    def peekable_slots(hand: List[Card]) -> List[int]:
        return [i for i, card in enumerate(hand) if not card.is_locked and not card.is_peeking]

    @staticmethod
    def known_for_seat(memory: AIMemory, seat: int) -> Dict[int, Card]:
        return memory.known_for_seat(seat)

    def estimate(self, known: Dict[int, Card], index: int) -> int:
        card = known.get(index)
        return card_value(card) if card is not None else self.unknown_estimate

    def all_opponent_unlocked(self, opponents: List[Opponent]) -> List[Tuple[int, int]]:
        return [(opp.seat, i) for opp in opponents for i in self.unlocked_slots(opp.hand)]

    def all_locked(self, own_seat: int, own_hand: List[Card],
                   opponents: List[Opponent]) -> List[Tuple[int, int]]:
        slots = [(own_seat, i) for i in self.locked_slots(own_hand)]
        for opp in opponents:
            slots.extend((opp.seat, i) for i in self.locked_slots(opp.hand))
        return slots
