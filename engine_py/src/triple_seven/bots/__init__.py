"""
AI strategies for the three difficulty tiers.
"""

import random
from typing import List, Optional

from .base import BaseBot, BotAction, Opponent, PowerDecision
from .beginner import BeginnerBot
from .hardcore import HardcoreBot
from .intermediate import IntermediateBot
from ..constants import DIFFICULTY_BEGINNER, DIFFICULTY_HARDCORE, DIFFICULTY_INTERMEDIATE
from ..models import AIMemory, Card

BOTS = {
    DIFFICULTY_BEGINNER: BeginnerBot,
    DIFFICULTY_INTERMEDIATE: IntermediateBot,
    DIFFICULTY_HARDCORE: HardcoreBot,
}


def get_bot(difficulty: str, rng: Optional[random.Random] = None, **kwargs) -> BaseBot:
    try:
        bot_class = BOTS[difficulty]
    except KeyError:
        raise ValueError(f"Unknown difficulty: {difficulty}")
    return bot_class(rng=rng, **kwargs)


def choose_draw_source(difficulty: str, discard_top: Optional[Card],
                       rng: Optional[random.Random] = None) -> str:
    return get_bot(difficulty, rng).choose_draw_source(discard_top)


def decide(difficulty: str, drawn_card: Card, hand: List[Card], memory: AIMemory,
           own_seat: int, rng: Optional[random.Random] = None) -> BotAction:
    return get_bot(difficulty, rng).decide(drawn_card, hand, memory, own_seat)


def power_target(difficulty: str, power: str, own_seat: int, own_hand: List[Card],
                 opponents: List[Opponent], memory: AIMemory,
                 rng: Optional[random.Random] = None) -> Optional[PowerDecision]:
    return get_bot(difficulty, rng).power_target(power, own_seat, own_hand, opponents, memory)


__all__ = [
    "BaseBot", "BotAction", "Opponent", "PowerDecision",
    "BeginnerBot", "IntermediateBot", "HardcoreBot",
    "get_bot", "choose_draw_source", "decide", "power_target",
]
