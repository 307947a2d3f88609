"""
Beginner bot: coin flips and uniform picks among legal targets.
"""

from typing import List, Optional

from .base import BaseBot, BotAction, Opponent, PowerDecision
from ..constants import (
    DRAW_DECK, DRAW_DISCARD, POWER_LOCK, POWER_MASS_SWAP, POWER_PEEK, POWER_SWAP, POWER_UNLOCK
)
from ..models import AIMemory, Card


class BeginnerBot(BaseBot):
    """Ignores its memory entirely."""

    def choose_draw_source(self, discard_top: Optional[Card]) -> str:
        if discard_top is None:
            return DRAW_DECK
        return DRAW_DISCARD if self.rng.random() < 0.5 else DRAW_DECK

    def decide(self, drawn_card: Card, hand: List[Card], memory: AIMemory, own_seat: int) -> BotAction:
        if self.rng.random() < 0.5:
            candidates = self.unlocked_slots(hand)
            if candidates:
                return BotAction.swap(self.pick(candidates))
        return BotAction.discard()

    def power_target(
        self,
        power: str,
        own_seat: int,
        own_hand: List[Card],
        opponents: List[Opponent],
        memory: AIMemory,
    ) -> Optional[PowerDecision]:
        if power == POWER_UNLOCK:
            locked = self.all_locked(own_seat, own_hand, opponents)
            if not locked:
                return None
            seat, index = self.pick(locked)
            return PowerDecision(power, seat, index)

        if power == POWER_SWAP:
            own_unlocked = self.unlocked_slots(own_hand)
            opp_unlocked = self.all_opponent_unlocked(opponents)
            if not own_unlocked or not opp_unlocked:
                return None
            seat, index = self.pick(opp_unlocked)
            return PowerDecision(power, seat, index, swap_own_index=self.pick(own_unlocked))

        if power == POWER_PEEK:
            slots = [(own_seat, i) for i in self.peekable_slots(own_hand)]
            for opp in opponents:
                slots.extend((opp.seat, i) for i in self.peekable_slots(opp.hand))
            if not slots:
                return None
            seat, index = self.pick(slots)
            return PowerDecision(power, seat, index)

        if power == POWER_LOCK:
            own_unlocked = self.unlocked_slots(own_hand)
            if not own_unlocked:
                return None
            return PowerDecision(power, own_seat, self.pick(own_unlocked))

        if power == POWER_MASS_SWAP:
            if not opponents:
                return None
            return PowerDecision(power, self.pick(opponents).seat, 0)

        return None
