"""
Hardcore bot: assumes an average value for unseen cards and plays the odds.
"""

from typing import List, Optional

from .base import BaseBot, BotAction, Opponent, PowerDecision
from ..constants import (
    DRAW_DECK, DRAW_DISCARD, POWER_LOCK, POWER_MASS_SWAP, POWER_PEEK, POWER_SWAP, POWER_UNLOCK,
    card_power, card_value
)
from ..models import AIMemory, Card


class HardcoreBot(BaseBot):

    def choose_draw_source(self, discard_top: Optional[Card]) -> str:
        if discard_top is None:
            return DRAW_DECK
        value = card_value(discard_top)
        if value in (0, 1):
            return DRAW_DISCARD
        if card_power(discard_top) in (POWER_LOCK, POWER_MASS_SWAP):
            return DRAW_DISCARD
        if value <= 4:
            return DRAW_DISCARD
        return DRAW_DECK

    def decide(self, drawn_card: Card, hand: List[Card], memory: AIMemory, own_seat: int) -> BotAction:
        drawn_value = card_value(drawn_card)
        own_known = self.known_for_seat(memory, own_seat)

        worst_index = -1
        worst_value = -1
        for index in self.unlocked_slots(hand):
            value = self.estimate(own_known, index)
            if value > worst_value:
                worst_value = value
                worst_index = index

        if worst_index >= 0 and drawn_value < worst_value:
            return BotAction.swap(worst_index)
        return BotAction.discard()

    def _hand_estimate(self, hand: List[Card], known) -> int:
        # locked cards cannot move in a mass swap, so they are left out
        return sum(self.estimate(known, i) for i in self.unlocked_slots(hand))

    def power_target(
        self,
        power: str,
        own_seat: int,
        own_hand: List[Card],
        opponents: List[Opponent],
        memory: AIMemory,
    ) -> Optional[PowerDecision]:
        own_known = self.known_for_seat(memory, own_seat)

        if power == POWER_LOCK:
            own_unlocked = self.unlocked_slots(own_hand)
            if not own_unlocked:
                return None
            best = min(own_unlocked, key=lambda i: self.estimate(own_known, i))
            return PowerDecision(power, own_seat, best)

        if power == POWER_PEEK:
            # opponents first: their cards are the swap targets
            for opp in opponents:
                opp_known = self.known_for_seat(memory, opp.seat)
                opp_unknown = [i for i in self.peekable_slots(opp.hand) if i not in opp_known]
                if opp_unknown:
                    return PowerDecision(power, opp.seat, opp_unknown[0])
            own_unknown = [i for i in self.peekable_slots(own_hand) if i not in own_known]
            if own_unknown:
                return PowerDecision(power, own_seat, own_unknown[0])
            return None

        if power == POWER_SWAP:
            own_unlocked = self.unlocked_slots(own_hand)
            if not own_unlocked:
                return None
            worst_own = max(own_unlocked, key=lambda i: self.estimate(own_known, i))
            worst_value = self.estimate(own_known, worst_own)

            best = None
            best_value = None
            for opp in opponents:
                opp_known = self.known_for_seat(memory, opp.seat)
                for index in self.unlocked_slots(opp.hand):
                    known = opp_known.get(index)
                    if known is not None and (best_value is None or card_value(known) < best_value):
                        best_value = card_value(known)
                        best = (opp.seat, index)
            if best is not None and best_value < worst_value:
                return PowerDecision(power, best[0], best[1], swap_own_index=worst_own)

            opp_unlocked = self.all_opponent_unlocked(opponents)
            if not opp_unlocked:
                return None
            seat, index = self.pick(opp_unlocked)
            return PowerDecision(power, seat, index, swap_own_index=worst_own)

        if power == POWER_UNLOCK:
            # free an opponent's card so it can be stolen later
            for opp in opponents:
                opp_locked = self.locked_slots(opp.hand)
                if opp_locked:
                    return PowerDecision(power, opp.seat, opp_locked[0])
            own_locked = self.locked_slots(own_hand)
            if own_locked:
                return PowerDecision(power, own_seat, own_locked[0])
            return None

        if power == POWER_MASS_SWAP:
            own_score = self._hand_estimate(own_hand, own_known)
            best_seat = None
            best_score = None
            for opp in opponents:
                score = self._hand_estimate(opp.hand, self.known_for_seat(memory, opp.seat))
                if best_score is None or score < best_score:
                    best_score = score
                    best_seat = opp.seat
            if best_seat is not None and best_score < own_score:
                return PowerDecision(power, best_seat, 0)
            return None

        return None
