"""
Intermediate bot: acts on what it remembers, never guesses about unseen cards.
"""

from typing import List, Optional

from .base import BaseBot, BotAction, Opponent, PowerDecision
from ..constants import (
    DRAW_DECK, DRAW_DISCARD, POWER_LOCK, POWER_MASS_SWAP, POWER_PEEK, POWER_SWAP, POWER_UNLOCK,
    card_power, card_value
)
from ..models import AIMemory, Card


class IntermediateBot(BaseBot):
    """
    Memory-driven strategy.

    - Takes the discard when it is cheap (value <= 3) or a King (lock)
    - Replaces the worst *known* own card; very cheap cards go into unknown
      slots first
    - Aims powers at remembered cards, falling back to random picks
    """

    def choose_draw_source(self, discard_top: Optional[Card]) -> str:
        if discard_top is None:
            return DRAW_DECK
        if card_value(discard_top) <= 3 or card_power(discard_top) == POWER_LOCK:
            return DRAW_DISCARD
        return DRAW_DECK

    def decide(self, drawn_card: Card, hand: List[Card], memory: AIMemory, own_seat: int) -> BotAction:
        drawn_value = card_value(drawn_card)
        own_known = self.known_for_seat(memory, own_seat)

        worst_index = -1
        worst_value = -1
        for index in self.unlocked_slots(hand):
            known = own_known.get(index)
            if known is not None and card_value(known) > worst_value:
                worst_value = card_value(known)
                worst_index = index

        if drawn_value <= 3:
            if worst_index >= 0 and worst_value > drawn_value:
                return BotAction.swap(worst_index)
            unknowns = [i for i in self.unlocked_slots(hand) if i not in own_known]
            if unknowns:
                return BotAction.swap(self.pick(unknowns))
            if worst_index >= 0:
                return BotAction.swap(worst_index)

        if drawn_value >= 8:
            return BotAction.discard()
        if worst_index >= 0 and drawn_value < worst_value:
            return BotAction.swap(worst_index)
        return BotAction.discard()

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
            known_slots = [i for i in own_unlocked if i in own_known]
            if known_slots:
                best = min(known_slots, key=lambda i: card_value(own_known[i]))
                return PowerDecision(power, own_seat, best)
            return PowerDecision(power, own_seat, own_unlocked[0])

        if power == POWER_PEEK:
            own_unknown = [i for i in self.peekable_slots(own_hand) if i not in own_known]
            if own_unknown:
                return PowerDecision(power, own_seat, own_unknown[0])
            for opp in opponents:
                opp_known = self.known_for_seat(memory, opp.seat)
                opp_unknown = [i for i in self.peekable_slots(opp.hand) if i not in opp_known]
                if opp_unknown:
                    return PowerDecision(power, opp.seat, opp_unknown[0])
            return None

        if power == POWER_SWAP:
            own_unlocked = self.unlocked_slots(own_hand)
            if not own_unlocked:
                return None
            worst_own = own_unlocked[0]
            worst_value = 0
            for index in own_unlocked:
                known = own_known.get(index)
                if known is not None and card_value(known) > worst_value:
                    worst_value = card_value(known)
                    worst_own = index

            best = None
            best_value = None
            for opp in opponents:
                opp_known = self.known_for_seat(memory, opp.seat)
                for index in self.unlocked_slots(opp.hand):
                    known = opp_known.get(index)
                    if known is not None and (best_value is None or card_value(known) < best_value):
                        best_value = card_value(known)
                        best = (opp.seat, index)
            if best is not None:
                return PowerDecision(power, best[0], best[1], swap_own_index=worst_own)

            opp_unlocked = self.all_opponent_unlocked(opponents)
            if not opp_unlocked:
                return None
            seat, index = self.pick(opp_unlocked)
            return PowerDecision(power, seat, index, swap_own_index=worst_own)

        if power == POWER_UNLOCK:
            own_locked = self.locked_slots(own_hand)
            if own_locked:
                return PowerDecision(power, own_seat, own_locked[0])
            for opp in opponents:
                opp_locked = self.locked_slots(opp.hand)
                if opp_locked:
                    return PowerDecision(power, opp.seat, opp_locked[0])
            return None

        if power == POWER_MASS_SWAP:
            if not opponents:
                return None
            return PowerDecision(power, self.pick(opponents).seat, 0)

        return None
