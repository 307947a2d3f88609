"""
AI memory bookkeeping.

Every AI seat owns an independent AIMemory. All helpers here return new
objects; a memory handed to a caller is never changed afterwards, so two
AIs observing the same event can never alias each other's knowledge.
"""

from dataclasses import replace
from typing import Dict, Iterable, Optional

from .models import AIMemory, Card


def update_memory(memory: AIMemory, seat: int, index: int, card: Card) -> AIMemory:
    """Record that `card` sits at (seat, index)."""
    known = dict(memory.known)
    known[(seat, index)] = replace(card)
    return AIMemory(known=known, discarded=list(memory.discarded))


def forget_slot(memory: AIMemory, seat: int, index: int) -> AIMemory:
    known = dict(memory.known)
    known.pop((seat, index), None)
    return AIMemory(known=known, discarded=list(memory.discarded))


def forget_seat(memory: AIMemory, seat: int) -> AIMemory:
    known = {slot: card for slot, card in memory.known.items() if slot[0] != seat}
    return AIMemory(known=known, discarded=list(memory.discarded))


def record_discard(memory: AIMemory, card: Card) -> AIMemory:
    return AIMemory(known=dict(memory.known), discarded=memory.discarded + [replace(card)])


def observe_slot_change(
    memories: Dict[int, AIMemory],
    seat: int,
    index: int,
    actor_seat: Optional[int] = None,
    placed_card: Optional[Card] = None,
) -> Dict[int, AIMemory]:
    """
    A card at (seat, index) was replaced.

    Every observer forgets the slot; the acting seat, if it is an AI and
    knows what it put there, learns the new occupant instead.
    """
    updated = {}
    for observer, memory in memories.items():
        if observer == actor_seat and placed_card is not None:
            updated[observer] = update_memory(memory, seat, index, placed_card)
        else:
            updated[observer] = forget_slot(memory, seat, index)
    return updated


def observe_seat_reset(memories: Dict[int, AIMemory], seats: Iterable[int]) -> Dict[int, AIMemory]:
    """Full-hand event: every observer forgets everything about these seats."""
    seats = list(seats)
    updated = {}
    for observer, memory in memories.items():
        for seat in seats:
            memory = forget_seat(memory, seat)
        updated[observer] = memory
    return updated


def observe_discard(memories: Dict[int, AIMemory], card: Card) -> Dict[int, AIMemory]:
    """Every AI sees a card land face-up on the discard pile."""
    return {observer: record_discard(memory, card) for observer, memory in memories.items()}
