"""
Power card effects implementation.

Every function applies one effect to a state the caller owns and returns it
with the events to announce. Callers copy first: the engine hands in the
state it already deep-copied for the transition. Targets are assumed to be
validated already (see validate.validate_power_target).
"""

from typing import List, Tuple

from . import memory as ai_memory
from .constants import KIND_AI, SEVERITY_INFO, SEVERITY_POWER, SEVERITY_WARNING
from .models import GameEvent, ServerGameState, Slot

EffectOutcome = Tuple[ServerGameState, List[GameEvent]]


def apply_unlock(state: ServerGameState, actor_seat: int, target_seat: int, target_index: int) -> EffectOutcome:
    """Unlock a locked card."""
    state.card_at(target_seat, target_index).is_locked = False

    actor = state.players[actor_seat]
    target = state.players[target_seat]
    return state, [GameEvent(
        message=f"{actor.name} unlocked {_owner(target, actor_seat)} card!",
        severity=SEVERITY_INFO,
        data={'seat': target_seat, 'index': target_index},
    )]


def apply_lock(state: ServerGameState, actor_seat: int, target_seat: int, target_index: int) -> EffectOutcome:
    """Lock a card in place: it can no longer be swapped, peeked or replaced."""
    state.card_at(target_seat, target_index).is_locked = True

    actor = state.players[actor_seat]
    target = state.players[target_seat]
    return state, [GameEvent(
        message=f"{actor.name} locked {_owner(target, actor_seat)} card!",
        severity=SEVERITY_INFO,
        data={'seat': target_seat, 'index': target_index},
    )]


def apply_peek(state: ServerGameState, actor_seat: int, target_seat: int, target_index: int) -> EffectOutcome:
    """
    Look at one card.

    An AI actor privately records the card in its memory. A human actor gets
    the card revealed (is_peeking) until the room's peek timer clears it.
    """
    actor = state.players[actor_seat]
    target = state.players[target_seat]
    card = state.card_at(target_seat, target_index)

    if actor.kind == KIND_AI and actor_seat in state.ai_memories:
        state.ai_memories[actor_seat] = ai_memory.update_memory(
            state.ai_memories[actor_seat], target_seat, target_index, card
        )
        return state, [GameEvent(
            message=f"{actor.name} peeked at {_owner(target, actor_seat)} card",
            severity=SEVERITY_INFO,
            data={'seat': target_seat, 'index': target_index},
        )]

    card.is_peeking = True
    return state, [GameEvent(
        message=f"Peeking at {_owner(target, actor_seat)} card...",
        severity=SEVERITY_INFO,
        kind='peek',
        data={'seat': target_seat, 'index': target_index},
    )]


def apply_swap(state: ServerGameState, actor_seat: int, first: Slot, second: Slot) -> EffectOutcome:
    """Exchange two cards anywhere on the board."""
    first_seat, first_index = first
    second_seat, second_index = second

    first_hand = state.players[first_seat].hand
    second_hand = state.players[second_seat].hand
    first_hand[first_index], second_hand[second_index] = second_hand[second_index], first_hand[first_index]
    # a moved card is no longer the one being peeked at
    first_hand[first_index].is_peeking = False
    second_hand[second_index].is_peeking = False

    # the actor knows whatever it already knew, now one slot over
    actor_memory = state.ai_memories.get(actor_seat)
    knew_first = actor_memory.known.get(first) if actor_memory else None
    knew_second = actor_memory.known.get(second) if actor_memory else None

    memories = ai_memory.observe_slot_change(state.ai_memories, first_seat, first_index)
    memories = ai_memory.observe_slot_change(memories, second_seat, second_index)
    if actor_seat in memories:
        if knew_first is not None:
            memories[actor_seat] = ai_memory.update_memory(memories[actor_seat], second_seat, second_index, knew_first)
        if knew_second is not None:
            memories[actor_seat] = ai_memory.update_memory(memories[actor_seat], first_seat, first_index, knew_second)
    state.ai_memories = memories

    actor = state.players[actor_seat]
    if actor_seat in (first_seat, second_seat):
        other_seat = second_seat if first_seat == actor_seat else first_seat
        if other_seat == actor_seat:
            message = f"{actor.name} rearranged their cards"
        else:
            message = f"{actor.name} swapped cards with {state.players[other_seat].name}!"
    else:
        message = (f"{actor.name} swapped {state.players[first_seat].name}'s card "
                   f"with {state.players[second_seat].name}'s!")
    return state, [GameEvent(
        message=message,
        severity=SEVERITY_WARNING if actor.kind == KIND_AI else SEVERITY_INFO,
        data={'first': list(first), 'second': list(second)},
    )]


def apply_mass_swap(state: ServerGameState, actor_seat: int, target_seat: int) -> EffectOutcome:
    """Exchange whole hands slot by slot; a slot locked on either side stays put."""
    own_hand = state.players[actor_seat].hand
    target_hand = state.players[target_seat].hand

    swapped = []
    for index in range(min(len(own_hand), len(target_hand))):
        if own_hand[index].is_locked or target_hand[index].is_locked:
            continue
        own_hand[index], target_hand[index] = target_hand[index], own_hand[index]
        own_hand[index].is_peeking = False
        target_hand[index].is_peeking = False
        swapped.append(index)

    state.ai_memories = ai_memory.observe_seat_reset(state.ai_memories, [actor_seat, target_seat])

    actor = state.players[actor_seat]
    return state, [GameEvent(
        message=f"{actor.name}: Mass swap with {state.players[target_seat].name}!",
        severity=SEVERITY_POWER,
        data={'seat': actor_seat, 'target_seat': target_seat, 'swapped': swapped},
    )]


def _owner(target, actor_seat: int) -> str:
    return "their own" if target.seat == actor_seat else f"{target.name}'s"
