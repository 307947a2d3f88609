"""
Engine transition tests: turns, powers, timeouts, end of game and AI turns.
"""

import copy
import itertools
import random

import pytest

from triple_seven import engine
from triple_seven.constants import (
    PHASE_GAME_OVER, PHASE_POWER_TARGET, PHASE_TURN_DECISION, PHASE_TURN_DRAW
)
from triple_seven.effects import apply_peek, apply_swap
from triple_seven.memory import update_memory
from triple_seven.models import AIMemory, Card, Player, ServerGameState

_ids = itertools.count()


def card(rank, suit="spades", **kwargs):
    return Card(id=f"{rank}{suit[0]}-{next(_ids)}", suit=suit, rank=rank, **kwargs)


def joker(color="red"):
    return Card(id=f"joker-{next(_ids)}", is_joker=True, joker_color=color)


def make_state(hands=None, deck=None, discard=None, kinds=None, seat=0, difficulty="intermediate"):
    kinds = kinds or ["human", "human", "human", "human"]
    hands = hands or [[card("5") for _ in range(4)] for _ in range(4)]
    deck = deck if deck is not None else [card("4") for _ in range(10)]
    discard = discard if discard is not None else [card("9", is_face_up=True)]
    players = [
        Player(seat=i, kind=kinds[i], name=f"P{i}", hand=hands[i])
        for i in range(4)
    ]
    return ServerGameState(
        deck=deck,
        discard_pile=discard,
        players=players,
        current_turn_seat=seat,
        ai_memories={i: AIMemory() for i in range(4) if kinds[i] == "ai"},
        difficulty=difficulty,
    )


def play_plain_turn(state, seat):
    state = engine.draw_from_deck(state, seat).state
    return engine.discard_drawn(state, seat).state


def test_draw_from_deck():
    state = make_state(deck=[card("8"), card("4")])
    result = engine.draw_from_deck(state, 0)

    assert result.success
    new_state = result.state
    assert new_state.phase == PHASE_TURN_DECISION
    assert new_state.drawn_card.rank == "8"
    assert new_state.drawn_card.is_face_up
    assert new_state.drawn_from == "deck"
    assert len(new_state.deck) == 1
    # the input state is never modified
    assert state.phase == PHASE_TURN_DRAW
    assert len(state.deck) == 2
    assert state.drawn_card is None


def test_draw_from_discard():
    state = make_state(discard=[card("9", is_face_up=True), card("3", is_face_up=True)])
    result = engine.draw_from_discard(state, 0)

    assert result.success
    assert result.state.drawn_card.rank == "3"
    assert result.state.drawn_from == "discard"
    assert [c.rank for c in result.state.discard_pile] == ["9"]


def test_draw_from_empty_discard_is_rejected():
    state = make_state(discard=[])
    result = engine.draw_from_discard(state, 0)
    assert not result.success
    assert result.error_code == "DISCARD_EMPTY"


def test_not_your_turn():
    state = make_state()
    result = engine.draw_from_deck(state, 1)

    assert not result.success
    assert result.error_code == "NOT_YOUR_TURN"
    assert result.error_message == "Not your turn"
    assert result.state is state
    assert result.events[0].severity == "warning"


def test_wrong_phase():
    state = make_state()
    result = engine.discard_drawn(state, 0)
    assert not result.success
    assert result.error_code == "WRONG_PHASE"

    result = engine.select_power_target(state, 0, 1, 0)
    assert not result.success
    assert result.error_code == "WRONG_PHASE"


def test_swap_with_hand():
    hands = [[card("5"), card("6"), card("8"), card("9")]] + [[card("5") for _ in range(4)] for _ in range(3)]
    state = make_state(hands=hands, deck=[card("2"), card("4")])
    state = engine.draw_from_deck(state, 0).state

    result = engine.swap_with_hand(state, 0, 2)
    assert result.success
    new_state = result.state
    assert new_state.players[0].hand[2].rank == "2"
    assert not new_state.players[0].hand[2].is_face_up
    assert new_state.discard_top.rank == "8"
    assert new_state.discard_top.is_face_up
    assert new_state.drawn_card is None
    assert new_state.current_turn_seat == 1
    assert new_state.phase == PHASE_TURN_DRAW


def test_swap_with_locked_slot_is_rejected():
    state = make_state()
    state.players[0].hand[1].is_locked = True
    state = engine.draw_from_deck(state, 0).state

    result = engine.swap_with_hand(state, 0, 1)
    assert not result.success
    assert result.error_code == "CARD_LOCKED"
    assert result.error_message == "Card is locked!"

    result = engine.swap_with_hand(state, 0, 7)
    assert not result.success
    assert result.error_code == "INVALID_TARGET"


def test_discard_drawn_passes_turn():
    state = make_state()
    new_state = play_plain_turn(state, 0)

    assert new_state.current_turn_seat == 1
    assert new_state.phase == PHASE_TURN_DRAW
    assert new_state.discard_top.rank == "4"
    assert not new_state.discard_burned


def test_turn_order_and_round_counter():
    state = make_state()
    seats = []
    for _ in range(4):
        seats.append(state.current_turn_seat)
        state = play_plain_turn(state, state.current_turn_seat)

    assert seats == [0, 1, 2, 3]
    assert state.current_turn_seat == 0
    assert state.turn_count == 1


def test_king_locks_a_card():
    """Seat 0 draws a King, discards it and locks seat 2's second card."""
    state = make_state(deck=[card("K"), card("4"), card("4")])
    state = engine.draw_from_deck(state, 0).state

    result = engine.discard_drawn(state, 0)
    assert result.success
    state = result.state
    assert state.phase == PHASE_POWER_TARGET
    assert state.active_power == "lock"
    assert state.power_source_seat == 0
    assert state.current_turn_seat == 0
    assert state.discard_top.power_used
    assert any(e.kind == "power" for e in result.events)

    result = engine.select_power_target(state, 0, 2, 1)
    assert result.success
    state = result.state
    assert state.players[2].hand[1].is_locked
    assert state.current_turn_seat == 1
    assert state.phase == PHASE_TURN_DRAW
    assert state.active_power is None


def test_locked_cards_cannot_be_targeted():
    state = make_state(deck=[card("K"), card("4")])
    state.players[1].hand[0].is_locked = True
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state

    result = engine.select_power_target(state, 0, 1, 0)
    assert not result.success
    assert result.error_code == "CARD_LOCKED"


def test_burned_discard_cannot_be_drawn():
    state = make_state(deck=[card("K"), card("4"), card("6"), card("4")])
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state
    state = engine.select_power_target(state, 0, 2, 1).state
    assert state.discard_burned

    result = engine.draw_from_discard(state, 1)
    assert not result.success
    assert result.error_code == "DISCARD_BURNED"

    # a plain discard lifts the burn
    state = play_plain_turn(state, 1)
    assert not state.discard_burned
    result = engine.draw_from_discard(state, 2)
    assert result.success
    assert result.state.drawn_card.rank == "4"


def test_replaced_hand_card_triggers_its_power():
    hands = [[card("K"), card("5"), card("5"), card("5")]] + [[card("5") for _ in range(4)] for _ in range(3)]
    state = make_state(hands=hands, deck=[card("2"), card("4")])
    state = engine.draw_from_deck(state, 0).state

    result = engine.swap_with_hand(state, 0, 0)
    assert result.state.phase == PHASE_POWER_TARGET
    assert result.state.active_power == "lock"
    assert result.state.players[0].hand[0].rank == "2"


def test_unlock_without_locked_cards_is_a_plain_discard():
    state = make_state(deck=[card("10"), card("4")])
    state = engine.draw_from_deck(state, 0).state

    result = engine.discard_drawn(state, 0)
    assert result.success
    assert result.state.phase == PHASE_TURN_DRAW
    assert result.state.current_turn_seat == 1
    assert not result.state.discard_burned
    assert "no effect" in result.events[0].message


def test_unlock_only_targets_locked_cards():
    state = make_state(deck=[card("10"), card("4")])
    state.players[3].hand[2].is_locked = True
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state
    assert state.active_power == "unlock"

    result = engine.select_power_target(state, 0, 3, 1)
    assert not result.success
    assert result.error_code == "CARD_NOT_LOCKED"

    result = engine.select_power_target(state, 0, 3, 2)
    assert result.success
    assert not result.state.players[3].hand[2].is_locked


def test_peek_reveals_until_cleared():
    state = make_state(deck=[card("Q"), card("4")])
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state
    assert state.active_power == "peek"

    result = engine.select_power_target(state, 0, 1, 0)
    assert result.success
    state = result.state
    assert state.players[1].hand[0].is_peeking
    peek_events = [e for e in result.events if e.kind == "peek"]
    assert peek_events and peek_events[0].data == {"seat": 1, "index": 0}
    assert state.current_turn_seat == 1

    cleared = engine.clear_peek(state, 1, 0)
    assert cleared.success
    assert not cleared.state.players[1].hand[0].is_peeking
    assert state.players[1].hand[0].is_peeking

    assert not engine.clear_peek(cleared.state, 1, 0).success


def test_ai_peek_goes_to_memory():
    state = make_state(kinds=["human", "ai", "ai", "ai"])
    owned = copy.deepcopy(state)
    new_state, events = apply_peek(owned, 1, 0, 2)

    target = state.players[0].hand[2]
    assert new_state.ai_memories[1].known[(0, 2)].id == target.id
    assert not new_state.players[0].hand[2].is_peeking
    assert (0, 2) not in state.ai_memories[1].known


def test_swap_power_takes_two_picks():
    state = make_state(deck=[card("J"), card("4")])
    first_id = state.players[0].hand[0].id
    second_id = state.players[2].hand[3].id
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state
    assert state.active_power == "swap"

    result = engine.select_power_target(state, 0, 0, 0)
    assert result.success
    state = result.state
    assert state.swap_source == (0, 0)
    assert state.phase == PHASE_POWER_TARGET
    assert state.players[0].hand[0].is_selected

    result = engine.select_power_target(state, 0, 0, 0)
    assert not result.success
    assert result.error_code == "SAME_CARD"

    result = engine.select_power_target(state, 0, 2, 3)
    assert result.success
    state = result.state
    assert state.players[0].hand[0].id == second_id
    assert state.players[2].hand[3].id == first_id
    assert not state.players[2].hand[3].is_selected
    assert state.swap_source is None
    assert state.current_turn_seat == 1


def test_mass_swap_skips_locked_slots():
    hands = [
        [card("A"), card("2"), card("3"), card("4")],
        [card("9"), card("9", is_locked=True), card("9"), card("9")],
        [card("5") for _ in range(4)],
        [card("5") for _ in range(4)],
    ]
    state = make_state(hands=hands, deck=[joker(), card("4")])
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state
    assert state.active_power == "mass_swap"

    result = engine.select_power_target(state, 0, 0, 0)
    assert not result.success
    assert result.error_code == "INVALID_TARGET"

    result = engine.select_power_target(state, 0, 1, 0)
    assert result.success
    assert [c.rank for c in result.state.players[0].hand] == ["9", "2", "9", "9"]
    assert [c.rank for c in result.state.players[1].hand] == ["A", "9", "3", "4"]
    assert result.state.players[1].hand[1].is_locked


def remember(state, observer, *slots):
    memory = state.ai_memories[observer]
    for seat, index in slots:
        memory = update_memory(memory, seat, index, state.card_at(seat, index))
    state.ai_memories[observer] = memory


def test_swap_power_clears_both_slots_for_every_observer():
    # 1. Setup
    state = make_state(kinds=["human", "ai", "ai", "ai"], deck=[card("J"), card("4")])
    remember(state, 1, (0, 0), (2, 3), (3, 1))
    remember(state, 2, (0, 0), (2, 3))
    remember(state, 3, (2, 3), (1, 2))
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state

    # 2. Action
    state = engine.select_power_target(state, 0, 0, 0).state
    result = engine.select_power_target(state, 0, 2, 3)

    # 3. Assert
    assert result.success
    memories = result.state.ai_memories
    for observer in (1, 2, 3):
        assert (0, 0) not in memories[observer].known
        assert (2, 3) not in memories[observer].known
    assert memories[1].known[(3, 1)].id == result.state.card_at(3, 1).id
    assert memories[3].known[(1, 2)].id == result.state.card_at(1, 2).id
    # the input state keeps its memories
    assert (2, 3) in state.ai_memories[3].known


def test_ai_swap_keeps_track_of_its_own_card():
    state = make_state(kinds=["human", "ai", "ai", "ai"], seat=1)
    remember(state, 1, (1, 0))
    remember(state, 2, (2, 3), (0, 1))
    moved_id = state.card_at(1, 0).id

    new_state, _ = apply_swap(copy.deepcopy(state), 1, (1, 0), (2, 3))

    assert new_state.ai_memories[1].known[(2, 3)].id == moved_id
    assert (1, 0) not in new_state.ai_memories[1].known
    assert (2, 3) not in new_state.ai_memories[2].known
    assert (0, 1) in new_state.ai_memories[2].known


def test_mass_swap_clears_both_seats_for_every_observer():
    # 1. Setup
    hands = [
        [card("A"), card("2"), card("3"), card("4")],
        [card("9"), card("9", is_locked=True), card("9"), card("9")],
        [card("5") for _ in range(4)],
        [card("5") for _ in range(4)],
    ]
    state = make_state(hands=hands, kinds=["human", "ai", "ai", "ai"], deck=[joker(), card("4")])
    remember(state, 1, (1, 1), (1, 3), (3, 3))
    remember(state, 2, (0, 1), (1, 2), (3, 0))
    remember(state, 3, (1, 0), (0, 3), (2, 2))
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state

    # 2. Action
    result = engine.select_power_target(state, 0, 1, 0)

    # 3. Assert
    assert result.success
    memories = result.state.ai_memories
    for observer in (1, 2, 3):
        assert not memories[observer].known_for_seat(0)
        assert not memories[observer].known_for_seat(1)
    # the locked slot stayed put but is forgotten along with the rest of the hand
    assert result.state.card_at(1, 1).is_locked
    assert (3, 3) in memories[1].known
    assert (3, 0) in memories[2].known
    assert (2, 2) in memories[3].known


def test_power_targets_leave_the_input_state_alone():
    state = make_state(deck=[card("K"), card("4")])
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state

    result = engine.select_power_target(state, 0, 2, 1)

    assert result.state.card_at(2, 1).is_locked
    assert not state.card_at(2, 1).is_locked
    assert state.phase == PHASE_POWER_TARGET


def test_skip_power():
    state = make_state(deck=[card("K"), card("4")])
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state

    result = engine.skip_power(state, 0)
    assert result.success
    assert result.state.active_power is None
    assert result.state.current_turn_seat == 1
    assert not any(c.is_locked for p in result.state.players for c in p.hand)


def test_force_timeout_in_draw_phase():
    state = make_state(deck=[card("6"), card("4")])
    result = engine.force_timeout(state, 0)

    assert result.success
    assert result.state.current_turn_seat == 1
    assert result.state.discard_top.rank == "6"
    assert len(result.state.deck) == 1


def test_force_timeout_abandons_triggered_power():
    state = make_state(deck=[card("K"), card("4")])
    result = engine.force_timeout(state, 0)

    assert result.success
    assert result.state.phase == PHASE_TURN_DRAW
    assert result.state.current_turn_seat == 1
    assert result.state.active_power is None
    assert result.state.discard_top.rank == "K"


def test_force_timeout_in_decision_and_power_phases():
    state = make_state(deck=[card("6"), card("4")])
    state = engine.draw_from_deck(state, 0).state
    result = engine.force_timeout(state, 0)
    assert result.state.current_turn_seat == 1
    assert result.state.discard_top.rank == "6"

    state = make_state(deck=[card("Q"), card("4")])
    state = engine.draw_from_deck(state, 0).state
    state = engine.discard_drawn(state, 0).state
    result = engine.force_timeout(state, 0)
    assert result.state.current_turn_seat == 1
    assert not any(c.is_peeking for p in result.state.players for c in p.hand)

    assert not engine.force_timeout(result.state, 0).success


def test_game_ends_when_deck_runs_out():
    hands = [
        [card("A"), card("2"), card("7"), card("7")],
        [card("7"), card("7"), card("7"), card("7")],
        [card("10"), card("2"), card("7"), card("7")],
        [card("3"), card("4"), card("7"), card("7")],
    ]
    state = make_state(hands=hands, deck=[card("4")])
    state = engine.draw_from_deck(state, 0).state
    result = engine.discard_drawn(state, 0)

    state = result.state
    assert state.phase == PHASE_GAME_OVER
    assert [p.score for p in state.players] == [3, 0, 12, 7]
    assert state.winner_seat == 1
    assert all(c.is_face_up for p in state.players for c in p.hand)
    assert result.events[-1].kind == "game_over"
    assert result.events[-1].severity == "success"

    assert not engine.draw_from_deck(state, 1).success


def test_draw_from_empty_deck_ends_game():
    state = make_state(deck=[])
    result = engine.draw_from_deck(state, 0)
    assert result.success
    assert result.state.phase == PHASE_GAME_OVER
    assert result.state.winner_seat is not None


def test_ai_with_empty_deck_ends_game_without_drawing():
    state = make_state(deck=[], kinds=["human", "ai", "ai", "ai"], seat=1, difficulty="beginner")
    result = engine.execute_ai_turn(state, random.Random(1))

    assert result.success
    assert result.state.phase == PHASE_GAME_OVER
    assert len(result.state.discard_pile) == len(state.discard_pile)
    assert result.state.drawn_card is None


def test_ai_turn_requires_ai_seat():
    state = make_state()
    result = engine.execute_ai_turn(state)
    assert not result.success
    assert result.error_code == "NOT_AI_SEAT"


def test_intermediate_ai_keeps_a_seven():
    state = make_state(
        deck=[card("7"), card("4")],
        discard=[card("9", is_face_up=True)],
        kinds=["ai", "ai", "ai", "ai"],
    )
    result = engine.execute_ai_turn(state, random.Random(4))

    assert result.success
    new_state = result.state
    hand = new_state.players[0].hand
    kept = [i for i, c in enumerate(hand) if c.rank == "7"]
    assert len(kept) == 1
    assert new_state.ai_memories[0].known[(0, kept[0])].rank == "7"
    assert new_state.discard_top.rank == "5"
    assert new_state.current_turn_seat == 1
    assert len(new_state.deck) == 1
    # every AI saw the discard
    assert all(m.discarded and m.discarded[-1].rank == "5" for m in new_state.ai_memories.values())


def test_ai_does_not_take_burned_discard():
    state = make_state(
        deck=[card("9"), card("4")],
        discard=[card("7", is_face_up=True)],
        kinds=["ai", "ai", "ai", "ai"],
        difficulty="hardcore",
    )
    state.discard_burned = True
    result = engine.execute_ai_turn(state, random.Random(2))

    assert result.success
    assert result.events[0].message == "P0 drew from deck"
    assert len(result.state.deck) == 1


def test_hand_change_invalidates_other_memories():
    state = make_state(kinds=["human", "ai", "ai", "ai"])
    state.ai_memories[1] = update_memory(state.ai_memories[1], 0, 2, state.players[0].hand[2])
    state.ai_memories[2] = update_memory(state.ai_memories[2], 0, 1, state.players[0].hand[1])

    state = engine.draw_from_deck(state, 0).state
    state = engine.swap_with_hand(state, 0, 2).state

    assert (0, 2) not in state.ai_memories[1].known
    assert (0, 1) in state.ai_memories[2].known


def test_convert_to_ai():
    state = make_state()
    state.players[2].connection_id = "c3"

    new_state = engine.convert_to_ai(state, 2, "AI 3")
    assert new_state.players[2].kind == "ai"
    assert new_state.players[2].name == "AI 3"
    assert new_state.players[2].connection_id is None
    assert new_state.ai_memories[2].known == {}
    assert state.players[2].kind == "human"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
