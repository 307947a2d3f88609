"""
Game engine: pure state transitions for Triple Seven.

Every public function takes a ServerGameState and returns an EngineResult
holding a *new* state plus the events to announce. The input state is never
modified. An illegal action comes back with success=False, the unchanged
state and a single warning event; nothing here raises for bad input from a
player.
"""

import copy
import logging
import random
from typing import List, Optional

from . import errors
from . import memory as ai_memory
from .bots import Opponent, PowerDecision, get_bot
from .constants import (
    DIFFICULTIES, DRAW_DECK, DRAW_DISCARD, KIND_AI, PHASE_GAME_OVER, PHASE_POWER_TARGET,
    PHASE_TURN_DECISION, PHASE_TURN_DRAW, POWER_LOCK, POWER_MASS_SWAP, POWER_PEEK, POWER_SWAP,
    POWER_UNLOCK, SEVERITY_INFO, SEVERITY_POWER, SEVERITY_SUCCESS, SEVERITY_WARNING,
    card_label, card_power, next_seat, power_name
)
from .effects import apply_lock, apply_mass_swap, apply_peek, apply_swap, apply_unlock
from .models import (
    AIMemory, Card, EngineResult, GameEvent, Player, SeatConfig, ServerGameState
)
from .ranking import determine_winner, score_players
from .rules import RuleConfig, default_rules
from .shuffle import build_deck, deal_cards, shuffle_deck
from .validate import (
    any_card_locked, has_legal_target, is_valid_slot, validate_power_target, validate_turn
)

logger = logging.getLogger(__name__)

SINGLE_TARGET_EFFECTS = {
    POWER_UNLOCK: apply_unlock,
    POWER_PEEK: apply_peek,
    POWER_LOCK: apply_lock,
}


def create_initial_state(
    seats: List[SeatConfig],
    difficulty: str,
    rules: Optional[RuleConfig] = None,
    seed: Optional[int] = None,
) -> ServerGameState:
    """
    Shuffle, deal four face-down cards to every seat and flip one card to
    start the discard pile. Seat 0 is on turn.
    """
    rules = rules or default_rules
    if len(seats) != rules.seat_count:
        raise ValueError(f"Need exactly {rules.seat_count} seats, got {len(seats)}")
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty}")

    remaining = shuffle_deck(build_deck(rules.include_jokers), seed=seed)
    players = []
    for seat_index, seat in enumerate(seats):
        dealt, remaining = deal_cards(remaining, rules.hand_size)
        for card in dealt:
            card.is_face_up = False
        players.append(Player(
            seat=seat_index,
            kind=seat.kind,
            name=seat.name,
            hand=dealt,
            connection_id=seat.connection_id,
        ))

    first_discard, deck = deal_cards(remaining, 1)
    first_discard[0].is_face_up = True

    return ServerGameState(
        deck=deck,
        discard_pile=first_discard,
        players=players,
        current_turn_seat=0,
        ai_memories={p.seat: AIMemory() for p in players if p.kind == KIND_AI},
        difficulty=difficulty,
        phase=PHASE_TURN_DRAW,
    )


def draw_from_deck(state: ServerGameState, seat: int) -> EngineResult:
    check = validate_turn(state, seat, PHASE_TURN_DRAW)
    if not check.valid:
        return _invalid(state, check.error_code, check.error_message)

    if not state.deck:
        new_state = copy.deepcopy(state)
        return _end_game(new_state, [GameEvent("The deck is empty!", SEVERITY_INFO)])

    new_state = copy.deepcopy(state)
    drawn = new_state.deck.pop(0)
    drawn.is_face_up = True
    new_state.drawn_card = drawn
    new_state.drawn_from = DRAW_DECK
    new_state.phase = PHASE_TURN_DECISION
    return EngineResult(state=new_state)


def draw_from_discard(state: ServerGameState, seat: int) -> EngineResult:
    check = validate_turn(state, seat, PHASE_TURN_DRAW)
    if not check.valid:
        return _invalid(state, check.error_code, check.error_message)
    if not state.discard_pile:
        return _invalid(state, errors.DISCARD_EMPTY, "The discard pile is empty")
    if state.discard_burned:
        return _invalid(state, errors.DISCARD_BURNED, "That card was just used for a power, draw from the deck")

    new_state = copy.deepcopy(state)
    drawn = new_state.discard_pile.pop()
    drawn.is_face_up = True
    new_state.drawn_card = drawn
    new_state.drawn_from = DRAW_DISCARD
    new_state.phase = PHASE_TURN_DECISION
    return EngineResult(state=new_state)


def swap_with_hand(state: ServerGameState, seat: int, hand_index: int) -> EngineResult:
    """Put the drawn card into the hand; the replaced card goes to the discard pile."""
    check = validate_turn(state, seat, PHASE_TURN_DECISION)
    if not check.valid:
        return _invalid(state, check.error_code, check.error_message)
    if state.drawn_card is None:
        return _invalid(state, errors.WRONG_PHASE, "Invalid action")
    if not is_valid_slot(state, seat, hand_index):
        return _invalid(state, errors.INVALID_TARGET, "No such card")
    if state.card_at(seat, hand_index).is_locked:
        return _invalid(state, errors.CARD_LOCKED, "Card is locked!")

    new_state = copy.deepcopy(state)
    hand = new_state.players[seat].hand
    removed = hand[hand_index]
    removed.is_face_up = True
    removed.is_peeking = False
    placed = new_state.drawn_card
    placed.is_face_up = False
    hand[hand_index] = placed

    memories = ai_memory.observe_slot_change(
        new_state.ai_memories, seat, hand_index, actor_seat=seat, placed_card=placed
    )
    new_state.ai_memories = ai_memory.observe_discard(memories, removed)
    new_state.discard_pile.append(removed)
    new_state.drawn_card = None
    new_state.drawn_from = None

    return _resolve_discard(new_state, seat, removed, [])


def discard_drawn(state: ServerGameState, seat: int) -> EngineResult:
    check = validate_turn(state, seat, PHASE_TURN_DECISION)
    if not check.valid:
        return _invalid(state, check.error_code, check.error_message)
    if state.drawn_card is None:
        return _invalid(state, errors.WRONG_PHASE, "Invalid action")

    new_state = copy.deepcopy(state)
    discarded = new_state.drawn_card
    discarded.is_face_up = True
    new_state.discard_pile.append(discarded)
    new_state.ai_memories = ai_memory.observe_discard(new_state.ai_memories, discarded)
    new_state.drawn_card = None
    new_state.drawn_from = None

    return _resolve_discard(new_state, seat, discarded, [])


def select_power_target(state: ServerGameState, seat: int, target_seat: int, target_index: int) -> EngineResult:
    check = validate_turn(state, seat, PHASE_POWER_TARGET)
    if not check.valid:
        return _invalid(state, check.error_code, check.error_message)
    power = state.active_power
    if power is None:
        return _invalid(state, errors.WRONG_PHASE, "No power to use")

    if power == POWER_SWAP and state.swap_source is None:
        check = validate_power_target(state, power, seat, target_seat, target_index)
        if not check.valid:
            return _invalid(state, check.error_code, check.error_message)
        new_state = copy.deepcopy(state)
        new_state.swap_source = (target_seat, target_index)
        new_state.card_at(target_seat, target_index).is_selected = True
        return EngineResult(state=new_state, events=[GameEvent(
            "Select second card to swap",
            SEVERITY_INFO,
            kind='swap_source',
            data={'seat': target_seat, 'index': target_index},
        )])

    check = validate_power_target(state, power, seat, target_seat, target_index, swap_source=state.swap_source)
    if not check.valid:
        return _invalid(state, check.error_code, check.error_message)

    new_state = copy.deepcopy(state)
    if power == POWER_SWAP:
        new_state, events = apply_swap(new_state, seat, new_state.swap_source, (target_seat, target_index))
    elif power == POWER_MASS_SWAP:
        new_state, events = apply_mass_swap(new_state, seat, target_seat)
    else:
        new_state, events = SINGLE_TARGET_EFFECTS[power](new_state, seat, target_seat, target_index)

    return _finish_power(new_state, events)


def skip_power(state: ServerGameState, seat: int) -> EngineResult:
    """Abandon the active power without using it and pass the turn."""
    check = validate_turn(state, seat, PHASE_POWER_TARGET)
    if not check.valid:
        return _invalid(state, check.error_code, check.error_message)

    new_state = copy.deepcopy(state)
    name = new_state.players[seat].name
    return _finish_power(new_state, [GameEvent(f"{name} skipped their power", SEVERITY_INFO)])


def force_timeout(state: ServerGameState, seat: int) -> EngineResult:
    """
    Most conservative play for a seat that ran out of time.

    turn_draw: draw from the deck and discard it. turn_decision: discard the
    drawn card. power_target: abandon the power. A power triggered by the
    automatic discard is abandoned as well.
    """
    if state.phase == PHASE_GAME_OVER or state.current_turn_seat != seat:
        return _invalid(state, errors.NOT_YOUR_TURN, "Not your turn")

    events: List[GameEvent] = []
    if state.phase == PHASE_TURN_DRAW:
        result = draw_from_deck(state, seat)
        state = result.state
        events.extend(result.events)
    if state.phase == PHASE_TURN_DECISION and state.current_turn_seat == seat:
        result = discard_drawn(state, seat)
        state = result.state
        events.extend(result.events)
    if state.phase == PHASE_POWER_TARGET and state.current_turn_seat == seat:
        result = skip_power(state, seat)
        state = result.state
        events.extend(result.events)
    return EngineResult(state=state, events=events)


def execute_ai_turn(
    state: ServerGameState,
    rng: Optional[random.Random] = None,
    rules: Optional[RuleConfig] = None,
) -> EngineResult:
    """
    Play a whole turn for the AI seat on turn: draw, keep or discard, and
    aim any triggered power, in one transition.
    """
    seat = state.current_turn_seat
    if state.phase != PHASE_TURN_DRAW:
        return _invalid(state, errors.WRONG_PHASE, "Invalid action")
    if state.current_player.kind != KIND_AI:
        return _invalid(state, errors.NOT_AI_SEAT, "Not an AI seat")

    new_state = copy.deepcopy(state)
    if not new_state.deck:
        return _end_game(new_state, [GameEvent("The deck is empty!", SEVERITY_INFO)])

    rules = rules or default_rules
    bot = get_bot(new_state.difficulty, rng, unknown_estimate=rules.unknown_card_estimate)
    player = new_state.players[seat]
    if seat not in new_state.ai_memories:
        new_state.ai_memories[seat] = AIMemory()
    events: List[GameEvent] = []

    discard_top = None if new_state.discard_burned else new_state.discard_top
    if bot.choose_draw_source(discard_top) == DRAW_DISCARD and discard_top is not None:
        drawn = new_state.discard_pile.pop()
        events.append(GameEvent(f"{player.name} drew from discard", SEVERITY_INFO))
    else:
        drawn = new_state.deck.pop(0)
        events.append(GameEvent(f"{player.name} drew from deck", SEVERITY_INFO))
    drawn.is_face_up = True

    decision = bot.decide(drawn, player.hand, new_state.ai_memories[seat], seat)
    index = decision.swap_index

    if decision.type == 'swap' and is_valid_slot(new_state, seat, index):
        if player.hand[index].is_locked:
            # fallback discard, no power check
            new_state.discard_pile.append(drawn)
            new_state.ai_memories = ai_memory.observe_discard(new_state.ai_memories, drawn)
            new_state.discard_burned = False
            return _advance_turn(new_state, events)

        removed = player.hand[index]
        removed.is_face_up = True
        removed.is_peeking = False
        drawn.is_face_up = False
        player.hand[index] = drawn
        memories = ai_memory.observe_slot_change(
            new_state.ai_memories, seat, index, actor_seat=seat, placed_card=drawn
        )
        new_state.ai_memories = ai_memory.observe_discard(memories, removed)
        new_state.discard_pile.append(removed)
        events.append(GameEvent(f"{player.name} swapped a card", SEVERITY_INFO))
        return _resolve_ai_discard(new_state, seat, removed, bot, events)

    new_state.discard_pile.append(drawn)
    new_state.ai_memories = ai_memory.observe_discard(new_state.ai_memories, drawn)
    return _resolve_ai_discard(new_state, seat, drawn, bot, events)


def clear_peek(state: ServerGameState, seat: int, index: int) -> EngineResult:
    """Hide a peeked card again. success=False when there was nothing to hide."""
    if not is_valid_slot(state, seat, index) or not state.card_at(seat, index).is_peeking:
        return EngineResult(state=state, success=False)
    new_state = copy.deepcopy(state)
    new_state.card_at(seat, index).is_peeking = False
    return EngineResult(state=new_state)


def convert_to_ai(state: ServerGameState, seat: int, name: str) -> ServerGameState:
    """Hand a seat over to the AI for the rest of the game."""
    new_state = copy.deepcopy(state)
    player = new_state.players[seat]
    player.kind = KIND_AI
    player.name = name
    player.connection_id = None
    if seat not in new_state.ai_memories:
        new_state.ai_memories[seat] = AIMemory()
    return new_state


def end_game(state: ServerGameState, reason: str) -> EngineResult:
    """Stop the game where it stands and score the hands as they are."""
    if state.phase == PHASE_GAME_OVER:
        return _invalid(state, errors.WRONG_PHASE, "Game is already over")
    new_state = copy.deepcopy(state)
    return _end_game(new_state, [GameEvent(reason, SEVERITY_INFO)])


# Internal transitions. These work on a state the caller already copied.

def _invalid(state: ServerGameState, code: str, message: str) -> EngineResult:
    logger.debug(f"Rejected action: {code} {message}")
    return EngineResult(
        state=state,
        events=[GameEvent(message, SEVERITY_WARNING)],
        success=False,
        error_code=code,
    )


def _trigger_power(state: ServerGameState, seat: int, card: Card, events: List[GameEvent]) -> Optional[str]:
    """
    Check the card that just hit the discard pile. Returns the power that
    fired, or None. A power with nothing to aim at is suppressed and counts
    as a plain discard.
    """
    power = card_power(card)
    if power is not None and not has_legal_target(state, power, seat):
        if power == POWER_UNLOCK and not any_card_locked(state):
            events.append(GameEvent("No locked cards, Unlock has no effect", SEVERITY_INFO))
        else:
            events.append(GameEvent(f"{power_name(power)} has no target", SEVERITY_INFO))
        power = None

    if power is None:
        state.discard_burned = False
        return None

    card.power_used = True
    state.discard_burned = True
    return power


def _resolve_discard(state: ServerGameState, seat: int, card: Card, events: List[GameEvent]) -> EngineResult:
    power = _trigger_power(state, seat, card, events)
    if power is None:
        return _advance_turn(state, events)

    events.append(GameEvent(
        f"{card_label(card)} power: {power_name(power)}!",
        SEVERITY_POWER,
        kind='power',
        data={'power': power, 'seat': seat},
    ))
    state.active_power = power
    state.power_source_seat = seat
    state.swap_source = None
    state.phase = PHASE_POWER_TARGET
    return EngineResult(state=state, events=events)


def _resolve_ai_discard(state: ServerGameState, seat: int, card: Card, bot, events: List[GameEvent]) -> EngineResult:
    power = _trigger_power(state, seat, card, events)
    if power is None:
        return _advance_turn(state, events)

    player = state.players[seat]
    events.append(GameEvent(
        f"{player.name} used {card_label(card)}: {power_name(power)}!",
        SEVERITY_POWER,
        kind='power',
        data={'power': power, 'seat': seat},
    ))
    opponents = [Opponent(seat=p.seat, hand=p.hand) for p in state.players if p.seat != seat]
    decision = bot.power_target(power, seat, player.hand, opponents, state.ai_memories[seat])
    state, power_events = _apply_ai_power(state, seat, power, decision)
    events.extend(power_events)
    return _advance_turn(state, events)


def _apply_ai_power(state: ServerGameState, seat: int, power: str, decision: Optional[PowerDecision]):
    name = state.players[seat].name
    if decision is None:
        return state, [GameEvent(f"{name} held back the {power_name(power)}", SEVERITY_INFO)]

    if power == POWER_SWAP:
        own = (seat, decision.swap_own_index)
        target = (decision.target_seat, decision.target_index)
        own_check = validate_power_target(state, power, seat, *own)
        target_check = validate_power_target(state, power, seat, *target, swap_source=own)
        if not (own_check.valid and target_check.valid):
            logger.debug(f"AI seat {seat} aimed swap at an illegal slot: {own} -> {target}")
            return state, []
        return apply_swap(state, seat, own, target)

    check = validate_power_target(state, power, seat, decision.target_seat, decision.target_index)
    if not check.valid:
        logger.debug(f"AI seat {seat} aimed {power} at an illegal target: {check.error_code}")
        return state, []
    if power == POWER_MASS_SWAP:
        return apply_mass_swap(state, seat, decision.target_seat)
    return SINGLE_TARGET_EFFECTS[power](state, seat, decision.target_seat, decision.target_index)


def _finish_power(state: ServerGameState, events: List[GameEvent]) -> EngineResult:
    for player in state.players:
        for card in player.hand:
            card.is_selected = False
    state.active_power = None
    state.power_source_seat = None
    state.swap_source = None
    return _advance_turn(state, events)


def _advance_turn(state: ServerGameState, events: List[GameEvent]) -> EngineResult:
    if not state.deck:
        return _end_game(state, events)

    upcoming = next_seat(state.current_turn_seat, len(state.players))
    if upcoming == 0:
        state.turn_count += 1
    state.current_turn_seat = upcoming
    state.phase = PHASE_TURN_DRAW
    state.drawn_card = None
    state.drawn_from = None
    state.active_power = None
    state.power_source_seat = None
    state.swap_source = None
    return EngineResult(state=state, events=events)


def _end_game(state: ServerGameState, events: List[GameEvent]) -> EngineResult:
    """Reveal every hand, score it and crown the lowest total."""
    for player in state.players:
        for card in player.hand:
            card.is_face_up = True
            card.is_peeking = False
            card.is_selected = False

    scores = score_players(state.players)
    for player, score in zip(state.players, scores):
        player.score = score
    winner_seat, winning_score = determine_winner(scores)

    state.winner_seat = winner_seat
    state.phase = PHASE_GAME_OVER
    state.drawn_card = None
    state.drawn_from = None
    state.active_power = None
    state.power_source_seat = None
    state.swap_source = None

    winner = state.players[winner_seat]
    logger.info(f"Game over: {winner.name} (seat {winner_seat}) wins with {winning_score}, scores={scores}")
    events.append(GameEvent(
        f"{winner.name} wins with {winning_score} points!",
        SEVERITY_SUCCESS,
        kind='game_over',
        data={'winner_seat': winner_seat, 'scores': scores},
    ))
    return EngineResult(state=state, events=events)
