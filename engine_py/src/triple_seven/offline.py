"""
Headless runner: plays whole games on the engine with no room or network.

Every seat is driven by the AI of the chosen difficulty. Used for quick
simulations and as a smoke test for the engine and the bots together.

Four AI seats can settle into a loop where every seat takes the cheap
discard and throws it straight back, so the deck never shrinks. The runner
therefore ends a game once `stall_rounds` full rounds pass without anyone
drawing from the deck, and scores the hands as they stand. Rooms never do
this; the guard only exists here.
"""

import argparse
import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from . import engine
from .constants import DIFFICULTIES, KIND_AI, PHASE_GAME_OVER
from .models import GameEvent, SeatConfig, ServerGameState
from .rules import RuleConfig, default_rules

logger = logging.getLogger(__name__)

MAX_STEPS = 1000
STALL_ROUNDS = 5
STALL_MESSAGE = "Nobody is drawing from the deck, hands are scored as they stand"


@dataclass
class OfflineGame:
    state: ServerGameState
    events: List[GameEvent] = field(default_factory=list)
    steps: int = 0
    stalled: bool = False

    @property
    def finished(self) -> bool:
        return self.state.phase == PHASE_GAME_OVER


def run_game(
    difficulty: str,
    seed: Optional[int] = None,
    rules: Optional[RuleConfig] = None,
    max_steps: int = MAX_STEPS,
    stall_rounds: Optional[int] = STALL_ROUNDS,
) -> OfflineGame:
    """
    Play one all-AI game to the end, or until max_steps AI turns.
    stall_rounds=None turns the stall guard off.
    """
    rules = rules or default_rules
    seats = [SeatConfig(kind=KIND_AI, name=f"AI {i + 1}") for i in range(rules.seat_count)]
    state = engine.create_initial_state(seats, difficulty, rules, seed)
    game = OfflineGame(state=state)
    rng = random.Random(seed)
    stall_limit = stall_rounds * rules.seat_count if stall_rounds else None
    idle_turns = 0

    while not game.finished and game.steps < max_steps:
        deck_before = len(game.state.deck)
        result = engine.execute_ai_turn(game.state, rng, rules)
        if not result.success:
            raise RuntimeError(f"AI turn rejected: {result.error_code} {result.error_message}")
        game.state = result.state
        game.events.extend(result.events)
        game.steps += 1

        idle_turns = idle_turns + 1 if len(game.state.deck) == deck_before else 0
        if stall_limit and not game.finished and idle_turns >= stall_limit:
            logger.info(f"No deck draw for {idle_turns} turns, ending the game with {deck_before} cards left")
            result = engine.end_game(game.state, STALL_MESSAGE)
            game.state = result.state
            game.events.extend(result.events)
            game.stalled = True

    if not game.finished:
        logger.warning(f"Game stopped after {game.steps} steps without finishing")
    return game


def simulate(games: int, difficulty: str, seed: Optional[int] = None) -> Dict[int, int]:
    """Play `games` games and count wins per seat. Stalled games count too."""
    wins: Counter = Counter()
    stalled = 0
    for index in range(games):
        game_seed = None if seed is None else seed + index
        game = run_game(difficulty, game_seed)
        if not game.finished:
            logger.warning(f"Game {index} (seed {game_seed}) has no winner after {game.steps} steps")
            continue
        stalled += game.stalled
        wins[game.state.winner_seat] += 1
    if stalled:
        logger.info(f"{stalled} of {games} games were scored early after stalling")
    return dict(wins)


def main():
    parser = argparse.ArgumentParser(description="Play Triple Seven games between AI seats.")
    parser.add_argument("--games", type=int, default=1)
    parser.add_argument("--difficulty", choices=DIFFICULTIES, default="intermediate")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.games == 1:
        game = run_game(args.difficulty, args.seed)
        for event in game.events:
            logger.info(event.message)
        scores = [p.score for p in game.state.players]
        ending = "stalled" if game.stalled else "finished"
        logger.info(f"Scores: {scores}, winner seat {game.state.winner_seat} after {game.steps} turns ({ending})")
        return

    wins = simulate(args.games, args.difficulty, args.seed)
    for seat in sorted(wins):
        logger.info(f"Seat {seat}: {wins[seat]} wins")


if __name__ == "__main__":
    main()
