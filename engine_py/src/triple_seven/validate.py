"""
Action and power-target validation.
"""

from typing import List, Optional

from . import errors
from .constants import (
    PHASE_GAME_OVER, POWER_LOCK, POWER_MASS_SWAP, POWER_PEEK, POWER_SWAP, POWER_UNLOCK
)
from .models import ServerGameState, Slot


class ValidationResult:
    """Result of validating an action."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def success(cls) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


def validate_turn(state: ServerGameState, seat: int, phase: str) -> ValidationResult:
    """Check that `seat` is on turn and the game is in `phase`."""
    if state.phase == PHASE_GAME_OVER:
        return ValidationResult.error(errors.WRONG_PHASE, "The game is over")
    if state.current_turn_seat != seat:
        return ValidationResult.error(errors.NOT_YOUR_TURN, "Not your turn")
    if state.phase != phase:
        return ValidationResult.error(errors.WRONG_PHASE, "Invalid action")
    return ValidationResult.success()


def is_valid_slot(state: ServerGameState, seat, index) -> bool:
    if not isinstance(seat, int) or not isinstance(index, int):
        return False
    if seat < 0 or seat >= len(state.players):
        return False
    return 0 <= index < len(state.players[seat].hand)


def validate_power_target(
    state: ServerGameState,
    power: str,
    actor_seat: int,
    target_seat: int,
    target_index: int,
    swap_source: Optional[Slot] = None,
) -> ValidationResult:
    """
    Check a single power target.

    For the swap power the first pick is validated with swap_source=None and
    the second pick with the recorded source.
    """
    if power == POWER_MASS_SWAP:
        if not isinstance(target_seat, int) or not 0 <= target_seat < len(state.players):
            return ValidationResult.error(errors.INVALID_TARGET, "Pick an opponent")
        if target_seat == actor_seat:
            return ValidationResult.error(errors.INVALID_TARGET, "Pick an opponent to swap hands with")
        return ValidationResult.success()

    if not is_valid_slot(state, target_seat, target_index):
        return ValidationResult.error(errors.INVALID_TARGET, "No such card")

    card = state.card_at(target_seat, target_index)

    if power == POWER_UNLOCK:
        if not card.is_locked:
            return ValidationResult.error(errors.CARD_NOT_LOCKED, "That card is not locked")
        return ValidationResult.success()

    if card.is_locked:
        messages = {
            POWER_PEEK: "Cannot peek at locked card",
            POWER_LOCK: "Card is already locked",
            POWER_SWAP: "Cannot swap with locked card",
        }
        return ValidationResult.error(errors.CARD_LOCKED, messages.get(power, "Card is locked!"))

    if power == POWER_PEEK and card.is_peeking:
        return ValidationResult.error(errors.ALREADY_PEEKING, "That card is already revealed")

    if power == POWER_SWAP and swap_source is not None:
        if swap_source == (target_seat, target_index):
            return ValidationResult.error(errors.SAME_CARD, "Select a different card")

    return ValidationResult.success()


def legal_targets(state: ServerGameState, power: str, actor_seat: int) -> List[Slot]:
    """All (seat, index) pairs the power could be aimed at right now."""
    if power == POWER_MASS_SWAP:
        return [(p.seat, 0) for p in state.players if p.seat != actor_seat]
    targets = []
    for player in state.players:
        for index in range(len(player.hand)):
            if validate_power_target(state, power, actor_seat, player.seat, index).valid:
                targets.append((player.seat, index))
    return targets


def has_legal_target(state: ServerGameState, power: str, actor_seat: int) -> bool:
    """Whether triggering `power` could have any effect at all."""
    targets = legal_targets(state, power, actor_seat)
    if power == POWER_SWAP:
        # needs two distinct unlocked cards
        return len(targets) >= 2
    return bool(targets)


def any_card_locked(state: ServerGameState) -> bool:
    return any(card.is_locked for player in state.players for card in player.hand)
