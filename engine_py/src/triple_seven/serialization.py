"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, Optional

from .constants import KIND_EMPTY, PHASE_GAME_OVER, seat_position
from .models import Card, SeatConfig, ServerGameState


def serialize_card(card: Optional[Card]) -> Optional[Dict[str, Any]]:
    """Serialize a card the viewer is allowed to see."""
    if card is None:
        return None
    return {
        "id": card.id,
        "suit": card.suit,
        "rank": card.rank,
        "isJoker": card.is_joker,
        "jokerColor": card.joker_color,
        "isFaceUp": card.is_face_up,
        "isLocked": card.is_locked,
        "powerUsed": card.power_used,
        "isSelected": card.is_selected,
        "isPeeking": card.is_peeking,
    }


def is_visible_to(card: Card, owner_seat: int, viewer_seat: Optional[int]) -> bool:
    """
    A card face is visible when it belongs to the viewer, is face up, or is
    being peeked at. A spectator (viewer_seat=None) only sees public faces.
    """
    return owner_seat == viewer_seat or card.is_face_up or card.is_peeking


def sanitize_state(
    state: ServerGameState,
    viewer_seat: Optional[int] = None,
    turn_timer_max: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Build the filtered view of `state` for one seat.

    Args:
        state: Authoritative game state
        viewer_seat: Seat the view is for
        turn_timer_max: Turn timeout advertised to the client

    Returns:
        Sanitized state dictionary safe for JSON transmission
    """
    game_over = state.phase == PHASE_GAME_OVER

    players = []
    for player in state.players:
        hand = [
            serialize_card(card) if is_visible_to(card, player.seat, viewer_seat) else None
            for card in player.hand
        ]
        players.append({
            "name": player.name,
            "kind": player.kind,
            "seatIndex": player.seat,
            "position": seat_position(player.seat, viewer_seat or 0),
            "hand": hand,
            "score": player.score if game_over else 0,
            "isLocal": player.seat == viewer_seat,
        })

    own_turn = viewer_seat is not None and state.current_turn_seat == viewer_seat
    return {
        "players": players,
        "currentTurnSeat": state.current_turn_seat,
        "localSeat": viewer_seat,
        "deckCount": len(state.deck),
        "discardPile": [serialize_card(card) for card in state.discard_pile],
        "drawnCard": serialize_card(state.drawn_card) if own_turn else None,
        "activePower": state.active_power,
        "powerSourceSeat": state.power_source_seat,
        "swapSource": list(state.swap_source) if state.swap_source else None,
        "isDiscardBurned": state.discard_burned,
        "phase": state.phase,
        "turnCount": state.turn_count,
        "winnerSeat": state.winner_seat,
        "turnTimerMax": turn_timer_max,
    }


def serialize_seat(seat: SeatConfig) -> Dict[str, Any]:
    """Serialize one lobby seat."""
    return {
        "playerName": seat.name if seat.kind != KIND_EMPTY else None,
        "kind": seat.kind,
        "isReady": seat.kind != KIND_EMPTY,
    }
