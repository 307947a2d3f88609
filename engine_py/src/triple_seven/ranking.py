from typing import List, Optional, Tuple

from .constants import hand_score
from .models import Player


def score_players(players: List[Player]) -> List[int]:
    """Score every hand; a lower score is better."""
    return [hand_score(p.hand) for p in players]


def determine_winner(scores: List[int]) -> Tuple[Optional[int], Optional[int]]:
    """
    Return (winner_seat, winning_score).

    Ties go to the first seat in seat order holding the lowest score.
    """
    if not scores:
        return None, None
    winning_score = min(scores)
    return scores.index(winning_score), winning_score
