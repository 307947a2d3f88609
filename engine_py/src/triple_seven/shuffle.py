"""
Card deck construction, shuffling and dealing utilities.
"""

import random
import uuid
from typing import List, Optional, Tuple

from .constants import JOKER_COLORS, RANKS, SUITS
from .models import Card


def build_deck(include_jokers: bool = True) -> List[Card]:
    """Create a fresh deck: 52 standard cards plus, optionally, one joker per color."""
    deck_token = uuid.uuid4().hex[:8]
    deck: List[Card] = []

    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card(id=f"card-{len(deck) + 1}-{deck_token}", suit=suit, rank=rank))

    if include_jokers:
        for color in JOKER_COLORS:
            deck.append(Card(
                id=f"card-{len(deck) + 1}-{deck_token}",
                is_joker=True,
                joker_color=color,
            ))

    return deck


def shuffle_deck(
    deck: List[Card],
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Card]:
    """
    Shuffle a deck, deterministically if a seed or rng is provided.

    Args:
        deck: Cards to shuffle (left untouched)
        seed: Optional seed for deterministic shuffling
        rng: Optional random source, takes precedence over seed

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = list(deck)

    if rng is None:
        rng = random.Random(seed) if seed is not None else random
    # random.shuffle is an in-place Fisher-Yates
    rng.shuffle(deck_copy)

    return deck_copy


def deal_cards(deck: List[Card], count: int) -> Tuple[List[Card], List[Card]]:
    """Split off the first `count` cards. Returns (dealt, remaining)."""
    return list(deck[:count]), list(deck[count:])
