"""
Game rule configuration and validation.
"""

import os

from pydantic import BaseModel, Field, field_validator

from .constants import DIFFICULTIES, DIFFICULTY_INTERMEDIATE, HAND_SIZE, SEAT_COUNT, UNKNOWN_CARD_VALUE


class RuleConfig(BaseModel):
    """Configuration for game rules and room timers."""

    include_jokers: bool = Field(
        default=True,
        description="Whether to include the two jokers in the deck"
    )
    seat_count: int = Field(
        default=SEAT_COUNT,
        ge=SEAT_COUNT,
        le=SEAT_COUNT,
        description="Number of seats at the table"
    )
    hand_size: int = Field(
        default=HAND_SIZE,
        ge=HAND_SIZE,
        le=HAND_SIZE,
        description="Cards dealt to each seat"
    )
    turn_timeout: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Seconds a human seat has to act before auto-play"
    )
    ai_turn_delay: float = Field(
        default=1.2,
        ge=0,
        le=10,
        description="Seconds before a scheduled AI turn executes"
    )
    peek_duration: float = Field(
        default=3.0,
        gt=0,
        le=30,
        description="Seconds a peeked card stays revealed"
    )
    unknown_card_estimate: int = Field(
        default=UNKNOWN_CARD_VALUE,
        ge=0,
        le=10,
        description="Value the hardcore AI assumes for a card it has not seen"
    )
    default_difficulty: str = Field(
        default=DIFFICULTY_INTERMEDIATE,
        description="AI difficulty used when a room does not pick one"
    )

    @field_validator('default_difficulty')
    @classmethod
    def validate_difficulty(cls, v):
        if v not in DIFFICULTIES:
            raise ValueError(f'difficulty must be one of {DIFFICULTIES}, got {v!r}')
        return v


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)


def rules_from_env() -> RuleConfig:
    """Build rules from TRIPLE_SEVEN_* environment variables."""
    overrides = {}
    env_map = {
        "TRIPLE_SEVEN_TURN_TIMEOUT": "turn_timeout",
        "TRIPLE_SEVEN_AI_DELAY": "ai_turn_delay",
        "TRIPLE_SEVEN_PEEK_DURATION": "peek_duration",
    }
    for env_name, field_name in env_map.items():
        value = os.getenv(env_name)
        if value:
            overrides[field_name] = float(value)
    jokers = os.getenv("TRIPLE_SEVEN_JOKERS")
    if jokers:
        overrides["include_jokers"] = jokers.lower() == "true"
    return create_rules(**overrides)
