"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    min_players: int = Field(
        default=2,
        ge=2,
        le=6,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=6,
        ge=2,
        le=6,
        description="Maximum number of players allowed"
    )
    copies_per_card: int = Field(
        default=3,
        ge=1,
        description="Copies of each character card in the deck"
    )
    cards_per_player: int = Field(
        default=2,
        ge=1,
        description="Influence cards dealt to each player"
    )
    starting_coins: int = Field(default=2, ge=0)
    income_amount: int = Field(default=1, ge=0)
    foreign_aid_amount: int = Field(default=2, ge=0)
    tax_amount: int = Field(default=3, ge=0)
    steal_amount: int = Field(default=2, ge=0)
    exchange_draw: int = Field(
        default=2,
        ge=1,
        description="Cards drawn from the deck by the Ambassador exchange"
    )
    coup_cost: int = Field(default=7, ge=0)
    assassinate_cost: int = Field(default=3, ge=0)
    forced_coup_threshold: int = Field(
        default=10,
        ge=1,
        description="Coins at which a player must coup"
    )
    auto_influence_loss: bool = Field(
        default=False,
        description="Reveal the most recently added card instead of asking the player"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't fall below minimum."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players

    def get_deck_size(self) -> int:
        """Get the total number of cards in play."""
        from .models import Card
        return len(Card) * self.copies_per_card


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
