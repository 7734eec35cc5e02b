"""Server-side combat resolution.

All hit/miss and damage rolls happen here, before the narrator is called.
The narrator receives the results to describe, never choices to make.
"""

import random

from aws_lambda_powertools import Logger

from narrator.models import CombatOutcome, CombatResult
from shared.models import CharacterType

logger = Logger(child=True)

# A roll at or above the threshold is a hit
PLAYER_HIT_THRESHOLD = 0.4
OPPONENT_HIT_THRESHOLD = 0.6

# Damage ranges are half-open: [min, max)
PLAYER_DAMAGE_RANGE = (10, 25)

OPPONENT_DAMAGE_RANGES: dict[CharacterType, tuple[int, int]] = {
    CharacterType.SMALL_CREATURE: (1, 5),
    CharacterType.HUMANOID: (5, 15),
    CharacterType.LARGE_CREATURE: (10, 20),
    CharacterType.MONSTER: (15, 35),
}


class CombatResolver:
    """Resolves one player-vs-opponent exchange.

    The random source is injected so tests can replay exact outcomes;
    nothing else is kept between calls.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        player_hit_threshold: float = PLAYER_HIT_THRESHOLD,
        opponent_hit_threshold: float = OPPONENT_HIT_THRESHOLD,
    ) -> None:
        """Initialize the resolver.

        Args:
            rng: Random source; a fresh unseeded Random if omitted
            player_hit_threshold: Minimum roll for the player to hit
            opponent_hit_threshold: Minimum roll for the opponent to hit
        """
        self.rng = rng if rng is not None else random.Random()
        self.player_hit_threshold = player_hit_threshold
        self.opponent_hit_threshold = opponent_hit_threshold

    def determine_outcome(self) -> CombatOutcome:
        """Roll for both sides and classify the exchange.

        Returns:
            CombatOutcome for player and opponent rolls
        """
        player_roll = self.rng.random()
        opponent_roll = self.rng.random()

        player_hits = player_roll >= self.player_hit_threshold
        opponent_hits = opponent_roll >= self.opponent_hit_threshold

        if player_hits:
            return CombatOutcome.HIT_HIT if opponent_hits else CombatOutcome.HIT_MISS
        return CombatOutcome.MISS_HIT if opponent_hits else CombatOutcome.MISS_MISS

    def compute_damage(
        self,
        outcome: CombatOutcome,
        opponent_type: CharacterType,
    ) -> tuple[int, int]:
        """Roll damage for both sides of an exchange.

        Args:
            outcome: Which sides landed a hit
            opponent_type: Opponent class, selects the opponent damage range

        Returns:
            Tuple of (player_damage, opponent_damage)
        """
        player_damage = 0
        opponent_damage = 0

        if outcome.player_hits:
            player_damage = self.rng.randrange(*PLAYER_DAMAGE_RANGE)
        if outcome.opponent_hits:
            opponent_damage = self.rng.randrange(*OPPONENT_DAMAGE_RANGES[opponent_type])

        return player_damage, opponent_damage

    def resolve(self, opponent_type: CharacterType) -> CombatResult:
        """Resolve a full exchange against an opponent class.

        Args:
            opponent_type: Opponent class

        Returns:
            CombatResult with outcome and both damage values
        """
        outcome = self.determine_outcome()
        player_damage, opponent_damage = self.compute_damage(outcome, opponent_type)

        logger.debug(
            "Combat exchange resolved",
            extra={
                "outcome": outcome.value,
                "opponent_type": opponent_type.value,
                "player_damage": player_damage,
                "opponent_damage": opponent_damage,
            },
        )

        return CombatResult(
            outcome=outcome,
            player_damage=player_damage,
            opponent_damage=opponent_damage,
        )
