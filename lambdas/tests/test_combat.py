"""Tests for combat resolution module."""

import random
from unittest.mock import MagicMock

import pytest

from narrator.combat import (
    OPPONENT_DAMAGE_RANGES,
    PLAYER_DAMAGE_RANGE,
    CombatResolver,
)
from narrator.models import CombatOutcome, SystemPromptType
from shared.models import CharacterType


def scripted_rng(rolls: list[float], damage: list[int] | None = None) -> MagicMock:
    """Random source returning fixed rolls and damage values."""
    rng = MagicMock(spec=random.Random)
    rng.random.side_effect = rolls
    rng.randrange.side_effect = damage or []
    return rng


class TestDetermineOutcome:
    """Tests for hit/miss classification."""

    @pytest.mark.parametrize(
        "player_roll,opponent_roll,expected",
        [
            (0.9, 0.9, CombatOutcome.HIT_HIT),
            (0.9, 0.1, CombatOutcome.HIT_MISS),
            (0.1, 0.9, CombatOutcome.MISS_HIT),
            (0.1, 0.1, CombatOutcome.MISS_MISS),
        ],
    )
    def test_outcomes(self, player_roll, opponent_roll, expected):
        """Player roll is taken first, opponent second."""
        resolver = CombatResolver(rng=scripted_rng([player_roll, opponent_roll]))
        assert resolver.determine_outcome() == expected

    def test_thresholds_are_inclusive(self):
        """A roll exactly on the threshold hits."""
        resolver = CombatResolver(rng=scripted_rng([0.4, 0.6]))
        assert resolver.determine_outcome() == CombatOutcome.HIT_HIT

    def test_just_below_thresholds_miss(self):
        """Rolls just under the thresholds miss."""
        resolver = CombatResolver(rng=scripted_rng([0.3999, 0.5999]))
        assert resolver.determine_outcome() == CombatOutcome.MISS_MISS

    def test_custom_thresholds(self):
        """Thresholds can be tuned per resolver."""
        resolver = CombatResolver(
            rng=scripted_rng([0.5, 0.5]),
            player_hit_threshold=0.6,
            opponent_hit_threshold=0.2,
        )
        assert resolver.determine_outcome() == CombatOutcome.MISS_HIT

    def test_outcome_prompt_types(self):
        """Each outcome maps to its own combat template."""
        assert CombatOutcome.HIT_HIT.prompt_type == SystemPromptType.COMBAT_HIT_HIT
        assert CombatOutcome.HIT_MISS.prompt_type == SystemPromptType.COMBAT_HIT_MISS
        assert CombatOutcome.MISS_HIT.prompt_type == SystemPromptType.COMBAT_MISS_HIT
        assert CombatOutcome.MISS_MISS.prompt_type == SystemPromptType.COMBAT_MISS_MISS


class TestComputeDamage:
    """Tests for damage rolls."""

    def test_miss_miss_deals_nothing(self):
        """No damage is rolled when neither side hits."""
        rng = scripted_rng([])
        resolver = CombatResolver(rng=rng)

        assert resolver.compute_damage(CombatOutcome.MISS_MISS, CharacterType.MONSTER) == (0, 0)
        rng.randrange.assert_not_called()

    def test_hit_miss_rolls_player_only(self):
        """Only the player's damage is rolled on HIT_MISS."""
        rng = scripted_rng([], damage=[17])
        resolver = CombatResolver(rng=rng)

        assert resolver.compute_damage(CombatOutcome.HIT_MISS, CharacterType.HUMANOID) == (17, 0)
        rng.randrange.assert_called_once_with(10, 25)

    def test_miss_hit_uses_opponent_range(self):
        """Opponent damage range follows the opponent type."""
        rng = scripted_rng([], damage=[3])
        resolver = CombatResolver(rng=rng)

        assert resolver.compute_damage(CombatOutcome.MISS_HIT, CharacterType.SMALL_CREATURE) == (0, 3)
        rng.randrange.assert_called_once_with(1, 5)

    @pytest.mark.parametrize("opponent_type", list(CharacterType))
    def test_damage_ranges_over_many_resolutions(self, opponent_type):
        """Damage always stays inside the half-open range for each type."""
        resolver = CombatResolver(rng=random.Random(42))
        player_low, player_high = PLAYER_DAMAGE_RANGE
        opponent_low, opponent_high = OPPONENT_DAMAGE_RANGES[opponent_type]

        for _ in range(10_000):
            player_damage, opponent_damage = resolver.compute_damage(
                CombatOutcome.HIT_HIT, opponent_type
            )
            assert player_low <= player_damage < player_high
            assert opponent_low <= opponent_damage < opponent_high

    def test_monster_range_bounds(self):
        """Monster damage covers [15, 35)."""
        resolver = CombatResolver(rng=random.Random(7))
        seen = {
            resolver.compute_damage(CombatOutcome.MISS_HIT, CharacterType.MONSTER)[1]
            for _ in range(10_000)
        }
        assert min(seen) == 15
        assert max(seen) == 34


class TestResolve:
    """Tests for full exchange resolution."""

    def test_resolve_hit_hit(self):
        """Resolve returns both damages for HIT_HIT."""
        resolver = CombatResolver(rng=scripted_rng([0.8, 0.7], damage=[15, 20]))

        result = resolver.resolve(CharacterType.MONSTER)

        assert result.outcome == CombatOutcome.HIT_HIT
        assert result.player_damage == 15
        assert result.opponent_damage == 20

    def test_resolve_is_reproducible_with_seed(self):
        """Two resolvers with the same seed produce the same exchanges."""
        first = CombatResolver(rng=random.Random(99))
        second = CombatResolver(rng=random.Random(99))

        for _ in range(50):
            assert first.resolve(CharacterType.HUMANOID) == second.resolve(CharacterType.HUMANOID)

    def test_miss_miss_result_has_zero_damage(self):
        """MISS_MISS yields zero damage on both sides."""
        resolver = CombatResolver(rng=scripted_rng([0.0, 0.0]))

        result = resolver.resolve(CharacterType.LARGE_CREATURE)

        assert result.outcome == CombatOutcome.MISS_MISS
        assert result.player_damage == 0
        assert result.opponent_damage == 0
