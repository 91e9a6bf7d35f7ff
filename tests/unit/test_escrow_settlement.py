"""Unit tests for pure escrow settlement rules."""

import random
from decimal import Decimal

import pytest

from src.bk_common.enums import HoldStatus, TimedTradeOutcome
from src.bk_common.errors import ProfitRateMissingError
from src.bk_escrow.domain.settlement import (
    compute_payout,
    outcome_to_status,
    pick_random_outcome,
    status_to_outcome,
)


class TestComputePayout:
    def test_return_credits_held(self) -> None:
        assert compute_payout(200, HoldStatus.RESOLVED_RETURN, None) == (200, 0)

    def test_forfeit_credits_nothing(self) -> None:
        assert compute_payout(200, HoldStatus.RESOLVED_FORFEIT, Decimal("80")) == (0, 0)

    def test_bonus(self) -> None:
        assert compute_payout(200, HoldStatus.RESOLVED_BONUS, Decimal("80")) == (360, 160)

    def test_bonus_rounds_profit_down(self) -> None:
        assert compute_payout(101, HoldStatus.RESOLVED_BONUS, Decimal("33.33")) == (134, 33)

    @pytest.mark.parametrize("rate", [None, Decimal("0")])
    def test_bonus_requires_rate(self, rate: Decimal | None) -> None:
        with pytest.raises(ProfitRateMissingError):
            compute_payout(200, HoldStatus.RESOLVED_BONUS, rate)

    def test_pending_is_not_a_resolution(self) -> None:
        with pytest.raises(ValueError):
            compute_payout(200, HoldStatus.PENDING, None)


def test_outcome_mapping_roundtrip() -> None:
    assert outcome_to_status(TimedTradeOutcome.WIN) is HoldStatus.RESOLVED_BONUS
    assert outcome_to_status(TimedTradeOutcome.LOSE) is HoldStatus.RESOLVED_FORFEIT
    assert outcome_to_status(TimedTradeOutcome.DRAW) is HoldStatus.RESOLVED_RETURN
    for outcome in TimedTradeOutcome:
        assert status_to_outcome(outcome_to_status(outcome)) is outcome
    assert status_to_outcome(HoldStatus.PENDING) is None


def test_random_outcome_covers_all_outcomes() -> None:
    rng = random.Random(1234)
    seen = {pick_random_outcome(rng) for _ in range(200)}
    assert seen == set(TimedTradeOutcome)
