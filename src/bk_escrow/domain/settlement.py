"""Pure settlement rules for escrow holds.

Net balance effect over a hold's lifecycle (creation debit + resolution credit):
    RESOLVED_FORFEIT  -> -held
    RESOLVED_RETURN   ->  0
    RESOLVED_BONUS    -> +held * rate / 100 (rounded down)
"""

import random
from decimal import Decimal

from src.bk_common.cents import percent_of
from src.bk_common.enums import HoldStatus, TimedTradeOutcome
from src.bk_common.errors import ProfitRateMissingError

_OUTCOME_STATUS = {
    TimedTradeOutcome.WIN: HoldStatus.RESOLVED_BONUS,
    TimedTradeOutcome.LOSE: HoldStatus.RESOLVED_FORFEIT,
    TimedTradeOutcome.DRAW: HoldStatus.RESOLVED_RETURN,
}

_OUTCOMES = tuple(TimedTradeOutcome)


def outcome_to_status(outcome: TimedTradeOutcome) -> HoldStatus:
    return _OUTCOME_STATUS[outcome]


def status_to_outcome(status: HoldStatus) -> TimedTradeOutcome | None:
    for outcome, mapped in _OUTCOME_STATUS.items():
        if mapped is status:
            return outcome
    return None


def compute_payout(
    held_amount: int, status: HoldStatus, profit_rate: Decimal | None
) -> tuple[int, int]:
    """Return (payout credited at resolution, profit part of it)."""
    if status is HoldStatus.RESOLVED_RETURN:
        return held_amount, 0
    if status is HoldStatus.RESOLVED_FORFEIT:
        return 0, 0
    if status is HoldStatus.RESOLVED_BONUS:
        if profit_rate is None or profit_rate <= 0:
            raise ProfitRateMissingError()
        profit = percent_of(held_amount, profit_rate)
        return held_amount + profit, profit
    raise ValueError(f"not a resolved status: {status}")


def pick_random_outcome(rng: random.Random) -> TimedTradeOutcome:
    """Uniform choice among win / lose / draw for an expired, unresolved timed trade."""
    return rng.choice(_OUTCOMES)
