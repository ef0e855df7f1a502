"""
Результаты операций ledger.

Immutable dataclass'ы, возвращаемые deposit/claim/exit и settlement.
"""

from dataclasses import dataclass

from stakepool.core.domain.stake import Stake


@dataclass(frozen=True)
class SettlementResult:
    """Результат settlement: новый стейк и число засчитанных периодов."""

    stake: Stake
    periods: int
    reward: int

    @property
    def changed(self) -> bool:
        return self.periods > 0


@dataclass(frozen=True)
class DepositResult:
    """Результат deposit."""

    owner: str
    amount: int
    principal: int
    accrued_unclaimed: int
    settled_periods: int
    first_deposit: bool


@dataclass(frozen=True)
class ClaimResult:
    """Результат claim. payout <= requested, payout <= накопленной награды."""

    owner: str
    requested: int
    payout: int
    accrued_unclaimed: int
    settled_periods: int


@dataclass(frozen=True)
class ExitResult:
    """Результат exit.

    forfeited: награда, сгоревшая из-за невыполненного period_threshold.
    """

    owner: str
    principal: int
    payout: int
    forfeited: int
    settled_periods: int

    @property
    def total(self) -> int:
        return self.principal + self.payout
