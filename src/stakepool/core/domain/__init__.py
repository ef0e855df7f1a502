"""
Domain models and value objects.

Contains fundamental domain entities like Stake, PeriodRecord, LevelTier.
"""

from stakepool.core.domain.level import LevelTier
from stakepool.core.domain.period import PeriodRecord
from stakepool.core.domain.results import (
    ClaimResult,
    DepositResult,
    ExitResult,
    SettlementResult,
)
from stakepool.core.domain.stake import Stake
from stakepool.core.domain.units import (
    ZERO_ADDRESS,
    is_zero_address,
    validate_address,
    validate_amount,
    validate_timestamp,
)

__all__ = [
    # Units module
    "ZERO_ADDRESS",
    "is_zero_address",
    "validate_address",
    "validate_amount",
    "validate_timestamp",
    # Models
    "PeriodRecord",
    "LevelTier",
    "Stake",
    # Results
    "SettlementResult",
    "DepositResult",
    "ClaimResult",
    "ExitResult",
]
