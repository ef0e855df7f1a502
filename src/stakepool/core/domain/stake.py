"""
Stake — состояние стейка одного владельца

Immutable Pydantic модель (frozen=True). Settlement, deposit, claim и exit
создают новый экземпляр; ledger фиксирует его только после успешного
перемещения средств.

Жизненный цикл:
    Empty → Active (первый депозит) → Active (deposit/claim) → Empty (exit)
"""

from typing import Optional

from pydantic import BaseModel, Field


class Stake(BaseModel):
    """
    Стейк владельца.

    Empty-стейк: principal == 0, accrued_unclaimed == 0,
    original_deposit_time is None.
    """

    owner: str = Field(..., min_length=1, description="Адрес владельца")
    principal: int = Field(0, ge=0, description="Сумма депозита")
    last_settled_time: int = Field(
        0, ge=0, description="Граница периода, до которой начислена награда"
    )
    accrued_unclaimed: int = Field(0, ge=0, description="Начисленная, но не выплаченная награда")
    original_deposit_time: Optional[int] = Field(
        None, ge=0, description="Время первого депозита (None для Empty)"
    )

    model_config = {"frozen": True}

    @classmethod
    def empty(cls, owner: str) -> "Stake":
        """Empty-стейк владельца."""
        return cls(owner=owner)

    @property
    def is_empty(self) -> bool:
        return self.principal == 0 and self.original_deposit_time is None

    @property
    def is_active(self) -> bool:
        return self.principal > 0
