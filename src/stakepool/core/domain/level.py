"""
LevelTier — уровень депозита

Immutable Pydantic модель: полуинтервал [lower_bound, upper_bound) суммы
депозита и фиксированная ставка награды за один период.
"""

from pydantic import BaseModel, Field, model_validator


class LevelTier(BaseModel):
    """Уровень депозита [lower_bound, upper_bound) → rate."""

    rate: int = Field(..., ge=0, description="Награда за один период")
    lower_bound: int = Field(..., ge=0, description="Нижняя граница (включительно)")
    upper_bound: int = Field(..., gt=0, description="Верхняя граница (исключительно)")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_range(self) -> "LevelTier":
        if self.lower_bound >= self.upper_bound:
            raise ValueError(
                f"lower_bound {self.lower_bound} must be below upper_bound {self.upper_bound}"
            )
        return self

    def contains(self, amount: int) -> bool:
        """Попадает ли сумма в [lower_bound, upper_bound)."""
        return self.lower_bound <= amount < self.upper_bound
