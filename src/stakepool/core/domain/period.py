"""
PeriodRecord — запись журнала длин периодов

Immutable Pydantic модель. Запись вступает в силу с effective_from
и действует до следующей записи журнала.
"""

from pydantic import BaseModel, Field


class PeriodRecord(BaseModel):
    """
    Изменение длины периода.

    Журнал append-only: записи упорядочены по effective_from.
    """

    effective_from: int = Field(..., ge=0, description="Момент вступления в силу (секунды)")
    length: int = Field(..., gt=0, description="Длина периода (секунды)")

    model_config = {"frozen": True}
