"""
LevelTable — уровни депозита

Упорядоченный (по вставке) список уровней [lower_bound, upper_bound) → rate.
Ставка ищется первым совпадением в порядке вставки; сумма без покрывающего
уровня является ошибкой, а не ставкой по умолчанию.
"""

import logging
from typing import List, Tuple

from pydantic import ValidationError

from stakepool.core.domain.level import LevelTier
from stakepool.core.domain.units import validate_amount
from stakepool.core.errors import InvalidInput, InvalidLevelRange, NotInAnyLevel, PeriodRequired
from stakepool.ledger.period_timeline import PeriodTimeline

logger = logging.getLogger(__name__)


class LevelTable:
    """
    Таблица уровней депозита.

    Уровень начисляется за период, поэтому без зарегистрированного периода
    добавление уровня запрещено (PeriodRequired).
    """

    def __init__(self, timeline: PeriodTimeline):
        self._timeline = timeline
        self._levels: List[LevelTier] = []

    @property
    def level_count(self) -> int:
        return len(self._levels)

    @property
    def levels(self) -> Tuple[LevelTier, ...]:
        return tuple(self._levels)

    def get_level(self, index: int) -> LevelTier:
        if not 0 <= index < len(self._levels):
            raise InvalidInput(
                f"level index {index} out of range [0, {len(self._levels)})",
                details={"index": index},
            )
        return self._levels[index]

    def add_level(self, rate: int, lower_bound: int, upper_bound: int) -> LevelTier:
        """
        Добавление уровня.

        Args:
            rate: награда за период
            lower_bound: нижняя граница (включительно)
            upper_bound: верхняя граница (исключительно)

        Returns:
            Добавленный уровень

        Raises:
            InvalidLevelRange: если lower_bound >= upper_bound
            InvalidInput: если значения отрицательные или не int
            PeriodRequired: если в PeriodTimeline нет ни одной записи
        """
        validate_amount(rate, "rate", allow_zero=True)
        validate_amount(lower_bound, "lower_bound", allow_zero=True)
        validate_amount(upper_bound, "upper_bound", allow_zero=True)
        if lower_bound >= upper_bound:
            raise InvalidLevelRange(
                "level lower bound cannot be smaller than its upper bound",
                details={"lower_bound": lower_bound, "upper_bound": upper_bound},
            )
        if self._timeline.period_count == 0:
            raise PeriodRequired("adding level before adding a period is invalid")

        try:
            tier = LevelTier(rate=rate, lower_bound=lower_bound, upper_bound=upper_bound)
        except ValidationError as e:
            raise InvalidLevelRange(str(e)) from e

        self._levels.append(tier)
        logger.info(
            f"[LevelTable] Level #{len(self._levels) - 1}: "
            f"[{lower_bound}, {upper_bound}) -> rate={rate}"
        )
        return tier

    def find_level(self, amount: int) -> LevelTier:
        """Первый в порядке вставки уровень, содержащий amount."""
        amount = validate_amount(amount, "amount", allow_zero=True)
        for tier in self._levels:
            if tier.contains(amount):
                return tier
        raise NotInAnyLevel("not in any level", details={"amount": amount})

    def rate_for(self, amount: int) -> int:
        """
        Ставка за период для суммы депозита.

        Raises:
            NotInAnyLevel: если ни один уровень не содержит amount
        """
        return self.find_level(amount).rate
