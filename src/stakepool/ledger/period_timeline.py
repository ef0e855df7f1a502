"""
PeriodTimeline — журнал длин периодов

Append-only журнал записей (effective_from, length) со стабильными индексами.
Подсчёт целых периодов между двумя моментами проходит журнал по сегментам.

ПРАВИЛО ОБХОДА:
    Период идёт с длиной, действовавшей в момент его начала. Новая длина
    применяется к первому периоду, начавшемуся в момент effective_from или позже.
    Уже начатый период досчитывается со старой длиной, поэтому смена длины
    не добавляет и не отнимает время неполного периода задним числом.

    Остаток короче целого периода не засчитывается: advance() возвращает
    границу последнего засчитанного периода, остаток переходит в следующий
    settlement.
"""

import logging
from bisect import bisect_right
from typing import List, Tuple

from stakepool.core.domain.period import PeriodRecord
from stakepool.core.domain.units import validate_timestamp
from stakepool.core.errors import InvalidInput, InvalidPeriod, PeriodRequired

logger = logging.getLogger(__name__)


class PeriodTimeline:
    """Упорядоченный журнал длин периодов."""

    def __init__(self) -> None:
        self._records: List[PeriodRecord] = []
        # effective_from каждой записи, для bisect
        self._starts: List[int] = []

    # -------------------------------------------------------------------------
    # Журнал
    # -------------------------------------------------------------------------

    @property
    def period_count(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[PeriodRecord, ...]:
        return tuple(self._records)

    def get_period(self, index: int) -> PeriodRecord:
        """Запись журнала по стабильному индексу."""
        if not 0 <= index < len(self._records):
            raise InvalidInput(
                f"period index {index} out of range [0, {len(self._records)})",
                details={"index": index},
            )
        return self._records[index]

    def append_period(self, length: int, now: int) -> PeriodRecord:
        """
        Добавление новой длины периода, действующей с момента now.

        Args:
            length: длина периода в секундах (> 0)
            now: текущее время

        Returns:
            Добавленная запись

        Raises:
            InvalidPeriod: если length <= 0 или не int
        """
        if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
            raise InvalidPeriod("period cannot be 0", details={"length": length})
        now = validate_timestamp(now)

        effective_from = now
        if self._starts and effective_from < self._starts[-1]:
            # журнал остаётся упорядоченным
            effective_from = self._starts[-1]

        record = PeriodRecord(effective_from=effective_from, length=length)
        self._records.append(record)
        self._starts.append(effective_from)
        logger.info(
            f"[PeriodTimeline] Period #{len(self._records) - 1}: "
            f"length={length}s effective_from={effective_from}"
        )
        return record

    # -------------------------------------------------------------------------
    # Запросы
    # -------------------------------------------------------------------------

    def _index_at(self, ts: int) -> int:
        if not self._records:
            raise PeriodRequired("no period has been registered")
        # до первой записи действует первая длина
        return max(bisect_right(self._starts, ts) - 1, 0)

    def length_at(self, ts: int) -> int:
        """Длина периода, действующая в момент ts."""
        return self._records[self._index_at(ts)].length

    @property
    def current_length(self) -> int:
        if not self._records:
            raise PeriodRequired("no period has been registered")
        return self._records[-1].length

    def advance(self, start: int, end: int) -> Tuple[int, int]:
        """
        Подсчёт целых периодов в [start, end).

        Args:
            start: начало (обычно last_settled_time стейка)
            end: конец (текущее время)

        Returns:
            (periods, settled_to): число целых периодов и граница последнего
            из них; start <= settled_to <= end

        Raises:
            PeriodRequired: если журнал пуст
        """
        idx = self._index_at(start)
        if end <= start:
            return 0, start

        periods = 0
        cursor = start
        while True:
            length = self._records[idx].length
            available = (end - cursor) // length

            if idx + 1 >= len(self._records):
                periods += available
                cursor += available * length
                break

            # периоды, начавшиеся до следующей записи, идут со старой длиной
            boundary = self._starts[idx + 1]
            starting = -(-(boundary - cursor) // length)
            if available < starting:
                periods += available
                cursor += available * length
                break

            periods += starting
            cursor += starting * length
            idx = self._index_at(cursor)

        return periods, cursor

    def elapsed_periods(self, start: int, end: int) -> int:
        """Число целых периодов между start и end."""
        return self.advance(start, end)[0]
