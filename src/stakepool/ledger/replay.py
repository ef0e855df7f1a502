"""
Replay — восстановление состояния ledger по журналу событий

Журнал (LedgerEvent) проигрывается в порядке sequence через те же чистые
функции settlement, что и живой ledger, поэтому восстановленные стейки
совпадают бит-в-бит. Допуск и перемещение средств не проигрываются:
в журнал попадают только зафиксированные операции.

События без timestamp (уровни, порог) применяются в порядке журнала
вместе с предшествующими событиями.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from stakepool.core.domain.stake import Stake
from stakepool.core.errors import InvalidInput
from stakepool.ledger.events import EventKind, LedgerEvent
from stakepool.ledger.level_table import LevelTable
from stakepool.ledger.period_timeline import PeriodTimeline
from stakepool.ledger.settlement import settle_stake

logger = logging.getLogger(__name__)


@dataclass
class ReplayState:
    """Состояние, восстановленное из журнала."""

    timeline: PeriodTimeline = field(default_factory=PeriodTimeline)
    levels: Optional[LevelTable] = None
    period_threshold: int = 0
    stakes: Dict[str, Stake] = field(default_factory=dict)
    total_deposited: int = 0
    last_sequence: int = -1

    def __post_init__(self) -> None:
        if self.levels is None:
            self.levels = LevelTable(self.timeline)

    def apply(self, event: LedgerEvent) -> None:
        """Применение одной записи журнала."""
        if event.sequence <= self.last_sequence:
            raise InvalidInput(
                f"event sequence must increase: {self.last_sequence} -> {event.sequence}",
                details={"sequence": event.sequence},
            )
        data = event.data

        if event.kind == EventKind.PERIOD_APPENDED:
            self.timeline.append_period(data["length"], data["effective_from"])
        elif event.kind == EventKind.LEVEL_ADDED:
            self.levels.add_level(data["rate"], data["lower_bound"], data["upper_bound"])
        elif event.kind == EventKind.THRESHOLD_SET:
            self.period_threshold = data["period_threshold"]
        elif event.kind == EventKind.DEPOSIT:
            self._apply_deposit(event)
        elif event.kind == EventKind.CLAIM:
            stake = self._settled(event)
            self.stakes[event.owner] = stake.model_copy(
                update={"accrued_unclaimed": stake.accrued_unclaimed - data["payout"]}
            )
        elif event.kind == EventKind.EXIT:
            stake = self._settled(event)
            self.total_deposited -= stake.principal
            del self.stakes[event.owner]

        self.last_sequence = event.sequence

    def stake_at(self, owner: str, now: int) -> Stake:
        """Стейк владельца с settlement на момент now (без фиксации)."""
        stake = self.stakes.get(owner) or Stake.empty(owner)
        return settle_stake(stake, self.timeline, self.levels, now).stake

    def _settled(self, event: LedgerEvent) -> Stake:
        stake = self.stakes.get(event.owner)
        if stake is None:
            raise InvalidInput(
                f"event #{event.sequence} ({event.kind.value}) for owner without stake",
                details={"owner": event.owner},
            )
        return settle_stake(stake, self.timeline, self.levels, event.timestamp).stake

    def _apply_deposit(self, event: LedgerEvent) -> None:
        amount = event.data["amount"]
        stake = self.stakes.get(event.owner)
        if stake is None:
            stake = Stake(
                owner=event.owner,
                principal=amount,
                last_settled_time=event.timestamp,
                original_deposit_time=event.timestamp,
            )
        else:
            settled = settle_stake(stake, self.timeline, self.levels, event.timestamp).stake
            stake = settled.model_copy(update={"principal": settled.principal + amount})
        self.stakes[event.owner] = stake
        self.total_deposited += amount


def replay(events: Iterable[LedgerEvent], until: Optional[int] = None) -> ReplayState:
    """
    Проигрывание журнала.

    Args:
        events: записи журнала в порядке sequence
        until: момент восстановления; события с timestamp > until
            и все последующие не применяются

    Returns:
        ReplayState с восстановленными стейками и счётчиком пула
    """
    state = ReplayState()
    for event in events:
        if until is not None and event.timestamp is not None and event.timestamp > until:
            break
        state.apply(event)
    logger.debug(
        f"[Replay] Applied events up to #{state.last_sequence}: "
        f"{len(state.stakes)} stakes, total={state.total_deposited}"
    )
    return state
