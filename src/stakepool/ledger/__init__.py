"""Ledger — начисление наград и учёт стейков.

- PeriodTimeline: журнал длин периодов
- LevelTable: уровни депозита → ставка
- settlement: чистые функции начисления
- StakeLedger: deposit/claim/exit и административная поверхность
- events/replay: журнал событий и восстановление состояния
"""

from .events import EventKind, LedgerEvent, load_events
from .level_table import LevelTable
from .period_timeline import PeriodTimeline
from .replay import ReplayState, replay
from .settlement import settle_stake, threshold_reached
from .stake_ledger import StakeLedger

__all__ = [
    "PeriodTimeline",
    "LevelTable",
    "settle_stake",
    "threshold_reached",
    "StakeLedger",
    "EventKind",
    "LedgerEvent",
    "load_events",
    "ReplayState",
    "replay",
]
