"""
Settlement — перевод прошедших целых периодов в начисленную награду

Чистые функции без побочных эффектов: используются StakeLedger и replay,
поэтому результат replay совпадает с живым ledger бит-в-бит.

ФОРМУЛЫ:
    k, settled_to = timeline.advance(last_settled_time, now)
    reward = k × levels.rate_for(principal)
    accrued_unclaimed += reward
    last_settled_time = settled_to

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. k == 0 → стейк не меняется (идемпотентность)
2. last_settled_time не убывает и лежит на границе периода
3. Остаток короче периода сохраняется для следующего settlement
4. Empty-стейк не начисляет награду
"""

import logging

from stakepool.core.domain.results import SettlementResult
from stakepool.core.domain.stake import Stake
from stakepool.ledger.level_table import LevelTable
from stakepool.ledger.period_timeline import PeriodTimeline

logger = logging.getLogger(__name__)


def settle_stake(
    stake: Stake,
    timeline: PeriodTimeline,
    levels: LevelTable,
    now: int,
) -> SettlementResult:
    """
    Settlement стейка на момент now.

    Ставка берётся по текущему principal и текущей LevelTable:
    новый уровень действует уже в том периоде, в котором добавлен.

    Args:
        stake: стейк до settlement
        timeline: журнал длин периодов
        levels: таблица уровней
        now: текущее время

    Returns:
        SettlementResult с новым стейком, числом периодов и наградой
    """
    if not stake.is_active:
        return SettlementResult(stake=stake, periods=0, reward=0)

    periods, settled_to = timeline.advance(stake.last_settled_time, now)
    if periods == 0:
        return SettlementResult(stake=stake, periods=0, reward=0)

    reward = periods * levels.rate_for(stake.principal)
    settled = stake.model_copy(
        update={
            "accrued_unclaimed": stake.accrued_unclaimed + reward,
            "last_settled_time": settled_to,
        }
    )
    logger.debug(
        f"[Settlement] owner={stake.owner} periods={periods} reward={reward} "
        f"settled_to={settled_to}"
    )
    return SettlementResult(stake=settled, periods=periods, reward=reward)


def threshold_reached(
    stake: Stake,
    timeline: PeriodTimeline,
    period_threshold: int,
    now: int,
) -> bool:
    """
    Прошло ли period_threshold целых периодов с первого депозита.

    Empty-стейк порог не проходит.
    """
    if stake.original_deposit_time is None:
        return False
    return timeline.elapsed_periods(stake.original_deposit_time, now) >= period_threshold
