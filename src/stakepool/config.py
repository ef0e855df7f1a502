"""
PoolConfig — конфигурация пула стейкинга

Параметры пула задаются YAML-файлом и применяются к StakeLedger через
административную поверхность (bootstrap_pool), поэтому проходят те же
проверки controller и входных данных, что и ручные вызовы.

Пример (configs/pool.yaml):

    pool:
      period_length: 100000
      period_threshold: 3
      levels:
        - {rate: 1, lower_bound: 0, upper_bound: 100}
        - {rate: 10, lower_bound: 100, upper_bound: 1000}
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

import yaml

from stakepool.core.errors import InvalidInput
from stakepool.ledger.stake_ledger import StakeLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelConfig:
    """Уровень депозита [lower_bound, upper_bound) → rate."""

    rate: int
    lower_bound: int
    upper_bound: int


@dataclass(frozen=True)
class PoolConfig:
    """
    Конфигурация пула.

    period_threshold == 0 означает «порог не задан» (награда доступна сразу).
    """

    period_length: int
    period_threshold: int = 0
    levels: Tuple[LevelConfig, ...] = ()


def _require_int(section: Mapping[str, Any], key: str, default: Optional[int] = None) -> int:
    value = section.get(key, default)
    if value is None:
        raise InvalidInput(f"pool config: missing '{key}'")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"pool config: '{key}' must be an integer, got {value!r}")
    return value


def pool_config_from_mapping(data: Mapping[str, Any]) -> PoolConfig:
    """
    Разбор конфигурации из dict (секция 'pool' или корень).

    Raises:
        InvalidInput: если ключи отсутствуют или имеют неверный тип
    """
    if not isinstance(data, Mapping):
        raise InvalidInput("pool config must be a mapping")
    section = data.get("pool", data)
    if not isinstance(section, Mapping):
        raise InvalidInput("pool config: 'pool' must be a mapping")

    raw_levels = section.get("levels") or []
    if not isinstance(raw_levels, list):
        raise InvalidInput("pool config: 'levels' must be a list")

    levels = []
    for raw in raw_levels:
        if not isinstance(raw, Mapping):
            raise InvalidInput(f"pool config: level must be a mapping, got {raw!r}")
        levels.append(
            LevelConfig(
                rate=_require_int(raw, "rate"),
                lower_bound=_require_int(raw, "lower_bound"),
                upper_bound=_require_int(raw, "upper_bound"),
            )
        )

    return PoolConfig(
        period_length=_require_int(section, "period_length"),
        period_threshold=_require_int(section, "period_threshold", 0),
        levels=tuple(levels),
    )


def load_pool_config(path: Union[str, Path]) -> PoolConfig:
    """
    Загрузка конфигурации пула из YAML.

    Raises:
        FileNotFoundError: если файл не найден
        InvalidInput: если конфигурация некорректна
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    config = pool_config_from_mapping(data or {})
    logger.info(
        f"[PoolConfig] Loaded {path}: period_length={config.period_length} "
        f"threshold={config.period_threshold} levels={len(config.levels)}"
    )
    return config


def bootstrap_pool(ledger: StakeLedger, caller: str, config: PoolConfig, now: int) -> None:
    """
    Применение конфигурации к ledger: период, порог, уровни.

    Raises:
        PermissionDenied: если caller не controller ledger
        InvalidPeriod / InvalidLevelRange / InvalidInput: при некорректных значениях
    """
    ledger.append_period(caller, config.period_length, now)
    if config.period_threshold:
        ledger.set_period_threshold(caller, config.period_threshold, now)
    for level in config.levels:
        ledger.add_level(caller, level.rate, level.lower_bound, level.upper_bound, now)
    logger.info(f"[PoolConfig] Bootstrapped pool {ledger.address}")
