"""
Errors — Таксономия ошибок staking-пула

Все state-changing операции атомарны: любая ошибка из этого модуля означает,
что состояние ledger, registry и reserve осталось идентичным состоянию до вызова.

Иерархия:
    StakingError
    ├── InvalidInput
    │   ├── InvalidPeriod
    │   └── InvalidLevelRange
    ├── PermissionDenied
    ├── NotEligible
    ├── NotInAnyLevel
    ├── PeriodRequired
    ├── TooEarly
    ├── InsufficientFunds
    │   ├── InsufficientBalance
    │   └── InsufficientAllowance
    ├── AlreadyRegistered
    ├── CertificateInUse
    └── NotOwner
"""

from typing import Any, Dict, Optional


class StakingError(Exception):
    """
    Базовая ошибка staking-пула.

    Каждый подкласс несёт стабильный `code`, который можно использовать
    в логах и при сериализации ответа вызывающей стороне.
    """

    code: str = "staking_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация ошибки для логирования."""
        return {
            "error_type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


# =============================================================================
# ВХОДНЫЕ ДАННЫЕ
# =============================================================================


class InvalidInput(StakingError):
    """Нулевой адрес, нулевая/отрицательная сумма, некорректный диапазон."""

    code = "invalid_input"


class InvalidPeriod(InvalidInput):
    """Длина периода должна быть строго положительной."""

    code = "invalid_period"


class InvalidLevelRange(InvalidInput):
    """Уровень требует lower_bound < upper_bound."""

    code = "invalid_level_range"


# =============================================================================
# ДОСТУП И ДОПУСК
# =============================================================================


class PermissionDenied(StakingError):
    """Административный вызов не от controller компонента."""

    code = "permission_denied"


class NotEligible(StakingError):
    """Владелец не держит ни одного сертификата в зарегистрированных registry."""

    code = "not_eligible"


class NotOwner(StakingError):
    """Операция над сертификатом вызвана не его владельцем."""

    code = "not_owner"


class CertificateInUse(StakingError):
    """Освобождение сертификата заблокировано активным стейком владельца."""

    code = "certificate_in_use"


class AlreadyRegistered(StakingError):
    """Повторная регистрация registry, checker или сертификата."""

    code = "already_registered"


# =============================================================================
# НАЧИСЛЕНИЕ
# =============================================================================


class NotInAnyLevel(StakingError):
    """Сумма не покрыта ни одним уровнем LevelTable."""

    code = "not_in_any_level"


class PeriodRequired(StakingError):
    """Операция требует хотя бы одной записи в PeriodTimeline."""

    code = "period_required"


class TooEarly(StakingError):
    """С момента первого депозита прошло меньше period_threshold периодов."""

    code = "too_early"


# =============================================================================
# СРЕДСТВА
# =============================================================================


class InsufficientFunds(StakingError):
    """Нехватка средств у держателя или в reward reserve."""

    code = "insufficient_funds"


class InsufficientBalance(InsufficientFunds):
    """Баланс держателя меньше суммы перевода."""

    code = "insufficient_balance"


class InsufficientAllowance(InsufficientFunds):
    """Разрешение spender'а меньше суммы перевода."""

    code = "insufficient_allowance"
