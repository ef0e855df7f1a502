"""
Units — адреса, суммы и временные метки

Единственный допустимый способ валидации входов ledger:
- address (непустая строка, ZERO_ADDRESS означает null-адрес)
- amount / rate (неотрицательный int, без float)
- timestamp (неотрицательный int, секунды)

Вся арифметика начисления целочисленная: результаты bit-exact и воспроизводимы.
"""

from typing import Any, Final

from stakepool.core.errors import InvalidInput


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Null-адрес: не может быть controller, registry, checker или владельцем
ZERO_ADDRESS: Final[str] = "0x" + "0" * 40


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def is_zero_address(address: Any) -> bool:
    """
    Проверка на null-адрес.

    None, пустая строка и ZERO_ADDRESS считаются нулевыми.
    """
    return address is None or address == "" or address == ZERO_ADDRESS


def validate_address(address: Any, field: str = "address") -> str:
    """
    Проверка адреса.

    Args:
        address: адрес компонента или владельца
        field: имя поля для сообщения об ошибке

    Returns:
        address без изменений

    Raises:
        InvalidInput: если адрес нулевой или не строка
    """
    if not isinstance(address, str) or is_zero_address(address):
        raise InvalidInput(f"{field} cannot be 0x0", details={field: address})
    return address


def _is_int(value: Any) -> bool:
    # bool является подклассом int, но как сумма не допускается
    return isinstance(value, int) and not isinstance(value, bool)


def validate_amount(value: Any, field: str = "amount", allow_zero: bool = False) -> int:
    """
    Проверка суммы (amount, rate, bound).

    Args:
        value: целочисленная сумма
        field: имя поля для сообщения об ошибке
        allow_zero: допускать ли 0

    Returns:
        value без изменений

    Raises:
        InvalidInput: если value не int, отрицательное или (при allow_zero=False) нулевое
    """
    if not _is_int(value):
        raise InvalidInput(f"{field} must be an integer, got {value!r}", details={field: value})
    if value < 0:
        raise InvalidInput(f"{field} cannot be negative: {value}", details={field: value})
    if value == 0 and not allow_zero:
        raise InvalidInput(f"{field} cannot be 0", details={field: value})
    return value


def validate_timestamp(value: Any, field: str = "now") -> int:
    """Проверка временной метки (int секунд, >= 0)."""
    return validate_amount(value, field, allow_zero=True)
