"""
LedgerEvent — журнал событий ledger

Каждая зафиксированная операция (административная или депозитная)
добавляет одну запись. Журнал вместе с PeriodTimeline позволяет
восстановить начисление любого стейка на любой момент (см. replay).

Экспорт и загрузка проходят через JSON Schema контракт ledger_event.json.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from stakepool.contracts import validate_ledger_event
from stakepool.core.errors import InvalidInput


class EventKind(str, Enum):
    """Тип записи журнала."""

    PERIOD_APPENDED = "period_appended"
    LEVEL_ADDED = "level_added"
    THRESHOLD_SET = "threshold_set"
    DEPOSIT = "deposit"
    CLAIM = "claim"
    EXIT = "exit"


class LedgerEvent(BaseModel):
    """
    Запись журнала.

    data по типам:
    - period_appended: length, effective_from
    - level_added: rate, lower_bound, upper_bound
    - threshold_set: period_threshold
    - deposit: amount
    - claim: requested, payout
    - exit: principal, payout, forfeited
    """

    sequence: int = Field(..., ge=0, description="Порядковый номер в журнале")
    kind: EventKind = Field(..., description="Тип события")
    timestamp: Optional[int] = Field(None, ge=0, description="Время операции (None для уровней/порога)")
    owner: Optional[str] = Field(None, description="Владелец стейка для deposit/claim/exit")
    data: Dict[str, int] = Field(default_factory=dict, description="Параметры события")

    model_config = {"frozen": True}

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация в JSON-совместимый dict (проходит ledger_event.json)."""
        data = self.model_dump(mode="json")
        validate_ledger_event(data)
        return data


def load_events(raw_events: Iterable[Dict[str, Any]]) -> List[LedgerEvent]:
    """
    Загрузка журнала из JSON-совместимых dict.

    Args:
        raw_events: записи в порядке журнала

    Returns:
        Список LedgerEvent

    Raises:
        ValidationError: если запись не соответствует ledger_event.json
        InvalidInput: если sequence не возрастает строго
    """
    events: List[LedgerEvent] = []
    for raw in raw_events:
        validate_ledger_event(raw)
        event = LedgerEvent.model_validate(raw)
        if events and event.sequence <= events[-1].sequence:
            raise InvalidInput(
                f"event sequence must increase: {events[-1].sequence} -> {event.sequence}",
                details={"sequence": event.sequence},
            )
        events.append(event)
    return events
