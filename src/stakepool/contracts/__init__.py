"""
Contract Validation Module

Модуль для валидации JSON контрактов: журнал событий и снапшот ledger.
"""

from .validators import (
    ContractValidator,
    LedgerEventValidator,
    LedgerSnapshotValidator,
    SchemaLoader,
    validate_ledger_event,
    validate_ledger_snapshot,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "LedgerEventValidator",
    "LedgerSnapshotValidator",
    # Functions
    "validate_ledger_event",
    "validate_ledger_snapshot",
]
