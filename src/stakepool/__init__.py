"""
stakepool — tiered, time-weighted staking ledger

Ledger начисления наград за стейкинг fungible-депозитов:
- PeriodTimeline: журнал длин периодов, подсчёт целых периодов
- LevelTable: уровни депозита [lower, upper) → ставка за период
- StakeLedger: settlement, deposit/claim/exit, административные вызовы
- EligibilityGateway + CertificateRegistry: допуск по сертификатам владения
"""

__version__ = "0.1.0"
