"""
StakeLedger — ledger стейков и начисления наград

Порядок каждой операции владельца:
1. EligibilityGateway: владелец держит сертификат
2. Settlement: PeriodTimeline + LevelTable (ledger.settlement)
3. Перемещение средств: AssetLedger / RewardReserve
4. Фиксация нового Stake, счётчика пула и записи журнала

Состояние фиксируется только после успешного перемещения средств, поэтому
любая ошибка оставляет ledger идентичным состоянию до вызова. Если exit
успел перевести principal, а выплата награды отказала, перевод principal
компенсируется до проброса ошибки.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Σ stake.principal == pool_total_deposited
2. accrued_unclaimed >= 0; уменьшается только выплатой <= своего значения
3. last_settled_time не убывает и лежит на границе периода
4. Неавторизованный административный вызов ничего не меняет
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from stakepool.assets.asset_ledger import AssetLedger
from stakepool.assets.reward_reserve import RewardReserve
from stakepool.contracts import validate_ledger_snapshot
from stakepool.core.domain.level import LevelTier
from stakepool.core.domain.period import PeriodRecord
from stakepool.core.domain.results import ClaimResult, DepositResult, ExitResult
from stakepool.core.domain.stake import Stake
from stakepool.core.domain.units import (
    is_zero_address,
    validate_address,
    validate_amount,
    validate_timestamp,
)
from stakepool.core.errors import InvalidInput, TooEarly
from stakepool.core.governance import Controlled
from stakepool.gatekeeper.eligibility_gateway import CertificateSource, EligibilityGateway
from stakepool.ledger.events import EventKind, LedgerEvent
from stakepool.ledger.level_table import LevelTable
from stakepool.ledger.period_timeline import PeriodTimeline
from stakepool.ledger.settlement import settle_stake, threshold_reached

logger = logging.getLogger(__name__)


class StakeLedger(Controlled):
    """
    Пул стейкинга: один stake-актив, один reward-актив.

    Административная поверхность (только controller):
    add_registry, append_period, set_period_threshold, set_reward_reserve, add_level.

    Ledger также выступает checker'ом для CertificateRegistry
    (has_active_stake), регистрация в реестре выполняется отдельно.
    """

    component_name = "StakeLedger"

    def __init__(
        self,
        address: str,
        controller: str,
        assets: AssetLedger,
        gateway: Optional[EligibilityGateway] = None,
    ):
        """
        Args:
            address: адрес пула (держатель депозитов в assets)
            controller: адрес governance-принципала пула
            assets: ledger stake-актива
            gateway: gateway допуска (по умолчанию пустой)
        """
        super().__init__(controller)
        self.address = validate_address(address, "address")
        self.assets = assets
        self.gateway = gateway or EligibilityGateway()
        self.timeline = PeriodTimeline()
        self.levels = LevelTable(self.timeline)

        self._period_threshold = 0
        self._reward_reserve: Optional[RewardReserve] = None
        self._stakes: Dict[str, Stake] = {}
        self._total_deposited = 0
        self._events: List[LedgerEvent] = []

    # =========================================================================
    # ADMINISTRATIVE SURFACE
    # =========================================================================

    def add_registry(self, caller: str, registry: CertificateSource) -> None:
        """Регистрация реестра сертификатов в gateway допуска."""
        self._require_controller(caller)
        self.gateway.add_registry(registry)

    def append_period(self, caller: str, length: int, now: int) -> PeriodRecord:
        """
        Новая длина периода, действующая с now.

        Raises:
            PermissionDenied: если caller не controller
            InvalidPeriod: если length <= 0
        """
        self._require_controller(caller)
        record = self.timeline.append_period(length, now)
        self._record(
            EventKind.PERIOD_APPENDED,
            timestamp=now,
            data={"length": record.length, "effective_from": record.effective_from},
        )
        return record

    def set_period_threshold(self, caller: str, period_threshold: int, now: Optional[int] = None) -> None:
        """
        Минимум целых периодов с первого депозита до выплаты награды.

        Raises:
            PermissionDenied: если caller не controller
            InvalidInput: если period_threshold == 0
        """
        self._require_controller(caller)
        if now is not None:
            validate_timestamp(now)
        validate_amount(period_threshold, "period threshold")
        self._period_threshold = period_threshold
        self._record(
            EventKind.THRESHOLD_SET,
            timestamp=now,
            data={"period_threshold": period_threshold},
        )
        logger.info(f"[StakeLedger] Period threshold set to {period_threshold}")

    def set_reward_reserve(self, caller: str, reserve: RewardReserve) -> None:
        """
        Raises:
            PermissionDenied: если caller не controller
            InvalidInput: если reserve None или с нулевым адресом
        """
        self._require_controller(caller)
        if reserve is None or is_zero_address(getattr(reserve, "address", None)):
            raise InvalidInput("reward token pool cannot be 0x0")
        self._reward_reserve = reserve
        logger.info(f"[StakeLedger] Reward reserve set to {reserve.address}")

    def add_level(
        self,
        caller: str,
        rate: int,
        lower_bound: int,
        upper_bound: int,
        now: Optional[int] = None,
    ) -> LevelTier:
        """
        Raises:
            PermissionDenied: если caller не controller
            InvalidLevelRange: если lower_bound >= upper_bound
            PeriodRequired: если период ещё не задан
        """
        self._require_controller(caller)
        if now is not None:
            validate_timestamp(now)
        tier = self.levels.add_level(rate, lower_bound, upper_bound)
        self._record(
            EventKind.LEVEL_ADDED,
            timestamp=now,
            data={"rate": rate, "lower_bound": lower_bound, "upper_bound": upper_bound},
        )
        return tier

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def period_threshold(self) -> int:
        return self._period_threshold

    @property
    def reward_reserve(self) -> Optional[RewardReserve]:
        return self._reward_reserve

    @property
    def registries(self) -> Tuple[CertificateSource, ...]:
        return self.gateway.registries

    @property
    def pool_total_deposited(self) -> int:
        return self._total_deposited

    @property
    def events(self) -> Tuple[LedgerEvent, ...]:
        return tuple(self._events)

    @property
    def stakes(self) -> Tuple[Stake, ...]:
        return tuple(self._stakes.values())

    def get_stake(self, owner: str) -> Stake:
        """Зафиксированный стейк владельца (Empty, если его нет)."""
        return self._stakes.get(owner) or Stake.empty(owner)

    def stake_total_deposited(self, owner: str) -> int:
        return self.get_stake(owner).principal

    def has_active_stake(self, owner: str) -> bool:
        """Checker-интерфейс для CertificateRegistry: principal владельца ненулевой."""
        return self.get_stake(owner).is_active

    def pending_reward(self, owner: str, now: int) -> int:
        """Награда владельца с учётом периодов до now, без фиксации settlement."""
        return settle_stake(self.get_stake(owner), self.timeline, self.levels, now).stake.accrued_unclaimed

    def is_unlocked(self, owner: str, now: int) -> bool:
        """Пройден ли period_threshold для стейка владельца."""
        return threshold_reached(self.get_stake(owner), self.timeline, self._period_threshold, now)

    # =========================================================================
    # DEPOSITOR OPERATIONS
    # =========================================================================

    def deposit(self, owner: str, amount: int, now: int) -> DepositResult:
        """
        Депозит amount от owner.

        Уровень проверяется по principal после депозита; периоды, прошедшие
        до депозита, начисляются по ставке прежнего principal.

        Raises:
            InvalidInput: если amount <= 0
            NotEligible: если owner не держит сертификат
            NotInAnyLevel: если principal + amount не покрыт уровнем
            InsufficientFunds: если перевод owner → пул отказал
        """
        validate_address(owner, "owner")
        validate_amount(amount)
        now = validate_timestamp(now)
        self.gateway.require_eligible(owner)

        stake = self.get_stake(owner)
        self.levels.rate_for(stake.principal + amount)

        settlement = settle_stake(stake, self.timeline, self.levels, now)
        first_deposit = not settlement.stake.is_active
        if first_deposit:
            updated = Stake(
                owner=owner,
                principal=amount,
                last_settled_time=now,
                accrued_unclaimed=0,
                original_deposit_time=now,
            )
        else:
            updated = settlement.stake.model_copy(
                update={"principal": settlement.stake.principal + amount}
            )

        self.assets.transfer_from(self.address, owner, self.address, amount)

        self._stakes[owner] = updated
        self._total_deposited += amount
        self._record(EventKind.DEPOSIT, timestamp=now, owner=owner, data={"amount": amount})
        logger.info(
            f"[StakeLedger] Deposit owner={owner} amount={amount} "
            f"principal={updated.principal} pool_total={self._total_deposited}"
        )
        return DepositResult(
            owner=owner,
            amount=amount,
            principal=updated.principal,
            accrued_unclaimed=updated.accrued_unclaimed,
            settled_periods=settlement.periods,
            first_deposit=first_deposit,
        )

    def claim(self, owner: str, amount: int, now: int) -> ClaimResult:
        """
        Выплата до amount накопленной награды.

        Запрос больше накопленного не ошибка: выплата ограничивается
        накопленной суммой.

        Raises:
            InvalidInput: если amount <= 0
            NotEligible: если owner не держит сертификат
            TooEarly: если period_threshold не пройден
            InsufficientFunds: если reward reserve не может выплатить
        """
        validate_address(owner, "owner")
        validate_amount(amount)
        now = validate_timestamp(now)
        self.gateway.require_eligible(owner)

        settlement = settle_stake(self.get_stake(owner), self.timeline, self.levels, now)
        settled = settlement.stake
        if not settled.is_active or not threshold_reached(
            settled, self.timeline, self._period_threshold, now
        ):
            raise TooEarly(
                "staking too short to be claimed",
                details={"owner": owner, "period_threshold": self._period_threshold},
            )

        payout = min(amount, settled.accrued_unclaimed)
        updated = settled.model_copy(update={"accrued_unclaimed": settled.accrued_unclaimed - payout})

        if payout > 0:
            self._pay_reward(owner, payout)

        self._stakes[owner] = updated
        self._record(
            EventKind.CLAIM,
            timestamp=now,
            owner=owner,
            data={"requested": amount, "payout": payout},
        )
        logger.info(
            f"[StakeLedger] Claim owner={owner} requested={amount} payout={payout} "
            f"remaining={updated.accrued_unclaimed}"
        )
        return ClaimResult(
            owner=owner,
            requested=amount,
            payout=payout,
            accrued_unclaimed=updated.accrued_unclaimed,
            settled_periods=settlement.periods,
        )

    def exit(self, owner: str, now: int) -> ExitResult:
        """
        Выход: возврат principal и, если period_threshold пройден, награды.

        Награда при непройденном пороге сгорает (не откладывается).
        Exit Empty-стейка ничего не меняет и возвращает нулевой результат.

        Raises:
            NotEligible: если owner не держит сертификат
            InsufficientFunds: если перевод principal или награды отказал
        """
        validate_address(owner, "owner")
        now = validate_timestamp(now)
        self.gateway.require_eligible(owner)

        stake = self.get_stake(owner)
        if not stake.is_active:
            logger.debug(f"[StakeLedger] Exit owner={owner}: no active stake")
            return ExitResult(owner=owner, principal=0, payout=0, forfeited=0, settled_periods=0)

        settlement = settle_stake(stake, self.timeline, self.levels, now)
        settled = settlement.stake
        if threshold_reached(settled, self.timeline, self._period_threshold, now):
            payout, forfeited = settled.accrued_unclaimed, 0
        else:
            payout, forfeited = 0, settled.accrued_unclaimed

        self.assets.transfer(self.address, owner, settled.principal)
        if payout > 0:
            try:
                self._pay_reward(owner, payout)
            except Exception:
                logger.warning(
                    f"[StakeLedger] Exit owner={owner}: reward payout failed, "
                    f"returning principal {settled.principal} to pool"
                )
                self.assets.transfer(owner, self.address, settled.principal)
                raise

        del self._stakes[owner]
        self._total_deposited -= settled.principal
        self._record(
            EventKind.EXIT,
            timestamp=now,
            owner=owner,
            data={"principal": settled.principal, "payout": payout, "forfeited": forfeited},
        )
        if forfeited:
            logger.warning(
                f"[StakeLedger] Exit owner={owner} before threshold: forfeited {forfeited}"
            )
        logger.info(
            f"[StakeLedger] Exit owner={owner} principal={settled.principal} payout={payout} "
            f"pool_total={self._total_deposited}"
        )
        return ExitResult(
            owner=owner,
            principal=settled.principal,
            payout=payout,
            forfeited=forfeited,
            settled_periods=settlement.periods,
        )

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def export_events(self) -> List[Dict[str, Any]]:
        """Журнал событий как JSON-совместимые dict (ledger_event.json)."""
        return [event.to_dict() for event in self._events]

    def snapshot(self) -> Dict[str, Any]:
        """
        Снапшот зафиксированного состояния (ledger_snapshot.json).

        Raises:
            ValidationError: если снапшот нарушает контракт
        """
        data = {
            "address": self.address,
            "controller": self.controller,
            "period_threshold": self._period_threshold,
            "reward_reserve": self._reward_reserve.address if self._reward_reserve else None,
            "pool_total_deposited": self._total_deposited,
            "periods": [record.model_dump() for record in self.timeline.records],
            "levels": [tier.model_dump() for tier in self.levels.levels],
            "registries": [registry.address for registry in self.gateway.registries],
            "stakes": [stake.model_dump() for stake in self._stakes.values()],
        }
        validate_ledger_snapshot(data)
        return data

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _pay_reward(self, owner: str, payout: int) -> None:
        if self._reward_reserve is None:
            raise InvalidInput("reward reserve is not set")
        self._reward_reserve.pull(self.address, owner, payout)

    def _record(
        self,
        kind: EventKind,
        timestamp: Optional[int] = None,
        owner: Optional[str] = None,
        data: Optional[Dict[str, int]] = None,
    ) -> None:
        self._events.append(
            LedgerEvent(
                sequence=len(self._events),
                kind=kind,
                timestamp=timestamp,
                owner=owner,
                data=data or {},
            )
        )
