"""
Тесты для StakeLedger — deposit / claim / exit и административная поверхность

Coverage:
- Начисление по уровням и периодам, частичные выплаты
- period_threshold: TooEarly для claim, сгорание награды при раннем exit
- Смена длины периода, порога и уровней во время стейкинга
- Атомарность: любая ошибка оставляет ledger, балансы и журнал без изменений
- Σ principal == pool_total_deposited == баланс пула
- Права controller и валидация административных входов
"""

from types import SimpleNamespace

import pytest

from stakepool.assets import InMemoryAssetLedger
from stakepool.core.domain import ZERO_ADDRESS
from stakepool.core.errors import (
    AlreadyRegistered,
    CertificateInUse,
    InsufficientAllowance,
    InsufficientBalance,
    InvalidInput,
    InvalidLevelRange,
    InvalidPeriod,
    NotEligible,
    NotInAnyLevel,
    NotOwner,
    PeriodRequired,
    PermissionDenied,
    TooEarly,
)
from stakepool.ledger import StakeLedger
from tests.unit.constants import (
    ADMIN,
    MINT,
    PERIOD,
    POOL,
    REGISTRY,
    T0,
    USER,
    USER2,
    USER3,
)


def assert_conserved(pool):
    """Σ principal == pool_total_deposited == баланс пула."""
    ledger = pool.ledger
    total = sum(stake.principal for stake in ledger.stakes)
    assert total == ledger.pool_total_deposited
    assert total == pool.balance(POOL)


# =============================================================================
# DEPOSIT
# =============================================================================


class TestDeposit:
    """Тесты deposit."""

    def test_first_deposit_creates_stake(self, pool):
        result = pool.ledger.deposit(USER, 9, T0)

        assert result.first_deposit
        assert result.principal == 9
        stake = pool.ledger.get_stake(USER)
        assert stake.original_deposit_time == T0
        assert stake.last_settled_time == T0
        assert pool.balance(USER) == MINT - 9
        assert pool.ledger.has_active_stake(USER)
        assert_conserved(pool)

    def test_accrual_after_four_periods(self, pool):
        """Депозит 9, через 4 периода pending == 4."""
        pool.ledger.deposit(USER, 9, T0)

        assert pool.ledger.pending_reward(USER, T0 + 4 * PERIOD) == 4
        assert pool.ledger.pending_reward(USER, T0 + 4 * PERIOD - 1) == 3

    def test_deposits_across_levels(self, pool):
        """Каждый депозит начисляет прошедшие периоды по прежнему principal."""
        ledger = pool.ledger

        ledger.deposit(USER, 99, T0)
        assert ledger.deposit(USER, 900, T0 + PERIOD + 10).accrued_unclaimed == 1
        assert ledger.deposit(USER, 1000, T0 + 3 * PERIOD + 10).accrued_unclaimed == 21
        assert ledger.deposit(USER, 1001, T0 + 5 * PERIOD + 10).accrued_unclaimed == 221

        result = ledger.claim(USER, 1000, T0 + 6 * PERIOD + 10)

        assert result.payout == 321
        assert result.accrued_unclaimed == 0
        assert pool.balance(USER) == MINT - 3000 + 321
        assert ledger.stake_total_deposited(USER) == 3000
        assert_conserved(pool)

    def test_not_eligible(self, pool):
        """Владелец без сертификата → NotEligible."""
        with pytest.raises(NotEligible):
            pool.ledger.deposit(USER3, 10, T0)

        assert pool.balance(USER3) == MINT

    def test_eligible_through_second_registry(self, pool):
        """Достаточно сертификата в любом реестре."""
        pool.registry.release_certificate(USER2, 2)

        pool.ledger.deposit(USER2, 10, T0)

        assert pool.ledger.stake_total_deposited(USER2) == 10

    def test_amount_outside_levels(self, pool):
        with pytest.raises(NotInAnyLevel):
            pool.ledger.deposit(USER, 100_000, T0)

        assert pool.ledger.get_stake(USER).is_empty

    def test_level_checked_after_deposit(self, pool):
        """Уровень проверяется по principal + amount."""
        pool.ledger.deposit(USER, 9000, T0)

        with pytest.raises(NotInAnyLevel):
            pool.ledger.deposit(USER, 1500, T0 + PERIOD)

        assert pool.ledger.stake_total_deposited(USER) == 9000
        assert pool.ledger.get_stake(USER).last_settled_time == T0
        assert_conserved(pool)

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount(self, pool, amount):
        with pytest.raises(InvalidInput):
            pool.ledger.deposit(USER, amount, T0)

    def test_insufficient_balance_leaves_state(self, pool):
        """Отказ перевода не меняет стейк, счётчик и журнал."""
        pool.ledger.deposit(USER, 10, T0)
        pool.assets.transfer(USER, USER3, pool.balance(USER))
        events_before = len(pool.ledger.events)

        with pytest.raises(InsufficientBalance):
            pool.ledger.deposit(USER, 10, T0 + 2 * PERIOD)

        stake = pool.ledger.get_stake(USER)
        assert stake.principal == 10
        assert stake.accrued_unclaimed == 0
        assert stake.last_settled_time == T0
        assert len(pool.ledger.events) == events_before
        assert_conserved(pool)

    def test_insufficient_allowance(self, pool):
        pool.assets.approve(USER, POOL, 5)

        with pytest.raises(InsufficientAllowance):
            pool.ledger.deposit(USER, 10, T0)

        assert pool.ledger.get_stake(USER).is_empty


# =============================================================================
# CLAIM
# =============================================================================


class TestClaim:
    """Тесты claim."""

    def test_partial_claims(self, pool):
        """Запрос меньше накопленного оставляет остаток."""
        ledger = pool.ledger
        ledger.deposit(USER, 50, T0)
        now = T0 + 4 * PERIOD

        assert ledger.claim(USER, 2, now).accrued_unclaimed == 2
        assert ledger.claim(USER, 1, now).accrued_unclaimed == 1

        result = ledger.claim(USER, 100, now)
        assert result.payout == 1
        assert result.accrued_unclaimed == 0
        assert pool.balance(USER) == MINT - 50 + 4

    def test_over_claim_is_capped(self, pool):
        """Запрос больше накопленного: выплата накопленного."""
        pool.ledger.deposit(USER, 50, T0)

        result = pool.ledger.claim(USER, 100, T0 + 4 * PERIOD)

        assert result.requested == 100
        assert result.payout == 4
        assert pool.balance(USER) == MINT - 50 + 4

    def test_threshold_not_reached(self, pool):
        pool.ledger.deposit(USER, 50, T0)

        with pytest.raises(TooEarly):
            pool.ledger.claim(USER, 100, T0 + 2 * PERIOD)

        assert not pool.ledger.is_unlocked(USER, T0 + 2 * PERIOD)
        assert pool.ledger.claim(USER, 100, T0 + 3 * PERIOD).payout == 3

    def test_claim_without_stake(self, pool):
        with pytest.raises(TooEarly):
            pool.ledger.claim(USER, 10, T0 + 10 * PERIOD)

    def test_claim_zero_amount(self, pool):
        pool.ledger.deposit(USER, 50, T0)

        with pytest.raises(InvalidInput):
            pool.ledger.claim(USER, 0, T0 + 4 * PERIOD)

    def test_claim_not_eligible(self, pool):
        with pytest.raises(NotEligible):
            pool.ledger.claim(USER3, 10, T0)

    def test_claim_with_nothing_accrued(self, pool):
        """Нулевая выплата фиксирует settlement без перевода."""
        pool.ledger.set_period_threshold(ADMIN, 1, T0)
        pool.ledger.deposit(USER, 50, T0)

        result = pool.ledger.claim(USER, 10, T0 + PERIOD)
        assert result.payout == 1

        result = pool.ledger.claim(USER, 10, T0 + PERIOD + 10)
        assert result.payout == 0
        assert pool.balance(USER) == MINT - 50 + 1

    def test_reserve_not_set(self):
        assets = InMemoryAssetLedger(ADMIN)
        assets.mint(ADMIN, USER, MINT)
        assets.approve(USER, POOL, MINT)
        ledger = StakeLedger(POOL, ADMIN, assets)
        ledger.add_registry(ADMIN, SimpleNamespace(address=REGISTRY, balance_of=lambda owner: 1))
        ledger.append_period(ADMIN, PERIOD, T0)
        ledger.add_level(ADMIN, 1, 0, 100)
        ledger.deposit(USER, 50, T0)

        with pytest.raises(InvalidInput, match="reward reserve is not set"):
            ledger.claim(USER, 10, T0 + 4 * PERIOD)

        assert ledger.get_stake(USER).accrued_unclaimed == 0


# =============================================================================
# EXIT
# =============================================================================


class TestExit:
    """Тесты exit."""

    def test_exit_after_threshold(self, pool):
        pool.ledger.deposit(USER, 50, T0)

        result = pool.ledger.exit(USER, T0 + 4 * PERIOD)

        assert (result.principal, result.payout, result.forfeited) == (50, 4, 0)
        assert result.total == 54
        assert pool.balance(USER) == MINT + 4
        assert pool.ledger.get_stake(USER).is_empty
        assert_conserved(pool)

    def test_exit_before_threshold_forfeits(self, pool):
        """Награда при раннем выходе сгорает."""
        pool.ledger.deposit(USER, 50, T0)

        result = pool.ledger.exit(USER, T0 + 2 * PERIOD)

        assert (result.principal, result.payout, result.forfeited) == (50, 0, 2)
        assert pool.balance(USER) == MINT
        assert pool.ledger.pool_total_deposited == 0

    def test_second_exit_is_noop(self, pool):
        pool.ledger.deposit(USER, 50, T0)
        pool.ledger.exit(USER, T0 + 2 * PERIOD)
        events_before = len(pool.ledger.events)

        result = pool.ledger.exit(USER, T0 + 3 * PERIOD)

        assert result.total == 0
        assert len(pool.ledger.events) == events_before
        assert pool.balance(USER) == MINT

    def test_exit_after_claim(self, pool):
        ledger = pool.ledger
        ledger.deposit(USER, 50, T0)
        ledger.deposit(USER2, 50, T0)

        ledger.claim(USER2, 2, T0 + 4 * PERIOD)
        ledger.exit(USER, T0 + 4 * PERIOD)
        ledger.exit(USER2, T0 + 4 * PERIOD)

        assert pool.balance(USER) == MINT + 4
        assert pool.balance(USER2) == MINT + 4
        assert_conserved(pool)

    def test_new_stake_after_exit_restarts_threshold(self, pool):
        pool.ledger.deposit(USER, 50, T0)
        pool.ledger.exit(USER, T0 + 4 * PERIOD)

        pool.ledger.deposit(USER, 50, T0 + 5 * PERIOD)

        assert pool.ledger.get_stake(USER).original_deposit_time == T0 + 5 * PERIOD
        with pytest.raises(TooEarly):
            pool.ledger.claim(USER, 10, T0 + 7 * PERIOD)

    def test_failed_payout_restores_principal(self, pool):
        """Отказ выплаты награды возвращает principal в пул."""
        pool.reserve.approve(ADMIN, POOL, 0)
        pool.ledger.deposit(USER, 50, T0)
        stake_before = pool.ledger.get_stake(USER)
        events_before = len(pool.ledger.events)

        with pytest.raises(InsufficientAllowance):
            pool.ledger.exit(USER, T0 + 4 * PERIOD)

        assert pool.balance(USER) == MINT - 50
        assert pool.balance(POOL) == 50
        assert pool.ledger.get_stake(USER) == stake_before
        assert pool.ledger.pool_total_deposited == 50
        assert len(pool.ledger.events) == events_before

    def test_reserve_failure_outside_taxonomy_restores_principal(self, pool):
        """Произвольная ошибка внешнего резерва тоже компенсирует перевод principal."""

        class BrokenReserve:
            address = "0xbroken"

            def pull(self, spender, recipient, amount):
                raise RuntimeError("reserve unavailable")

        ledger = pool.ledger
        ledger.set_reward_reserve(ADMIN, BrokenReserve())
        ledger.deposit(USER, 50, T0)
        stake_before = ledger.get_stake(USER)
        events_before = len(ledger.events)

        with pytest.raises(RuntimeError, match="reserve unavailable"):
            ledger.exit(USER, T0 + 4 * PERIOD)

        assert pool.balance(POOL) == ledger.pool_total_deposited == 50
        assert pool.balance(USER) == MINT - 50
        assert ledger.get_stake(USER) == stake_before
        assert len(ledger.events) == events_before
        assert_conserved(pool)

    def test_exit_not_eligible(self, pool):
        with pytest.raises(NotEligible):
            pool.ledger.exit(USER3, T0)


# =============================================================================
# ELIGIBILITY COUPLING
# =============================================================================


class TestCertificateCoupling:
    """Реестр отказывает в освобождении сертификата при активном стейке."""

    def test_release_blocked_while_staking(self, pool):
        pool.ledger.deposit(USER, 10, T0)

        with pytest.raises(CertificateInUse):
            pool.registry.release_certificate(USER, 1)

        assert pool.registry.owner_of(1) == USER

    def test_release_after_exit(self, pool):
        pool.ledger.deposit(USER, 10, T0)
        pool.ledger.exit(USER, T0 + PERIOD)

        pool.registry.release_certificate(USER, 1)

        assert pool.registry.owner_of(1) == ZERO_ADDRESS
        with pytest.raises(NotEligible):
            pool.ledger.deposit(USER, 10, T0 + 2 * PERIOD)

    def test_release_by_non_owner(self, pool):
        with pytest.raises(NotOwner):
            pool.registry.release_certificate(USER2, 1)


# =============================================================================
# PARAMETER CHANGES DURING STAKING
# =============================================================================


class TestParameterChanges:
    """Смена длины периода, порога и уровней во время стейкинга."""

    def test_period_length_change(self, pool):
        """Период, начатый до смены длины, досчитывается со старой длиной."""
        ledger = pool.ledger
        ledger.deposit(USER, 10, T0)

        now = T0 + 4 * PERIOD + 10
        ledger.append_period(ADMIN, 10_000, now)

        now = T0 + 5 * PERIOD + 10
        assert ledger.claim(USER, 1000, now).payout == 5

        now += 3 * 10_000
        assert ledger.claim(USER, 1000, now).payout == 3

        ledger.append_period(ADMIN, 10_000, now)
        now += 10_000
        assert ledger.claim(USER, 1000, now).payout == 1

        assert pool.balance(USER) == MINT - 10 + 9

    def test_threshold_change(self, pool):
        """Новый порог действует на все стейки сразу."""
        ledger = pool.ledger
        ledger.deposit(USER, 10, T0)
        ledger.deposit(USER2, 10, T0 + PERIOD + 10)

        now = T0 + 2 * PERIOD + 10
        ledger.set_period_threshold(ADMIN, 2, now)

        assert ledger.claim(USER, 1000, now).payout == 2
        with pytest.raises(TooEarly):
            ledger.claim(USER2, 1000, now)

        now = T0 + 3 * PERIOD + 10
        ledger.exit(USER, now)
        ledger.exit(USER2, now)

        assert pool.balance(USER) == MINT + 3
        assert pool.balance(USER2) == MINT + 2

    def test_unlocked_stake_stays_unlocked(self, pool):
        ledger = pool.ledger
        ledger.deposit(USER, 10, T0)

        now = T0 + 4 * PERIOD + 10
        ledger.set_period_threshold(ADMIN, 2, now)
        ledger.exit(USER, now)

        assert pool.balance(USER) == MINT + 4

    def test_raised_threshold_locks_again(self, pool):
        ledger = pool.ledger
        ledger.deposit(USER, 10, T0)

        now = T0 + 4 * PERIOD + 10
        ledger.set_period_threshold(ADMIN, 10, now)

        with pytest.raises(TooEarly):
            ledger.claim(USER, 1000, now)

    def test_level_added_during_staking(self, pool):
        """Перекрывающийся уровень не меняет ставку ранее покрытых сумм."""
        ledger = pool.ledger
        ledger.deposit(USER, 10, T0)
        ledger.deposit(USER2, 110, T0)

        ledger.add_level(ADMIN, 1000, 50, 150, T0 + 4 * PERIOD + 10)

        now = T0 + 6 * PERIOD + 10
        ledger.exit(USER, now)
        ledger.exit(USER2, now)

        assert pool.balance(USER) == MINT + 6
        assert pool.balance(USER2) == MINT + 60


# =============================================================================
# REWARD RESERVE
# =============================================================================


class TestRewardReserve:
    def test_reserve_allowance_exhausted(self, pool):
        """Отказ резерва не меняет стейк."""
        ledger = pool.ledger
        ledger.deposit(USER, 1000, T0)
        ledger.deposit(USER2, 1000, T0)
        now = T0 + 6000 * PERIOD + 10

        assert ledger.exit(USER, now).payout == 600_000
        assert pool.reserve.allowance_of(POOL) == 400_000

        stake_before = ledger.get_stake(USER2)
        with pytest.raises(InsufficientAllowance):
            ledger.claim(USER2, 500_000, now)

        assert ledger.get_stake(USER2) == stake_before
        assert pool.balance(USER2) == MINT - 1000
        assert_conserved(pool)


# =============================================================================
# ADMINISTRATIVE SURFACE
# =============================================================================


class TestAdministration:
    """Права controller и валидация административных входов."""

    @pytest.mark.parametrize(
        "call",
        [
            lambda ledger: ledger.append_period(USER, 10, T0),
            lambda ledger: ledger.set_period_threshold(USER, 5),
            lambda ledger: ledger.add_level(USER, 1, 10000, 20000),
            lambda ledger: ledger.set_reward_reserve(USER, SimpleNamespace(address="0xother")),
            lambda ledger: ledger.add_registry(USER, SimpleNamespace(address="0xother")),
        ],
    )
    def test_only_controller(self, pool, call):
        snapshot_before = pool.ledger.snapshot()
        events_before = len(pool.ledger.events)

        with pytest.raises(PermissionDenied):
            call(pool.ledger)

        assert pool.ledger.snapshot() == snapshot_before
        assert len(pool.ledger.events) == events_before

    def test_zero_registry(self, pool):
        with pytest.raises(InvalidInput, match="registry cannot be 0x0"):
            pool.ledger.add_registry(ADMIN, SimpleNamespace(address=ZERO_ADDRESS))

    def test_duplicate_registry(self, pool):
        with pytest.raises(AlreadyRegistered):
            pool.ledger.add_registry(ADMIN, pool.registry)

        assert len(pool.ledger.registries) == 2

    def test_zero_period(self, pool):
        with pytest.raises(InvalidPeriod, match="period cannot be 0"):
            pool.ledger.append_period(ADMIN, 0, T0 + PERIOD)

        assert pool.ledger.timeline.period_count == 1

    def test_zero_threshold(self, pool):
        with pytest.raises(InvalidInput, match="period threshold cannot be 0"):
            pool.ledger.set_period_threshold(ADMIN, 0)

        assert pool.ledger.period_threshold == 3

    def test_zero_reward_reserve(self, pool):
        with pytest.raises(InvalidInput, match="reward token pool cannot be 0x0"):
            pool.ledger.set_reward_reserve(ADMIN, None)

        assert pool.ledger.reward_reserve is pool.reserve

    def test_inverted_level(self, pool):
        with pytest.raises(InvalidLevelRange):
            pool.ledger.add_level(ADMIN, 10, 100, 1)

        assert pool.ledger.levels.level_count == 3

    def test_level_before_period(self, pool):
        ledger = StakeLedger("0xother", ADMIN, pool.assets)

        with pytest.raises(PeriodRequired):
            ledger.add_level(ADMIN, 10, 1, 100)

        assert ledger.events == ()

    def test_zero_controller(self, pool):
        with pytest.raises(InvalidInput):
            StakeLedger("0xother", ZERO_ADDRESS, pool.assets)


# =============================================================================
# SNAPSHOT
# =============================================================================


class TestSnapshot:
    def test_snapshot_contents(self, pool):
        pool.ledger.deposit(USER, 50, T0)
        pool.ledger.deposit(USER2, 500, T0 + PERIOD)

        snapshot = pool.ledger.snapshot()

        assert snapshot["address"] == POOL
        assert snapshot["period_threshold"] == 3
        assert snapshot["pool_total_deposited"] == 550
        assert snapshot["periods"] == [{"effective_from": T0, "length": PERIOD}]
        assert len(snapshot["levels"]) == 3
        assert snapshot["registries"] == [REGISTRY, "0xregistry2"]
        assert {stake["owner"] for stake in snapshot["stakes"]} == {USER, USER2}

    def test_empty_pool_snapshot(self, pool):
        snapshot = pool.ledger.snapshot()

        assert snapshot["stakes"] == []
        assert snapshot["pool_total_deposited"] == 0
