"""
Общие fixtures: собранный пул стейкинга

Пул:
- один fungible актив (stake и reward), каждому пользователю MINT
- два реестра сертификатов, ledger зарегистрирован checker'ом в первом
- период PERIOD с момента T0, порог THRESHOLD периодов
- уровни {1:[0,100), 10:[100,1000), 100:[1000,10000)}
- резерв награды с allowance RESERVE_ALLOWANCE для пула
"""

from dataclasses import dataclass

import pytest

from stakepool.assets import InMemoryAssetLedger, RewardReserve
from stakepool.gatekeeper import CertificateRegistry
from stakepool.ledger import StakeLedger

from tests.unit.constants import (
    ADMIN,
    MINT,
    PERIOD,
    POOL,
    REGISTRY,
    REGISTRY2,
    RESERVE,
    RESERVE_ALLOWANCE,
    RESERVE_FUNDS,
    T0,
    THRESHOLD,
    USER,
    USER2,
    USER3,
)


@dataclass
class Pool:
    assets: InMemoryAssetLedger
    reserve: RewardReserve
    registry: CertificateRegistry
    registry2: CertificateRegistry
    ledger: StakeLedger

    def balance(self, holder: str) -> int:
        return self.assets.balance_of(holder)


@pytest.fixture
def pool():
    """
    USER держит сертификат 1 в первом реестре, USER2 сертификат 2 в первом
    и 7 во втором, USER3 сертификатов не имеет.
    """
    assets = InMemoryAssetLedger(ADMIN)
    for user in (USER, USER2, USER3):
        assets.mint(ADMIN, user, MINT)
        assets.approve(user, POOL, MINT)

    reserve = RewardReserve(RESERVE, ADMIN, assets)
    assets.mint(ADMIN, RESERVE, RESERVE_FUNDS)

    registry = CertificateRegistry(REGISTRY, ADMIN)
    registry.grant_certificate(ADMIN, USER, 1)
    registry.grant_certificate(ADMIN, USER2, 2)
    registry2 = CertificateRegistry(REGISTRY2, ADMIN)
    registry2.grant_certificate(ADMIN, USER2, 7)

    ledger = StakeLedger(POOL, ADMIN, assets)
    ledger.add_registry(ADMIN, registry)
    ledger.add_registry(ADMIN, registry2)
    registry.add_checker(ADMIN, ledger)
    registry2.add_checker(ADMIN, ledger)

    ledger.append_period(ADMIN, PERIOD, T0)
    ledger.set_period_threshold(ADMIN, THRESHOLD, T0)
    ledger.add_level(ADMIN, 1, 0, 100, T0)
    ledger.add_level(ADMIN, 10, 100, 1000, T0)
    ledger.add_level(ADMIN, 100, 1000, 10000, T0)
    ledger.set_reward_reserve(ADMIN, reserve)
    reserve.approve(ADMIN, POOL, RESERVE_ALLOWANCE)

    return Pool(assets=assets, reserve=reserve, registry=registry, registry2=registry2, ledger=ledger)
