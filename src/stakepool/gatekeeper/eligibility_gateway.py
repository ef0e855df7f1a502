"""
EligibilityGateway — допуск владельцев к стейкингу

Агрегирует зарегистрированные CertificateRegistry. Владелец допущен,
если хотя бы один реестр сообщает, что он держит >= 1 сертификат.

Реестры хранятся в таблице по адресу реестра (порядок регистрации
сохраняется). Обратная регистрация ledger'а в реестре выполняется отдельным вызовом
CertificateRegistry.add_checker.
"""

import logging
from typing import Dict, Protocol, Tuple, runtime_checkable

from stakepool.core.domain.units import is_zero_address
from stakepool.core.errors import AlreadyRegistered, InvalidInput, NotEligible

logger = logging.getLogger(__name__)


@runtime_checkable
class CertificateSource(Protocol):
    """Реестр, который gateway опрашивает при проверке допуска."""

    address: str

    def balance_of(self, owner: str) -> int: ...


class EligibilityGateway:
    """Проверка допуска по сертификатам во всех зарегистрированных реестрах."""

    def __init__(self) -> None:
        self._registries: Dict[str, CertificateSource] = {}

    @property
    def registries(self) -> Tuple[CertificateSource, ...]:
        return tuple(self._registries.values())

    def get_registry(self, index: int) -> CertificateSource:
        registries = self.registries
        if not 0 <= index < len(registries):
            raise InvalidInput(
                f"registry index {index} out of range [0, {len(registries)})",
                details={"index": index},
            )
        return registries[index]

    def add_registry(self, registry: CertificateSource) -> None:
        """
        Регистрация реестра сертификатов.

        Raises:
            InvalidInput: если registry None или с нулевым адресом
            AlreadyRegistered: если реестр уже зарегистрирован
        """
        if registry is None or is_zero_address(getattr(registry, "address", None)):
            raise InvalidInput("registry cannot be 0x0")
        if registry.address in self._registries:
            raise AlreadyRegistered(
                "the registry already added", details={"registry": registry.address}
            )
        self._registries[registry.address] = registry
        logger.info(f"[EligibilityGateway] Registry added: {registry.address}")

    def is_eligible(self, owner: str) -> bool:
        """Держит ли owner хотя бы один сертификат в любом реестре."""
        return any(registry.balance_of(owner) >= 1 for registry in self._registries.values())

    def require_eligible(self, owner: str) -> None:
        """
        Raises:
            NotEligible: если owner не держит ни одного сертификата
        """
        if not self.is_eligible(owner):
            raise NotEligible("owner not in any registry", details={"owner": owner})
