"""
CertificateRegistry — реестр сертификатов владения

Отображение certificate_id → owner. Сертификаты выдаёт controller реестра;
освобождает только сам владелец.

Обратная связь с ledger:
- реестр хранит собственную таблицу checker'ов (ledger'ов) по адресу
- release_certificate опрашивает каждый checker и отказывает, пока
  хоть один сообщает об активном стейке владельца
"""

import logging
from typing import Dict, List, Protocol, Tuple, runtime_checkable

from stakepool.core.domain.units import ZERO_ADDRESS, is_zero_address, validate_address
from stakepool.core.errors import AlreadyRegistered, CertificateInUse, InvalidInput, NotOwner
from stakepool.core.governance import Controlled

logger = logging.getLogger(__name__)


@runtime_checkable
class StakeChecker(Protocol):
    """Ledger, к которому реестр обращается перед освобождением сертификата."""

    address: str

    def has_active_stake(self, owner: str) -> bool: ...


class CertificateRegistry(Controlled):
    """Реестр non-fungible сертификатов владения."""

    component_name = "CertificateRegistry"

    def __init__(self, address: str, controller: str):
        super().__init__(controller)
        self.address = validate_address(address, "address")
        self._owners: Dict[int, str] = {}
        self._holdings: Dict[str, List[int]] = {}
        self._checkers: Dict[str, StakeChecker] = {}

    # -------------------------------------------------------------------------
    # Checkers
    # -------------------------------------------------------------------------

    @property
    def checkers(self) -> Tuple[StakeChecker, ...]:
        return tuple(self._checkers.values())

    def add_checker(self, caller: str, checker: StakeChecker) -> None:
        """
        Регистрация ledger'а, блокирующего освобождение сертификатов.

        Raises:
            PermissionDenied: если caller не controller
            InvalidInput: если checker None или с нулевым адресом
            AlreadyRegistered: если checker уже зарегистрирован
        """
        self._require_controller(caller)
        if checker is None or is_zero_address(getattr(checker, "address", None)):
            raise InvalidInput("checker cannot be 0x0")
        if checker.address in self._checkers:
            raise AlreadyRegistered(
                "the checker already added", details={"checker": checker.address}
            )
        self._checkers[checker.address] = checker
        logger.info(f"[CertificateRegistry:{self.address}] Checker added: {checker.address}")

    # -------------------------------------------------------------------------
    # Certificates
    # -------------------------------------------------------------------------

    def owner_of(self, certificate_id: int) -> str:
        """Владелец сертификата; ZERO_ADDRESS, если сертификат не выдан."""
        return self._owners.get(certificate_id, ZERO_ADDRESS)

    def balance_of(self, owner: str) -> int:
        return len(self._holdings.get(owner, ()))

    def certificates_of(self, owner: str) -> Tuple[int, ...]:
        return tuple(self._holdings.get(owner, ()))

    def grant_certificate(self, caller: str, owner: str, certificate_id: int) -> None:
        """
        Выдача сертификата владельцу (только controller).

        Raises:
            PermissionDenied: если caller не controller
            InvalidInput: если owner нулевой
            AlreadyRegistered: если сертификат уже выдан
        """
        self._require_controller(caller)
        validate_address(owner, "owner")
        if certificate_id in self._owners:
            raise AlreadyRegistered(
                "certificate already granted",
                details={"certificate_id": certificate_id, "owner": self._owners[certificate_id]},
            )
        self._owners[certificate_id] = owner
        self._holdings.setdefault(owner, []).append(certificate_id)
        logger.info(
            f"[CertificateRegistry:{self.address}] Certificate {certificate_id} granted to {owner}"
        )

    def release_certificate(self, caller: str, certificate_id: int) -> None:
        """
        Освобождение сертификата владельцем.

        Raises:
            NotOwner: если caller не владелец сертификата
            CertificateInUse: если любой checker сообщает об активном стейке владельца
        """
        owner = self.owner_of(certificate_id)
        if owner == ZERO_ADDRESS or caller != owner:
            raise NotOwner(
                "caller is not the certificate owner",
                details={"certificate_id": certificate_id, "caller": caller},
            )
        for checker in self._checkers.values():
            if checker.has_active_stake(owner):
                raise CertificateInUse(
                    "cannot release while checker is using",
                    details={"certificate_id": certificate_id, "checker": checker.address},
                )

        del self._owners[certificate_id]
        holdings = self._holdings[owner]
        holdings.remove(certificate_id)
        if not holdings:
            del self._holdings[owner]
        logger.info(
            f"[CertificateRegistry:{self.address}] Certificate {certificate_id} released by {owner}"
        )
