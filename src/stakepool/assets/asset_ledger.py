"""
AssetLedger — fungible балансы и allowance

Внешний коллаборатор ledger. StakeLedger зависит только от протокола
AssetLedger; InMemoryAssetLedger: эталонная реализация для встраивания
и тестов.

Порядок проверок transfer_from: сначала allowance, затем баланс.
Любой отказ не меняет ни балансы, ни allowance.
"""

import logging
from typing import Dict, Protocol, Tuple, runtime_checkable

from stakepool.core.domain.units import validate_address, validate_amount
from stakepool.core.errors import InsufficientAllowance, InsufficientBalance
from stakepool.core.governance import Controlled

logger = logging.getLogger(__name__)


@runtime_checkable
class AssetLedger(Protocol):
    """Интерфейс fungible-актива, используемый StakeLedger и RewardReserve."""

    def balance_of(self, holder: str) -> int: ...

    def allowance(self, holder: str, spender: str) -> int: ...

    def approve(self, holder: str, spender: str, amount: int) -> None: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> None: ...


class InMemoryAssetLedger(Controlled):
    """
    In-memory fungible актив.

    Эмиссия (mint) доступна только controller.
    """

    component_name = "AssetLedger"

    def __init__(self, controller: str, symbol: str = "STAKE"):
        super().__init__(controller)
        self.symbol = symbol
        self.total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, holder: str, spender: str) -> int:
        return self._allowances.get((holder, spender), 0)

    def mint(self, caller: str, recipient: str, amount: int) -> None:
        """Эмиссия amount на адрес recipient."""
        self._require_controller(caller)
        validate_address(recipient, "recipient")
        validate_amount(amount, allow_zero=True)
        self._balances[recipient] = self.balance_of(recipient) + amount
        self.total_supply += amount
        logger.info(f"[AssetLedger:{self.symbol}] Minted {amount} to {recipient}")

    def approve(self, holder: str, spender: str, amount: int) -> None:
        """Установка allowance spender'а на средства holder."""
        validate_address(holder, "holder")
        validate_address(spender, "spender")
        validate_amount(amount, allow_zero=True)
        self._allowances[(holder, spender)] = amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Перевод amount от sender к recipient.

        Raises:
            InsufficientBalance: если баланс sender меньше amount
        """
        validate_address(sender, "sender")
        validate_address(recipient, "recipient")
        validate_amount(amount, allow_zero=True)
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalance(
                "transfer amount exceeds balance",
                details={"holder": sender, "balance": balance, "amount": amount},
            )
        self._move(sender, recipient, amount)

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> None:
        """
        Перевод amount от holder к recipient за счёт allowance spender'а.

        Raises:
            InsufficientAllowance: если allowance меньше amount
            InsufficientBalance: если баланс holder меньше amount
        """
        validate_address(spender, "spender")
        validate_address(holder, "holder")
        validate_address(recipient, "recipient")
        validate_amount(amount, allow_zero=True)
        allowed = self.allowance(holder, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                "insufficient allowance",
                details={"holder": holder, "spender": spender, "allowance": allowed, "amount": amount},
            )
        balance = self.balance_of(holder)
        if balance < amount:
            raise InsufficientBalance(
                "transfer amount exceeds balance",
                details={"holder": holder, "balance": balance, "amount": amount},
            )
        self._allowances[(holder, spender)] = allowed - amount
        self._move(holder, recipient, amount)

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        logger.debug(f"[AssetLedger:{self.symbol}] {sender} -> {recipient}: {amount}")
