"""
RewardReserve — резерв награды с делегированным списанием

Резерв держит reward-актив на собственном адресе. Controller резерва выдаёт
allowance пулу (approve); пул списывает награду через pull(). Фондирование
и управление allowance находятся вне ядра ledger.
"""

import logging

from stakepool.assets.asset_ledger import AssetLedger
from stakepool.core.domain.units import validate_address
from stakepool.core.governance import Controlled

logger = logging.getLogger(__name__)


class RewardReserve(Controlled):
    """Escrow reward-актива с allowance для spender'ов."""

    component_name = "RewardReserve"

    def __init__(self, address: str, controller: str, assets: AssetLedger):
        super().__init__(controller)
        self.address = validate_address(address, "address")
        self.assets = assets

    @property
    def balance(self) -> int:
        return self.assets.balance_of(self.address)

    def allowance_of(self, spender: str) -> int:
        return self.assets.allowance(self.address, spender)

    def available_to(self, spender: str) -> int:
        """Сколько spender может списать прямо сейчас."""
        return min(self.allowance_of(spender), self.balance)

    def approve(self, caller: str, spender: str, amount: int) -> None:
        """
        Выдача allowance spender'у (только controller).

        Raises:
            PermissionDenied: если caller не controller
            InvalidInput: если spender нулевой
        """
        self._require_controller(caller)
        self.assets.approve(self.address, spender, amount)
        logger.info(f"[RewardReserve] Approved {spender} for {amount}")

    def pull(self, spender: str, recipient: str, amount: int) -> None:
        """
        Списание награды spender'ом в пользу recipient.

        Raises:
            InsufficientAllowance: если allowance spender'а исчерпан
            InsufficientBalance: если в резерве недостаточно средств
        """
        self.assets.transfer_from(spender, self.address, recipient, amount)
        logger.debug(f"[RewardReserve] {spender} pulled {amount} for {recipient}")
