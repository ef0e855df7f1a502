"""
Assets — внешние коллабораторы: fungible ledger и reward reserve.
"""

from .asset_ledger import AssetLedger, InMemoryAssetLedger
from .reward_reserve import RewardReserve

__all__ = [
    "AssetLedger",
    "InMemoryAssetLedger",
    "RewardReserve",
]
