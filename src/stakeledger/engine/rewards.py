"""Reward distribution engine - per-block emission split across pools.

Key Concepts:
- Global emission is reward_per_block, shared by pools in proportion to
  alloc_weight / total_alloc_weight
- pool_reward(elapsed) = elapsed * reward_per_block * alloc_weight // total_alloc_weight
- acc_reward_per_share += pool_reward * PRECISION // virtual_total_supply
- Truncation happens per pool, so the sum over pools may fall short of the
  global emission by a few base units
"""

from dataclasses import dataclass
from typing import Iterable, List

from .errors import ValidationError
from .pools import PoolInfo

ACC_REWARD_PRECISION = 10 ** 23


@dataclass
class PoolAccrual:
    """Result of advancing one pool's accumulator."""
    pool_reward: int
    acc_increment: int
    elapsed_blocks: int


class RewardDistributionEngine:
    """Global reward rate, total allocation weight and accumulator math."""

    def __init__(
        self,
        reward_per_block: int,
        precision: int = ACC_REWARD_PRECISION,
    ):
        """
        Initialize reward distribution engine.

        Args:
            reward_per_block: Reward token units emitted per block across all pools
            precision: Fixed-point scale of acc_reward_per_share
        """
        if reward_per_block < 0:
            raise ValidationError(reason="reward per block must be non-negative",
                                  details={"reward_per_block": reward_per_block})
        if precision <= 0:
            raise ValidationError(reason="precision must be positive", details={"precision": precision})
        self.reward_per_block = reward_per_block
        self.precision = precision
        self.total_alloc_weight = 0

    def compute_pool_reward(self, pool: PoolInfo, elapsed_blocks: int) -> int:
        """
        Reward emitted to one pool over an interval.

        Args:
            pool: Pool receiving the emission
            elapsed_blocks: Blocks since the pool's last update

        Returns:
            Reward token units (truncated)
        """
        if elapsed_blocks <= 0 or self.total_alloc_weight == 0:
            return 0
        return elapsed_blocks * self.reward_per_block * pool.alloc_weight // self.total_alloc_weight

    def compute_accrual(self, pool: PoolInfo, current_block: int) -> PoolAccrual:
        """
        Accrual a pool would receive if updated at ``current_block``.

        No accrual while the pool has no virtual supply or no block has passed.
        """
        elapsed = current_block - pool.last_reward_block
        if elapsed <= 0 or pool.virtual_total_supply == 0:
            return PoolAccrual(pool_reward=0, acc_increment=0, elapsed_blocks=max(elapsed, 0))

        pool_reward = self.compute_pool_reward(pool, elapsed)
        acc_increment = pool_reward * self.precision // pool.virtual_total_supply
        return PoolAccrual(pool_reward=pool_reward, acc_increment=acc_increment, elapsed_blocks=elapsed)

    def projected_acc_reward_per_share(self, pool: PoolInfo, current_block: int) -> int:
        """acc_reward_per_share as of ``current_block`` without mutating the pool."""
        return pool.acc_reward_per_share + self.compute_accrual(pool, current_block).acc_increment

    def update_pool(self, pool: PoolInfo, current_block: int) -> bool:
        """
        Bring a pool's accumulator up to ``current_block``.

        Returns:
            True if last_reward_block moved
        """
        if current_block <= pool.last_reward_block:
            return False
        accrual = self.compute_accrual(pool, current_block)
        pool.acc_reward_per_share += accrual.acc_increment
        pool.last_reward_block = current_block
        return True

    def mass_update(self, pools: Iterable[PoolInfo], current_block: int) -> List[bool]:
        """Update several pools to the same block."""
        return [self.update_pool(pool, current_block) for pool in pools]

    def add_weight(self, alloc_weight: int) -> None:
        self.total_alloc_weight += alloc_weight

    def reweight(self, pool: PoolInfo, new_weight: int) -> int:
        """
        Replace a pool's weight and keep the global total consistent.

        Returns:
            The new total allocation weight
        """
        self.total_alloc_weight = self.total_alloc_weight - pool.alloc_weight + new_weight
        pool.alloc_weight = new_weight
        return self.total_alloc_weight

    def weight_after(self, pool: PoolInfo, new_weight: int) -> int:
        """Total allocation weight if ``pool`` were reweighted to ``new_weight``."""
        return self.total_alloc_weight - pool.alloc_weight + new_weight
