"""Ledger snapshots - point-in-time copies of pool and user aggregates with conservation checks."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .ledger import StakingLedger


@dataclass
class PoolSnapshot:
    """State of one pool at a block.

    Conservation Identity (per pool):
    virtual_total_supply = sum of user virtual_amount

    Custody (per liquidity token, shared by every pool staking it):
    ledger balance >= sum of open principal
    """
    pool_id: int
    lp_token: str
    alloc_weight: int
    acc_reward_per_share: int
    virtual_total_supply: int
    last_reward_block: int
    unlocked: bool
    user_virtual_sum: int
    open_principal: int
    custody_balance: int
    pending_rewards: int
    stakers: int


@dataclass
class LedgerSnapshot:
    """Whole-ledger state at a block."""
    block: int
    reward_per_block: int
    total_alloc_weight: int
    reward_reserve: int
    paused: bool
    pools: List[PoolSnapshot] = field(default_factory=list)

    @property
    def total_virtual_supply(self) -> int:
        return sum(p.virtual_total_supply for p in self.pools)

    @property
    def total_pending(self) -> int:
        return sum(p.pending_rewards for p in self.pools)

    def validate_conservation(self) -> tuple[bool, Optional[str]]:
        """
        Validate the ledger's accounting identities.

        Returns:
            (is_valid, error_message)
        """
        weight_sum = sum(p.alloc_weight for p in self.pools)
        if weight_sum != self.total_alloc_weight:
            return False, (
                f"Weight mismatch at block={self.block}: "
                f"sum={weight_sum}, total={self.total_alloc_weight}"
            )

        for pool in self.pools:
            if pool.user_virtual_sum != pool.virtual_total_supply:
                return False, (
                    f"Virtual supply mismatch at block={self.block} pool={pool.pool_id}: "
                    f"users={pool.user_virtual_sum}, pool={pool.virtual_total_supply}"
                )

        principal: Dict[str, int] = {}
        custody: Dict[str, int] = {}
        for pool in self.pools:
            principal[pool.lp_token] = principal.get(pool.lp_token, 0) + pool.open_principal
            custody[pool.lp_token] = pool.custody_balance
        for token, owed in principal.items():
            if custody[token] < owed:
                return False, (
                    f"Custody shortfall at block={self.block} token={token}: "
                    f"held={custody[token]}, owed={owed}"
                )
        return True, None

    def validate_non_negative(self) -> tuple[bool, Optional[str]]:
        """Validate all balances and supplies are non-negative."""
        if self.reward_reserve < 0:
            return False, f"Negative reward reserve at block={self.block}: {self.reward_reserve}"
        for pool in self.pools:
            buckets = [
                ('alloc_weight', pool.alloc_weight),
                ('virtual_total_supply', pool.virtual_total_supply),
                ('open_principal', pool.open_principal),
                ('pending_rewards', pool.pending_rewards),
            ]
            for name, value in buckets:
                if value < 0:
                    return False, f"Negative {name} at block={self.block} pool={pool.pool_id}: {value}"
        return True, None

    def to_rows(self) -> List[dict]:
        """One flat record per pool, for tabular export."""
        rows = []
        for pool in self.pools:
            rows.append({
                'block': self.block,
                'reward_per_block': self.reward_per_block,
                'total_alloc_weight': self.total_alloc_weight,
                'reward_reserve': self.reward_reserve,
                'paused': self.paused,
                **pool.__dict__,
            })
        return rows


def take_snapshot(ledger: StakingLedger) -> LedgerSnapshot:
    """Capture a ledger's current state through its read accessors."""
    pools = []
    for pool_id in range(ledger.num_pools):
        info = ledger.pool_info(pool_id)
        users = ledger.users_in_pool(pool_id)
        lp_token = ledger.lp_token(pool_id)
        pools.append(PoolSnapshot(
            pool_id=pool_id,
            lp_token=info.lp_token,
            alloc_weight=info.alloc_weight,
            acc_reward_per_share=info.acc_reward_per_share,
            virtual_total_supply=info.virtual_total_supply,
            last_reward_block=info.last_reward_block,
            unlocked=info.unlocked,
            user_virtual_sum=sum(ledger.user_info(pool_id, u).virtual_amount for u in users),
            open_principal=sum(ledger.total_staked(pool_id, u) for u in users),
            custody_balance=lp_token.balance_of(ledger.address),
            pending_rewards=sum(ledger.pending_rewards(pool_id, u) for u in users),
            stakers=sum(1 for u in users if ledger.total_staked(pool_id, u) > 0),
        ))
    return LedgerSnapshot(
        block=ledger.current_block,
        reward_per_block=ledger.reward_per_block,
        total_alloc_weight=ledger.total_alloc_weight,
        reward_reserve=ledger.reward_token.balance_of(ledger.address),
        paused=ledger.paused,
        pools=pools,
    )
