"""Tests for pool accumulator math and reward distribution across pools.

Amounts are chosen so every fixed-point division is exact.
"""

import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from stakeledger.engine.events import PoolUpdated
from stakeledger.engine.ledger import StakingLedger
from stakeledger.engine.pools import PoolInfo
from stakeledger.engine.rewards import ACC_REWARD_PRECISION, RewardDistributionEngine
from stakeledger.external import BlockClock, CoreAccessGate, TokenLedger

R = 100 * 10 ** 18  # reward per block
X = 100 * 10 ** 18  # stake size
P = ACC_REWARD_PRECISION
TABLE = [(0, 10_000), (100, 15_000), (1000, 50_000)]


def _make_ledger(users=("alice", "bob")):
    clock = BlockClock(start_block=0, automine=True)
    gate = CoreAccessGate(governors=["governor"], guardians=["guardian"])
    reward = TokenLedger("TRIBE")
    ledger = StakingLedger(reward, gate, clock, reward_per_block=R)
    reward.mint(ledger.address, 10 ** 30)
    lp = TokenLedger("LP")
    for user in users:
        lp.mint(user, 10 ** 24)
        lp.approve(user, ledger.address, 10 ** 24)
    return ledger, clock, lp, reward


class TestRewardDistributionEngine:
    """Pure accumulator arithmetic."""

    def test_pool_reward_is_weighted_share(self):
        """A pool receives elapsed * rate * weight / total."""
        engine = RewardDistributionEngine(reward_per_block=R)
        pool = PoolInfo(lp_token="LP", alloc_weight=250, last_reward_block=0)
        engine.add_weight(1000)
        assert engine.compute_pool_reward(pool, 4) == 4 * R * 250 // 1000

    def test_no_accrual_without_supply(self):
        """Empty pools advance last_reward_block but keep acc unchanged."""
        engine = RewardDistributionEngine(reward_per_block=R)
        pool = PoolInfo(lp_token="LP", alloc_weight=100, last_reward_block=5)
        engine.add_weight(100)
        assert engine.update_pool(pool, 20) is True
        assert pool.acc_reward_per_share == 0
        assert pool.last_reward_block == 20

    def test_update_is_noop_in_same_block(self):
        """Updating twice in one block changes nothing."""
        engine = RewardDistributionEngine(reward_per_block=R)
        pool = PoolInfo(lp_token="LP", alloc_weight=100, last_reward_block=5, virtual_total_supply=X)
        engine.add_weight(100)
        engine.update_pool(pool, 6)
        acc = pool.acc_reward_per_share
        assert engine.update_pool(pool, 6) is False
        assert pool.acc_reward_per_share == acc

    def test_zero_total_weight_stops_accrual(self):
        """With total weight 0 nothing accrues."""
        engine = RewardDistributionEngine(reward_per_block=R)
        pool = PoolInfo(lp_token="LP", alloc_weight=0, last_reward_block=0, virtual_total_supply=X)
        engine.update_pool(pool, 10)
        assert pool.acc_reward_per_share == 0
        assert pool.last_reward_block == 10

    def test_projection_does_not_mutate(self):
        """projected_acc_reward_per_share leaves the pool untouched."""
        engine = RewardDistributionEngine(reward_per_block=R)
        pool = PoolInfo(lp_token="LP", alloc_weight=100, last_reward_block=0, virtual_total_supply=X)
        engine.add_weight(100)
        assert engine.projected_acc_reward_per_share(pool, 10) == 10 * R * P // X
        assert pool.acc_reward_per_share == 0
        assert pool.last_reward_block == 0

    def test_reweight_keeps_total_consistent(self):
        """reweight replaces the pool's weight in the global total."""
        engine = RewardDistributionEngine(reward_per_block=R)
        a = PoolInfo(lp_token="A", alloc_weight=100, last_reward_block=0)
        b = PoolInfo(lp_token="B", alloc_weight=300, last_reward_block=0)
        engine.add_weight(100)
        engine.add_weight(300)
        assert engine.weight_after(a, 0) == 300
        assert engine.reweight(a, 50) == 350
        assert a.alloc_weight + b.alloc_weight == engine.total_alloc_weight


class TestSingleStaker:
    """One pool, one staker, rate R."""

    def test_pending_after_ten_blocks(self):
        """Ten blocks after a deposit pending equals 10R."""
        ledger, clock, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 0, "alice")
        clock.mine(10)
        assert ledger.pending_rewards(0, "alice") == 10 * R

    def test_harvest_pays_through_its_own_block(self):
        """Harvest mines one block, so it pays 11R and pending resets to 0."""
        ledger, clock, lp, reward = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 0, "alice")
        clock.mine(10)
        paid = ledger.harvest(0, "alice", "alice")
        assert paid == 11 * R
        assert reward.balance_of("alice") == 11 * R
        assert ledger.pending_rewards(0, "alice") == 0

    def test_two_deposits_then_harvest(self):
        """Two deposits one block apart, one block mined, harvest pays 3R."""
        ledger, clock, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 0, "alice")
        ledger.deposit(0, X, 0, "alice")
        clock.mine(1)
        assert ledger.harvest(0, "alice", "alice") == 3 * R

    def test_acc_unchanged_while_pool_empty(self):
        """An empty pool keeps acc at 0 while last_reward_block moves."""
        ledger, clock, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        clock.mine(10)
        info = ledger.update_pool(0)
        assert info.acc_reward_per_share == 0
        assert info.last_reward_block == clock.number

    def test_acc_is_monotonic(self):
        """acc_reward_per_share never decreases across deposits and exits."""
        ledger, clock, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        seen = []
        ledger.deposit(0, X, 0, "alice")
        seen.append(ledger.pool_info(0).acc_reward_per_share)
        ledger.deposit(0, 3 * X, 100, "bob")
        seen.append(ledger.pool_info(0).acc_reward_per_share)
        clock.mine(5)
        ledger.withdraw_all_and_harvest(0, "alice", "alice")
        seen.append(ledger.pool_info(0).acc_reward_per_share)
        ledger.update_pool(0)
        seen.append(ledger.pool_info(0).acc_reward_per_share)
        assert seen == sorted(seen)

    def test_update_pool_emits_record(self):
        """A block-advancing update emits PoolUpdated."""
        ledger, clock, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 0, "alice")
        ledger.update_pool(0)
        record = ledger.events.last(PoolUpdated)
        assert record is not None
        assert record.pool_id == 0
        assert record.acc_reward_per_share == R * P // X


class TestMultipliedStakes:
    """Lock multipliers scale virtual shares."""

    def test_zero_lock_is_one_to_one(self):
        """Lock 0 at multiplier S gives virtual == amount."""
        ledger, _, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 0, "alice")
        assert ledger.user_info(0, "alice").virtual_amount == X
        assert ledger.pool_info(0).virtual_total_supply == X

    def test_five_x_lock(self):
        """A 5x entry gives five virtual shares per token."""
        ledger, _, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 1000, "alice")
        assert ledger.user_info(0, "alice").virtual_amount == 5 * X

    def test_ten_x_lock(self):
        """A 10x entry gives amount * 10."""
        ledger, _, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, [(0, 10_000), (500, 100_000)], "governor")
        ledger.deposit(0, X, 500, "alice")
        assert ledger.user_info(0, "alice").virtual_amount == 10 * X

    def test_rewards_split_by_virtual_share(self):
        """A 1.5x staker earns 1.5 times a 1x staker once both are in."""
        ledger, clock, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 0, "alice")
        ledger.deposit(0, X, 100, "bob")
        clock.mine(10)
        # alice alone for one block, then 1 : 1.5 for ten blocks
        assert ledger.pending_rewards(0, "alice") == 5 * R
        assert ledger.pending_rewards(0, "bob") == 6 * R


class TestMultiplePools:
    """Emission split across pools."""

    def test_equal_pool_halves_marginal_rate(self):
        """Adding an equal-weight pool halves the first pool's per-block reward."""
        ledger, clock, lp, _ = _make_ledger()
        lp2 = TokenLedger("LP2")
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 0, "alice")
        clock.mine(10)
        before = ledger.pending_rewards(0, "alice")
        clock.mine(10)
        assert ledger.pending_rewards(0, "alice") - before == 10 * R

        ledger.add_pool(1000, lp2, None, TABLE, "governor")
        before = ledger.pending_rewards(0, "alice")
        clock.mine(10)
        assert ledger.pending_rewards(0, "alice") - before == 5 * R

    def test_add_pool_does_not_update_existing_pools(self):
        """Existing pools keep their last_reward_block when a pool is added."""
        ledger, clock, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.deposit(0, X, 0, "alice")
        last = ledger.pool_info(0).last_reward_block
        clock.mine(5)
        ledger.add_pool(1000, TokenLedger("LP2"), None, TABLE, "governor")
        assert ledger.pool_info(0).last_reward_block == last
        assert ledger.pool_info(1).last_reward_block == clock.number

    def test_mass_update_aligns_pools(self):
        """mass_update_pools brings every pool to the same block."""
        ledger, clock, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.add_pool(500, TokenLedger("LP2"), None, TABLE, "governor")
        clock.mine(7)
        ledger.mass_update_pools()
        blocks = {ledger.pool_info(i).last_reward_block for i in range(ledger.num_pools)}
        assert blocks == {clock.number}

    def test_weights_sum_to_total(self):
        """Sum of pool weights equals total_alloc_weight."""
        ledger, _, lp, _ = _make_ledger()
        ledger.add_pool(1000, lp, None, TABLE, "governor")
        ledger.add_pool(250, TokenLedger("LP2"), None, TABLE, "governor")
        ledger.set_pool(0, 400, None, False, "governor")
        total = sum(ledger.pool_info(i).alloc_weight for i in range(ledger.num_pools))
        assert total == ledger.total_alloc_weight == 650
