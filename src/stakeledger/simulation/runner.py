"""Scenario runner - replay a scripted or random workload against a ledger block by block.

Key Features:
- Builds tokens, gate, clock and ledger from a Config
- Scripted actions run at their configured block; otherwise a seeded random
  workload of deposits, harvests and exits is generated per staker
- A snapshot is taken after every block and checked for conservation
- Rejected actions are recorded and logged, never fatal
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..config.schema import Config, ScenarioAction
from ..engine.accounting import LedgerSnapshot, take_snapshot
from ..engine.errors import LedgerError
from ..engine.events import Deposit, EmergencyWithdraw, Harvest, Withdraw
from ..engine.ledger import StakingLedger
from ..external.access import CoreAccessGate
from ..external.clock import BlockClock
from ..external.tokens import TokenLedger
from ..logs import log_event

logger = logging.getLogger(__name__)

MAX_ALLOWANCE = 2 ** 256 - 1


@dataclass
class LedgerEnvironment:
    """A ledger wired to its collaborators."""
    ledger: StakingLedger
    gate: CoreAccessGate
    clock: BlockClock
    reward_token: TokenLedger
    lp_tokens: Dict[str, TokenLedger]
    stakers: List[str]


@dataclass
class SimulationResult:
    """Complete simulation result."""
    config: Config
    snapshots: List[LedgerSnapshot]
    events: List[Dict[str, Any]]
    final_metrics: Dict[str, Any]
    rejected_actions: List[Dict[str, Any]] = field(default_factory=list)
    conservation_errors: List[str] = field(default_factory=list)


def build_environment(config: Config) -> LedgerEnvironment:
    """
    Create tokens, gate, clock and ledger from configuration.

    Every configured pool is added by the first governor. Simulated stakers
    and scripted actors receive ``initial_lp_balance`` of every liquidity
    token and an unlimited allowance for the ledger.
    """
    roles = config.roles
    clock = BlockClock(start_block=config.clock.start_block, automine=config.clock.automine)
    gate = CoreAccessGate(
        governors=roles.governors,
        guardians=roles.guardians,
        pcv_controllers=roles.pcv_controllers,
    )
    reward_token = TokenLedger(config.rewards.reward_token)
    ledger = StakingLedger(
        reward_token=reward_token,
        gate=gate,
        clock=clock,
        reward_per_block=config.rewards.reward_per_block,
        address=roles.ledger_address,
        treasury=roles.treasury,
        scale_factor=config.constants.scale_factor,
        precision=config.constants.acc_reward_precision,
    )
    reward_token.mint(ledger.address, config.rewards.initial_reserve)

    symbols = [pool.lp_token for pool in config.pools]
    symbols += [a.lp_token for a in config.scenario.actions if a.action == "add_pool" and a.lp_token]
    lp_tokens = {symbol: TokenLedger(symbol) for symbol in dict.fromkeys(symbols)}

    governor = roles.governors[0]
    for pool in config.pools:
        ledger.add_pool(
            alloc_weight=pool.alloc_weight,
            lp_token=lp_tokens[pool.lp_token],
            rewarder=None,
            multiplier_entries=[(m.lock_length, m.multiplier) for m in pool.multipliers],
            caller=governor,
        )

    stakers = [f"staker_{i}" for i in range(config.simulation.stakers)]
    actors = {a.actor for a in config.scenario.actions if a.actor not in stakers}
    for account in stakers + sorted(actors):
        for token in lp_tokens.values():
            token.mint(account, config.simulation.initial_lp_balance)
            token.approve(account, ledger.address, MAX_ALLOWANCE)

    return LedgerEnvironment(
        ledger=ledger,
        gate=gate,
        clock=clock,
        reward_token=reward_token,
        lp_tokens=lp_tokens,
        stakers=stakers,
    )


class ScenarioRunner:
    """Drive a ledger through a block-by-block workload."""

    def __init__(self, config: Config):
        """
        Initialize scenario runner.

        Args:
            config: Simulation configuration
        """
        self.config = config
        self.env = build_environment(config)
        self._rejected: List[Dict[str, Any]] = []
        self._conservation_errors: List[str] = []

    @property
    def ledger(self) -> StakingLedger:
        return self.env.ledger

    def run(self, random_seed: int = None) -> SimulationResult:
        """
        Run the configured scenario.

        Args:
            random_seed: Random seed for reproducibility (defaults to config)

        Returns:
            SimulationResult
        """
        seed = self.config.simulation.random_seed if random_seed is None else random_seed
        rng = np.random.RandomState(seed)

        scripted = self.config.scenario.actions
        by_block: Dict[int, List[ScenarioAction]] = defaultdict(list)
        for action in scripted:
            by_block[action.block].append(action)

        clock = self.env.clock
        start = clock.number
        end = start + self.config.simulation.blocks
        if scripted:
            end = max(end, max(by_block))

        snapshots = [self._snapshot()]
        for block in range(start + 1, end + 1):
            if clock.number < block:
                clock.advance_to(block)
            if scripted:
                for action in by_block.get(block, []):
                    self._apply(action)
            else:
                self._random_step(rng)
            snapshots.append(self._snapshot())

        events = [
            {'block': block, 'event': event.name, **event.to_dict()}
            for block, event in self.ledger.events.records()
        ]
        return SimulationResult(
            config=self.config,
            snapshots=snapshots,
            events=events,
            final_metrics=self._compute_final_metrics(snapshots),
            rejected_actions=list(self._rejected),
            conservation_errors=list(self._conservation_errors),
        )

    def _snapshot(self) -> LedgerSnapshot:
        snapshot = take_snapshot(self.ledger)
        for check in (snapshot.validate_conservation, snapshot.validate_non_negative):
            ok, message = check()
            if not ok:
                self._conservation_errors.append(message)
                log_event(logger, "conservation_violation", level=logging.ERROR, block=snapshot.block, message=message)
        return snapshot

    def _call(self, name: str, actor: str, fn: Callable[[], Any]) -> Optional[Any]:
        try:
            return fn()
        except LedgerError as exc:
            record = {
                'block': self.env.clock.number,
                'action': name,
                'actor': actor,
                'code': exc.code,
                'reason': exc.reason,
            }
            self._rejected.append(record)
            log_event(logger, "scenario_action_rejected", level=logging.WARNING, **record)
            return None

    def _apply(self, action: ScenarioAction) -> Optional[Any]:
        ledger = self.ledger
        actor = action.actor
        recipient = action.recipient or actor
        pid = action.pool_id

        handlers: Dict[str, Callable[[], Any]] = {
            "deposit": lambda: ledger.deposit(pid, action.amount, action.lock_length, actor),
            "withdraw_from_deposit": lambda: ledger.withdraw_from_deposit(
                pid, action.amount, recipient, action.slot, actor),
            "harvest": lambda: ledger.harvest(pid, recipient, actor),
            "withdraw_all_and_harvest": lambda: ledger.withdraw_all_and_harvest(pid, recipient, actor),
            "emergency_withdraw": lambda: ledger.emergency_withdraw(pid, recipient, actor),
            "update_pool": lambda: ledger.update_pool(pid),
            "mass_update_pools": lambda: ledger.mass_update_pools(),
            "add_pool": lambda: ledger.add_pool(
                action.alloc_weight, self.env.lp_tokens[action.lp_token], None,
                [(m.lock_length, m.multiplier) for m in action.multipliers], actor),
            "set_pool": lambda: ledger.set_pool(
                pid, action.alloc_weight, None, action.with_update, actor),
            "add_pool_multiplier": lambda: ledger.add_pool_multiplier(
                pid, action.lock_length, action.multiplier, actor),
            "reset_rewards": lambda: ledger.reset_rewards(pid, actor),
            "lock_pool": lambda: ledger.lock_pool(pid, actor),
            "unlock_pool": lambda: ledger.unlock_pool(pid, actor),
            "update_block_reward": lambda: ledger.update_block_reward(action.amount, actor),
            "governor_withdraw_reward": lambda: ledger.governor_withdraw_reward(action.amount, actor),
            "pause": lambda: ledger.pause(actor),
            "unpause": lambda: ledger.unpause(actor),
        }
        return self._call(action.action, actor, handlers[action.action])

    def _random_step(self, rng: np.random.RandomState) -> None:
        """One block of random staker behaviour."""
        sim = self.config.simulation
        ledger = self.ledger
        if ledger.num_pools == 0:
            return

        p_deposit = sim.deposit_probability
        p_harvest = p_deposit + sim.harvest_probability
        p_withdraw = p_harvest + sim.withdraw_probability
        p_emergency = p_withdraw + sim.emergency_probability

        for staker in self.env.stakers:
            draw = rng.random_sample()
            pool_id = int(rng.randint(ledger.num_pools))
            if draw < p_deposit:
                locks = [entry.lock_length for entry in ledger.multiplier_entries(pool_id)]
                lock_length = int(locks[rng.randint(len(locks))])
                # amounts exceed int64, so interpolate in Python ints
                span = sim.max_deposit - sim.min_deposit
                amount = sim.min_deposit + int(span * rng.random_sample())
                self._call("deposit", staker, lambda: ledger.deposit(pool_id, amount, lock_length, staker))
            elif draw < p_harvest:
                self._call("harvest", staker, lambda: ledger.harvest(pool_id, staker, staker))
            elif draw < p_withdraw:
                if ledger.total_staked(pool_id, staker) > 0:
                    self._call("withdraw_all_and_harvest", staker,
                               lambda: ledger.withdraw_all_and_harvest(pool_id, staker, staker))
            elif draw < p_emergency:
                if ledger.total_staked(pool_id, staker) > 0:
                    self._call("emergency_withdraw", staker,
                               lambda: ledger.emergency_withdraw(pool_id, staker, staker))

    def _compute_final_metrics(self, snapshots: List[LedgerSnapshot]) -> Dict[str, Any]:
        log = self.ledger.events
        reserves = np.array([float(s.reward_reserve) for s in snapshots])
        outflow = -np.diff(reserves) if len(reserves) > 1 else np.zeros(1)
        final = snapshots[-1]
        return {
            'blocks': final.block - snapshots[0].block,
            'final_block': final.block,
            'num_pools': len(final.pools),
            'total_deposited': sum(e.amount for e in log.of_type(Deposit)),
            'total_withdrawn': sum(e.amount for e in log.of_type(Withdraw)),
            'total_emergency_withdrawn': sum(e.amount for e in log.of_type(EmergencyWithdraw)),
            'total_rewards_paid': sum(e.amount for e in log.of_type(Harvest)),
            'final_reward_reserve': final.reward_reserve,
            'final_pending_rewards': final.total_pending,
            'final_virtual_supply': final.total_virtual_supply,
            'mean_reward_outflow_per_block': float(np.mean(outflow)),
            'max_reward_outflow_per_block': float(np.max(outflow)),
            'active_stakers': max((p.stakers for p in final.pools), default=0),
            'num_events': len(log),
            'num_rejected_actions': len(self._rejected),
            'num_conservation_errors': len(self._conservation_errors),
        }
