"""Pool accumulator state and the pool lock-state machine."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class LockState(Enum):
    """Pool-wide lock override."""
    LOCKED = "locked"  # per-slot unlock blocks are enforced
    UNLOCKED = "unlocked"  # every slot may exit regardless of its unlock block


class LockTrigger(Enum):
    """Events that can move a pool between lock states."""
    FORCE_UNLOCK = "force_unlock"
    FORCE_LOCK = "force_lock"
    MULTIPLIER_RAISED = "multiplier_raised"
    REWARDS_RESET = "rewards_reset"


# Anything not listed leaves the state unchanged. Only an explicit
# FORCE_LOCK moves a pool back to LOCKED.
LOCK_TRANSITIONS: Dict[Tuple[LockState, LockTrigger], LockState] = {
    (LockState.LOCKED, LockTrigger.FORCE_UNLOCK): LockState.UNLOCKED,
    (LockState.LOCKED, LockTrigger.MULTIPLIER_RAISED): LockState.UNLOCKED,
    (LockState.LOCKED, LockTrigger.REWARDS_RESET): LockState.UNLOCKED,
    (LockState.UNLOCKED, LockTrigger.FORCE_LOCK): LockState.LOCKED,
}


def next_lock_state(state: LockState, trigger: LockTrigger) -> LockState:
    return LOCK_TRANSITIONS.get((state, trigger), state)


@dataclass
class PoolInfo:
    """Accumulator state of a single reward pool.

    acc_reward_per_share is scaled by the ledger's accumulator precision and
    only moves while virtual_total_supply > 0.
    """
    lp_token: str
    alloc_weight: int
    last_reward_block: int
    acc_reward_per_share: int = 0
    virtual_total_supply: int = 0
    lock_state: LockState = LockState.LOCKED
    rewarder: Optional[Any] = None

    @property
    def unlocked(self) -> bool:
        return self.lock_state is LockState.UNLOCKED

    def apply_lock_trigger(self, trigger: LockTrigger) -> bool:
        """
        Run the lock-state machine.

        Returns:
            True if the state changed
        """
        new_state = next_lock_state(self.lock_state, trigger)
        changed = new_state is not self.lock_state
        self.lock_state = new_state
        return changed
