"""Staking ledger - multi-pool, time-locked reward accounting.

Every state-mutating entry point:
1. starts an operation (mines a block when the clock automines, opens an undo journal)
2. brings the affected pool accumulator(s) up to the current block
3. applies the mutation and, for reward-affecting paths, resets the reward debt
4. notifies the pool rewarder, then performs token transfers
5. commits emitted records, or rolls back the journaled records if anything raised
"""

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Tuple

from ..external.access import AccessGate
from ..external.clock import BlockClock
from ..external.tokens import TokenLedger
from ..logs import log_event
from . import events as ev
from .deposits import DepositBook, DepositInfo, UserInfo
from .errors import (
    AuthorizationError,
    LedgerError,
    SystemPaused,
    TokenError,
    TokensLocked,
    ValidationError,
)
from .multipliers import SCALE_FACTOR, EntryLike, MultiplierEntry, RewardMultiplierTable
from .pools import LockTrigger, PoolInfo
from .rewards import ACC_REWARD_PRECISION, RewardDistributionEngine

logger = logging.getLogger(__name__)

UserKey = Tuple[int, str]


class Rewarder(Protocol):
    """Optional secondary-reward hook attached to a pool."""

    def on_reward(
        self,
        pool_id: int,
        user: str,
        recipient: str,
        reward_amount: int,
        new_virtual_amount: int,
    ) -> None: ...


@dataclass
class LedgerState:
    """All mutable state owned by the ledger."""
    distribution: RewardDistributionEngine
    pools: List[PoolInfo] = field(default_factory=list)
    multipliers: List[RewardMultiplierTable] = field(default_factory=list)
    users: Dict[UserKey, UserInfo] = field(default_factory=dict)
    books: Dict[UserKey, DepositBook] = field(default_factory=dict)
    paused: bool = False


@dataclass
class _UndoJournal:
    """Pre-images of the records one operation has touched so far.

    A user key maps to None when the record did not exist before the operation.
    """
    reward_per_block: int
    total_alloc_weight: int
    paused: bool
    pool_count: int
    pools: Dict[int, PoolInfo] = field(default_factory=dict)
    tables: Dict[int, RewardMultiplierTable] = field(default_factory=dict)
    users: Dict[UserKey, Optional[UserInfo]] = field(default_factory=dict)
    books: Dict[UserKey, Optional[DepositBook]] = field(default_factory=dict)


def _rewarder_name(rewarder: Optional[Any]) -> Optional[str]:
    if rewarder is None:
        return None
    return getattr(rewarder, "name", type(rewarder).__name__)


class StakingLedger:
    """Multi-pool staking ledger with lock multipliers and signed reward debt."""

    def __init__(
        self,
        reward_token: TokenLedger,
        gate: AccessGate,
        clock: BlockClock,
        reward_per_block: int,
        address: str = "staking_ledger",
        treasury: str = "core",
        scale_factor: int = SCALE_FACTOR,
        precision: int = ACC_REWARD_PRECISION,
        event_log: Optional[ev.EventLog] = None,
    ):
        """
        Initialize staking ledger.

        Args:
            reward_token: Token paid out on harvest; the ledger's balance is the reward reserve
            gate: Authorization gate
            clock: Block counter
            reward_per_block: Reward units emitted per block across all pools
            address: Account the ledger holds custody under
            treasury: Destination of governor reward sweeps
            scale_factor: Multiplier value meaning 1.0x
            precision: Fixed-point scale of acc_reward_per_share
            event_log: Sink for emitted records
        """
        self.reward_token = reward_token
        self.address = address
        self.treasury = treasury
        self.scale_factor = scale_factor
        self.precision = precision
        self.events = event_log or ev.EventLog()
        self._gate = gate
        self._clock = clock
        self._tokens: Dict[str, TokenLedger] = {}
        self._state = LedgerState(distribution=RewardDistributionEngine(reward_per_block, precision))
        self._pending: List[ev.LedgerEvent] = []
        self._journal: Optional[_UndoJournal] = None

    # ------------------------------------------------------------------
    # Operation plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(self, name: str, **fields: Any) -> Iterator[int]:
        block = self._clock.begin_operation()
        state = self._state
        journal = _UndoJournal(
            reward_per_block=state.distribution.reward_per_block,
            total_alloc_weight=state.distribution.total_alloc_weight,
            paused=state.paused,
            pool_count=len(state.pools),
        )
        self._journal = journal
        self._pending = []
        try:
            yield block
        except Exception as exc:
            self._rollback(journal)
            self._pending = []
            if isinstance(exc, LedgerError):
                log_event(
                    logger, "operation_rejected", level=logging.WARNING,
                    operation=name, block=block, code=exc.code, reason=exc.reason, **fields,
                )
            raise
        finally:
            self._journal = None
        committed, self._pending = self._pending, []
        for event in committed:
            self.events.emit(block, event)

    def _rollback(self, journal: _UndoJournal) -> None:
        """Put back every record the failed operation touched."""
        state = self._state
        state.distribution.reward_per_block = journal.reward_per_block
        state.distribution.total_alloc_weight = journal.total_alloc_weight
        state.paused = journal.paused
        del state.pools[journal.pool_count:]
        del state.multipliers[journal.pool_count:]
        for pool_id, pool in journal.pools.items():
            state.pools[pool_id] = pool
        for pool_id, table in journal.tables.items():
            state.multipliers[pool_id] = table
        for records, saved in ((state.users, journal.users), (state.books, journal.books)):
            for key, value in saved.items():
                if value is None:
                    records.pop(key, None)
                else:
                    records[key] = value

    def _emit(self, event: ev.LedgerEvent) -> None:
        self._pending.append(event)

    def _require_governor(self, caller: str) -> None:
        if not self._gate.is_governor(caller):
            raise AuthorizationError(reason="Caller is not a governor", details={"caller": caller})

    def _require_guardian_or_governor(self, caller: str) -> None:
        if not self._gate.is_guardian_or_governor(caller):
            raise AuthorizationError(reason="Caller is not a guardian or governor", details={"caller": caller})

    def _pool(self, pool_id: int) -> PoolInfo:
        pools = self._state.pools
        if not 0 <= pool_id < len(pools):
            raise ValidationError(reason="invalid pool id", details={"pool_id": pool_id})
        journal = self._journal
        if journal is not None and pool_id < journal.pool_count and pool_id not in journal.pools:
            journal.pools[pool_id] = copy.copy(pools[pool_id])
        return pools[pool_id]

    def _table(self, pool_id: int) -> RewardMultiplierTable:
        self._pool(pool_id)
        table = self._state.multipliers[pool_id]
        journal = self._journal
        if journal is not None and pool_id < journal.pool_count and pool_id not in journal.tables:
            journal.tables[pool_id] = table.copy()
        return table

    def _remember(self, key: UserKey) -> None:
        journal = self._journal
        if journal is None or key in journal.users:
            return
        user = self._state.users.get(key)
        book = self._state.books.get(key)
        journal.users[key] = copy.copy(user) if user is not None else None
        journal.books[key] = copy.deepcopy(book) if book is not None else None

    def _user(self, pool_id: int, user: str) -> UserInfo:
        key = (pool_id, user)
        self._remember(key)
        return self._state.users.setdefault(key, UserInfo())

    def _find_user(self, pool_id: int, user: str) -> Optional[UserInfo]:
        key = (pool_id, user)
        self._remember(key)
        return self._state.users.get(key)

    def _book(self, pool_id: int, user: str) -> DepositBook:
        key = (pool_id, user)
        self._remember(key)
        return self._state.books.setdefault(key, DepositBook())

    def _find_book(self, pool_id: int, user: str) -> Optional[DepositBook]:
        key = (pool_id, user)
        self._remember(key)
        return self._state.books.get(key)

    def _forget(self, pool_id: int, user: str) -> None:
        """Drop a user's aggregate and deposit book after a full exit."""
        key = (pool_id, user)
        self._remember(key)
        self._state.users.pop(key, None)
        self._state.books.pop(key, None)

    def _lp(self, pool: PoolInfo) -> TokenLedger:
        return self._tokens[pool.lp_token]

    def _pay(self, recipient: str, payouts: List[Tuple[TokenLedger, int]]) -> None:
        """
        Transfer several payouts out of custody.

        Every token's total is checked against the ledger's balance before the
        first transfer, so a shortfall in one leg never leaves another paid.

        Raises:
            TokenError: custody cannot cover a token's total
        """
        owed: Dict[int, int] = {}
        tokens: Dict[int, TokenLedger] = {}
        for token, amount in payouts:
            if amount > 0:
                owed[id(token)] = owed.get(id(token), 0) + amount
                tokens[id(token)] = token
        for token_id, amount in owed.items():
            token = tokens[token_id]
            available = token.balance_of(self.address)
            if available < amount:
                raise TokenError(
                    reason=f"{token.symbol}: transfer amount exceeds balance",
                    details={"account": self.address, "balance": available, "amount": amount},
                )
        for token, amount in payouts:
            if amount > 0:
                token.transfer(self.address, recipient, amount)

    def _update_pool(self, pool_id: int, block: int) -> PoolInfo:
        pool = self._pool(pool_id)
        if self._state.distribution.update_pool(pool, block):
            self._emit(ev.PoolUpdated(
                pool_id=pool_id,
                last_reward_block=pool.last_reward_block,
                virtual_total_supply=pool.virtual_total_supply,
                acc_reward_per_share=pool.acc_reward_per_share,
            ))
        return pool

    def _settle(self, pool: PoolInfo, user: UserInfo) -> int:
        """Reset the user's reward baseline and return what they are owed."""
        accumulated = user.accumulated(pool.acc_reward_per_share, self.precision)
        pending = accumulated - user.reward_debt
        user.reward_debt = accumulated
        return max(pending, 0)

    def _notify_rewarder(self, pool: PoolInfo, pool_id: int, user: str, recipient: str,
                         reward_amount: int, new_virtual_amount: int) -> None:
        if pool.rewarder is not None:
            pool.rewarder.on_reward(pool_id, user, recipient, reward_amount, new_virtual_amount)

    # ------------------------------------------------------------------
    # Pool accumulator
    # ------------------------------------------------------------------

    def update_pool(self, pool_id: int) -> PoolInfo:
        """Bring one pool's accumulator up to the current block."""
        with self._operation("update_pool", pool_id=pool_id) as block:
            pool = self._update_pool(pool_id, block)
            return replace(pool)

    def mass_update_pools(self, pool_ids: Optional[Iterable[int]] = None) -> None:
        """Update a set of pools (all pools by default) to the same block."""
        with self._operation("mass_update_pools") as block:
            ids = range(len(self._state.pools)) if pool_ids is None else list(pool_ids)
            for pool_id in ids:
                self._update_pool(pool_id, block)

    # ------------------------------------------------------------------
    # Deposit ledger
    # ------------------------------------------------------------------

    def deposit(self, pool_id: int, amount: int, lock_length: int, depositor: str) -> int:
        """
        Stake ``amount`` liquidity tokens for ``lock_length`` blocks.

        Returns:
            Index of the newly opened deposit slot

        Raises:
            SystemPaused: deposits are paused
            ValidationError: non-positive amount or unknown pool
            InvalidLockLength: lock length not offered by the pool
            TokenError: allowance or balance too small
        """
        with self._operation("deposit", pool_id=pool_id, user=depositor) as block:
            if self.paused:
                raise SystemPaused(details={"operation": "deposit"})
            pool = self._pool(pool_id)
            if amount <= 0:
                raise ValidationError(reason="deposit amount must be positive", details={"amount": amount})
            table = self._state.multipliers[pool_id]
            multiplier = table.multiplier_for(lock_length)

            self._update_pool(pool_id, block)
            virtual_delta = table.virtual_amount(amount, multiplier)
            index = self._book(pool_id, depositor).open(amount, block + lock_length, multiplier)

            user = self._user(pool_id, depositor)
            user.virtual_amount += virtual_delta
            user.reward_debt += virtual_delta * pool.acc_reward_per_share // self.precision
            pool.virtual_total_supply += virtual_delta

            self._notify_rewarder(pool, pool_id, depositor, depositor, 0, user.virtual_amount)
            self._lp(pool).transfer_from(self.address, depositor, self.address, amount)
            self._emit(ev.Deposit(user=depositor, pool_id=pool_id, amount=amount, deposit_id=index))
            return index

    def withdraw_from_deposit(self, pool_id: int, amount: int, recipient: str,
                              slot_index: int, withdrawer: str) -> None:
        """
        Withdraw principal from one deposit slot without harvesting.

        The reward debt drops by the withdrawn share of accrued rewards and
        may become negative; the next harvest pays the difference.

        Raises:
            ValidationError: bad slot index, non-positive or excessive amount
            TokensLocked: slot still locked and the pool is not unlocked
        """
        with self._operation("withdraw_from_deposit", pool_id=pool_id, user=withdrawer,
                             slot=slot_index) as block:
            pool = self._pool(pool_id)
            book = self._find_book(pool_id, withdrawer)
            if book is None:
                book = DepositBook()
            deposit = book.slot(slot_index)
            if amount <= 0:
                raise ValidationError(reason="withdraw amount must be positive", details={"amount": amount})
            if amount > deposit.amount:
                raise ValidationError(
                    reason="not enough tokens in deposit",
                    details={"slot": slot_index, "requested": amount, "available": deposit.amount},
                )
            if not deposit.is_unlocked(block, pool.unlocked):
                raise TokensLocked(details={
                    "pool_id": pool_id, "slot": slot_index,
                    "unlock_block": deposit.unlock_block, "current_block": block,
                })

            self._update_pool(pool_id, block)
            virtual_delta = amount * deposit.multiplier // self.scale_factor
            user = self._user(pool_id, withdrawer)
            user.reward_debt -= virtual_delta * pool.acc_reward_per_share // self.precision
            user.virtual_amount -= virtual_delta
            pool.virtual_total_supply -= virtual_delta
            deposit.amount -= amount
            if deposit.amount == 0:
                deposit.clear()

            self._notify_rewarder(pool, pool_id, withdrawer, recipient, 0, user.virtual_amount)
            self._lp(pool).transfer(self.address, recipient, amount)
            self._emit(ev.Withdraw(user=withdrawer, pool_id=pool_id, amount=amount, to=recipient))

    def harvest(self, pool_id: int, recipient: str, caller: str) -> int:
        """
        Pay out all pending rewards for ``caller`` in a pool.

        A caller with no position is paid nothing and gains no record.

        Returns:
            Reward units transferred to ``recipient``
        """
        with self._operation("harvest", pool_id=pool_id, user=caller) as block:
            pool = self._update_pool(pool_id, block)
            user = self._find_user(pool_id, caller)
            paid = self._settle(pool, user) if user is not None else 0
            virtual_amount = user.virtual_amount if user is not None else 0

            self._notify_rewarder(pool, pool_id, caller, recipient, paid, virtual_amount)
            self._pay(recipient, [(self.reward_token, paid)])
            self._emit(ev.Harvest(user=caller, pool_id=pool_id, amount=paid))
            return paid

    def withdraw_all_and_harvest(self, pool_id: int, recipient: str, caller: str) -> Tuple[int, int]:
        """
        Harvest, then release every unlocked slot.

        Locked slots stay open. Once every slot is empty the user's aggregate
        and deposit book are dropped. Both payouts are checked against custody
        before either is transferred.

        Returns:
            (rewards paid, principal released)

        Raises:
            TokenError: custody cannot cover the rewards and principal together
        """
        with self._operation("withdraw_all_and_harvest", pool_id=pool_id, user=caller) as block:
            pool = self._update_pool(pool_id, block)
            user = self._find_user(pool_id, caller)
            book = self._find_book(pool_id, caller)
            paid = self._settle(pool, user) if user is not None else 0

            released = 0
            virtual_delta = 0
            if book is not None:
                for _, deposit in list(book.live()):
                    if deposit.is_unlocked(block, pool.unlocked):
                        virtual_delta += deposit.amount * deposit.multiplier // self.scale_factor
                        released += deposit.amount
                        deposit.clear()

            if user is None or book is None or book.is_empty():
                # full exit: drop the user's exact contribution, clearing rounding dust
                if user is not None:
                    pool.virtual_total_supply -= user.virtual_amount
                self._forget(pool_id, caller)
                virtual_amount = 0
            else:
                virtual_delta = min(virtual_delta, user.virtual_amount)
                user.virtual_amount -= virtual_delta
                pool.virtual_total_supply -= virtual_delta
                user.reward_debt = user.accumulated(pool.acc_reward_per_share, self.precision)
                virtual_amount = user.virtual_amount

            self._notify_rewarder(pool, pool_id, caller, recipient, paid, virtual_amount)
            self._pay(recipient, [(self.reward_token, paid), (self._lp(pool), released)])
            self._emit(ev.Harvest(user=caller, pool_id=pool_id, amount=paid))
            if released > 0:
                self._emit(ev.Withdraw(user=caller, pool_id=pool_id, amount=released, to=recipient))
            return paid, released

    def emergency_withdraw(self, pool_id: int, recipient: str, caller: str) -> int:
        """
        Return all principal and forfeit pending rewards.

        Raises:
            TokensLocked: any open slot is still locked

        Returns:
            Principal transferred to ``recipient``
        """
        with self._operation("emergency_withdraw", pool_id=pool_id, user=caller) as block:
            pool = self._update_pool(pool_id, block)
            book = self._find_book(pool_id, caller)
            total = 0
            if book is not None:
                locked = book.locked_slots(block, pool.unlocked)
                if locked:
                    raise TokensLocked(details={
                        "pool_id": pool_id, "locked_slots": locked, "current_block": block,
                    })
                total = book.total_amount()

            user = self._find_user(pool_id, caller)
            if user is not None:
                pool.virtual_total_supply -= user.virtual_amount
            self._forget(pool_id, caller)

            self._notify_rewarder(pool, pool_id, caller, recipient, 0, 0)
            self._pay(recipient, [(self._lp(pool), total)])
            self._emit(ev.EmergencyWithdraw(user=caller, pool_id=pool_id, amount=total, to=recipient))
            return total

    # ------------------------------------------------------------------
    # Governance surface
    # ------------------------------------------------------------------

    def add_pool(self, alloc_weight: int, lp_token: TokenLedger, rewarder: Optional[Rewarder],
                 multiplier_entries: Iterable[EntryLike], caller: str) -> int:
        """
        Create a reward pool.

        Existing pools are not updated; their share of emission shrinks from
        their next update onward.

        Returns:
            New pool id
        """
        with self._operation("add_pool", user=caller) as block:
            self._require_governor(caller)
            if alloc_weight <= 0:
                raise ValidationError(
                    reason="pool must have allocation points to be created",
                    details={"alloc_weight": alloc_weight},
                )
            table = RewardMultiplierTable.from_entries(multiplier_entries, self.scale_factor)

            self._tokens[lp_token.address] = lp_token
            pool = PoolInfo(
                lp_token=lp_token.address,
                alloc_weight=alloc_weight,
                last_reward_block=block,
                rewarder=rewarder,
            )
            self._state.pools.append(pool)
            self._state.multipliers.append(table)
            self._state.distribution.add_weight(alloc_weight)
            pool_id = len(self._state.pools) - 1
            self._emit(ev.PoolAdded(
                pool_id=pool_id, alloc_weight=alloc_weight,
                lp_token=lp_token.address, rewarder=_rewarder_name(rewarder),
            ))
            return pool_id

    def set_pool(self, pool_id: int, alloc_weight: int, rewarder: Optional[Rewarder] = None,
                 with_update: bool = False, caller: str = "", overwrite: bool = False) -> None:
        """
        Change a pool's allocation weight and, with ``overwrite``, its rewarder.

        The pool itself is always updated first so its accrued rewards are
        kept; ``with_update`` also updates every other pool, whose share of
        emission changes with the total weight. Without ``overwrite`` the
        attached rewarder is kept and ``rewarder`` is ignored.
        """
        with self._operation("set_pool", pool_id=pool_id, user=caller) as block:
            self._require_governor(caller)
            pool = self._pool(pool_id)
            if alloc_weight < 0:
                raise ValidationError(reason="allocation points must be non-negative",
                                      details={"alloc_weight": alloc_weight})
            distribution = self._state.distribution
            if distribution.weight_after(pool, alloc_weight) == 0:
                raise ValidationError(reason="total allocation points cannot be 0",
                                      details={"pool_id": pool_id})

            if with_update:
                for other_id in range(len(self._state.pools)):
                    self._update_pool(other_id, block)
            else:
                self._update_pool(pool_id, block)
            distribution.reweight(pool, alloc_weight)
            if overwrite:
                pool.rewarder = rewarder
            self._emit(ev.PoolSet(pool_id=pool_id, alloc_weight=alloc_weight,
                                  rewarder=_rewarder_name(pool.rewarder)))

    def add_pool_multiplier(self, pool_id: int, lock_length: int, multiplier: int, caller: str) -> None:
        """
        Install or change a lock-length multiplier.

        A multiplier above 1.0x unlocks a locked pool for every holder; lower
        values never relock it.
        """
        with self._operation("add_pool_multiplier", pool_id=pool_id, user=caller):
            self._require_governor(caller)
            pool = self._pool(pool_id)
            self._table(pool_id).set(lock_length, multiplier)
            self._emit(ev.PoolMultiplierSet(pool_id=pool_id, lock_length=lock_length, multiplier=multiplier))
            if multiplier > self.scale_factor and pool.apply_lock_trigger(LockTrigger.MULTIPLIER_RAISED):
                self._emit(ev.PoolUnlocked(pool_id=pool_id))

    def reset_rewards(self, pool_id: int, caller: str) -> None:
        """Retire a pool: zero its weight and unlock it, keeping accrued rewards harvestable."""
        with self._operation("reset_rewards", pool_id=pool_id, user=caller) as block:
            self._require_guardian_or_governor(caller)
            pool = self._update_pool(pool_id, block)
            self._state.distribution.reweight(pool, 0)
            pool.apply_lock_trigger(LockTrigger.REWARDS_RESET)
            self._emit(ev.PoolSet(pool_id=pool_id, alloc_weight=0, rewarder=_rewarder_name(pool.rewarder)))
            self._emit(ev.PoolUnlocked(pool_id=pool_id))

    def lock_pool(self, pool_id: int, caller: str) -> None:
        with self._operation("lock_pool", pool_id=pool_id, user=caller):
            self._require_governor(caller)
            self._pool(pool_id).apply_lock_trigger(LockTrigger.FORCE_LOCK)
            self._emit(ev.PoolLocked(pool_id=pool_id))

    def unlock_pool(self, pool_id: int, caller: str) -> None:
        with self._operation("unlock_pool", pool_id=pool_id, user=caller):
            self._require_governor(caller)
            self._pool(pool_id).apply_lock_trigger(LockTrigger.FORCE_UNLOCK)
            self._emit(ev.PoolUnlocked(pool_id=pool_id))

    def update_block_reward(self, new_rate: int, caller: str) -> None:
        """Change the global emission rate; pools pick it up at their next update."""
        with self._operation("update_block_reward", user=caller):
            self._require_governor(caller)
            if new_rate < 0:
                raise ValidationError(reason="reward per block must be non-negative",
                                      details={"reward_per_block": new_rate})
            self._state.distribution.reward_per_block = new_rate
            self._emit(ev.NewRewardPerBlock(amount=new_rate))

    def governor_withdraw_reward(self, amount: int, caller: str) -> None:
        """Sweep reward tokens from the ledger to the treasury."""
        with self._operation("governor_withdraw_reward", user=caller):
            self._require_governor(caller)
            if amount <= 0:
                raise ValidationError(reason="withdraw amount must be positive", details={"amount": amount})
            self.reward_token.transfer(self.address, self.treasury, amount)
            self._emit(ev.RewardWithdraw(amount=amount, to=self.treasury))

    def pause(self, caller: str) -> None:
        with self._operation("pause", user=caller):
            self._require_guardian_or_governor(caller)
            self._state.paused = True
            self._emit(ev.Paused(account=caller))

    def unpause(self, caller: str) -> None:
        with self._operation("unpause", user=caller):
            self._require_governor(caller)
            self._state.paused = False
            self._emit(ev.Unpaused(account=caller))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def current_block(self) -> int:
        return self._clock.number

    @property
    def paused(self) -> bool:
        return self._state.paused or self._gate.is_paused()

    @property
    def reward_per_block(self) -> int:
        return self._state.distribution.reward_per_block

    @property
    def total_alloc_weight(self) -> int:
        return self._state.distribution.total_alloc_weight

    @property
    def num_pools(self) -> int:
        return len(self._state.pools)

    def pool_info(self, pool_id: int) -> PoolInfo:
        return replace(self._pool(pool_id))

    def lp_token(self, pool_id: int) -> TokenLedger:
        return self._lp(self._pool(pool_id))

    def reward_multiplier(self, pool_id: int, lock_length: int) -> int:
        """Multiplier for ``lock_length`` in a pool (0 if not offered)."""
        self._pool(pool_id)
        return self._state.multipliers[pool_id].get(lock_length)

    def multiplier_entries(self, pool_id: int) -> List[MultiplierEntry]:
        self._pool(pool_id)
        return self._state.multipliers[pool_id].entries()

    def user_info(self, pool_id: int, user: str) -> UserInfo:
        self._pool(pool_id)
        return replace(self._state.users.get((pool_id, user), UserInfo()))

    def open_user_deposits(self, pool_id: int, user: str) -> int:
        """Allocated slot count (closed slots included until a full reset)."""
        self._pool(pool_id)
        book = self._state.books.get((pool_id, user))
        return len(book) if book is not None else 0

    def deposit_info(self, pool_id: int, user: str, index: int) -> DepositInfo:
        self._pool(pool_id)
        book = self._state.books.get((pool_id, user), DepositBook())
        return replace(book.slot(index))

    def total_staked(self, pool_id: int, user: str) -> int:
        """Principal ``user`` currently has in a pool across all slots."""
        self._pool(pool_id)
        book = self._state.books.get((pool_id, user))
        return book.total_amount() if book is not None else 0

    def pending_rewards(self, pool_id: int, user: str) -> int:
        """Rewards ``user`` would receive by harvesting at the current block."""
        pool = self._pool(pool_id)
        info = self._state.users.get((pool_id, user))
        if info is None:
            return 0
        acc = self._state.distribution.projected_acc_reward_per_share(pool, self._clock.number)
        return max(info.pending(acc, self.precision), 0)

    def users_in_pool(self, pool_id: int) -> List[str]:
        return sorted(user for (pid, user) in self._state.users if pid == pool_id)
