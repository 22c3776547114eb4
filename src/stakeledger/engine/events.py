"""Emitted records and the in-memory event log."""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, TypeVar

from ..logs import log_event


@dataclass(frozen=True)
class LedgerEvent:
    """Base class for emitted records."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Deposit(LedgerEvent):
    user: str
    pool_id: int
    amount: int
    deposit_id: int


@dataclass(frozen=True)
class Withdraw(LedgerEvent):
    user: str
    pool_id: int
    amount: int
    to: str


@dataclass(frozen=True)
class EmergencyWithdraw(LedgerEvent):
    user: str
    pool_id: int
    amount: int
    to: str


@dataclass(frozen=True)
class Harvest(LedgerEvent):
    user: str
    pool_id: int
    amount: int


@dataclass(frozen=True)
class PoolAdded(LedgerEvent):
    pool_id: int
    alloc_weight: int
    lp_token: str
    rewarder: Optional[str]


@dataclass(frozen=True)
class PoolSet(LedgerEvent):
    pool_id: int
    alloc_weight: int
    rewarder: Optional[str]


@dataclass(frozen=True)
class PoolMultiplierSet(LedgerEvent):
    pool_id: int
    lock_length: int
    multiplier: int


@dataclass(frozen=True)
class PoolLocked(LedgerEvent):
    pool_id: int


@dataclass(frozen=True)
class PoolUnlocked(LedgerEvent):
    pool_id: int


@dataclass(frozen=True)
class PoolUpdated(LedgerEvent):
    pool_id: int
    last_reward_block: int
    virtual_total_supply: int
    acc_reward_per_share: int


@dataclass(frozen=True)
class NewRewardPerBlock(LedgerEvent):
    amount: int


@dataclass(frozen=True)
class RewardWithdraw(LedgerEvent):
    amount: int
    to: str


@dataclass(frozen=True)
class Paused(LedgerEvent):
    account: str


@dataclass(frozen=True)
class Unpaused(LedgerEvent):
    account: str


@dataclass(frozen=True)
class RatioWithdraw(LedgerEvent):
    caller: str
    reserve: str
    token: str
    to: str
    amount: int
    basis_points: int


E = TypeVar("E", bound=LedgerEvent)


class EventLog:
    """Append-only list of (block, event) records mirrored to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._records: List[Tuple[int, LedgerEvent]] = []
        self._logger = logger or logging.getLogger("stakeledger.events")

    def emit(self, block: int, event: LedgerEvent) -> None:
        self._records.append((block, event))
        log_event(self._logger, event.name, block=block, **event.to_dict())

    def of_type(self, event_type: Type[E]) -> List[E]:
        """All recorded events of the given type, oldest first."""
        return [event for _, event in self._records if isinstance(event, event_type)]

    def last(self, event_type: Type[E]) -> Optional[E]:
        matches = self.of_type(event_type)
        return matches[-1] if matches else None

    def records(self) -> List[Tuple[int, LedgerEvent]]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Tuple[int, LedgerEvent]]:
        return iter(list(self._records))
