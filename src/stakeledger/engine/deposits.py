"""Deposit ledger: per-user slot arrays and reward-debt aggregates.

Slots are append-only. Closing a slot zeroes it in place; the index stays
allocated until the whole book is reset by a full exit.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

from .errors import ValidationError


@dataclass
class DepositInfo:
    """One lock-scheduled stake."""
    amount: int = 0
    unlock_block: int = 0
    multiplier: int = 0

    def is_unlocked(self, current_block: int, pool_unlocked: bool) -> bool:
        return pool_unlocked or self.unlock_block <= current_block

    def clear(self) -> None:
        self.amount = 0
        self.unlock_block = 0
        self.multiplier = 0


@dataclass
class UserInfo:
    """Per-user, per-pool aggregate.

    reward_debt is signed: removing principal without harvesting pushes it
    below zero so that later pending amounts stay exact.
    """
    virtual_amount: int = 0
    reward_debt: int = 0

    def accumulated(self, acc_reward_per_share: int, precision: int) -> int:
        return self.virtual_amount * acc_reward_per_share // precision

    def pending(self, acc_reward_per_share: int, precision: int) -> int:
        return self.accumulated(acc_reward_per_share, precision) - self.reward_debt

    def reset(self) -> None:
        self.virtual_amount = 0
        self.reward_debt = 0


@dataclass
class DepositBook:
    """Arena of deposit slots for one user in one pool."""
    slots: List[DepositInfo] = field(default_factory=list)

    def open(self, amount: int, unlock_block: int, multiplier: int) -> int:
        """Append a slot and return its index."""
        self.slots.append(DepositInfo(amount=amount, unlock_block=unlock_block, multiplier=multiplier))
        return len(self.slots) - 1

    def slot(self, index: int) -> DepositInfo:
        if index < 0 or index >= len(self.slots):
            raise ValidationError(
                reason="invalid deposit index",
                details={"index": index, "open_deposits": len(self.slots)},
            )
        return self.slots[index]

    def live(self) -> Iterator[Tuple[int, DepositInfo]]:
        """Slots still holding principal."""
        for index, deposit in enumerate(self.slots):
            if deposit.amount > 0:
                yield index, deposit

    def locked_slots(self, current_block: int, pool_unlocked: bool) -> List[int]:
        return [
            index for index, deposit in self.live()
            if not deposit.is_unlocked(current_block, pool_unlocked)
        ]

    def total_amount(self) -> int:
        return sum(deposit.amount for deposit in self.slots)

    def is_empty(self) -> bool:
        return all(deposit.amount == 0 for deposit in self.slots)

    def reset(self) -> None:
        self.slots.clear()

    def __len__(self) -> int:
        return len(self.slots)
