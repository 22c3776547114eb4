"""Reward multiplier tables: lock length -> reward multiplier.

Multipliers are integers scaled by a fixed scale factor S, so S means 1.0x
and 10 * S means 10x. A deposit with lock length L earns rewards on
``amount * table[L] // S`` virtual shares.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from .errors import (
    EmptyMultiplierTable,
    InvalidLockLength,
    InvalidZeroLockMultiplier,
    MultiplierBelowScale,
    ValidationError,
)

SCALE_FACTOR = 10_000


@dataclass(frozen=True)
class MultiplierEntry:
    """One (lock length, multiplier) pair."""
    lock_length: int
    multiplier: int


EntryLike = Union[MultiplierEntry, Tuple[int, int], Mapping[str, int]]


def _coerce_entry(entry: EntryLike) -> MultiplierEntry:
    if isinstance(entry, MultiplierEntry):
        return entry
    if isinstance(entry, Mapping):
        return MultiplierEntry(int(entry["lock_length"]), int(entry["multiplier"]))
    lock_length, multiplier = entry
    return MultiplierEntry(int(lock_length), int(multiplier))


def validate_multiplier(lock_length: int, multiplier: int, scale_factor: int = SCALE_FACTOR) -> None:
    """
    Check a single table entry.

    Raises:
        ValidationError: negative lock length
        InvalidZeroLockMultiplier: lock length 0 with a multiplier other than S
        MultiplierBelowScale: nonzero lock length with a multiplier below S
    """
    if lock_length < 0:
        raise ValidationError(reason="lock length must be non-negative", details={"lock_length": lock_length})
    if lock_length == 0:
        if multiplier != scale_factor:
            raise InvalidZeroLockMultiplier(
                details={"lock_length": 0, "multiplier": multiplier, "scale_factor": scale_factor}
            )
    elif multiplier < scale_factor:
        raise MultiplierBelowScale(
            details={"lock_length": lock_length, "multiplier": multiplier, "scale_factor": scale_factor}
        )


class RewardMultiplierTable:
    """Per-pool mapping from lock length to multiplier."""

    def __init__(self, scale_factor: int = SCALE_FACTOR):
        self.scale_factor = scale_factor
        self._entries: Dict[int, int] = {}

    @classmethod
    def from_entries(cls, entries: Iterable[EntryLike], scale_factor: int = SCALE_FACTOR) -> 'RewardMultiplierTable':
        """
        Build a validated table.

        Args:
            entries: MultiplierEntry objects, (lock_length, multiplier) tuples
                or mappings with those keys
            scale_factor: Multiplier value meaning 1.0x

        Returns:
            RewardMultiplierTable

        Raises:
            EmptyMultiplierTable: no entries given
        """
        parsed = [_coerce_entry(e) for e in entries]
        if not parsed:
            raise EmptyMultiplierTable()
        table = cls(scale_factor)
        for entry in parsed:
            validate_multiplier(entry.lock_length, entry.multiplier, scale_factor)
            table._entries[entry.lock_length] = entry.multiplier
        return table

    def multiplier_for(self, lock_length: int) -> int:
        """Multiplier for a supported lock length."""
        try:
            return self._entries[lock_length]
        except KeyError:
            raise InvalidLockLength(
                details={"lock_length": lock_length, "supported": self.lock_lengths()}
            ) from None

    def get(self, lock_length: int) -> int:
        """Multiplier for ``lock_length``, or 0 when the length is not offered."""
        return self._entries.get(lock_length, 0)

    def set(self, lock_length: int, multiplier: int) -> int:
        """
        Install or replace an entry.

        Returns:
            The previous multiplier (0 if the lock length was new)
        """
        validate_multiplier(lock_length, multiplier, self.scale_factor)
        previous = self._entries.get(lock_length, 0)
        self._entries[lock_length] = multiplier
        return previous

    def copy(self) -> 'RewardMultiplierTable':
        table = RewardMultiplierTable(self.scale_factor)
        table._entries = dict(self._entries)
        return table

    def virtual_amount(self, amount: int, multiplier: int) -> int:
        """Virtual shares for ``amount`` principal at ``multiplier``."""
        return amount * multiplier // self.scale_factor

    def lock_lengths(self) -> List[int]:
        return sorted(self._entries)

    def entries(self) -> List[MultiplierEntry]:
        return [MultiplierEntry(length, self._entries[length]) for length in self.lock_lengths()]

    def __contains__(self, lock_length: int) -> bool:
        return lock_length in self._entries

    def __len__(self) -> int:
        return len(self._entries)
