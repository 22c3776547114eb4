"""Monotonic integer block counter."""

from ..engine.errors import ValidationError


class BlockClock:
    """Block counter read by the ledger.

    With ``automine`` each state-mutating ledger operation mines one block
    before it executes, so consecutive operations land in consecutive blocks.
    """

    def __init__(self, start_block: int = 0, automine: bool = False):
        if start_block < 0:
            raise ValidationError(reason="start block must be non-negative", details={"start_block": start_block})
        self._number = start_block
        self.automine = automine

    @property
    def number(self) -> int:
        return self._number

    def mine(self, blocks: int = 1) -> int:
        """Advance the counter by ``blocks`` and return the new block number."""
        if blocks < 0:
            raise ValidationError(reason="clock cannot move backwards", details={"blocks": blocks})
        self._number += blocks
        return self._number

    def advance_to(self, block: int) -> int:
        if block < self._number:
            raise ValidationError(
                reason="clock cannot move backwards",
                details={"current": self._number, "target": block},
            )
        self._number = block
        return self._number

    def begin_operation(self) -> int:
        """Hook called at the start of every mutating operation."""
        if self.automine:
            self._number += 1
        return self._number
