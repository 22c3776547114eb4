"""External collaborators: tokens, authorization gate, block clock."""

from .access import AccessGate, CoreAccessGate
from .clock import BlockClock
from .tokens import TokenLedger

__all__ = [
    "AccessGate",
    "BlockClock",
    "CoreAccessGate",
    "TokenLedger",
]
