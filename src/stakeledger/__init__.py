"""Multi-pool time-locked staking-rewards ledger."""

from .engine.errors import (
    AuthorizationError,
    LedgerError,
    NoValueToWithdraw,
    StateError,
    SystemPaused,
    TokenError,
    TokensLocked,
    ValidationError,
)
from .engine.ledger import Rewarder, StakingLedger
from .engine.multipliers import SCALE_FACTOR, MultiplierEntry
from .engine.rewards import ACC_REWARD_PRECISION
from .external import AccessGate, BlockClock, CoreAccessGate, TokenLedger

__version__ = "0.1.0"

__all__ = [
    "ACC_REWARD_PRECISION",
    "AccessGate",
    "AuthorizationError",
    "BlockClock",
    "CoreAccessGate",
    "LedgerError",
    "MultiplierEntry",
    "NoValueToWithdraw",
    "Rewarder",
    "SCALE_FACTOR",
    "StakingLedger",
    "StateError",
    "SystemPaused",
    "TokenError",
    "TokenLedger",
    "TokensLocked",
    "ValidationError",
]
