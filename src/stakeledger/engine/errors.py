"""Error taxonomy for the staking ledger.

Every failure aborts the whole operation. Errors carry a stable ``code``,
a human ``reason`` (kept close to the messages integrators assert on) and
``details`` naming the violated constraint.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(eq=False)
class LedgerError(Exception):
    """Base class for all ledger failures."""
    code: str = "ledger_error"
    reason: str = "ledger error"
    details: Optional[Any] = None

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


@dataclass(eq=False)
class ValidationError(LedgerError):
    """Bad input: zero amounts, zero weights, unknown slots, malformed tables."""
    code: str = "validation_error"
    reason: str = "invalid input"


@dataclass(eq=False)
class InvalidLockLength(ValidationError):
    code: str = "invalid_lock_length"
    reason: str = "invalid lock length"


@dataclass(eq=False)
class EmptyMultiplierTable(ValidationError):
    code: str = "empty_multiplier_table"
    reason: str = "must specify rewards"


@dataclass(eq=False)
class InvalidZeroLockMultiplier(ValidationError):
    code: str = "invalid_zero_lock_multiplier"
    reason: str = "invalid multiplier for 0 lock length"


@dataclass(eq=False)
class MultiplierBelowScale(ValidationError):
    code: str = "multiplier_below_scale"
    reason: str = "invalid multiplier, must be above scale factor"


@dataclass(eq=False)
class AuthorizationError(LedgerError):
    """Caller lacks the role required for the action."""
    code: str = "unauthorized"
    reason: str = "Caller is not authorized"


@dataclass(eq=False)
class StateError(LedgerError):
    """Operation would violate a ledger state constraint."""
    code: str = "state_error"
    reason: str = "invalid state"


@dataclass(eq=False)
class TokensLocked(StateError):
    code: str = "tokens_locked"
    reason: str = "tokens locked"


@dataclass(eq=False)
class NoValueToWithdraw(StateError):
    code: str = "no_value_to_withdraw"
    reason: str = "no value to withdraw"


@dataclass(eq=False)
class SystemPaused(LedgerError):
    code: str = "paused"
    reason: str = "Pausable: paused"


@dataclass(eq=False)
class TokenError(LedgerError):
    """Token ledger refused a transfer, mint or approval."""
    code: str = "token_error"
    reason: str = "token operation failed"
