"""Ratio reserve controller - withdraws a basis-point share of a reserve's balance."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from ..engine.errors import (
    AuthorizationError,
    LedgerError,
    NoValueToWithdraw,
    SystemPaused,
    ValidationError,
)
from ..engine.events import EventLog, Paused, RatioWithdraw, Unpaused
from ..external.access import AccessGate
from ..external.clock import BlockClock
from ..external.tokens import TokenLedger
from ..logs import log_event

logger = logging.getLogger(__name__)

BASIS_POINTS_GRANULARITY = 10_000


class RatioController:
    """PCV-controller-gated sweeps of a fraction of a reserve's token balance."""

    def __init__(
        self,
        gate: AccessGate,
        clock: Optional[BlockClock] = None,
        event_log: Optional[EventLog] = None,
    ):
        self._gate = gate
        self._clock = clock or BlockClock()
        self._paused = False
        self.events = event_log or EventLog()

    @property
    def paused(self) -> bool:
        return self._paused or self._gate.is_paused()

    @contextmanager
    def _guard(self, operation: str, **fields: Any) -> Iterator[int]:
        """Log and re-raise any ledger error raised inside the block."""
        block = self._clock.number
        try:
            yield block
        except LedgerError as exc:
            log_event(logger, "operation_rejected", level=logging.WARNING,
                      operation=operation, block=block, code=exc.code, reason=exc.reason, **fields)
            raise

    def withdraw_ratio(
        self,
        caller: str,
        reserve: str,
        token: TokenLedger,
        recipient: str,
        basis_points: int,
    ) -> int:
        """
        Move ``basis_points / 10000`` of ``reserve``'s ``token`` balance to ``recipient``.

        Args:
            caller: Account requesting the sweep (must be a PCV controller)
            reserve: Account holding the funds
            token: Token to withdraw
            recipient: Destination account
            basis_points: Share of the balance, 0..10000

        Returns:
            Amount transferred

        Raises:
            AuthorizationError: caller is not a PCV controller
            SystemPaused: controller or system paused
            ValidationError: basis_points out of range
            NoValueToWithdraw: the computed amount is zero
            TokenError: the token refused the transfer
        """
        with self._guard("withdraw_ratio", user=caller, reserve=reserve) as block:
            if not self._gate.is_pcv_controller(caller):
                raise AuthorizationError(reason="Caller is not a PCV controller", details={"caller": caller})
            if self.paused:
                raise SystemPaused(details={"operation": "withdraw_ratio"})
            if basis_points < 0 or basis_points > BASIS_POINTS_GRANULARITY:
                raise ValidationError(reason="basisPoints too high", details={"basis_points": basis_points})

            amount = token.balance_of(reserve) * basis_points // BASIS_POINTS_GRANULARITY
            if amount == 0:
                raise NoValueToWithdraw(details={"reserve": reserve, "token": token.symbol})
            token.transfer(reserve, recipient, amount)

        self.events.emit(block, RatioWithdraw(
            caller=caller, reserve=reserve, token=token.symbol,
            to=recipient, amount=amount, basis_points=basis_points,
        ))
        return amount

    def pause(self, caller: str) -> None:
        with self._guard("pause", user=caller) as block:
            if not self._gate.is_guardian_or_governor(caller):
                raise AuthorizationError(reason="Caller is not a guardian or governor", details={"caller": caller})
        self._paused = True
        self.events.emit(block, Paused(account=caller))

    def unpause(self, caller: str) -> None:
        with self._guard("unpause", user=caller) as block:
            if not self._gate.is_governor(caller):
                raise AuthorizationError(reason="Caller is not a governor", details={"caller": caller})
        self._paused = False
        self.events.emit(block, Unpaused(account=caller))
