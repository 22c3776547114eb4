"""In-memory fungible token ledger (balances, allowances, minting)."""

from typing import Dict, Optional, Tuple

from ..engine.errors import TokenError, ValidationError


class TokenLedger:
    """Balance book for one fungible token.

    Every call either applies fully or raises TokenError without touching
    balances.
    """

    def __init__(self, symbol: str, minters: Optional[set] = None):
        """
        Initialize token ledger.

        Args:
            symbol: Token symbol, also used as its address
            minters: Accounts allowed to mint (None means unrestricted)
        """
        self.symbol = symbol
        self.address = symbol
        self._minters = set(minters) if minters is not None else None
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._total_supply = 0

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def mint(self, to: str, amount: int, minter: Optional[str] = None) -> None:
        if amount < 0:
            raise ValidationError(reason="mint amount must be non-negative", details={"amount": amount})
        if self._minters is not None and minter not in self._minters:
            raise TokenError(reason=f"{self.symbol}: caller is not a minter", details={"minter": minter})
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError(reason="approval must be non-negative", details={"amount": amount})
        self._allowances[(owner, spender)] = amount

    def transfer(self, sender: str, to: str, amount: int) -> None:
        self._move(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        """Move ``amount`` from ``owner`` to ``to`` on behalf of ``spender``."""
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise TokenError(
                reason=f"{self.symbol}: transfer amount exceeds allowance",
                details={"owner": owner, "spender": spender, "allowance": allowed, "amount": amount},
            )
        self._move(owner, to, amount)
        self._allowances[(owner, spender)] = allowed - amount

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError(reason="transfer amount must be non-negative", details={"amount": amount})
        available = self.balance_of(sender)
        if available < amount:
            raise TokenError(
                reason=f"{self.symbol}: transfer amount exceeds balance",
                details={"account": sender, "balance": available, "amount": amount},
            )
        self._balances[sender] = available - amount
        self._balances[to] = self.balance_of(to) + amount
