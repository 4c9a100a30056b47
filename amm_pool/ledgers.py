"""Ledger collaborators used by Pool.

The pool never stores asset or share balances itself. It talks to two
capabilities provided by the host:

- AssetLedger moves the two pooled assets between accounts and pool custody.
- ShareLedger tracks liquidity-share balances.

Both are Protocols so any host object with the right methods works. The
in-memory implementations below are complete ledgers suitable for tests,
simulations and prototypes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import structlog

from amm_pool.errors import InsufficientAllowance, InsufficientBalance

logger = structlog.get_logger()


@runtime_checkable
class AssetLedger(Protocol):
    """Moves fungible assets in and out of pool custody."""

    def transfer_in(self, asset: str, sender: str, amount: int) -> None:
        """Move amount of asset from sender into pool custody.

        Raises:
            InsufficientBalance: If sender cannot cover the amount
            InsufficientAllowance: If sender has not approved the amount
        """
        ...

    def transfer_out(self, asset: str, recipient: str, amount: int) -> None:
        """Move amount of asset from pool custody to recipient.

        Raises:
            InsufficientBalance: If pool custody cannot cover the amount
        """
        ...


@runtime_checkable
class ShareLedger(Protocol):
    """Liquidity-share balances for one pool."""

    def mint(self, to: str, amount: int) -> None: ...

    def burn(self, owner: str, amount: int) -> None: ...

    def balance_of(self, account: str) -> int: ...

    def total_supply(self) -> int: ...


class InMemoryAssetLedger:
    """Dict-backed AssetLedger.

    Balances are keyed by (account, asset). Pool custody is an ordinary account
    named by `custody`. Zero balances are dropped to keep the table sparse.

    With enforce_allowances=True, transfer_in also requires and consumes an
    allowance granted through approve().
    """

    def __init__(self, custody: str = "pool", enforce_allowances: bool = False) -> None:
        self.custody = custody
        self.enforce_allowances = enforce_allowances
        self._balances: dict[tuple[str, str], int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    def balance_of(self, account: str, asset: str) -> int:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def custody_balance(self, asset: str) -> int:
        """Amount of asset currently held in pool custody."""
        return self.balance_of(self.custody, asset)

    def credit(self, account: str, asset: str, amount: int) -> None:
        """Mint amount of asset into account (test and host setup)."""
        if amount < 0:
            raise ValueError(f"Credit amount must be non-negative: {amount}")
        self._set(account, asset, self.balance_of(account, asset) + amount)

    def approve(self, owner: str, asset: str, amount: int) -> None:
        """Allow the pool to pull up to amount of asset from owner."""
        if amount < 0:
            raise ValueError(f"Allowance must be non-negative: {amount}")
        self._allowances[(owner, asset)] = amount

    def allowance(self, owner: str, asset: str) -> int:
        return self._allowances.get((owner, asset), 0)

    def transfer_in(self, asset: str, sender: str, amount: int) -> None:
        if self.enforce_allowances:
            allowed = self.allowance(sender, asset)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{sender} allowance for {asset} is {allowed}, needs {amount}"
                )
        self._move(asset, sender, self.custody, amount)
        if self.enforce_allowances:
            self._allowances[(sender, asset)] -= amount

    def transfer_out(self, asset: str, recipient: str, amount: int) -> None:
        self._move(asset, self.custody, recipient, amount)

    def get_all_balances(self) -> dict[tuple[str, str], int]:
        """Return a copy of all non-zero balances."""
        return dict(self._balances)

    def _move(self, asset: str, source: str, destination: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative: {amount}")
        available = self.balance_of(source, asset)
        if available < amount:
            raise InsufficientBalance(f"{source} holds {available} {asset}, needs {amount}")
        self._set(source, asset, available - amount)
        self._set(destination, asset, self.balance_of(destination, asset) + amount)
        logger.debug(
            "asset_transfer",
            asset=asset,
            source=source,
            destination=destination,
            amount=amount,
        )

    def _set(self, account: str, asset: str, amount: int) -> None:
        if amount == 0:
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def __repr__(self) -> str:
        return f"InMemoryAssetLedger(custody={self.custody!r}, {len(self._balances)} entries)"


class InMemoryShareLedger:
    """Dict-backed ShareLedger for a single pool."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._supply = 0

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Mint amount must be non-negative: {amount}")
        self._balances[to] = self.balance_of(to) + amount
        self._supply += amount

    def burn(self, owner: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Burn amount must be non-negative: {amount}")
        held = self.balance_of(owner)
        if held < amount:
            raise InsufficientBalance(f"{owner} holds {held} shares, needs {amount}")
        remaining = held - amount
        if remaining == 0:
            self._balances.pop(owner, None)
        else:
            self._balances[owner] = remaining
        self._supply -= amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def total_supply(self) -> int:
        return self._supply

    def __repr__(self) -> str:
        return f"InMemoryShareLedger(supply={self._supply}, holders={len(self._balances)})"
