from __future__ import annotations

import threading
from collections import defaultdict

from .token import (
    MAX_UINT256,
    ZERO_ADDRESS,
    Address,
    ApprovalEvent,
    LedgerSnapshot,
    TokenEvent,
    TokenMetadata,
    TransferEvent,
)


class LedgerError(Exception):
    """Base class for rejected ledger operations. Nothing is applied when raised."""

    code = "LedgerError"


class InvalidRecipientError(LedgerError):
    code = "InvalidRecipient"

    def __init__(self, *, recipient: Address) -> None:
        self.recipient = recipient
        super().__init__(f"Invalid recipient: {recipient}")


class InvalidSpenderError(LedgerError):
    code = "InvalidSpender"

    def __init__(self, *, spender: Address) -> None:
        self.spender = spender
        super().__init__(f"Invalid spender: {spender}")


class InsufficientBalanceError(LedgerError):
    code = "InsufficientBalance"

    def __init__(self, *, account: Address, requested: int, available: int) -> None:
        self.account = account
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient balance for account={account} requested={requested} available={available}")


class AllowanceExceededError(LedgerError):
    code = "AllowanceExceeded"

    def __init__(self, *, owner: Address, spender: Address, requested: int, available: int) -> None:
        self.owner = owner
        self.spender = spender
        self.requested = requested
        self.available = available
        super().__init__(
            f"Allowance exceeded for owner={owner} spender={spender} requested={requested} available={available}"
        )


class InvalidAmountError(LedgerError):
    code = "InvalidAmount"

    def __init__(self, *, amount: object, reason: str) -> None:
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class TokenLedger:
    """Balances, allowances and supply of a single fungible token.

    Mutations hold the ledger lock for their checks and effects together, so
    callers never see a half-applied transfer and two calls cannot both pass a
    check against the same balance. Each successful mutation appends exactly
    one event and returns it.
    """

    def __init__(self, metadata: TokenMetadata | None = None) -> None:
        self._metadata = metadata or TokenMetadata()
        self._balances: dict[Address, int] = defaultdict(int)
        self._allowances: dict[Address, dict[Address, int]] = defaultdict(lambda: defaultdict(int))
        self._total_supply = 0
        self._events: list[TokenEvent] = []
        self._drained = 0
        self._lock = threading.RLock()

    # Metadata

    @property
    def metadata(self) -> TokenMetadata:
        return self._metadata

    def name(self) -> str:
        return self._metadata.name

    def symbol(self) -> str:
        return self._metadata.symbol

    def decimals(self) -> int:
        return self._metadata.decimals

    # Reads

    def total_supply(self) -> int:
        with self._lock:
            return self._total_supply

    def balance_of(self, account: Address) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def allowance_of(self, owner: Address, spender: Address) -> int:
        with self._lock:
            spenders = self._allowances.get(owner)
            if spenders is None:
                return 0
            return spenders.get(spender, 0)

    def holders(self) -> list[Address]:
        with self._lock:
            return sorted(account for account, balance in self._balances.items() if balance > 0)

    @property
    def events(self) -> tuple[TokenEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def drain_events(self) -> list[TokenEvent]:
        """Return events appended since the previous drain. The log itself is kept."""
        with self._lock:
            pending = self._events[self._drained :]
            self._drained = len(self._events)
            return pending

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                metadata=self._metadata,
                total_supply=self._total_supply,
                balances={account: balance for account, balance in self._balances.items() if balance > 0},
                allowances={
                    (owner, spender): value
                    for owner, spenders in self._allowances.items()
                    for spender, value in spenders.items()
                    if value > 0
                },
                event_count=len(self._events),
            )

    # Mutations

    def transfer(self, caller: Address, to: Address, value: int) -> TransferEvent:
        self._require_amount(value)
        with self._lock:
            if to == ZERO_ADDRESS:
                raise InvalidRecipientError(recipient=to)
            self._require_balance(caller, value)
            self._move(caller, to, value)
            return self._append_transfer(caller, to, value)

    def transfer_from(self, caller: Address, from_address: Address, to: Address, value: int) -> TransferEvent:
        """Spend `value` of `from_address`'s tokens using the allowance it granted `caller`."""
        self._require_amount(value)
        with self._lock:
            if to == ZERO_ADDRESS:
                raise InvalidRecipientError(recipient=to)
            self._require_balance(from_address, value)
            allowed = self.allowance_of(from_address, caller)
            if allowed < value:
                raise AllowanceExceededError(owner=from_address, spender=caller, requested=value, available=allowed)

            self._move(from_address, to, value)
            self._allowances[from_address][caller] = allowed - value
            return self._append_transfer(from_address, to, value)

    def approve(self, caller: Address, spender: Address, value: int) -> ApprovalEvent:
        """Set the allowance of `spender` over `caller`'s balance. Replaces any previous value."""
        self._require_amount(value)
        with self._lock:
            if spender == ZERO_ADDRESS:
                raise InvalidSpenderError(spender=spender)
            self._allowances[caller][spender] = value
            event = ApprovalEvent(sequence=len(self._events), owner=caller, spender=spender, value=value)
            self._events.append(event)
            return event

    def mint(self, to: Address, amount: int) -> TransferEvent:
        # Any caller may mint.
        self._require_amount(amount)
        with self._lock:
            if to == ZERO_ADDRESS:
                raise InvalidRecipientError(recipient=to)
            if self._total_supply + amount > MAX_UINT256:
                raise InvalidAmountError(amount=amount, reason="total supply would overflow uint256")
            self._total_supply += amount
            self._balances[to] += amount
            return self._append_transfer(ZERO_ADDRESS, to, amount)

    def burn(self, caller: Address, amount: int) -> TransferEvent:
        self._require_amount(amount)
        with self._lock:
            if amount <= 0:
                raise InvalidAmountError(amount=amount, reason="burn amount must be greater than zero")
            self._require_balance(caller, amount)
            self._balances[caller] -= amount
            self._total_supply -= amount
            return self._append_transfer(caller, ZERO_ADDRESS, amount)

    # Internals

    @staticmethod
    def _require_amount(value: object) -> None:
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidAmountError(amount=value, reason="amount must be an integer")
        if value < 0:
            raise InvalidAmountError(amount=value, reason="amount must be >= 0")
        if value > MAX_UINT256:
            raise InvalidAmountError(amount=value, reason="amount exceeds uint256")

    def _require_balance(self, account: Address, value: int) -> None:
        available = self._balances.get(account, 0)
        if available < value:
            raise InsufficientBalanceError(account=account, requested=value, available=available)

    def _move(self, source: Address, target: Address, value: int) -> None:
        # Debit first so a self-transfer nets to zero.
        self._balances[source] -= value
        self._balances[target] += value

    def _append_transfer(self, source: Address, target: Address, value: int) -> TransferEvent:
        event = TransferEvent(sequence=len(self._events), from_address=source, to_address=target, value=value)
        self._events.append(event)
        return event
