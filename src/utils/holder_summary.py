from __future__ import annotations

from dataclasses import dataclass, field

from domain.token_ledger import TokenLedger

from .formatting import format_token_amount


@dataclass
class HolderBalance:
    address: str
    balance: int


@dataclass
class HolderSummary:
    name: str
    symbol: str
    decimals: int
    total_supply: int
    holders: list[HolderBalance] = field(default_factory=list)


def compute_holder_summary(ledger: TokenLedger) -> HolderSummary:
    snapshot = ledger.snapshot()
    holders = [
        HolderBalance(address=address, balance=balance)
        for address, balance in sorted(snapshot.balances.items(), key=lambda item: (-item[1], item[0]))
    ]
    return HolderSummary(
        name=snapshot.metadata.name,
        symbol=snapshot.metadata.symbol,
        decimals=snapshot.metadata.decimals,
        total_supply=snapshot.total_supply,
        holders=holders,
    )


def render_holder_summary(summary: HolderSummary) -> None:
    print(f"{summary.name} ({summary.symbol}) holders:")
    if not summary.holders:
        print("  (empty)")
        return

    address_label = "Address"
    balance_label = f"Balance {summary.symbol}"

    rows = [(holder.address, format_token_amount(holder.balance, summary.decimals)) for holder in summary.holders]
    total_text = format_token_amount(summary.total_supply, summary.decimals)

    address_width = max(len(address_label), max(len(address) for address, _ in rows))
    balance_width = max(len(balance_label), len(total_text), max(len(balance) for _, balance in rows))

    header = f"{address_label:<{address_width}} {balance_label:>{balance_width}}"
    lines = [header, "-" * len(header)]
    for address, balance_text in rows:
        lines.append(f"{address:<{address_width}} {balance_text:>{balance_width}}")
    lines.append("-" * len(header))
    lines.append(f"{'Total supply':<{address_width}} {total_text:>{balance_width}}")
    print("\n".join(lines))
