import pytest

from domain.token_ledger import TokenLedger
from tests.constants import ALICE, BOB, CAROL
from utils.holder_summary import compute_holder_summary, render_holder_summary


def test_summary_orders_holders_by_balance(ledger: TokenLedger) -> None:
    ledger.mint(ALICE, 10**18)
    ledger.mint(BOB, 3 * 10**18)
    ledger.mint(CAROL, 5)
    ledger.burn(CAROL, 5)

    summary = compute_holder_summary(ledger)

    assert [holder.address for holder in summary.holders] == [BOB, ALICE]
    assert summary.total_supply == 4 * 10**18
    assert summary.symbol == "WYZ"


def test_render_summary(ledger: TokenLedger, capsys: pytest.CaptureFixture[str]) -> None:
    ledger.mint(ALICE, 15 * 10**17)

    render_holder_summary(compute_holder_summary(ledger))

    out = capsys.readouterr().out
    assert "WYZToken (WYZ) holders:" in out
    assert ALICE in out
    assert "1.5" in out
    assert "Total supply" in out


def test_render_empty_summary(ledger: TokenLedger, capsys: pytest.CaptureFixture[str]) -> None:
    render_holder_summary(compute_holder_summary(ledger))

    assert "(empty)" in capsys.readouterr().out
