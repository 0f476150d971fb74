from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from utils.units import to_base_units

_MAX_DIGITS = 78


@dataclass(frozen=True)
class Operation:
    route: str
    params: dict[str, str] = field(default_factory=dict)
    caller: str | None = None


def load_operations(path: Path, *, decimals: int = 18) -> list[Operation]:
    """Load a JSONL operation script.

    Each non-empty line is an object: {"route": "mint", "params": {"to": "0x..", "amount": "100"}}
    with an optional "caller" address. Parameter values are kept as strings.
    A display amount may be given as "amount_tokens" (e.g. "1.5"); it is converted
    to the "amount" base-unit string using `decimals`.
    """
    operations: list[Operation] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as err:
                raise ValueError(f"{path}:{line_no}: invalid JSON ({err.msg})") from err

            if not isinstance(record, dict) or not isinstance(record.get("route"), str):
                raise ValueError(f"{path}:{line_no}: expected an object with a 'route' string")
            params = record.get("params", {})
            if not isinstance(params, dict):
                raise ValueError(f"{path}:{line_no}: 'params' must be an object")
            caller = record.get("caller")
            if caller is not None and not isinstance(caller, str):
                raise ValueError(f"{path}:{line_no}: 'caller' must be a string")

            params = {str(key): str(value) for key, value in params.items()}
            if "amount_tokens" in params:
                if "amount" in params:
                    raise ValueError(f"{path}:{line_no}: give either 'amount' or 'amount_tokens', not both")
                params["amount"] = str(_display_to_base_units(params.pop("amount_tokens"), decimals, path, line_no))

            operations.append(Operation(route=record["route"], params=params, caller=caller))
    return operations


def _display_to_base_units(raw: str, decimals: int, path: Path, line_no: int) -> int:
    try:
        amount = Decimal(raw)
        # Scaling by 10**exponent must stay within uint256 digit counts.
        if amount.is_finite() and (
            amount.adjusted() + decimals > _MAX_DIGITS or amount.as_tuple().exponent < -_MAX_DIGITS
        ):
            raise ValueError(f"{raw} is out of range")
        units = to_base_units(amount, decimals)
    except (InvalidOperation, ValueError) as err:
        raise ValueError(f"{path}:{line_no}: invalid 'amount_tokens' {raw!r}") from err
    if units < 0:
        raise ValueError(f"{path}:{line_no}: 'amount_tokens' must not be negative")
    return units
