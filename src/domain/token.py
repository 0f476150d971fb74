from __future__ import annotations

import re
from enum import StrEnum
from typing import Literal, NewType

from pydantic import BaseModel, ConfigDict, Field, model_validator

Address = NewType("Address", str)

ZERO_ADDRESS = Address("0x" + "0" * 40)
MAX_UINT256 = 2**256 - 1

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class InvalidAddressError(ValueError):
    def __init__(self, raw: object) -> None:
        self.raw = raw
        super().__init__(f"Invalid address: {raw!r}")


def parse_address(raw: str) -> Address:
    """Validate a hex account identifier and return its lowercase form."""
    if not isinstance(raw, str) or not _ADDRESS_RE.match(raw.strip()):
        raise InvalidAddressError(raw)
    return Address(raw.strip().lower())


class TokenEventType(StrEnum):
    TRANSFER = "TRANSFER"
    APPROVAL = "APPROVAL"


class TokenMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "WYZToken"
    symbol: str = "WYZ"
    decimals: int = Field(default=18, ge=0, le=255)

    @model_validator(mode="after")
    def _validate_fields(self) -> TokenMetadata:
        if not self.name:
            raise ValueError("name must be non-empty")
        if not self.symbol:
            raise ValueError("symbol must be non-empty")
        return self


class TransferEvent(BaseModel):
    """Balance movement. Mint uses the zero address as sender, burn as recipient."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal[TokenEventType.TRANSFER] = TokenEventType.TRANSFER
    sequence: int = Field(ge=0)
    from_address: Address
    to_address: Address
    value: int = Field(ge=0, le=MAX_UINT256)


class ApprovalEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal[TokenEventType.APPROVAL] = TokenEventType.APPROVAL
    sequence: int = Field(ge=0)
    owner: Address
    spender: Address
    value: int = Field(ge=0, le=MAX_UINT256)


TokenEvent = TransferEvent | ApprovalEvent


class LedgerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    metadata: TokenMetadata
    total_supply: int
    balances: dict[Address, int]
    allowances: dict[tuple[Address, Address], int]
    event_count: int
