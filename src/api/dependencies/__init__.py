from typing import Annotated

from fastapi import Header, Request

from domain.token import MAX_UINT256, Address, InvalidAddressError, parse_address
from services.token_service import TokenService

_MAX_AMOUNT_DIGITS = len(str(MAX_UINT256))


class BadRequest(Exception):
    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_caller(x_caller: Annotated[str | None, Header()] = None) -> Address | None:
    if x_caller is None:
        return None
    return to_address(x_caller)


def to_address(raw: str) -> Address:
    try:
        return parse_address(raw)
    except InvalidAddressError as err:
        raise BadRequest("InvalidAddress", str(err)) from err


def to_amount(raw: str) -> int:
    # Amounts travel as decimal strings of base units.
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise BadRequest("InvalidAmount", f"Amount must be a non-negative integer string, got {raw!r}")
    if len(text.lstrip("0")) > _MAX_AMOUNT_DIGITS:
        raise BadRequest("InvalidAmount", f"Amount exceeds uint256 ({len(text)} digits)")
    return int(text)
