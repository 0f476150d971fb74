from __future__ import annotations

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class IntAsString(TypeDecorator):
    """Stores arbitrary-precision integers as decimal strings (SQLite INTEGER is 64-bit)."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: int | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> int | None:
        if value is None:
            return None
        return int(value)


class Base(DeclarativeBase):
    pass


class TokenEventOrm(Base):
    __tablename__ = "token_events"
    __table_args__ = (UniqueConstraint("contract_address", "sequence", name="uq_token_events_contract_sequence"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contract_address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    # Transfer: from/to. Approval: owner/spender.
    source_address: Mapped[str] = mapped_column(String(42), nullable=False)
    target_address: Mapped[str] = mapped_column(String(42), nullable=False)
    value: Mapped[int] = mapped_column(IntAsString, nullable=False)
