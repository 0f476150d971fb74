from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import models
from domain.token import Address, ApprovalEvent, TokenEvent, TokenEventType, TransferEvent


class TokenEventRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_many(self, contract_address: Address, events: Iterable[TokenEvent]) -> None:
        orm_events = [self._to_orm(contract_address, event) for event in events]
        if not orm_events:
            return
        self._session.add_all(orm_events)
        try:
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise

    def list(self, contract_address: Address) -> list[TokenEvent]:
        stmt = (
            select(models.TokenEventOrm)
            .where(models.TokenEventOrm.contract_address == contract_address)
            .order_by(models.TokenEventOrm.sequence.asc())
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @staticmethod
    def _to_orm(contract_address: Address, event: TokenEvent) -> models.TokenEventOrm:
        if isinstance(event, TransferEvent):
            source, target = event.from_address, event.to_address
        else:
            source, target = event.owner, event.spender
        return models.TokenEventOrm(
            contract_address=contract_address,
            sequence=event.sequence,
            event_type=event.event_type.value,
            source_address=source,
            target_address=target,
            value=event.value,
        )

    @staticmethod
    def _to_domain(orm_event: models.TokenEventOrm) -> TokenEvent:
        event_type = TokenEventType(orm_event.event_type)
        if event_type == TokenEventType.TRANSFER:
            return TransferEvent(
                sequence=orm_event.sequence,
                from_address=Address(orm_event.source_address),
                to_address=Address(orm_event.target_address),
                value=orm_event.value,
            )
        return ApprovalEvent(
            sequence=orm_event.sequence,
            owner=Address(orm_event.source_address),
            spender=Address(orm_event.target_address),
            value=orm_event.value,
        )
