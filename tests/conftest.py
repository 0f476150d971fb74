from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base
from db.repositories import TokenEventRepository
from domain.token import TokenMetadata
from domain.token_ledger import TokenLedger
from services.token_service import TokenService
from tests.constants import DEPLOYER

engine: Engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool)
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def ledger() -> TokenLedger:
    return TokenLedger(TokenMetadata())


@pytest.fixture(scope="function")
def event_repository(test_session: Session) -> TokenEventRepository:
    return TokenEventRepository(test_session)


@pytest.fixture(scope="function")
def token_service(event_repository: TokenEventRepository) -> TokenService:
    return TokenService(default_caller=DEPLOYER, event_repository=event_repository)
