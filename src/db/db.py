from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base


def init_db(database_url: str, *, echo: bool = False, reset: bool = False) -> Session:
    # The session is shared across request threads; callers serialize access.
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine: Engine = create_engine(database_url, echo=echo, connect_args=connect_args)

    if reset:
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    return sessionmaker(engine)()
