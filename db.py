import logging
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the engine for one application instance.

    Built once by the app factory, shared through ``app.state.db`` and
    disposed on shutdown. Services never reach for a global engine.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        kwargs = {}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # in-memory SQLite lives only as long as its single connection
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        self.url = url
        self.engine = create_engine(url, echo=echo, **kwargs)

    def create_db_and_tables(self) -> None:
        """Create all tables in the database if they don't exist."""
        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        return Session(self.engine)

    def dispose(self) -> None:
        logger.info("Closing database engine")
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_session(
    database: Annotated[Database, Depends(get_database)],
) -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    with database.session() as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]
