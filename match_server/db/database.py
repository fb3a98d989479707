"""Engine and session factory for the configured database URL"""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from match_server.db.schema import Base


def create_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    """Build the engine, ensure all tables are created and return a session factory bound to it."""
    connect_args = (
        {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    )
    engine = create_engine(database_url, echo=echo, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
