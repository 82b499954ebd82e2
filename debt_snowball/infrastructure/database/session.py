"""Database engine and session factory for the local SQLite store"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from debt_snowball.infrastructure.database.models import Base


def create_db_engine(database_url: str) -> Engine:
    """Engine for a database URL; SQLite connections may be shared across threads"""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create missing tables"""
    Base.metadata.create_all(bind=engine)
