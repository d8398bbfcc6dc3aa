"""
Database session management - SQLAlchemy engine and session factory.

The relational stores receive a session factory at construction time
instead of importing a module-level engine, so the same code runs against
PostgreSQL in production and in-memory SQLite in tests.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker


def create_db_engine(database_url: str) -> Engine:
    """
    Create the engine for DATABASE_URL.

    pool_pre_ping=True: check a pooled connection is alive before handing it
    out, so a database restart does not surface as a failed login.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Build the Session factory used by the relational stores.

    - autoflush=False: changes are flushed explicitly at commit
    - expire_on_commit=False: ORM rows stay readable after commit, the
      stores convert them to schemas after the transaction ends
    """
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)
