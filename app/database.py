from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}


def use_immediate_transactions(engine):
    """Make SQLite take its write lock when a transaction begins.

    pysqlite normally defers BEGIN until the first INSERT/UPDATE, so a SELECT
    followed by a write is not isolated from other writers. With BEGIN
    IMMEDIATE the whole transaction holds the lock, and a second writer waits
    (up to the driver ``timeout``) until the first one commits or rolls back.
    """

    @event.listens_for(engine, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = create_engine(DATABASE_URL, connect_args=connect_args)
if engine.dialect.name == "sqlite":
    use_immediate_transactions(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
