from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from .config import settings

# Execution option that makes the next transaction on a session take the
# SQLite write lock up front (BEGIN IMMEDIATE). Reservations use it so the
# availability re-check and the insert run under one writer lock.
IMMEDIATE_OPTION = "slotbook_begin_immediate"


def make_engine(url: str, **kwargs) -> Engine:
    """Create an engine; SQLite gets FK enforcement and explicit BEGIN handling."""
    if not url.startswith("sqlite"):
        return create_engine(url, **kwargs)

    connect_args = kwargs.pop("connect_args", {})
    # sessions are used from FastAPI threadpool workers
    connect_args.setdefault("check_same_thread", False)
    engine = create_engine(url, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_connection, _):
        # pysqlite must not emit its own BEGIN, we do it in on_begin
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def on_begin(conn):
        if conn.get_execution_options().get(IMMEDIATE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


engine = make_engine(settings.resolved_database_url)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def begin_reservation(db: Session) -> None:
    """
    Start a write-serialized transaction on the session.

    Any transaction already open on the session is committed first so the
    new one can be opened with the reservation options.
    """
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={IMMEDIATE_OPTION: True})


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
