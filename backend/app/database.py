from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from .config import settings

_database_url = settings.resolved_database_url
_is_sqlite = _database_url.startswith("sqlite")

# check_same_thread=False is required for SQLite under FastAPI's threadpool
engine = create_engine(
    _database_url,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)


# Enable foreign keys on SQLite connections
@event.listens_for(engine, "connect")
def enable_sqlite_fk(dbapi_connection, _):
    if not _is_sqlite:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
