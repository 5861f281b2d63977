from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from recipe_costing.config import settings


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    if url.startswith("postgresql"):
        return {"options": f"-c timezone={settings.TIMEZONE}"}
    return {}


# Create engine
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
    connect_args=_connect_args(settings.DATABASE_URL)
)


# SQLite only honours ON DELETE CASCADE with foreign keys switched on
@event.listens_for(engine, "connect")
def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    if engine.dialect.name != "sqlite":
        return
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def init_db(bind=None):
    """Create all tables that do not exist yet"""
    # Import models so they register on Base.metadata
    from recipe_costing import models  # noqa: F401
    
    Base.metadata.create_all(bind=bind or engine)


# Dependency to get DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
