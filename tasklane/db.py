# PURPOSE: create the SQLAlchemy engine and a Session factory.

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

# Choose engine based on DATABASE_URL; apply SQLite-specific connect_args only when needed.
db_url = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}

engine = create_engine(db_url, connect_args=connect_args)

# SessionLocal: opened/closed per request in FastAPI. Rows returned by
# UPDATE ... RETURNING must stay readable after commit, hence no expiry.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# Base: parent class for all ORM models (tables)
Base = declarative_base()


def get_db():
    """Yield a SQLAlchemy session (used as a FastAPI dependency)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
