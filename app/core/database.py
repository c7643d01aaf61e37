import logging

from sqlalchemy import JSON, create_engine, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from app.core.config import settings

# -----------------------
# Logging setup
# -----------------------
logger = logging.getLogger(__name__)

# -----------------------
# Database URL
# -----------------------
DATABASE_URL = settings.sqlalchemy_database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")

# Hide password in logs
safe_db_url = (
    DATABASE_URL.replace(settings.db_password, "****")
    if settings.db_password and not settings.database_url
    else DATABASE_URL
)
logger.info(f"Connecting to database: {safe_db_url}")

# JSONB on PostgreSQL, plain JSON everywhere else
JSONType = JSON().with_variant(JSONB(), "postgresql")


# -----------------------
# SQLAlchemy engine
# -----------------------
def build_engine(url: str):
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        # In-memory SQLite must share one connection across threads
        if url == "sqlite://" or ":memory:" in url:
            options["poolclass"] = StaticPool
        return create_engine(url, echo=settings.db_echo, **options)

    return create_engine(
        url,
        echo=settings.db_echo,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        connect_args={"connect_timeout": 5},
    )


engine = build_engine(DATABASE_URL)


# -----------------------
# Keep every PostgreSQL connection on UTC
# -----------------------
if not IS_SQLITE:

    @event.listens_for(engine, "connect")
    def set_timezone(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("SET timezone='UTC'")
        cursor.close()


# -----------------------
# Session and Base
# -----------------------
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# -----------------------
# Dependency for FastAPI
# -----------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error occurred: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()
