from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from marketplace.core.config import Settings
import logging

logger = logging.getLogger("database")

# Base class for all models
Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    url = settings.DATABASE_URL

    if url.startswith("sqlite"):
        # In-memory databases must share one connection across threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=settings.DB_ECHO, **kwargs)

        @event.listens_for(engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    engine = create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,          # Base connections
        max_overflow=settings.DB_MAX_OVERFLOW,    # Additional connections under load
        pool_pre_ping=True,                       # Validate connections
        pool_recycle=settings.DB_POOL_RECYCLE,
        echo=settings.DB_ECHO,
    )

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_connection, connection_record):
        logger.info("DB connection established")

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def create_tables(engine: Engine) -> None:
    # Importing the models registers them on Base.metadata
    from marketplace.models import cart, order, product, user  # noqa: F401

    Base.metadata.create_all(bind=engine)
