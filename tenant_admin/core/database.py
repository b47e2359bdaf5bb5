"""
Database configuration and session management
"""

from sqlmodel import SQLModel, Session, create_engine
import structlog

from tenant_admin.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)


def init_db(bind=None):
    """Create tables directly (dev and tests; production uses Alembic)"""
    # Import models so every table is registered on the metadata
    import tenant_admin.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables created")


def get_session():
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session
